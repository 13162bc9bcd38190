from .routes.articles import router as articles_router
from .routes.feed import router as feed_router
from .routes.auth import auth_router
from .error_handlers import setup_error_handlers

__all__ = ["articles_router", "feed_router", "auth_router", "setup_error_handlers"]
