from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from blogapi.api import articles_router, auth_router, feed_router, setup_error_handlers
from blogapi.api.middleware import PrometheusMiddleware, RequestIDMiddleware
from blogapi.clients.redis import RedisClient
from blogapi.core import setup_logging
from blogapi.core.config import settings
from blogapi.core.logging import LogContext
from blogapi.db.operations import initialize_db

logger = LogContext(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    initialize_db()

    redis_client = RedisClient()
    await redis_client.initialize()
    logger.info(
        "Application started",
        extra={"environment": settings.ENVIRONMENT, "version": settings.VERSION},
    )

    yield

    await redis_client.close()


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(
        lifespan=lifespan,
        title=settings.PROJECT_NAME,
        description="Blog articles API with RSS feed",
        version=settings.VERSION,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
    )

    setup_error_handlers(app)

    app.include_router(articles_router, prefix=settings.API_PREFIX)
    app.include_router(auth_router)
    app.include_router(feed_router)

    # added last runs first, so request ids exist before metrics are taken
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        return Response(
            content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST
        )

    return app


app = create_app()
