from .redis import RedisClient
from .search import SearchClient

__all__ = ["RedisClient", "SearchClient"]
