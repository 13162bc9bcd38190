from typing import Annotated

from fastapi import Depends, Query

from blogapi.clients.redis import RedisClient
from blogapi.core.config import settings
from blogapi.db.database import SessionDep
from blogapi.models.pagination import Page
from blogapi.repositories.article_repository import ArticleRepository
from blogapi.repositories.attachment_repository import AttachmentRepository
from blogapi.repositories.category_repository import CategoryRepository
from blogapi.services.article_service import ArticleService
from blogapi.services.attachment_service import AttachmentService
from blogapi.services.cache_service import CacheService
from blogapi.services.feed_service import FeedService
from blogapi.services.search_indexer import SearchIndexer


def get_page(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
) -> Page:
    """Page descriptor for listing endpoints"""
    return Page(index=page, size=settings.DEFAULT_PAGE_SIZE)


async def get_redis_client() -> RedisClient:
    """
    Get a Redis client instance

    Returns:
        RedisClient: A configured redis client
    """
    redis_client = RedisClient()
    await redis_client.initialize()
    return redis_client


async def get_cache_service(
    redis_client: RedisClient = Depends(get_redis_client),
) -> CacheService:
    return CacheService(redis_client)


def get_search_indexer() -> SearchIndexer:
    return SearchIndexer()


def get_article_service(
    session: SessionDep, indexer: SearchIndexer = Depends(get_search_indexer)
) -> ArticleService:
    return ArticleService(
        ArticleRepository(session),
        CategoryRepository(session),
        AttachmentService(AttachmentRepository(session)),
        indexer,
    )


def get_feed_service(
    session: SessionDep, cache_service: CacheService = Depends(get_cache_service)
) -> FeedService:
    return FeedService(ArticleRepository(session), cache_service)


PageDep = Annotated[Page, Depends(get_page)]
ArticleServiceDep = Annotated[ArticleService, Depends(get_article_service)]
FeedServiceDep = Annotated[FeedService, Depends(get_feed_service)]
