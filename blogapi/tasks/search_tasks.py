from typing import Any, Dict

from meilisearch.errors import MeilisearchError

from blogapi.clients.search import SearchClient
from blogapi.core.config import settings
from blogapi.core.logging import LogContext, add_correlation_id
from blogapi.tasks.celery_app import celery_app

logger = LogContext(__name__)

RETRYABLE_ERRORS = (MeilisearchError, ConnectionError, TimeoutError)


@celery_app.task(bind=True, max_retries=settings.CELERY_TASK_MAX_RETRIES, acks_late=True)
def index_article(self, document: Dict[str, Any]):
    """Add or replace an article document in the search index"""
    add_correlation_id("article_id", document.get("id"))
    try:
        SearchClient().add_document(document)
    except RETRYABLE_ERRORS as e:
        logger.error(
            "Failed to index article",
            extra={
                "article_id": document.get("id"),
                "error": str(e),
                "error_type": e.__class__.__name__,
                "retries": self.request.retries,
            },
        )
        raise self.retry(exc=e, countdown=2**self.request.retries)

    logger.info("Article indexed", extra={"article_id": document.get("id")})
    return {"id": document.get("id"), "status": "indexed"}


@celery_app.task(bind=True, max_retries=settings.CELERY_TASK_MAX_RETRIES, acks_late=True)
def unindex_article(self, article_id: int):
    """Remove an article document from the search index"""
    add_correlation_id("article_id", article_id)
    try:
        SearchClient().delete_document(article_id)
    except RETRYABLE_ERRORS as e:
        logger.error(
            "Failed to unindex article",
            extra={
                "article_id": article_id,
                "error": str(e),
                "error_type": e.__class__.__name__,
                "retries": self.request.retries,
            },
        )
        raise self.retry(exc=e, countdown=2**self.request.retries)

    logger.info("Article removed from index", extra={"article_id": article_id})
    return {"id": article_id, "status": "unindexed"}
