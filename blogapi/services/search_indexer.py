from typing import Any, Dict

from blogapi.constants import ARTICLE_URL_PATH
from blogapi.core.logging import LogContext
from blogapi.core.metrics import search_index_operations
from blogapi.models.db_models import Articles
from blogapi.tasks import search_tasks
from blogapi.utils.text_utils import html2text, md2html

logger = LogContext(__name__)


class SearchIndexer:
    """
    Schedules search index updates without waiting for them

    Scheduling failures (broker down, serialization errors) are logged and
    counted, never raised, so article writes succeed regardless of the
    state of the search pipeline.
    """

    @staticmethod
    def build_document(article: Articles, content: str) -> Dict[str, Any]:
        return {
            "type": "article",
            "id": article.id,
            "tags": article.tags,
            "name": article.name,
            "description": article.description,
            "content": html2text(md2html(content)),
            "created_at": article.publish_at.isoformat(),
            "updated_at": article.updated_at.isoformat(),
            "url": ARTICLE_URL_PATH.format(id=article.id),
            "upvotes": 0,
        }

    def index_article(self, article: Articles, content: str) -> bool:
        try:
            document = self.build_document(article, content)
            search_tasks.index_article.apply_async(args=[document], retry=False)
        except Exception as e:
            search_index_operations.labels(operation="index", status="failed").inc()
            logger.error(
                "Failed to schedule article indexing",
                extra={
                    "article_id": article.id,
                    "error": str(e),
                    "error_type": e.__class__.__name__,
                },
            )
            return False

        search_index_operations.labels(operation="index", status="scheduled").inc()
        logger.debug("Article indexing scheduled", extra={"article_id": article.id})
        return True

    def unindex_article(self, article_id: int) -> bool:
        try:
            search_tasks.unindex_article.apply_async(args=[article_id], retry=False)
        except Exception as e:
            search_index_operations.labels(operation="unindex", status="failed").inc()
            logger.error(
                "Failed to schedule article unindexing",
                extra={
                    "article_id": article_id,
                    "error": str(e),
                    "error_type": e.__class__.__name__,
                },
            )
            return False

        search_index_operations.labels(operation="unindex", status="scheduled").inc()
        logger.debug("Article unindexing scheduled", extra={"article_id": article_id})
        return True
