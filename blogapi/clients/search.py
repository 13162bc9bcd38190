from typing import Any, Dict

import meilisearch

from blogapi.core.config import settings
from blogapi.core.logging import LogContext, PerformanceLogger

logger = LogContext(__name__)


class SearchClient:
    """Thin wrapper over the Meilisearch index holding article documents"""

    def __init__(
        self,
        url: str = settings.MEILISEARCH_URL,
        api_key: str = settings.MEILISEARCH_MASTER_KEY,
        index_name: str = settings.MEILISEARCH_INDEX_NAME,
    ):
        self.client = meilisearch.Client(url, api_key or None)
        self.index_name = index_name

    @property
    def index(self):
        return self.client.index(self.index_name)

    def add_document(self, document: Dict[str, Any]) -> Any:
        with PerformanceLogger(logger, f"search_add_{document.get('id')}"):
            task = self.index.add_documents([document], primary_key="id")
        logger.debug(
            "Search document submitted",
            extra={"document_id": document.get("id"), "index": self.index_name},
        )
        return task

    def delete_document(self, document_id: int) -> Any:
        with PerformanceLogger(logger, f"search_delete_{document_id}"):
            task = self.index.delete_document(document_id)
        logger.debug(
            "Search document deletion submitted",
            extra={"document_id": document_id, "index": self.index_name},
        )
        return task
