from unittest.mock import patch

import pytest
from celery.exceptions import Retry
from meilisearch.errors import MeilisearchCommunicationError

from blogapi.tasks.search_tasks import index_article, unindex_article


@pytest.fixture
def mock_search_client():
    with patch("blogapi.tasks.search_tasks.SearchClient") as mock:
        yield mock.return_value


class TestIndexArticle:
    def test_adds_document(self, mock_search_client):
        document = {"id": 3, "name": "Title"}

        result = index_article.run(document)

        mock_search_client.add_document.assert_called_once_with(document)
        assert result == {"id": 3, "status": "indexed"}

    def test_retries_on_search_error(self, mock_search_client):
        mock_search_client.add_document.side_effect = MeilisearchCommunicationError(
            "unreachable"
        )

        with patch.object(index_article, "retry", side_effect=Retry()) as retry:
            with pytest.raises(Retry):
                index_article.run({"id": 3})

        retry.assert_called_once()


class TestUnindexArticle:
    def test_deletes_document(self, mock_search_client):
        result = unindex_article.run(9)

        mock_search_client.delete_document.assert_called_once_with(9)
        assert result == {"id": 9, "status": "unindexed"}

    def test_retries_on_connection_error(self, mock_search_client):
        mock_search_client.delete_document.side_effect = ConnectionError("refused")

        with patch.object(unindex_article, "retry", side_effect=Retry()) as retry:
            with pytest.raises(Retry):
                unindex_article.run(9)

        retry.assert_called_once()
