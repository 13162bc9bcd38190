from .article import ArticleCreate, ArticleUpdate, ArticleOut, DeletedResponse
from .feed import FeedItem, FeedChannel
from .pagination import Page, PaginatedResponse

__all__ = [
    "ArticleCreate",
    "ArticleUpdate",
    "ArticleOut",
    "DeletedResponse",
    "FeedItem",
    "FeedChannel",
    "Page",
    "PaginatedResponse",
]
