from datetime import datetime
from typing import List

from blogapi.constants import Role, has_role
from blogapi.core.exceptions import (
    InvalidParameterError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from blogapi.core.logging import LogContext, PerformanceLogger, add_correlation_id
from blogapi.core.metrics import article_mutations
from blogapi.models.article import ArticleCreate, ArticleOut, ArticleUpdate
from blogapi.models.db_models import Articles, Users, utcnow
from blogapi.models.pagination import Page
from blogapi.repositories.article_repository import ArticleRepository
from blogapi.repositories.category_repository import CategoryRepository
from blogapi.services.attachment_service import AttachmentService
from blogapi.services.search_indexer import SearchIndexer
from blogapi.utils.text_utils import format_tags, md2html

logger = LogContext(__name__)

CONTENT_FORMATS = ("html",)


def is_visible(article: Articles, viewer: Users | None, now: datetime) -> bool:
    """Published articles are public, contributors and up also see scheduled ones"""
    if article.publish_at <= now:
        return True
    return viewer is not None and has_role(viewer.role, Role.CONTRIBUTOR)


def check_role(user: Users | None, required: Role) -> None:
    if user is None or not has_role(user.role, required):
        raise PermissionDeniedError()


class ArticleService:
    def __init__(
        self,
        repository: ArticleRepository,
        category_repository: CategoryRepository,
        attachment_service: AttachmentService,
        indexer: SearchIndexer,
    ):
        self.repository = repository
        self.category_repository = category_repository
        self.attachment_service = attachment_service
        self.indexer = indexer

    async def list_articles(
        self, page: Page, category_id: int | None = None
    ) -> List[Articles]:
        """
        Get one page of published articles, newest first

        The total is counted first and stored on ``page``. When the requested
        page lies past the end no range query is issued.

        Args:
            page: Page descriptor, ``total`` is filled in
            category_id: Optional category filter

        Returns:
            Articles with publish_at before now, at most ``page.size`` of them
        """
        add_correlation_id("operation", "list_articles")
        now = utcnow()

        with PerformanceLogger(logger, "list_published_articles"):
            page.total = self.repository.count_published(now, category_id)
            if page.is_empty:
                logger.debug(
                    "Requested page is past the end",
                    extra={"page": page.index, "total": page.total},
                )
                return []

            articles = self.repository.find_published(
                now, category_id, offset=page.offset, limit=page.limit
            )

        logger.info(
            "Published articles listed",
            extra={
                "page": page.index,
                "size": page.size,
                "total": page.total,
                "category_id": category_id,
                "article_count": len(articles),
            },
        )
        return articles

    async def list_all_articles(self, page: Page) -> List[Articles]:
        """Like ``list_articles`` but including scheduled articles"""
        page.total = self.repository.count_all()
        if page.is_empty:
            return []
        return self.repository.find_all(offset=page.offset, limit=page.limit)

    async def get_recent_articles(self, max_items: int) -> List[Articles]:
        return self.repository.find_published(utcnow(), offset=0, limit=max_items)

    async def list_category_articles(
        self, category_id: int, page: Page
    ) -> List[Articles]:
        if self.category_repository.get_by_id(category_id) is None:
            raise ResourceNotFoundError("Category", category_id)
        return await self.list_articles(page, category_id=category_id)

    async def get_article(
        self, article_id: int, include_content: bool = False
    ) -> tuple[Articles, str | None]:
        article = self.repository.get_by_id(article_id)
        if article is None:
            raise ResourceNotFoundError("Article", article_id)

        if not include_content:
            return article, None

        text = self.repository.get_text(article.content_id)
        if text is None:
            logger.error(
                "Article content is missing",
                extra={"article_id": article_id, "content_id": article.content_id},
            )
            raise ResourceNotFoundError("Text", article.content_id)
        return article, text.value

    async def get_visible_article(
        self, article_id: int, viewer: Users | None, format: str | None = None
    ) -> ArticleOut:
        """
        Get an article with its content if ``viewer`` may see it

        Scheduled articles are reported as missing rather than forbidden to
        viewers below contributor so their existence is not revealed.

        Args:
            article_id: The article id
            viewer: Authenticated user or None for anonymous requests
            format: ``"html"`` to render the markdown content

        Returns:
            ArticleOut including content
        """
        if format is not None and format not in CONTENT_FORMATS:
            raise InvalidParameterError("format", f"Unsupported format: {format}.")

        article, content = await self.get_article(article_id, include_content=True)
        if not is_visible(article, viewer, utcnow()):
            logger.info(
                "Hidden article requested",
                extra={
                    "article_id": article_id,
                    "viewer_id": viewer.id if viewer else None,
                },
            )
            raise ResourceNotFoundError("Article", article_id)

        if format == "html":
            content = md2html(content, safe=True)
        return ArticleOut.from_db(article, content)

    def _check_category(self, category_id: int) -> None:
        if self.category_repository.get_by_id(category_id) is None:
            raise ResourceNotFoundError("Category", category_id)

    async def create_article(self, user: Users, data: ArticleCreate) -> ArticleOut:
        """
        Create an article with its content and cover image

        Args:
            user: Author, must be at least editor
            data: Validated request body

        Returns:
            The created article including content
        """
        check_role(user, Role.EDITOR)
        add_correlation_id("operation", "create_article")
        self._check_category(data.category_id)

        cover = self.attachment_service.create_image_attachment(
            user, data.name, data.description, data.image
        )
        article = Articles(
            user_id=user.id,
            user_name=user.name,
            category_id=data.category_id,
            cover_id=cover.id,
            name=data.name,
            description=data.description,
            tags=format_tags(data.tags),
            publish_at=data.publish_at or utcnow(),
        )

        with PerformanceLogger(logger, "create_article"):
            article = self.repository.create_with_content(article, data.content)

        article_mutations.labels(operation="create").inc()
        logger.info(
            "Article created",
            extra={
                "article_id": article.id,
                "user_id": user.id,
                "category_id": article.category_id,
            },
        )
        self.indexer.index_article(article, data.content)
        return ArticleOut.from_db(article, data.content)

    def _check_owner(self, user: Users, article: Articles) -> None:
        if not has_role(user.role, Role.ADMIN) and article.user_id != user.id:
            logger.warning(
                "Article change by non-owner refused",
                extra={"article_id": article.id, "user_id": user.id},
            )
            raise PermissionDeniedError()

    async def update_article(
        self, user: Users, article_id: int, data: ArticleUpdate
    ) -> ArticleOut:
        """
        Apply the fields present in ``data`` to an article

        Absent fields are left untouched. A new cover image is stored under
        the article's resulting name and description. New content replaces
        the stored text and the old text is deleted. The returned article
        always includes its current content.

        Args:
            user: Editor performing the change, owner or admin
            article_id: The article id
            data: Validated request body

        Returns:
            The updated article including content
        """
        check_role(user, Role.EDITOR)
        add_correlation_id("operation", "update_article")
        article, _ = await self.get_article(article_id)
        self._check_owner(user, article)

        provided = data.provided()
        fields = {}
        if "category_id" in provided:
            self._check_category(provided["category_id"])
            fields["category_id"] = provided["category_id"]
        for name in ("name", "description", "publish_at"):
            if name in provided:
                fields[name] = provided[name]
        if "tags" in provided:
            fields["tags"] = format_tags(provided["tags"])
        if "image" in provided:
            cover = self.attachment_service.create_image_attachment(
                user,
                fields.get("name", article.name),
                fields.get("description", article.description),
                provided["image"],
            )
            fields["cover_id"] = cover.id

        content = provided.get("content")
        if content is not None:
            text = self.repository.replace_content(article, content)
            fields["content_id"] = text.id

        if not fields:
            logger.debug("No article fields changed", extra={"article_id": article_id})
            _, current = await self.get_article(article_id, include_content=True)
            return ArticleOut.from_db(article, current)

        with PerformanceLogger(logger, "update_article"):
            article = self.repository.update(article, fields)

        if content is None:
            _, content = await self.get_article(article_id, include_content=True)

        article_mutations.labels(operation="update").inc()
        logger.info(
            "Article updated",
            extra={
                "article_id": article_id,
                "user_id": user.id,
                "fields": sorted(fields),
            },
        )
        self.indexer.index_article(article, content)
        return ArticleOut.from_db(article, content)

    async def delete_article(self, user: Users, article_id: int) -> dict:
        """Delete an article and all of its texts"""
        check_role(user, Role.EDITOR)
        add_correlation_id("operation", "delete_article")
        article, _ = await self.get_article(article_id)
        self._check_owner(user, article)

        with PerformanceLogger(logger, "delete_article"):
            self.repository.destroy(article)

        article_mutations.labels(operation="delete").inc()
        logger.info(
            "Article deleted", extra={"article_id": article_id, "user_id": user.id}
        )
        self.indexer.unindex_article(article_id)
        return {"id": article_id}
