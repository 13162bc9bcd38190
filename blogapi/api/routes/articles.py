from fastapi import APIRouter, Depends, Query

from blogapi.api.dependencies import ArticleServiceDep, PageDep
from blogapi.auth.dependencies import get_optional_user, require_role
from blogapi.constants import Role
from blogapi.core.logging import LogContext
from blogapi.models.article import (
    ArticleCreate,
    ArticleOut,
    ArticleUpdate,
    DeletedResponse,
)
from blogapi.models.db_models import Users
from blogapi.models.pagination import PaginatedResponse

logger = LogContext(__name__)

router = APIRouter(tags=["articles"])


def _paginated(page, articles) -> PaginatedResponse[ArticleOut]:
    return PaginatedResponse[ArticleOut](
        page=page, items=[ArticleOut.from_db(article) for article in articles]
    )


@router.get("/articles", response_model=PaginatedResponse[ArticleOut])
async def list_all_articles(
    service: ArticleServiceDep,
    page: PageDep,
    user: Users = Depends(require_role(Role.CONTRIBUTOR)),
) -> PaginatedResponse[ArticleOut]:
    """All articles including scheduled ones, for contributors and up"""
    articles = await service.list_all_articles(page)
    return _paginated(page, articles)


@router.get("/articles/published", response_model=PaginatedResponse[ArticleOut])
async def list_published_articles(
    service: ArticleServiceDep, page: PageDep
) -> PaginatedResponse[ArticleOut]:
    articles = await service.list_articles(page)
    return _paginated(page, articles)


@router.get(
    "/categories/{category_id}/articles",
    response_model=PaginatedResponse[ArticleOut],
)
async def list_category_articles(
    category_id: int, service: ArticleServiceDep, page: PageDep
) -> PaginatedResponse[ArticleOut]:
    articles = await service.list_category_articles(category_id, page)
    return _paginated(page, articles)


@router.get("/articles/{article_id}", response_model=ArticleOut)
async def get_article(
    article_id: int,
    service: ArticleServiceDep,
    format: str | None = Query(None, description="'html' to render the content"),
    viewer: Users | None = Depends(get_optional_user),
) -> ArticleOut:
    return await service.get_visible_article(article_id, viewer, format)


@router.post("/articles", response_model=ArticleOut)
async def create_article(
    data: ArticleCreate,
    service: ArticleServiceDep,
    user: Users = Depends(require_role(Role.EDITOR)),
) -> ArticleOut:
    return await service.create_article(user, data)


@router.post("/articles/{article_id}", response_model=ArticleOut)
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    service: ArticleServiceDep,
    user: Users = Depends(require_role(Role.EDITOR)),
) -> ArticleOut:
    return await service.update_article(user, article_id, data)


@router.post("/articles/{article_id}/delete", response_model=DeletedResponse)
async def delete_article(
    article_id: int,
    service: ArticleServiceDep,
    user: Users = Depends(require_role(Role.EDITOR)),
) -> DeletedResponse:
    return DeletedResponse(**await service.delete_article(user, article_id))
