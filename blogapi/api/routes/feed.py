from fastapi import APIRouter, Request, Response

from blogapi.api.dependencies import FeedServiceDep
from blogapi.constants import RSS_TTL
from blogapi.core.config import settings

router = APIRouter(tags=["feed"])


@router.get("/feed", response_class=Response)
async def get_feed(request: Request, service: FeedServiceDep) -> Response:
    """RSS 2.0 feed of the most recent published articles"""
    domain = (
        settings.SITE_DOMAIN or request.headers.get("host") or request.url.netloc
    )
    rss = await service.get_feed(domain)
    return Response(
        content=rss,
        media_type="text/xml",
        headers={"Cache-Control": f"max-age={RSS_TTL}"},
    )
