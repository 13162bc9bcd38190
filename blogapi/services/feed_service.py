import re
import time
from datetime import datetime, timezone
from email.utils import format_datetime
from xml.sax.saxutils import escape

from blogapi.constants import ARTICLE_URL_PATH, RSS_TTL
from blogapi.core.config import settings
from blogapi.core.logging import LogContext, PerformanceLogger, add_correlation_id
from blogapi.core.metrics import feed_build_duration, feed_builds
from blogapi.models.feed import FeedChannel, FeedItem
from blogapi.repositories.article_repository import ArticleRepository
from blogapi.services.cache_service import CacheService
from blogapi.models.db_models import utcnow
from blogapi.utils.text_utils import md2html

logger = LogContext(__name__)

EPOCH = datetime(1970, 1, 1)

# code points XML 1.0 does not allow, not even inside CDATA
INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def to_rss_date(value: datetime) -> str:
    """RFC-822 date in GMT, naive values are taken as UTC"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def xml_text(text: str | None) -> str:
    """Drop characters that would make the document malformed"""
    return INVALID_XML_CHARS.sub("", text or "")


def cdata(text: str | None) -> str:
    """Wrap text in CDATA, splitting any ``]]>`` across two sections"""
    text = xml_text(text)
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def render_rss(channel: FeedChannel) -> str:
    parts = [
        '<?xml version="1.0"?>\n',
        '<rss version="2.0"><channel>',
        f"<title>{cdata(channel.title)}</title>",
        f"<link>{escape(xml_text(channel.link))}</link>",
        f"<description>{cdata(channel.description)}</description>",
        f"<lastBuildDate>{to_rss_date(channel.last_build_date)}</lastBuildDate>",
        f"<generator>{escape(xml_text(channel.generator))}</generator>",
        f"<ttl>{channel.ttl}</ttl>",
    ]
    for item in channel.items:
        parts.append(
            "<item>"
            f"<title>{cdata(item.title)}</title>"
            f"<link>{escape(xml_text(item.link))}</link>"
            f"<guid>{escape(xml_text(item.guid))}</guid>"
            f"<author>{cdata(item.author)}</author>"
            f"<pubDate>{item.pub_date}</pubDate>"
            f"<description>{cdata(item.description)}</description>"
            "</item>"
        )
    parts.append("</channel></rss>")
    return "".join(parts)


class FeedService:
    def __init__(self, repository: ArticleRepository, cache_service: CacheService):
        self.repository = repository
        self.cache_service = cache_service

    async def build_feed(self, domain: str) -> str:
        """
        Render the most recent published articles as an RSS 2.0 document

        Args:
            domain: Host the links are built for

        Returns:
            The RSS document as a string
        """
        add_correlation_id("operation", "build_feed")
        start_time = time.perf_counter()
        try:
            with PerformanceLogger(logger, "build_feed"):
                articles = self.repository.find_published(
                    utcnow(), offset=0, limit=settings.FEED_MAX_ITEMS
                )

                items = []
                for article in articles:
                    text = self.repository.get_text(article.content_id)
                    if text is None:
                        logger.warning(
                            "Feed article has no content",
                            extra={"article_id": article.id},
                        )
                    url = f"http://{domain}" + ARTICLE_URL_PATH.format(id=article.id)
                    items.append(
                        FeedItem(
                            title=article.name,
                            link=url,
                            guid=url,
                            author=article.user_name,
                            pub_date=to_rss_date(article.publish_at),
                            description=md2html(text.value if text else "", safe=True),
                        )
                    )

                channel = FeedChannel(
                    title=settings.WEBSITE_NAME,
                    link=f"http://{domain}/",
                    description=settings.WEBSITE_DESCRIPTION,
                    last_build_date=articles[0].publish_at if articles else EPOCH,
                    generator=settings.PROJECT_NAME,
                    ttl=RSS_TTL,
                    items=items,
                )
                rss = render_rss(channel)
        except Exception as e:
            feed_builds.labels(status="failed").inc()
            logger.error(
                "Failed to build feed",
                extra={
                    "domain": domain,
                    "error": str(e),
                    "error_type": e.__class__.__name__,
                },
            )
            raise

        feed_builds.labels(status="success").inc()
        feed_build_duration.observe(time.perf_counter() - start_time)
        logger.info(
            "Feed built", extra={"domain": domain, "item_count": len(items)}
        )
        return rss

    async def get_feed(self, domain: str) -> str:
        """Cached feed, built at most once per key at a time in this process"""

        async def _build() -> str:
            return await self.build_feed(domain)

        return await self.cache_service.get_or_set(
            settings.FEED_CACHE_KEY, _build, expire=settings.FEED_CACHE_TTL
        )
