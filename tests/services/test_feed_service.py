import asyncio
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from blogapi.core.config import settings
from blogapi.models.db_models import utcnow
from blogapi.repositories.article_repository import ArticleRepository
from blogapi.services.feed_service import FeedService, cdata, to_rss_date, xml_text
from tests.factories import ArticleFactory

DOMAIN = "blog.example.com"


@pytest.fixture
def feed_service(db_session, cache_service):
    return FeedService(ArticleRepository(db_session), cache_service)


class TestHelpers:
    def test_rss_date(self):
        assert to_rss_date(datetime(1970, 1, 1)) == "Thu, 01 Jan 1970 00:00:00 GMT"

    def test_cdata_wraps_text(self):
        assert cdata("a < b") == "<![CDATA[a < b]]>"

    def test_cdata_splits_terminator(self):
        assert cdata("x]]>y") == "<![CDATA[x]]]]><![CDATA[>y]]>"

    def test_cdata_none(self):
        assert cdata(None) == "<![CDATA[]]>"

    def test_cdata_drops_control_characters(self):
        assert cdata("Bell\x07title\x0b") == "<![CDATA[Belltitle]]>"

    def test_xml_text_keeps_whitespace(self):
        assert xml_text("a\tb\nc\rd\x00\ufffe") == "a\tb\nc\rd"


class TestBuildFeed:
    @pytest.mark.asyncio
    async def test_empty_feed(self, feed_service):
        rss = await feed_service.build_feed(DOMAIN)

        channel = ET.fromstring(rss).find("channel")
        assert channel.findall("item") == []
        assert channel.findtext("lastBuildDate") == "Thu, 01 Jan 1970 00:00:00 GMT"
        assert channel.findtext("title") == settings.WEBSITE_NAME
        assert channel.findtext("link") == f"http://{DOMAIN}/"
        assert channel.findtext("ttl") == "3600"

    @pytest.mark.asyncio
    async def test_items(self, feed_service):
        article = ArticleFactory(
            name="Hello", user_name="Alice", content="Some **bold** text"
        )

        rss = await feed_service.build_feed(DOMAIN)

        channel = ET.fromstring(rss).find("channel")
        item = channel.find("item")
        url = f"http://{DOMAIN}/article/{article.id}"
        assert item.findtext("title") == "Hello"
        assert item.findtext("link") == url
        assert item.findtext("guid") == url
        assert item.findtext("author") == "Alice"
        assert item.findtext("pubDate") == to_rss_date(article.publish_at)
        assert "<strong>bold</strong>" in item.findtext("description")
        assert channel.findtext("lastBuildDate") == to_rss_date(article.publish_at)

    @pytest.mark.asyncio
    async def test_well_formed_with_special_characters(self, feed_service):
        ArticleFactory(
            name="Tom & Jerry <3 ]]> end",
            user_name="A & B",
            content="a < b && c ]]> d",
        )

        rss = await feed_service.build_feed(DOMAIN)

        item = ET.fromstring(rss).find("channel").find("item")
        assert item.findtext("title") == "Tom & Jerry <3 ]]> end"
        assert item.findtext("author") == "A & B"
        assert item.findtext("description").startswith("<p>a ")

    @pytest.mark.asyncio
    async def test_well_formed_with_control_characters(self, feed_service):
        ArticleFactory(
            name="Bell\x07title", user_name="x\x0by", content="body\x01text"
        )

        rss = await feed_service.build_feed(DOMAIN)

        item = ET.fromstring(rss).find("channel").find("item")
        assert item.findtext("title") == "Belltitle"
        assert item.findtext("author") == "xy"
        assert item.findtext("description").startswith("<p>body")

    @pytest.mark.asyncio
    async def test_limits_to_most_recent(self, feed_service):
        base = utcnow() - timedelta(days=1)
        articles = [
            ArticleFactory(publish_at=base - timedelta(minutes=i)) for i in range(21)
        ]

        rss = await feed_service.build_feed(DOMAIN)

        links = [
            item.findtext("link")
            for item in ET.fromstring(rss).find("channel").findall("item")
        ]
        assert len(links) == settings.FEED_MAX_ITEMS == 20
        assert links == [
            f"http://{DOMAIN}/article/{article.id}" for article in articles[:20]
        ]

    @pytest.mark.asyncio
    async def test_excludes_scheduled_articles(self, feed_service):
        ArticleFactory(publish_at=datetime(2999, 1, 1))

        rss = await feed_service.build_feed(DOMAIN)

        assert ET.fromstring(rss).find("channel").findall("item") == []

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, feed_service):
        with patch.object(
            feed_service.repository, "find_published", side_effect=RuntimeError("db")
        ):
            with pytest.raises(RuntimeError):
                await feed_service.build_feed(DOMAIN)


class TestGetFeed:
    @pytest.mark.asyncio
    async def test_caches_feed(self, feed_service, redis_store):
        ArticleFactory()

        rss = await feed_service.get_feed(DOMAIN)

        assert settings.FEED_CACHE_KEY in redis_store
        with patch.object(feed_service, "build_feed") as build:
            assert await feed_service.get_feed(DOMAIN) == rss
            build.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_requests_build_once(self, feed_service):
        ArticleFactory()
        original = feed_service.build_feed
        calls = []

        async def slow_build(domain):
            calls.append(domain)
            await asyncio.sleep(0.05)
            return await original(domain)

        with patch.object(feed_service, "build_feed", side_effect=slow_build):
            results = await asyncio.gather(
                *(feed_service.get_feed(DOMAIN) for _ in range(5))
            )

        assert len(calls) == 1
        assert len(set(results)) == 1

    @pytest.mark.asyncio
    async def test_failed_build_not_cached(self, feed_service, redis_store):
        with patch.object(
            feed_service, "build_feed", side_effect=RuntimeError("db down")
        ):
            with pytest.raises(RuntimeError):
                await feed_service.get_feed(DOMAIN)

        assert settings.FEED_CACHE_KEY not in redis_store
