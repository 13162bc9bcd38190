import re

import bleach
import markdown
from bs4 import BeautifulSoup

from blogapi.constants import SAFE_HTML_ATTRIBUTES, SAFE_HTML_TAGS, SAFE_URL_PROTOCOLS
from blogapi.core.logging import LogContext

logger = LogContext(__name__)

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]

WHITESPACE_PATTERN = re.compile(r"\s+")


def md2html(text: str | None, safe: bool = False) -> str:
    """
    Render markdown to HTML

    Args:
        text: Markdown source
        safe: Sanitize the output so it can be shown to any reader. Raw HTML
            in the source is escaped or stripped down to an allow-list.

    Returns:
        HTML string
    """
    if not text:
        return ""

    # a fresh instance per call, Markdown objects keep state between conversions
    rendered = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS).convert(text)
    if not safe:
        return rendered

    return bleach.clean(
        rendered,
        tags=SAFE_HTML_TAGS,
        attributes=SAFE_HTML_ATTRIBUTES,
        protocols=SAFE_URL_PROTOCOLS,
        strip=True,
    )


def html2text(html_content: str | None) -> str:
    """
    Extract readable text from HTML, collapsing whitespace
    """
    if not html_content:
        return ""

    soup = BeautifulSoup(html_content, "html.parser")
    text = soup.get_text(separator=" ")
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def format_tags(tags: str | None) -> str:
    """
    Normalize a comma separated tag string

    Tags are trimmed, empty entries dropped and case-insensitive duplicates
    removed, keeping the first spelling. ``"aaa,  BBB,  \\t ccc,CcC"`` becomes
    ``"aaa,BBB,ccc"``.
    """
    if not tags:
        return ""

    seen = set()
    unique_tags = []
    for tag in tags.split(","):
        tag = tag.strip()
        if not tag or tag.lower() in seen:
            continue
        seen.add(tag.lower())
        unique_tags.append(tag)
    return ",".join(unique_tags)
