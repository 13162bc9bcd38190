from enum import IntEnum


class Role(IntEnum):
    """User roles. A lower value is more privileged."""

    ADMIN = 0
    EDITOR = 10
    CONTRIBUTOR = 100
    SUBSCRIBER = 10000


def has_role(role: int | None, required: Role) -> bool:
    """True when ``role`` is at least as privileged as ``required``"""
    return role is not None and role <= required


ARTICLE_URL_PATH = "/article/{id}"
RSS_TTL = 3600

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 1000
MAX_TAGS_LENGTH = 1000

# tags and attributes kept when rendering markdown for untrusted readers
SAFE_HTML_TAGS = [
    "a",
    "abbr",
    "b",
    "blockquote",
    "br",
    "code",
    "del",
    "em",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "hr",
    "i",
    "img",
    "li",
    "ol",
    "p",
    "pre",
    "strong",
    "table",
    "tbody",
    "td",
    "th",
    "thead",
    "tr",
    "ul",
]

SAFE_HTML_ATTRIBUTES = {
    "a": ["href", "title"],
    "abbr": ["title"],
    "img": ["src", "alt", "title"],
    "code": ["class"],
    "th": ["align"],
    "td": ["align"],
}

SAFE_URL_PROTOCOLS = ["http", "https", "mailto"]
