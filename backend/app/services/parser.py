"""
Message parsing for captured content.

Turns a LINE chat message (or raw text from the web form) into a ParsedContent
record: text vs link vs image, hashtags, first URL and a display title.
Everything here is pure and total - malformed input yields empty results.
"""

import re
from urllib.parse import urlsplit

from app.config import get_settings
from app.db.models import ContentType
from app.schemas.brain import ParsedContent
from app.schemas.line import LineMessage

settings = get_settings()

URL_PATTERN = re.compile(
    r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)",
    re.IGNORECASE | re.ASCII,
)

# ASCII word characters or Thai script (U+0E01-U+0E59)
HASHTAG_PATTERN = re.compile(r"#[\wก-๙]+", re.ASCII)

_WHITESPACE = re.compile(r"\s+")

IMAGE_TITLE = "รูปภาพ"


def extract_urls(text: str) -> list[str]:
    """All http(s) URLs in ``text``, left to right."""
    if not text:
        return []
    return [match.group(0) for match in URL_PATTERN.finditer(text)]


def extract_hashtags(text: str) -> list[str]:
    """Hashtags without the leading ``#``. Duplicates are kept in order."""
    if not text:
        return []
    return [match.group(0)[1:] for match in HASHTAG_PATTERN.finditer(text)]


def is_valid_url(text: str) -> bool:
    """True for absolute http/https URLs with a host."""
    try:
        parsed = urlsplit(text)
    except (ValueError, TypeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def normalize_content(content: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", content).strip()


def generate_title(content: str, max_length: int | None = None) -> str:
    """
    Build a display title from content.

    Hashtags and URLs are stripped and the rest is trimmed. If nothing is
    left the original content is used. Titles longer than ``max_length`` end
    in ``...`` and are exactly ``max_length`` characters long.
    """
    if max_length is None:
        max_length = settings.title_max_length

    cleaned = URL_PATTERN.sub("", HASHTAG_PATTERN.sub("", content)).strip()
    if not cleaned:
        cleaned = content

    if len(cleaned) > max_length:
        return cleaned[: max_length - 3] + "..."
    return cleaned


def parse_text_message(text: str) -> ParsedContent:
    """
    Classify a text message as ``link`` or ``text``.

    A message is a link share when its first URL is longer than
    ``settings.link_ratio_threshold`` of the trimmed message.
    """
    trimmed = text.strip()
    urls = extract_urls(trimmed)
    tags = extract_hashtags(trimmed)
    title = generate_title(trimmed)

    if urls and len(urls[0]) > len(trimmed) * settings.link_ratio_threshold:
        return ParsedContent(
            type=ContentType.LINK,
            content=trimmed,
            title=title,
            tags=tags,
            link_url=urls[0],
        )

    return ParsedContent(
        type=ContentType.TEXT,
        content=trimmed,
        title=title,
        tags=tags,
    )


def parse_image_message(message: LineMessage) -> ParsedContent:
    """Image messages carry no text; content is a placeholder naming the message."""
    return ParsedContent(
        type=ContentType.IMAGE,
        content=f"Image: {message.id}",
        title=IMAGE_TITLE,
        tags=[],
        message_id=message.id,
    )


def parse_message(message: LineMessage) -> ParsedContent | None:
    """
    Dispatch on the LINE message type.

    Returns None for unsupported types (video, audio, file, location,
    sticker, ...) and for text messages without text.
    """
    if message.type == "text":
        if not message.text:
            return None
        return parse_text_message(message.text)

    if message.type == "image":
        return parse_image_message(message)

    return None
