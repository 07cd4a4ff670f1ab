"""
Link preview fetching.

Downloads a page and scrapes Open Graph metadata out of the raw HTML with
regular expressions (no DOM parser). Every failure degrades to a minimal
hostname-only preview so link capture never fails because of the target site.
"""

import asyncio
import logging
import re
from urllib.parse import urljoin, urlsplit

import httpx

from app.config import get_settings
from app.schemas.brain import LinkPreview, OpenGraphData

logger = logging.getLogger(__name__)
settings = get_settings()

_TITLE_TAG = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_ENTITY = re.compile(r"&[^;]+;")

HTML_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}


def _meta_patterns(name: str) -> list[re.Pattern]:
    prop = re.escape(name)
    return [
        # property before content
        re.compile(
            rf"<meta[^>]*property=[\"']og:{prop}[\"'][^>]*content=[\"']([^\"']+)[\"']",
            re.IGNORECASE,
        ),
        # content before property
        re.compile(
            rf"<meta[^>]*content=[\"']([^\"']+)[\"'][^>]*property=[\"']og:{prop}[\"']",
            re.IGNORECASE,
        ),
        # plain <meta name="...">
        re.compile(
            rf"<meta[^>]*name=[\"']{prop}[\"'][^>]*content=[\"']([^\"']+)[\"']",
            re.IGNORECASE,
        ),
    ]


_META_PATTERNS = {
    name: _meta_patterns(name) for name in ("title", "description", "image", "site_name", "type")
}


def extract_meta_content(html: str, name: str) -> str | None:
    """Value of ``og:<name>`` (either attribute order) or ``<meta name="<name>">``."""
    patterns = _META_PATTERNS.get(name) or _meta_patterns(name)
    for pattern in patterns:
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


def extract_title(html: str) -> str | None:
    """og:title first, then the <title> element."""
    og_title = extract_meta_content(html, "title")
    if og_title:
        return og_title

    match = _TITLE_TAG.search(html)
    if match:
        return match.group(1).strip()
    return None


def decode_html_entities(text: str) -> str:
    """Decode the handful of entities common in titles; others are left untouched."""
    return _ENTITY.sub(lambda m: HTML_ENTITIES.get(m.group(0), m.group(0)), text)


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def _hostname(url: str) -> str:
    return urlsplit(url).hostname or url


def parse_open_graph(html: str, url: str) -> OpenGraphData:
    """Scrape preview fields from an HTML document fetched from ``url``."""
    data = OpenGraphData(
        url=url,
        title=extract_title(html),
        description=extract_meta_content(html, "description"),
        image=extract_meta_content(html, "image"),
        site_name=extract_meta_content(html, "site_name"),
        type=extract_meta_content(html, "type"),
    )

    if data.title:
        data.title = decode_html_entities(data.title)
    if data.description:
        data.description = decode_html_entities(data.description)

    # Relative image paths resolve against the page origin
    if data.image and not data.image.startswith("http"):
        data.image = urljoin(_origin(url), data.image)

    return data


def to_preview(og_data: OpenGraphData | None, url: str) -> LinkPreview:
    """Map scraped data to the stored preview, falling back to the hostname."""
    if og_data is None:
        return LinkPreview(title=_hostname(url), description=url)

    return LinkPreview(
        title=og_data.title or _hostname(url),
        description=og_data.description or "",
        image=og_data.image,
        site_name=og_data.site_name,
    )


class LinkPreviewFetcher:
    """Fetches and scrapes pages through a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
    ):
        self.http_client = http_client
        self.timeout = timeout if timeout is not None else settings.link_preview_timeout_seconds
        self.user_agent = user_agent or settings.link_preview_user_agent

    async def fetch_open_graph(self, url: str) -> OpenGraphData | None:
        """
        GET ``url`` and scrape its metadata.

        Returns None on a non-2xx status, a timeout or any transport error.
        Non-HTML responses produce a record holding only the top-level MIME type.
        """
        try:
            # Hard deadline for the whole exchange, not just each socket read
            async with asyncio.timeout(self.timeout):
                response = await self.http_client.get(
                    url,
                    headers={
                        "User-Agent": self.user_agent,
                        "Accept": "text/html,application/xhtml+xml",
                    },
                    timeout=self.timeout,
                    follow_redirects=True,
                )

            if not response.is_success:
                logger.warning("Failed to fetch %s: %d", url, response.status_code)
                return None

            content_type = response.headers.get("content-type", "")
            if "text/html" not in content_type:
                return OpenGraphData(url=url, type=content_type.split("/")[0])

            return parse_open_graph(response.text, url)

        except Exception:
            logger.exception("Error fetching Open Graph data for %s", url)
            return None

    async def fetch_link_preview(self, url: str) -> LinkPreview:
        """Never raises; the worst case is the hostname-only preview."""
        og_data = await self.fetch_open_graph(url)
        try:
            return to_preview(og_data, url)
        except Exception:
            logger.exception("Error building preview for %s", url)
            return to_preview(None, url)
