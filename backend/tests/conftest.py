"""Pytest configuration and fixtures."""

import json
import os

# Settings are read once at import time, so these must be set before app imports
os.environ["LINE_CHANNEL_SECRET"] = "test-channel-secret"
os.environ["LINE_CHANNEL_ACCESS_TOKEN"] = "test-access-token"
os.environ["ADMIN_SECRET"] = "test-admin-secret"
os.environ.pop("ANTHROPIC_API_KEY", None)

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_item_store
from app.db.models import BrainItem
from app.main import app
from app.services.background import TaskRunner
from app.services.container import Services
from app.services.errors import ItemNotFoundError
from app.services.images import ImageStorage
from app.services.item_store import MUTABLE_FIELDS, ItemFilter, ItemPage, count_values, unique_tags
from app.services.line import LineClient
from app.services.link_preview import LinkPreviewFetcher
from app.services.summarizer import Summarizer

CHANNEL_SECRET = "test-channel-secret"
ADMIN_SECRET = "test-admin-secret"
PUBLIC_BASE_URL = "https://storage.test/storage/v1/object/public"

EXAMPLE_HTML = """<html><head>
<title>Fallback Title</title>
<meta property="og:title" content="Example Book &amp; Notes">
<meta property="og:description" content="A book worth reading">
<meta property="og:image" content="/cover.png">
<meta property="og:site_name" content="Example">
</head><body></body></html>"""


class FakeItemStore:
    """In-memory stand-in for ItemStore with the same contract."""

    def __init__(self):
        self.items: list[BrainItem] = []

    def _owned(self, user_id: str) -> list[BrainItem]:
        return [item for item in self.items if item.user_id == user_id]

    async def create_item(self, **fields: Any) -> BrainItem:
        now = fields.pop("created_at", None) or datetime.now(timezone.utc)
        fields["tags"] = unique_tags(fields.get("tags"))
        item = BrainItem(id=uuid4(), created_at=now, updated_at=now, **fields)
        self.items.append(item)
        return item

    async def get_item(self, item_id: UUID, user_id: str) -> BrainItem | None:
        for item in self._owned(user_id):
            if item.id == item_id:
                return item
        return None

    async def get_items(self, item_filter: ItemFilter) -> ItemPage:
        matches = []
        for item in self.items:
            if item_filter.user_id is not None and item.user_id != item_filter.user_id:
                continue
            if item_filter.type and item.type != item_filter.type:
                continue
            if item_filter.category and item.category != item_filter.category:
                continue
            if item_filter.tags and not set(item_filter.tags) & set(item.tags):
                continue
            text = f"{item.title or ''} {item.content}".lower()
            if item_filter.search and not all(
                term in text for term in item_filter.search.lower().split()
            ):
                continue
            if item_filter.contains and item_filter.contains.lower() not in text:
                continue
            matches.append(item)

        matches.sort(key=lambda item: item.created_at, reverse=True)
        start, end = item_filter.offset, item_filter.offset + item_filter.limit
        return ItemPage(items=matches[start:end], total=len(matches), has_more=len(matches) > end)

    async def update_item(self, item_id: UUID, user_id: str, **changes: Any) -> BrainItem:
        illegal = set(changes) - MUTABLE_FIELDS
        if illegal:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(illegal))}")
        item = await self.get_item(item_id, user_id)
        if item is None:
            raise ItemNotFoundError(item_id, user_id)
        if changes.get("tags") is not None:
            changes["tags"] = unique_tags(changes["tags"])
        for field, value in changes.items():
            setattr(item, field, value)
        item.updated_at = datetime.now(timezone.utc)
        return item

    async def delete_item(self, item_id: UUID, user_id: str) -> None:
        item = await self.get_item(item_id, user_id)
        if item is None:
            raise ItemNotFoundError(item_id, user_id)
        self.items.remove(item)

    async def get_user_tags(self, user_id: str) -> list[tuple[str, int]]:
        return count_values(tag for item in self._owned(user_id) for tag in item.tags)

    async def get_user_categories(self, user_id: str) -> list[tuple[str, int]]:
        return count_values(item.category for item in self._owned(user_id))

    async def count_items(self, since: datetime | None = None) -> int:
        return sum(1 for item in self.items if since is None or item.created_at >= since)

    async def count_by_type(self) -> dict[str, int]:
        counts = {"text": 0, "image": 0, "link": 0}
        for item in self.items:
            counts[item.type] += 1
        return counts

    async def count_users(self) -> int:
        return len({item.user_id for item in self.items})

    async def all_tags(self) -> list[tuple[str, int]]:
        return count_values(tag for item in self.items for tag in item.tags)

    async def all_categories(self) -> list[tuple[str, int]]:
        return count_values(item.category for item in self.items)

    async def activity_rows(self) -> list[tuple[str, str, datetime]]:
        rows = [(item.user_id, item.type, item.created_at) for item in self.items]
        return sorted(rows, key=lambda row: row[2], reverse=True)

    async def image_urls_for(self, item_ids: list[UUID]) -> list[str]:
        wanted = set(item_ids)
        return [item.image_url for item in self.items if item.id in wanted and item.image_url]

    async def delete_items(self, item_ids: list[UUID]) -> int:
        wanted = set(item_ids)
        before = len(self.items)
        self.items = [item for item in self.items if item.id not in wanted]
        return before - len(self.items)


def external_api_handler(request: httpx.Request) -> httpx.Response:
    """Routes outbound requests to canned LINE and web page responses."""
    host = request.url.host
    if host == "api.line.me":
        return httpx.Response(200, json={})
    if host == "api-data.line.me":
        headers = {"content-type": "image/png"}
        if request.method == "HEAD":
            return httpx.Response(200, headers=headers)
        return httpx.Response(200, content=b"\x89PNG-fake-image", headers=headers)
    if host == "example.com":
        return httpx.Response(200, text=EXAMPLE_HTML, headers={"content-type": "text/html; charset=utf-8"})
    return httpx.Response(404)


def line_replies(requests: list[httpx.Request]) -> list[str]:
    """Texts of every LINE reply sent through the mocked client."""
    texts = []
    for request in requests:
        if request.url.path == "/v2/bot/message/reply":
            body = json.loads(request.content)
            texts.extend(message["text"] for message in body["messages"])
    return texts


@pytest.fixture
def store() -> FakeItemStore:
    return FakeItemStore()


@pytest.fixture
def sent_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
async def http_client(sent_requests) -> AsyncGenerator[httpx.AsyncClient, None]:
    def handler(request: httpx.Request) -> httpx.Response:
        sent_requests.append(request)
        return external_api_handler(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        yield client


@pytest.fixture
def s3_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def services(http_client, store, s3_client) -> Services:
    """Service graph wired to the mocked HTTP client, a mock S3 client and the fake store."""

    @asynccontextmanager
    async def store_scope() -> AsyncIterator[FakeItemStore]:
        yield store

    return Services(
        line=LineClient(http_client, channel_secret=CHANNEL_SECRET, channel_access_token="token"),
        images=ImageStorage(s3_client, bucket="brain-images", public_base_url=PUBLIC_BASE_URL),
        link_previews=LinkPreviewFetcher(http_client, timeout=5.0),
        summarizer=Summarizer(api_key=""),
        store_scope=store_scope,
        tasks=TaskRunner(),
    )


@pytest.fixture
async def client(services, store) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    app.state.services = services
    app.dependency_overrides[get_item_store] = lambda: store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    await services.tasks.drain()
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_SECRET}"}
