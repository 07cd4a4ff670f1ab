"""Tests for the capture pipeline and background enrichment."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.db.models import ContentType
from app.schemas.line import LineMessage
from app.services.errors import ImageProcessingError
from app.services.ingest import capture_line_message, capture_text
from app.services.parser import parse_message, parse_text_message
from app.services.summarizer import Summarizer


def enable_ai(services, reply: str) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(text=reply)])
    )
    services.summarizer = Summarizer(client=client, api_key="test-key")
    return client


@pytest.mark.asyncio
async def test_text_capture_without_ai_never_summarizes(services, store):
    services.summarizer.summarize = AsyncMock()

    item = await capture_line_message(
        services, store, "U1", parse_text_message("อ่านหนังสือเล่มนี้ #learning https://example.com/book")
    )
    await services.tasks.drain()

    assert item.type == "text"
    assert item.tags == ["learning"]
    assert item.category == "learning"
    assert item.ai_summary is None
    services.summarizer.summarize.assert_not_called()


@pytest.mark.asyncio
async def test_link_capture_stores_preview(services, store):
    item = await capture_line_message(
        services, store, "U1", parse_text_message("https://example.com/article")
    )

    assert item.type == ContentType.LINK.value
    assert item.link_url == "https://example.com/article"
    assert item.link_preview == {
        "title": "Example Book & Notes",
        "description": "A book worth reading",
        "image": "https://example.com/cover.png",
        "siteName": "Example",
    }


@pytest.mark.asyncio
async def test_link_capture_survives_unreachable_site(services, store):
    item = await capture_line_message(
        services, store, "U1", parse_text_message("https://unreachable.test/page")
    )
    assert item.link_preview == {
        "title": "unreachable.test",
        "description": "https://unreachable.test/page",
    }


@pytest.mark.asyncio
async def test_image_capture_uploads_under_owner(services, store, s3_client):
    item = await capture_line_message(
        services, store, "U1", parse_message(LineMessage(id="m-7", type="image"))
    )

    assert item.type == "image"
    assert item.content == "Image: m-7"
    assert "/brain-images/U1/m-7-" in item.image_url
    assert item.image_url.endswith(".png")
    s3_client.put_object.assert_called_once()


@pytest.mark.asyncio
async def test_image_upload_failure_creates_nothing(services, store):
    services.images.upload_image = AsyncMock(side_effect=ImageProcessingError("Failed to upload image"))

    with pytest.raises(ImageProcessingError):
        await capture_line_message(
            services, store, "U1", parse_message(LineMessage(id="m-8", type="image"))
        )
    assert store.items == []


@pytest.mark.asyncio
async def test_enrichment_merges_tags_and_fills_summary(services, store):
    client = enable_ai(
        services,
        '{"summary": "short", "suggestedTags": ["b", "c"], "suggestedCategory": "idea"}',
    )

    item = await capture_text(services, store, "U1", "plain note #a #b")
    assert item.tags == ["a", "b"]
    assert item.ai_summary is None

    await services.tasks.drain()

    assert item.tags == ["a", "b", "c"]
    assert item.ai_summary == "short"
    assert item.category == "idea"
    client.messages.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_enrichment_keeps_caller_category(services, store):
    enable_ai(services, '{"summary": "s", "suggestedTags": [], "suggestedCategory": "idea"}')

    item = await capture_text(services, store, "U1", "plain note", category="travel")
    await services.tasks.drain()

    assert item.category == "travel"
    assert item.ai_summary == "s"


@pytest.mark.asyncio
async def test_enrichment_without_category_leaves_detected_one(services, store):
    enable_ai(services, '{"summary": "s", "suggestedTags": ["x"]}')

    item = await capture_text(services, store, "U1", "team meeting notes")
    await services.tasks.drain()

    assert item.category == "work"
    assert item.tags == ["x"]


@pytest.mark.asyncio
async def test_enrichment_failure_leaves_item_untouched(services, store):
    client = enable_ai(services, "")
    client.messages.create.side_effect = RuntimeError("boom")

    item = await capture_text(services, store, "U1", "plain note #a")
    await services.tasks.drain()

    assert item.tags == ["a"]
    assert item.ai_summary is None


@pytest.mark.asyncio
async def test_capture_text_applies_caller_overrides(services, store):
    item = await capture_text(
        services, store, "U1", "some words #x", title="Custom", tags=["y", "x"]
    )
    assert item.title == "Custom"
    assert item.tags == ["x", "y"]
    assert item.content == "some words #x"
