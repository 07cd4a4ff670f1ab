"""Tests for AI summarization."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.schemas.brain import LinkPreview
from app.services.summarizer import (
    Summarizer,
    build_user_message,
    extract_json_object,
    parse_summary,
)


def anthropic_client(reply: str | None = None, error: Exception | None = None) -> MagicMock:
    client = MagicMock()
    if error is not None:
        client.messages.create = AsyncMock(side_effect=error)
    else:
        client.messages.create = AsyncMock(
            return_value=SimpleNamespace(content=[SimpleNamespace(text=reply)])
        )
    return client


def test_extract_json_object_from_chatter():
    text = 'Sure! Here it is:\n{"summary": "a {braced} note", "suggestedTags": ["x"]}\nThanks'
    assert extract_json_object(text) == {"summary": "a {braced} note", "suggestedTags": ["x"]}


def test_extract_json_object_skips_invalid_candidates():
    assert extract_json_object('{not json} then {"summary": "ok"}') == {"summary": "ok"}
    assert extract_json_object("no object at all") is None


def test_parse_summary_requires_expected_keys():
    with pytest.raises(ValueError):
        parse_summary('{"answer": 42}')


def test_parse_summary_normalizes_fields():
    result = parse_summary('{"summary": "s", "suggestedTags": [" a ", ""], "suggestedCategory": ""}')
    assert result.summary == "s"
    assert result.suggested_tags == ["a"]
    assert result.suggested_category is None


def test_parse_summary_drops_category_outside_vocabulary():
    result = parse_summary('{"summary": "s", "suggestedTags": [], "suggestedCategory": "shopping"}')
    assert result.suggested_category is None

    result = parse_summary('{"summary": "s", "suggestedTags": [], "suggestedCategory": "recipe"}')
    assert result.suggested_category == "recipe"


def test_build_user_message_includes_link_metadata():
    message = build_user_message(
        "body",
        "link",
        title="Title",
        link_preview=LinkPreview(title="LT", description="LD"),
    )
    assert "link" in message
    assert "Title" in message
    assert "Link Title: LT" in message
    assert "Link Description: LD" in message
    assert message.endswith("body")


def test_not_available_without_key():
    assert not Summarizer(api_key="").is_available()
    assert Summarizer(client=anthropic_client("{}"), api_key="key").is_available()


@pytest.mark.asyncio
async def test_summarize_without_key_returns_empty():
    client = anthropic_client("{}")
    result = await Summarizer(client=client, api_key="").summarize("content", "text")
    assert result.is_empty
    client.messages.create.assert_not_called()


@pytest.mark.asyncio
async def test_summarize_parses_reply():
    client = anthropic_client(
        '```json\n{"summary": "สรุป", "suggestedTags": ["ai"], "suggestedCategory": "idea"}\n```'
    )
    result = await Summarizer(client=client, api_key="key").summarize("content", "text", title="t")

    assert result.summary == "สรุป"
    assert result.suggested_tags == ["ai"]
    assert result.suggested_category == "idea"
    kwargs = client.messages.create.call_args.kwargs
    assert kwargs["messages"][0]["role"] == "user"
    assert "idea" in kwargs["system"]


@pytest.mark.asyncio
async def test_summarize_api_error_returns_empty():
    client = anthropic_client(error=RuntimeError("overloaded"))
    result = await Summarizer(client=client, api_key="key").summarize("content", "text")
    assert result.is_empty


@pytest.mark.asyncio
async def test_summarize_garbage_reply_returns_empty():
    client = anthropic_client("I cannot help with that.")
    result = await Summarizer(client=client, api_key="key").summarize("content", "text")
    assert result.is_empty
