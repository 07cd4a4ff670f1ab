"""AI summaries, tag and category suggestions for captured items."""

import json
import logging

from anthropic import AsyncAnthropic
from pydantic import ValidationError

from app.config import get_settings
from app.schemas.brain import LinkPreview, SummaryResult
from app.services.categories import AI_CATEGORIES

logger = logging.getLogger(__name__)
settings = get_settings()

SUMMARY_SYSTEM_PROMPT = f"""คุณเป็น AI ช่วยจัดการข้อมูลส่วนตัว (Second Brain)
ภารกิจ: สรุปเนื้อหาให้กระชับ และแนะนำ tags และหมวดหมู่

ตอบเป็น JSON format:
{{
  "summary": "สรุปสั้นๆ 1-2 ประโยค",
  "suggestedTags": ["tag1", "tag2"],
  "suggestedCategory": "หมวดหมู่"
}}

หมวดหมู่ที่เป็นไปได้: {", ".join(AI_CATEGORIES)}"""

_EXPECTED_KEYS = {"summary", "suggestedTags", "suggestedCategory"}


def extract_json_object(text: str) -> dict | None:
    """
    Parse the first balanced ``{...}`` object in free-form model output.

    Braces inside JSON strings are ignored while matching. Returns None when
    no object parses.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    try:
                        parsed = json.loads(text[start:index + 1])
                    except json.JSONDecodeError:
                        break
                    if isinstance(parsed, dict):
                        return parsed
                    break
        start = text.find("{", start + 1)
    return None


def build_user_message(
    content: str,
    content_type: str,
    title: str | None = None,
    link_preview: LinkPreview | None = None,
) -> str:
    parts = [f"ประเภท: {content_type}"]
    if title:
        parts.append(f"หัวข้อ: {title}")
    if link_preview:
        parts.append(f"Link Title: {link_preview.title}")
        parts.append(f"Link Description: {link_preview.description}")
    return "\n".join(parts) + f"\n\nเนื้อหา:\n{content}"


def parse_summary(text: str) -> SummaryResult:
    """
    Validate model output into a SummaryResult.

    A suggested category outside AI_CATEGORIES is dropped.

    Raises:
        ValueError: If there is no JSON object with the expected keys
    """
    payload = extract_json_object(text)
    if payload is None or not (_EXPECTED_KEYS & payload.keys()):
        raise ValueError("Invalid JSON response from model")

    category = payload.get("suggestedCategory")
    if category not in AI_CATEGORIES:
        if category:
            logger.info("Dropping unknown suggested category %r", category)
        category = None

    result = SummaryResult.model_validate(
        {
            "summary": payload.get("summary") or "",
            "suggestedTags": payload.get("suggestedTags") or [],
            "suggestedCategory": category,
        }
    )
    result.suggested_tags = [tag.strip() for tag in result.suggested_tags if tag.strip()]
    return result


class Summarizer:
    """Calls Claude to summarize one item. Best-effort: failures return an empty result."""

    def __init__(self, client: AsyncAnthropic | None = None, api_key: str | None = None):
        """Use the given client, or build one when an API key is configured."""
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        if client is None and self.api_key:
            client = AsyncAnthropic(api_key=self.api_key)
        self.client = client

    def is_available(self) -> bool:
        """True iff an API key is configured. Callers skip enrichment otherwise."""
        return bool(self.api_key) and self.client is not None

    async def summarize(
        self,
        content: str,
        content_type: str,
        title: str | None = None,
        link_preview: LinkPreview | None = None,
    ) -> SummaryResult:
        """
        Summarize content and suggest tags and a category.

        Never raises: a missing key, an API error or unusable output all
        produce an empty SummaryResult.
        """
        if not self.is_available():
            return SummaryResult()

        try:
            message = await self.client.messages.create(
                model=settings.llm_model,
                max_tokens=settings.llm_summary_max_tokens,
                system=SUMMARY_SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": build_user_message(content, content_type, title, link_preview),
                    }
                ],
            )
            return parse_summary(message.content[0].text)

        except (ValueError, ValidationError) as e:
            logger.warning("Unusable summary response: %s", str(e))
            return SummaryResult()
        except Exception:
            logger.exception("Error summarizing content")
            return SummaryResult()
