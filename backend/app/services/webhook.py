"""Per-event handling of LINE webhook deliveries."""

import asyncio
import logging

from app.db.models import ContentType
from app.schemas.line import LineWebhookEvent
from app.services.container import Services
from app.services.ingest import capture_line_message
from app.services.parser import parse_message

logger = logging.getLogger(__name__)

REPLY_UNSUPPORTED = "ขออภัย รองรับเฉพาะข้อความและรูปภาพ"
REPLY_FAILED = "❌ เกิดข้อผิดพลาด กรุณาลองใหม่"

TYPE_EMOJI = {
    ContentType.TEXT: "📝",
    ContentType.IMAGE: "🖼️",
    ContentType.LINK: "🔗",
}


def saved_reply(content_type: ContentType) -> str:
    return f"{TYPE_EMOJI.get(content_type, '✅')} บันทึกแล้ว!"


async def handle_event(services: Services, event: LineWebhookEvent) -> None:
    """
    Capture one webhook event.

    Only message events from a known user are stored. The user always gets a
    short reply when LINE supplied a reply token.
    """
    if event.type != "message" or event.message is None:
        return

    user_id = event.source.user_id
    if not user_id:
        logger.warning("Ignoring %s event without userId", event.type)
        return

    parsed = parse_message(event.message)
    if parsed is None:
        logger.info("Unsupported message type: %s", event.message.type)
        if event.reply_token:
            await services.line.reply_text(event.reply_token, REPLY_UNSUPPORTED)
        return

    try:
        async with services.store_scope() as store:
            await capture_line_message(services, store, user_id, parsed)
    except Exception:
        logger.exception("Error processing %s message %s", parsed.type.value, event.message.id)
        if event.reply_token:
            await services.line.reply_text(event.reply_token, REPLY_FAILED)
        return

    if event.reply_token:
        await services.line.reply_text(event.reply_token, saved_reply(parsed.type))


async def handle_events(services: Services, events: list[LineWebhookEvent]) -> None:
    """Process a delivery's events concurrently; one failure does not stop the others."""
    results = await asyncio.gather(
        *(handle_event(services, event) for event in events), return_exceptions=True
    )
    for result in results:
        if isinstance(result, Exception):
            logger.error("Webhook event failed: %s", result, exc_info=result)
