"""
Capture pipeline shared by the LINE webhook and the web API.

parse -> (image upload | link preview) -> category -> create -> enrich later.
Enrichment is scheduled on the TaskRunner and never awaited by the caller.
"""

import logging
from uuid import UUID

from app.db.models import BrainItem, ContentType
from app.schemas.brain import LinkPreview, ParsedContent
from app.services.categories import detect_category
from app.services.container import Services
from app.services.images import process_line_image
from app.services.item_store import ItemStore, unique_tags
from app.services.parser import is_valid_url, parse_text_message

logger = logging.getLogger(__name__)


async def _fetch_preview(services: Services, parsed: ParsedContent) -> LinkPreview | None:
    if parsed.type == ContentType.LINK and parsed.link_url and is_valid_url(parsed.link_url):
        return await services.link_previews.fetch_link_preview(parsed.link_url)
    return None


async def capture_line_message(
    services: Services,
    store: ItemStore,
    user_id: str,
    parsed: ParsedContent,
) -> BrainItem:
    """
    Store a parsed LINE message.

    Raises:
        ImageProcessingError: If an image could not be copied into storage
    """
    image_url = None
    link_preview = None

    if parsed.type == ContentType.IMAGE and parsed.message_id:
        upload = await process_line_image(
            user_id, parsed.message_id, services.line, services.images
        )
        image_url = upload.image_url
    else:
        link_preview = await _fetch_preview(services, parsed)

    item = await store.create_item(
        user_id=user_id,
        type=parsed.type.value,
        content=parsed.content,
        title=parsed.title,
        tags=parsed.tags,
        category=detect_category(parsed.content, parsed.tags),
        link_url=parsed.link_url,
        link_preview=link_preview.to_json() if link_preview else None,
        image_url=image_url,
    )
    logger.info("Captured %s item %s from LINE", parsed.type.value, item.id)

    schedule_enrichment(services, item, link_preview)
    return item


async def capture_text(
    services: Services,
    store: ItemStore,
    user_id: str,
    content: str,
    *,
    title: str | None = None,
    tags: list[str] | None = None,
    category: str | None = None,
) -> BrainItem:
    """
    Classify and store text submitted through the API.

    Caller tags extend the parsed hashtags; caller title and category take
    precedence over the generated ones.
    """
    parsed = parse_text_message(content)
    merged_tags = unique_tags(parsed.tags, tags)
    link_preview = await _fetch_preview(services, parsed)

    item = await store.create_item(
        user_id=user_id,
        type=parsed.type.value,
        content=content,
        title=title or parsed.title,
        tags=merged_tags,
        category=category or detect_category(content, merged_tags),
        link_url=parsed.link_url,
        link_preview=link_preview.to_json() if link_preview else None,
    )
    logger.info("Captured %s item %s from API", parsed.type.value, item.id)

    schedule_enrichment(services, item, link_preview, keep_category=category is not None)
    return item


def schedule_enrichment(
    services: Services,
    item: BrainItem,
    link_preview: LinkPreview | None,
    *,
    keep_category: bool = False,
) -> None:
    """Queue AI enrichment for ``item``. No-op when AI is not configured."""
    if not services.summarizer.is_available():
        return

    services.tasks.spawn(
        enrich_item(
            services,
            item_id=item.id,
            user_id=item.user_id,
            content=item.content,
            content_type=item.type,
            title=item.title,
            tags=list(item.tags or []),
            link_preview=link_preview,
            keep_category=keep_category,
        ),
        name=f"enrich-{item.id}",
    )


async def enrich_item(
    services: Services,
    *,
    item_id: UUID,
    user_id: str,
    content: str,
    content_type: str,
    title: str | None,
    tags: list[str],
    link_preview: LinkPreview | None,
    keep_category: bool = False,
) -> None:
    """
    Summarize an item and merge the result into it.

    Tags are merged by set union; summary and category are only written when
    the summarizer produced them. Errors are logged and dropped.
    """
    try:
        result = await services.summarizer.summarize(content, content_type, title, link_preview)
        if result.is_empty:
            return

        changes: dict = {"tags": unique_tags(tags, result.suggested_tags)}
        if result.summary:
            changes["ai_summary"] = result.summary
        if result.suggested_category and not keep_category:
            changes["category"] = result.suggested_category

        async with services.store_scope() as store:
            await store.update_item(item_id, user_id, **changes)
        logger.info("Enriched item %s", item_id)

    except Exception:
        logger.exception("Error processing AI summary for item %s", item_id)
