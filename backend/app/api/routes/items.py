"""Brain item CRUD routes, scoped by the caller's LINE user id."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import ServicesDep, StoreDep, require_user_id, split_tags
from app.config import get_settings, sanitize_error
from app.db.models import ContentType
from app.schemas.items import (
    BrainItemCreate,
    BrainItemListResponse,
    BrainItemRead,
    BrainItemUpdate,
    SuccessResponse,
)
from app.services.errors import ItemNotFoundError
from app.services.ingest import capture_text
from app.services.item_store import ItemFilter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/brain/items", tags=["items"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")


def _internal_error(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=sanitize_error(e, generic_message="Internal error"),
    )


@router.get("", response_model=BrainItemListResponse)
async def list_items(
    store: StoreDep,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    type: ContentType | None = None,
    category: str | None = None,
    tags: str | None = None,
    search: str | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = settings.default_page_size,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> BrainItemListResponse:
    """
    List the caller's items, newest first.

    Filters are combined with AND:
    - type: text, image or link
    - category: exact category
    - tags: comma-separated; items sharing any of them match
    - search: full-text query over title and content
    """
    owner = require_user_id(user_id)
    try:
        page = await store.get_items(
            ItemFilter(
                user_id=owner,
                type=type.value if type else None,
                category=category or None,
                tags=split_tags(tags),
                search=search.strip() if search and search.strip() else None,
                limit=limit,
                offset=offset,
            )
        )
    except Exception as e:
        logger.exception("Error listing items")
        raise _internal_error(e)

    return BrainItemListResponse(
        items=[BrainItemRead.model_validate(item) for item in page.items],
        total=page.total,
        has_more=page.has_more,
    )


@router.post("", response_model=BrainItemRead, status_code=status.HTTP_201_CREATED)
async def create_item(
    data: BrainItemCreate,
    store: StoreDep,
    services: ServicesDep,
) -> BrainItemRead:
    """
    Create an item from raw text.

    Runs the same classification as LINE text messages: link detection,
    hashtags, title and category. AI enrichment happens after the response.
    """
    try:
        item = await capture_text(
            services,
            store,
            data.user_id,
            data.content,
            title=data.title or None,
            tags=data.tags,
            category=data.category or None,
        )
    except Exception as e:
        logger.exception("Error creating item")
        raise _internal_error(e)

    return BrainItemRead.model_validate(item)


@router.get("/{item_id}", response_model=BrainItemRead)
async def get_item(
    item_id: UUID,
    store: StoreDep,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> BrainItemRead:
    """Get one of the caller's items."""
    owner = require_user_id(user_id)
    item = await store.get_item(item_id, owner)
    if item is None:
        raise _not_found()
    return BrainItemRead.model_validate(item)


@router.put("/{item_id}", response_model=BrainItemRead)
async def update_item(
    item_id: UUID,
    data: BrainItemUpdate,
    store: StoreDep,
) -> BrainItemRead:
    """Update title, tags, category or summary of one of the caller's items."""
    changes = data.model_dump(exclude_unset=True, exclude={"user_id"})
    if changes.get("tags") is None:
        changes.pop("tags", None)

    try:
        item = await store.update_item(item_id, data.user_id, **changes)
    except ItemNotFoundError:
        raise _not_found()
    except Exception as e:
        logger.exception("Error updating item %s", item_id)
        raise _internal_error(e)

    return BrainItemRead.model_validate(item)


@router.delete("/{item_id}", response_model=SuccessResponse)
async def delete_item(
    item_id: UUID,
    store: StoreDep,
    services: ServicesDep,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> SuccessResponse:
    """
    Delete one of the caller's items.

    A stored image is removed first, best-effort: a storage failure is logged
    and the item is deleted anyway.
    """
    owner = require_user_id(user_id)
    existing = await store.get_item(item_id, owner)
    if existing is None:
        raise _not_found()

    if existing.image_url:
        try:
            await services.images.delete_image(existing.image_url)
        except Exception:
            logger.warning("Failed to delete image for item %s", item_id, exc_info=True)

    try:
        await store.delete_item(item_id, owner)
    except ItemNotFoundError:
        raise _not_found()
    except Exception as e:
        logger.exception("Error deleting item %s", item_id)
        raise _internal_error(e)

    return SuccessResponse()
