"""Admin routes. Every endpoint requires the admin bearer secret."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import AdminOnly, ServicesDep, StoreDep
from app.config import get_settings
from app.db.models import ContentType
from app.schemas.admin import (
    AdminStatsResponse,
    AdminUsersResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
)
from app.schemas.items import BrainItemListResponse, BrainItemRead
from app.services.admin import build_user_activity, collect_stats
from app.services.item_store import ItemFilter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[AdminOnly])


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(store: StoreDep) -> AdminStatsResponse:
    """Overall counts, items per type, top tags and top categories."""
    return await collect_stats(store)


@router.get("/users", response_model=AdminUsersResponse)
async def list_users(
    store: StoreDep,
    limit: Annotated[int, Query(ge=1, le=500)] = settings.admin_page_size,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> AdminUsersResponse:
    """Per-user activity rolled up from the item table, busiest first."""
    users = build_user_activity(await store.activity_rows())
    return AdminUsersResponse(
        users=users[offset:offset + limit],
        total=len(users),
        has_more=len(users) > offset + limit,
    )


@router.get("/items", response_model=BrainItemListResponse)
async def list_all_items(
    store: StoreDep,
    type: ContentType | None = None,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    search: str | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = settings.admin_page_size,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> BrainItemListResponse:
    """Items of every owner, newest first. ``search`` is a substring match."""
    page = await store.get_items(
        ItemFilter(
            user_id=user_id or None,
            type=type.value if type else None,
            contains=search.strip() if search and search.strip() else None,
            limit=limit,
            offset=offset,
        )
    )
    return BrainItemListResponse(
        items=[BrainItemRead.model_validate(item) for item in page.items],
        total=page.total,
        has_more=page.has_more,
    )


@router.delete("/items", response_model=BulkDeleteResponse)
async def delete_items(
    data: BulkDeleteRequest,
    store: StoreDep,
    services: ServicesDep,
) -> BulkDeleteResponse:
    """
    Delete items by id regardless of owner.

    Stored images are removed first, best-effort.
    """
    if not data.ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="ids array is required",
        )
    try:
        item_ids = [UUID(item_id) for item_id in data.ids]
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="ids must be valid item ids",
        )

    for image_url in await store.image_urls_for(item_ids):
        try:
            await services.images.delete_image(image_url)
        except Exception:
            logger.warning("Failed to delete image %s", image_url, exc_info=True)

    removed = await store.delete_items(item_ids)
    logger.info("Admin deleted %d of %d requested items", removed, len(item_ids))

    return BulkDeleteResponse(deleted=len(item_ids))
