"""Tag and category listing for the tag cloud and filter tabs."""

from typing import Annotated

from fastapi import APIRouter, Query

from app.api.deps import StoreDep, require_user_id
from app.schemas.items import CategoryCount, TagCount, TagsResponse

router = APIRouter(prefix="/api/brain/tags", tags=["tags"])


@router.get("", response_model=TagsResponse)
async def list_tags(
    store: StoreDep,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> TagsResponse:
    """All tags and categories of the caller with usage counts."""
    owner = require_user_id(user_id)
    tags = await store.get_user_tags(owner)
    categories = await store.get_user_categories(owner)
    return TagsResponse(
        tags=[TagCount(tag=tag, count=count) for tag, count in tags],
        categories=[CategoryCount(category=category, count=count) for category, count in categories],
    )
