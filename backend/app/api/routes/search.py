"""Full-text search over the caller's items."""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import StoreDep, require_user_id
from app.config import get_settings, sanitize_error
from app.db.models import ContentType
from app.schemas.items import BrainItemRead, SearchResponse
from app.services.item_store import ItemFilter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/brain/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search_items(
    store: StoreDep,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    q: str | None = None,
    type: ContentType | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = settings.default_page_size,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> SearchResponse:
    """Search titles and content using web-search syntax (quotes, OR, -term)."""
    owner = require_user_id(user_id)
    query = (q or "").strip()
    if not query:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query is required",
        )

    try:
        page = await store.get_items(
            ItemFilter(
                user_id=owner,
                type=type.value if type else None,
                search=query,
                limit=limit,
                offset=offset,
            )
        )
    except Exception as e:
        logger.exception("Error searching items")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Internal error"),
        )

    return SearchResponse(
        query=query,
        items=[BrainItemRead.model_validate(item) for item in page.items],
        total=page.total,
        has_more=page.has_more,
    )
