"""Pydantic schemas for API request/response validation."""

from app.schemas.items import (
    BrainItemCreate,
    BrainItemListResponse,
    BrainItemRead,
    BrainItemUpdate,
    SearchResponse,
    SuccessResponse,
    TagsResponse,
)
from app.schemas.brain import LinkPreview, OpenGraphData, ParsedContent, SummaryResult
from app.schemas.line import LineWebhookBody, LineWebhookEvent
from app.schemas.admin import (
    AdminStatsResponse,
    AdminUsersResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
)

__all__ = [
    # Items
    "BrainItemCreate",
    "BrainItemListResponse",
    "BrainItemRead",
    "BrainItemUpdate",
    "SearchResponse",
    "SuccessResponse",
    "TagsResponse",
    # Capture pipeline
    "LinkPreview",
    "OpenGraphData",
    "ParsedContent",
    "SummaryResult",
    # LINE
    "LineWebhookBody",
    "LineWebhookEvent",
    # Admin
    "AdminStatsResponse",
    "AdminUsersResponse",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
]
