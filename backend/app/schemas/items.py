"""Brain item schemas."""

from pydantic import BaseModel, ConfigDict, Field

from app.db.models import ContentType
from app.schemas.base import BaseSchema, IDMixin, TimestampMixin


class BrainItemRead(BaseSchema, IDMixin, TimestampMixin):
    """Schema for reading a stored brain item."""

    user_id: str
    type: ContentType
    content: str
    title: str | None = None
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    ai_summary: str | None = None
    link_url: str | None = None
    link_preview: dict | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    ocr_text: str | None = None


class BrainItemCreate(BaseSchema):
    """Body for creating an item from the web UI.

    The content is classified the same way a LINE text message is; title,
    tags and category only override or extend what classification finds.
    """

    user_id: str = Field(..., min_length=1, alias="userId")
    content: str = Field(..., min_length=1)
    title: str | None = None
    tags: list[str] | None = None
    category: str | None = None


class BrainItemUpdate(BaseSchema):
    """Body for updating an item. All fields except the owner are optional."""

    user_id: str = Field(..., min_length=1, alias="userId")
    title: str | None = None
    tags: list[str] | None = None
    category: str | None = None
    ai_summary: str | None = None


class BrainItemListResponse(BaseModel):
    """One page of items plus paging info."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[BrainItemRead]
    total: int
    has_more: bool = Field(alias="hasMore")


class SearchResponse(BrainItemListResponse):
    """Search results echo the normalized query."""

    query: str


class TagCount(BaseModel):
    tag: str
    count: int


class CategoryCount(BaseModel):
    category: str
    count: int


class TagsResponse(BaseModel):
    """All tags and categories of one owner, most used first."""

    tags: list[TagCount]
    categories: list[CategoryCount]


class SuccessResponse(BaseModel):
    success: bool = True
