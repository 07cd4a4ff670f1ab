"""Transient records passed between the classification and enrichment steps."""

from pydantic import BaseModel, ConfigDict, Field

from app.db.models import ContentType


class ParsedContent(BaseModel):
    """An inbound message after classification, before it becomes a BrainItem."""

    type: ContentType
    content: str
    title: str | None = None
    tags: list[str] = Field(default_factory=list)
    link_url: str | None = None
    message_id: str | None = None  # LINE message id, used to fetch image content


class OpenGraphData(BaseModel):
    """Metadata scraped from a page head. Every field may be missing."""

    url: str | None = None
    title: str | None = None
    description: str | None = None
    image: str | None = None
    site_name: str | None = None
    type: str | None = None


class LinkPreview(BaseModel):
    """Preview stored on link items. Serialized with the front end's camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    image: str | None = None
    site_name: str | None = Field(default=None, alias="siteName")

    def to_json(self) -> dict:
        """Shape written to the JSONB column."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ImageUploadResult(BaseModel):
    """Where an uploaded image ended up."""

    image_url: str
    size: int


class SummaryResult(BaseModel):
    """Summarizer output. The empty instance means "nothing to merge"."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str = ""
    suggested_tags: list[str] = Field(default_factory=list, alias="suggestedTags")
    suggested_category: str | None = Field(default=None, alias="suggestedCategory")

    @property
    def is_empty(self) -> bool:
        return not (self.summary or self.suggested_tags or self.suggested_category)
