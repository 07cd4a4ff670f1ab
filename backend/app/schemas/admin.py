"""Admin API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.items import CategoryCount, TagCount


class AdminSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StatsOverview(AdminSchema):
    total_items: int = Field(alias="totalItems")
    total_users: int = Field(alias="totalUsers")
    today_items: int = Field(alias="todayItems")
    week_items: int = Field(alias="weekItems")


class AdminStatsResponse(AdminSchema):
    overview: StatsOverview
    by_type: dict[str, int] = Field(alias="byType")
    top_tags: list[TagCount] = Field(alias="topTags")
    top_categories: list[CategoryCount] = Field(alias="topCategories")


class UserActivity(AdminSchema):
    """Per-owner roll-up built from the item table."""

    user_id: str
    item_count: int = Field(0, alias="itemCount")
    text_count: int = Field(0, alias="textCount")
    image_count: int = Field(0, alias="imageCount")
    link_count: int = Field(0, alias="linkCount")
    last_active: datetime = Field(alias="lastActive")
    first_seen: datetime = Field(alias="firstSeen")


class AdminUsersResponse(AdminSchema):
    users: list[UserActivity]
    total: int
    has_more: bool = Field(alias="hasMore")


class BulkDeleteRequest(BaseModel):
    """Body of the admin bulk delete. Validated by hand so a bad body is a plain 400."""

    ids: list[str] | None = None


class BulkDeleteResponse(AdminSchema):
    success: bool = True
    deleted: int
