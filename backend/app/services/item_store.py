"""
Brain item persistence.

Every owner-facing method filters on ``user_id`` at the SQL level; there is no
way to read or mutate someone else's item through them. The admin queries at
the bottom span all owners and are only reachable behind the admin secret.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import BrainItem
from app.services.errors import ItemNotFoundError

# Columns an existing item may change; type and owner are fixed at creation
MUTABLE_FIELDS = frozenset({"title", "tags", "category", "ai_summary", "link_preview", "ocr_text"})


def unique_tags(*tag_lists: Iterable[str] | None) -> list[str]:
    """Set union of tag lists, keeping first-seen order."""
    merged: dict[str, None] = {}
    for tags in tag_lists:
        for tag in tags or ():
            merged.setdefault(tag, None)
    return list(merged)


def count_values(values: Iterable[str | None]) -> list[tuple[str, int]]:
    """Frequency count, most common first. Empty values are skipped."""
    return Counter(value for value in values if value).most_common()


@dataclass
class ItemFilter:
    """Conjunctive filter for item listings."""

    user_id: str | None = None
    type: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    search: str | None = None  # full-text (websearch syntax)
    contains: str | None = None  # case-insensitive substring over content/title
    limit: int = 20
    offset: int = 0


@dataclass
class ItemPage:
    items: list[BrainItem]
    total: int
    has_more: bool


def apply_filter(query, item_filter: ItemFilter):
    """Add the WHERE clauses of ``item_filter`` to a select over BrainItem."""
    if item_filter.user_id is not None:
        query = query.where(BrainItem.user_id == item_filter.user_id)
    if item_filter.type:
        query = query.where(BrainItem.type == item_filter.type)
    if item_filter.category:
        query = query.where(BrainItem.category == item_filter.category)
    if item_filter.tags:
        # Array overlap: any requested tag matches
        query = query.where(BrainItem.tags.overlap(item_filter.tags))
    if item_filter.search:
        query = query.where(
            BrainItem.search_vector.op("@@")(func.websearch_to_tsquery("simple", item_filter.search))
        )
    if item_filter.contains:
        pattern = f"%{item_filter.contains}%"
        query = query.where(
            or_(BrainItem.content.ilike(pattern), BrainItem.title.ilike(pattern))
        )
    return query


class ItemStore:
    """CRUD and aggregation queries over ``brain_items`` within one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # OWNER-SCOPED OPERATIONS
    # =========================================================================

    async def create_item(self, **fields: Any) -> BrainItem:
        """Insert a new item. Tags default to empty and are deduplicated."""
        fields["tags"] = unique_tags(fields.get("tags"))
        item = BrainItem(**fields)
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def get_item(self, item_id: UUID, user_id: str) -> BrainItem | None:
        """The item, or None when it does not exist or belongs to someone else."""
        result = await self.db.execute(
            select(BrainItem).where(BrainItem.id == item_id, BrainItem.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_items(self, item_filter: ItemFilter) -> ItemPage:
        """Filtered page of items, newest first, with the total match count."""
        query = apply_filter(select(BrainItem), item_filter)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = (
            query.order_by(BrainItem.created_at.desc())
            .offset(item_filter.offset)
            .limit(item_filter.limit)
        )
        result = await self.db.execute(query)
        items = list(result.scalars().all())

        return ItemPage(
            items=items,
            total=total,
            has_more=total > item_filter.offset + item_filter.limit,
        )

    async def update_item(self, item_id: UUID, user_id: str, **changes: Any) -> BrainItem:
        """
        Apply a partial update and bump ``updated_at``.

        Raises:
            ItemNotFoundError: If no item matches id and owner
            ValueError: If a non-mutable column is passed
        """
        illegal = set(changes) - MUTABLE_FIELDS
        if illegal:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(illegal))}")
        if "tags" in changes and changes["tags"] is not None:
            changes["tags"] = unique_tags(changes["tags"])

        stmt = (
            update(BrainItem)
            .where(BrainItem.id == item_id, BrainItem.user_id == user_id)
            .values(**changes, updated_at=func.now())
            .returning(BrainItem)
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        result = await self.db.execute(stmt)
        item = result.scalar_one_or_none()
        if item is None:
            raise ItemNotFoundError(item_id, user_id)

        await self.db.commit()
        return item

    async def delete_item(self, item_id: UUID, user_id: str) -> None:
        """
        Delete one item.

        Raises:
            ItemNotFoundError: If no item matches id and owner
        """
        result = await self.db.execute(
            delete(BrainItem).where(BrainItem.id == item_id, BrainItem.user_id == user_id)
        )
        if result.rowcount == 0:
            raise ItemNotFoundError(item_id, user_id)
        await self.db.commit()

    async def get_user_tags(self, user_id: str) -> list[tuple[str, int]]:
        """Every tag of the owner with its item count, most used first."""
        result = await self.db.execute(
            select(BrainItem.tags).where(BrainItem.user_id == user_id)
        )
        return count_values(tag for tags in result.scalars() for tag in (tags or []))

    async def get_user_categories(self, user_id: str) -> list[tuple[str, int]]:
        """Every category of the owner with its item count, most used first."""
        result = await self.db.execute(
            select(BrainItem.category).where(
                BrainItem.user_id == user_id, BrainItem.category.is_not(None)
            )
        )
        return count_values(result.scalars())

    # =========================================================================
    # ADMIN QUERIES (unscoped)
    # =========================================================================

    async def count_items(self, since: datetime | None = None) -> int:
        query = select(func.count()).select_from(BrainItem)
        if since is not None:
            query = query.where(BrainItem.created_at >= since)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def count_by_type(self) -> dict[str, int]:
        result = await self.db.execute(
            select(BrainItem.type, func.count()).group_by(BrainItem.type)
        )
        counts = {"text": 0, "image": 0, "link": 0}
        for item_type, count in result.all():
            counts[item_type] = count
        return counts

    async def count_users(self) -> int:
        result = await self.db.execute(select(func.count(func.distinct(BrainItem.user_id))))
        return result.scalar() or 0

    async def all_tags(self) -> list[tuple[str, int]]:
        result = await self.db.execute(select(BrainItem.tags))
        return count_values(tag for tags in result.scalars() for tag in (tags or []))

    async def all_categories(self) -> list[tuple[str, int]]:
        result = await self.db.execute(
            select(BrainItem.category).where(BrainItem.category.is_not(None))
        )
        return count_values(result.scalars())

    async def activity_rows(self) -> list[tuple[str, str, datetime]]:
        """(user_id, type, created_at) for every item, newest first."""
        result = await self.db.execute(
            select(BrainItem.user_id, BrainItem.type, BrainItem.created_at).order_by(
                BrainItem.created_at.desc()
            )
        )
        return [tuple(row) for row in result.all()]

    async def image_urls_for(self, item_ids: list[UUID]) -> list[str]:
        result = await self.db.execute(
            select(BrainItem.image_url).where(
                BrainItem.id.in_(item_ids), BrainItem.image_url.is_not(None)
            )
        )
        return list(result.scalars().all())

    async def delete_items(self, item_ids: list[UUID]) -> int:
        """Delete any items by id. Returns the number of rows removed."""
        result = await self.db.execute(delete(BrainItem).where(BrainItem.id.in_(item_ids)))
        await self.db.commit()
        return result.rowcount or 0
