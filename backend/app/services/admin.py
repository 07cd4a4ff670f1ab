"""Aggregate views over all owners for the admin dashboard."""

from datetime import datetime, timedelta, timezone

from app.schemas.admin import AdminStatsResponse, StatsOverview, UserActivity
from app.schemas.items import CategoryCount, TagCount
from app.services.item_store import ItemStore

TOP_TAGS = 10
TOP_CATEGORIES = 5


async def collect_stats(store: ItemStore, now: datetime | None = None) -> AdminStatsResponse:
    """Totals, per-type counts and the most used tags and categories."""
    now = now or datetime.now(timezone.utc)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)

    overview = StatsOverview(
        total_items=await store.count_items(),
        total_users=await store.count_users(),
        today_items=await store.count_items(since=start_of_day),
        week_items=await store.count_items(since=week_ago),
    )
    tags = await store.all_tags()
    categories = await store.all_categories()

    return AdminStatsResponse(
        overview=overview,
        by_type=await store.count_by_type(),
        top_tags=[TagCount(tag=tag, count=count) for tag, count in tags[:TOP_TAGS]],
        top_categories=[
            CategoryCount(category=category, count=count)
            for category, count in categories[:TOP_CATEGORIES]
        ],
    )


def build_user_activity(rows: list[tuple[str, str, datetime]]) -> list[UserActivity]:
    """
    Group (user_id, type, created_at) rows into one roll-up per owner.

    Sorted by item count, busiest owner first.
    """
    users: dict[str, UserActivity] = {}
    for user_id, item_type, created_at in rows:
        activity = users.get(user_id)
        if activity is None:
            activity = UserActivity(user_id=user_id, last_active=created_at, first_seen=created_at)
            users[user_id] = activity

        activity.item_count += 1
        if item_type == "text":
            activity.text_count += 1
        elif item_type == "image":
            activity.image_count += 1
        elif item_type == "link":
            activity.link_count += 1

        if created_at > activity.last_active:
            activity.last_active = created_at
        if created_at < activity.first_seen:
            activity.first_seen = created_at

    return sorted(users.values(), key=lambda a: a.item_count, reverse=True)
