"""API routes package."""

from app.api.routes import (
    admin,
    items,
    search,
    tags,
    webhook,
)

__all__ = [
    "admin",
    "items",
    "search",
    "tags",
    "webhook",
]
