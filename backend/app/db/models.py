"""
SQLAlchemy 2.0 Models for the Second Brain store.

Uses modern declarative syntax with Mapped[] type annotations.
Owners are opaque LINE user ids, so there is no users table to join against.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Computed, Index, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TIMESTAMP, TSVECTOR, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


# =============================================================================
# ENUMS
# =============================================================================


class ContentType(str, PyEnum):
    """Kind of content captured in a brain item. Fixed at creation."""

    TEXT = "text"
    IMAGE = "image"
    LINK = "link"


# Full-text index source; 'simple' config keeps Thai and English tokens as-is
SEARCH_VECTOR_SQL = "to_tsvector('simple', coalesce(title, '') || ' ' || coalesce(content, ''))"


# =============================================================================
# MODELS
# =============================================================================


class BrainItem(Base):
    """
    A single captured note (text, image or link) owned by one LINE user.

    Uses TEXT[] for tags (simpler than JSONB for flat string arrays) and JSONB
    for the link preview, which is stored verbatim once fetched.
    """

    __tablename__ = "brain_items"
    __table_args__ = (
        CheckConstraint("type IN ('text', 'image', 'link')", name="ck_brain_items_type"),
        Index("idx_brain_items_user_created_at", "user_id", text("created_at DESC")),
        Index("idx_brain_items_type", "type"),
        Index("idx_brain_items_category", "category"),
        Index("idx_brain_items_tags", "tags", postgresql_using="gin"),
        Index("idx_brain_items_search_vector", "search_vector", postgresql_using="gin"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    user_id: Mapped[str] = mapped_column(String(), nullable=False)
    type: Mapped[str] = mapped_column(String(), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default="{}"
    )
    category: Mapped[Optional[str]] = mapped_column(String(), nullable=True)
    ai_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Link items
    link_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    link_preview: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)

    # Image items
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ocr_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    # Generated by Postgres, never written by the application
    search_vector: Mapped[Optional[str]] = mapped_column(
        TSVECTOR, Computed(SEARCH_VECTOR_SQL, persisted=True), nullable=True, deferred=True
    )
