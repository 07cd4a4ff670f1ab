"""Shared pydantic base for item, webhook and admin payloads."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Reads ORM rows and accepts both field names and camelCase aliases."""

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode
        str_strip_whitespace=True,
        validate_assignment=True,
        populate_by_name=True,  # Accept both snake_case names and camelCase aliases
    )


class TimestampMixin(BaseModel):
    """created_at/updated_at of a stored brain item."""

    created_at: datetime
    updated_at: datetime


class IDMixin(BaseModel):
    """Item id."""

    id: UUID
