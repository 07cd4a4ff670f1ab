"""Schemas for LINE Messaging API webhook payloads."""

from pydantic import BaseModel, ConfigDict, Field


class LineSchema(BaseModel):
    """LINE payloads use camelCase and grow new fields over time."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LineSource(LineSchema):
    type: str
    user_id: str | None = Field(default=None, alias="userId")
    group_id: str | None = Field(default=None, alias="groupId")
    room_id: str | None = Field(default=None, alias="roomId")


class LineMessage(LineSchema):
    """A chat message. ``type`` is text, image, video, audio, file, location or sticker."""

    id: str
    type: str
    text: str | None = None


class LineWebhookEvent(LineSchema):
    type: str
    reply_token: str | None = Field(default=None, alias="replyToken")
    source: LineSource
    timestamp: int
    message: LineMessage | None = None


class LineWebhookBody(LineSchema):
    destination: str
    events: list[LineWebhookEvent] = Field(default_factory=list)
