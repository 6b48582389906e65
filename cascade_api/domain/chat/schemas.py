"""Chat domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator


class ChannelCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Channel name is required")
        return v


class DirectMessageRequest(BaseModel):
    otherUserId: str


class MessageCreate(BaseModel):
    channelId: str
    content: str
    attachments: list[dict[str, Any]] = []
    mentions: list[dict[str, Any]] = []
    replyTo: Optional[str] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        if not v or not v.strip():
            raise ValueError("Message content is required")
        return v


class MessageEdit(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        if not v or not v.strip():
            raise ValueError("Message content is required")
        return v


class MuteRequest(BaseModel):
    muted: bool


class LastMessage(BaseModel):
    content: str
    senderId: str
    createdAt: datetime


class ChannelResponse(BaseModel):
    id: str  # dm-{a}-{b} for DMs, database id otherwise
    dbId: str
    name: str
    type: str
    dmParticipants: Optional[list[str]] = None
    createdBy: str
    createdAt: datetime
    unreadCount: int = 0
    isMuted: bool = False
    lastMessage: Optional[LastMessage] = None
    otherUserId: Optional[str] = None


class ReplyPreview(BaseModel):
    id: str
    senderId: str
    content: str


class MessageResponse(BaseModel):
    id: str
    channelId: str
    senderId: str
    content: str
    attachments: list[dict[str, Any]]
    mentions: list[dict[str, Any]]
    replyToId: Optional[str] = None
    replyTo: Optional[ReplyPreview] = None
    isEdited: bool
    isDeleted: bool
    editedAt: Optional[datetime] = None
    createdAt: datetime


class ChatStatsResponse(BaseModel):
    success: bool = True
    unreadCount: int
