"""
Internal team chat: channels, messages and per-user membership state
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def generate_id():
    return str(uuid.uuid4())


class InternalChannel(Base):
    __tablename__ = "internal_channels"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    type = Column(String(10), nullable=False, default="public")  # public, dm
    dm_participants = Column(JSON, nullable=True)  # sorted [user_a, user_b], DM only
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    members = relationship("ChannelMember", back_populates="channel", cascade="all, delete-orphan")
    messages = relationship("InternalMessage", back_populates="channel", cascade="all, delete-orphan")


class InternalMessage(Base):
    __tablename__ = "internal_messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    channel_id = Column(String(36), ForeignKey("internal_channels.id"), nullable=False, index=True)
    sender_id = Column(String(255), nullable=False, index=True)
    content = Column(Text, nullable=False)
    attachments = Column(JSON, nullable=False, default=list)
    mentions = Column(JSON, nullable=False, default=list)
    reply_to_id = Column(String(36), ForeignKey("internal_messages.id"), nullable=True)
    is_edited = Column(Boolean, default=False, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    edited_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    channel = relationship("InternalChannel", back_populates="messages")
    reply_to = relationship("InternalMessage", remote_side=[id])


class ChannelMember(Base):
    __tablename__ = "channel_members"
    __table_args__ = (UniqueConstraint("channel_id", "user_id", name="uq_channel_member"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    channel_id = Column(String(36), ForeignKey("internal_channels.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    last_read_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    is_muted = Column(Boolean, default=False, nullable=False)

    channel = relationship("InternalChannel", back_populates="members")
