"""Chat service - Business logic for internal team chat"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import Settings
from ...models_chat import InternalChannel, InternalMessage
from ...services import push_service
from .repository import ChatRepository
from .schemas import (
    ChannelResponse,
    LastMessage,
    MessageCreate,
    MessageResponse,
    ReplyPreview,
)

logger = logging.getLogger(__name__)


def dm_channel_name(user_a: str, user_b: str) -> str:
    """Deterministic DM id: dm-{lower}-{higher}"""
    first, second = sorted([user_a, user_b])
    return f"dm-{first}-{second}"


def message_to_response(message: InternalMessage) -> MessageResponse:
    reply_to = None
    if message.reply_to is not None:
        reply_to = ReplyPreview(
            id=message.reply_to.id,
            senderId=message.reply_to.sender_id,
            content="" if message.reply_to.is_deleted else message.reply_to.content,
        )
    return MessageResponse(
        id=message.id,
        channelId=message.channel_id,
        senderId=message.sender_id,
        content="" if message.is_deleted else message.content,
        attachments=[] if message.is_deleted else (message.attachments or []),
        mentions=message.mentions or [],
        replyToId=message.reply_to_id,
        replyTo=reply_to,
        isEdited=message.is_edited,
        isDeleted=message.is_deleted,
        editedAt=message.edited_at,
        createdAt=message.created_at,
    )


class ChatService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ChatRepository()

    def resolve_channel(self, channel_id: str) -> Optional[InternalChannel]:
        """Accept either a database id or a deterministic dm-{a}-{b} id"""
        if channel_id.startswith("dm-"):
            channel = self.repo.get_dm_channel_by_name(self.db, channel_id)
            if channel:
                return channel
        return self.repo.get_channel(self.db, channel_id)

    def _require_channel(self, channel_id: str) -> InternalChannel:
        channel = self.resolve_channel(channel_id)
        if not channel:
            raise HTTPException(status_code=404, detail="Channel not found")
        return channel

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def get_user_channels(self, user_id: str) -> list[ChannelResponse]:
        channels = []
        for member in self.repo.get_user_memberships(self.db, user_id):
            channel = member.channel
            unread = self.repo.count_unread(self.db, channel.id, user_id, member.last_read_at)
            last = self.repo.get_last_message(self.db, channel.id)

            other_user_id = None
            display_id = channel.id
            if channel.type == "dm" and channel.dm_participants:
                participants = list(channel.dm_participants)
                other_user_id = next((p for p in participants if p != user_id), None)
                if len(participants) == 2:
                    display_id = dm_channel_name(participants[0], participants[1])

            channels.append(
                ChannelResponse(
                    id=display_id,
                    dbId=channel.id,
                    name=channel.name,
                    type=channel.type,
                    dmParticipants=channel.dm_participants,
                    createdBy=channel.created_by,
                    createdAt=channel.created_at,
                    unreadCount=unread,
                    isMuted=member.is_muted,
                    lastMessage=(
                        LastMessage(content=last.content, senderId=last.sender_id, createdAt=last.created_at)
                        if last
                        else None
                    ),
                    otherUserId=other_user_id,
                )
            )
        return channels

    def create_public_channel(self, name: str, user_id: str) -> InternalChannel:
        channel = self.repo.create_channel(self.db, name=name, type="public", created_by=user_id)
        self.repo.add_member(self.db, channel.id, user_id)
        self.db.commit()
        self.db.refresh(channel)
        logger.info(f"✅ Created channel '{name}' ({channel.id})")
        return channel

    def join_channel(self, channel_id: str, user_id: str) -> InternalChannel:
        channel = self._require_channel(channel_id)
        if channel.type == "dm" and user_id not in (channel.dm_participants or []):
            raise HTTPException(status_code=403, detail="Cannot join a direct message channel")
        if not self.repo.get_membership(self.db, channel.id, user_id):
            self.repo.add_member(self.db, channel.id, user_id)
            self.db.commit()
        return channel

    def find_or_create_dm(self, user_id: str, other_user_id: str) -> InternalChannel:
        if not other_user_id or other_user_id == user_id:
            raise HTTPException(status_code=400, detail="A direct message needs another user")

        participants = sorted([user_id, other_user_id])
        name = dm_channel_name(user_id, other_user_id)
        channel = self.repo.get_dm_channel_by_name(self.db, name)
        if channel:
            return channel

        channel = self.repo.create_channel(
            self.db,
            name=name,
            type="dm",
            dm_participants=participants,
            created_by=user_id,
        )
        for participant in participants:
            self.repo.add_member(self.db, channel.id, participant)
        self.db.commit()
        self.db.refresh(channel)
        logger.info(f"✅ Created DM channel: {name}")
        return channel

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def get_channel_messages(self, channel_id: str, limit: int = 50, offset: int = 0) -> list[MessageResponse]:
        channel = self.resolve_channel(channel_id)
        if not channel:
            # No history yet for a DM that was never created
            return []
        page = self.repo.get_messages(self.db, channel.id, limit, offset)
        return [message_to_response(m) for m in reversed(page)]

    def send_message(self, data: MessageCreate, user_id: str) -> MessageResponse:
        channel = self._require_channel(data.channelId)

        if data.replyTo:
            parent = self.repo.get_message(self.db, data.replyTo)
            if not parent or parent.channel_id != channel.id:
                raise HTTPException(status_code=400, detail="Reply target not found in this channel")

        if not self.repo.get_membership(self.db, channel.id, user_id):
            if channel.type == "dm":
                raise HTTPException(status_code=403, detail="Not a participant of this conversation")
            self.repo.add_member(self.db, channel.id, user_id)

        message = self.repo.create_message(
            self.db,
            channel_id=channel.id,
            sender_id=user_id,
            content=data.content,
            attachments=data.attachments,
            mentions=data.mentions,
            reply_to_id=data.replyTo,
        )
        logger.info(f"📨 Message {message.id} sent to channel {channel.id}")
        return message_to_response(message)

    def notify_new_message(self, settings: Settings, message: MessageResponse) -> int:
        """Push the message to other members who have not muted the channel"""
        if not push_service.push_configured(settings):
            return 0

        channel = self.repo.get_channel(self.db, message.channelId)
        recipients = [
            m.user_id
            for m in self.repo.get_channel_members(self.db, channel.id)
            if m.user_id != message.senderId and not m.is_muted
        ]
        if not recipients:
            return 0

        title = "New message" if channel.type == "dm" else f"#{channel.name}"
        body = message.content[:100] if message.content else "Sent an attachment"
        return push_service.send_to_users(
            self.db, settings, recipients, title, body, f"/chat?channel={channel.id}"
        )

    def _own_message(self, message_id: str, user_id: str) -> InternalMessage:
        message = self.repo.get_message(self.db, message_id)
        if not message:
            raise HTTPException(status_code=404, detail="Message not found")
        if message.sender_id != user_id:
            raise HTTPException(status_code=403, detail="Only the sender can change this message")
        return message

    def edit_message(self, message_id: str, content: str, user_id: str) -> MessageResponse:
        message = self._own_message(message_id, user_id)
        if message.is_deleted:
            raise HTTPException(status_code=400, detail="Cannot edit a deleted message")
        message.content = content
        message.is_edited = True
        message.edited_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(message)
        return message_to_response(message)

    def delete_message(self, message_id: str, user_id: str) -> None:
        message = self._own_message(message_id, user_id)
        message.is_deleted = True
        self.db.commit()
        logger.info(f"🗑️ Message {message_id} soft-deleted by {user_id}")

    # ------------------------------------------------------------------
    # Read state
    # ------------------------------------------------------------------

    def mark_channel_read(self, channel_id: str, user_id: str) -> Optional[datetime]:
        channel = self.resolve_channel(channel_id)
        if not channel:
            logger.warning(f"⚠️ Cannot mark as read: channel {channel_id} does not exist")
            return None
        member = self.repo.get_membership(self.db, channel.id, user_id)
        if not member:
            return None
        member.last_read_at = datetime.utcnow()
        self.db.commit()
        return member.last_read_at

    def set_muted(self, channel_id: str, user_id: str, muted: bool) -> bool:
        channel = self._require_channel(channel_id)
        member = self.repo.get_membership(self.db, channel.id, user_id)
        if not member:
            raise HTTPException(status_code=404, detail="Not a member of this channel")
        member.is_muted = muted
        self.db.commit()
        return member.is_muted

    def total_unread(self, user_id: str) -> int:
        return sum(
            self.repo.count_unread(self.db, m.channel_id, user_id, m.last_read_at)
            for m in self.repo.get_user_memberships(self.db, user_id)
        )
