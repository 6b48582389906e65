"""Chat repository - Database operations for channels, members and messages"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models_chat import ChannelMember, InternalChannel, InternalMessage


class ChatRepository:
    """Repository for internal chat database operations"""

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    @staticmethod
    def get_channel(db: Session, channel_id: str) -> Optional[InternalChannel]:
        return db.query(InternalChannel).filter(InternalChannel.id == channel_id).first()

    @staticmethod
    def get_dm_channel_by_name(db: Session, name: str) -> Optional[InternalChannel]:
        return (
            db.query(InternalChannel)
            .filter(InternalChannel.type == "dm", InternalChannel.name == name)
            .first()
        )

    @staticmethod
    def create_channel(db: Session, **channel_data) -> InternalChannel:
        channel = InternalChannel(**channel_data)
        db.add(channel)
        db.flush()
        return channel

    @staticmethod
    def get_user_memberships(db: Session, user_id: str) -> list[ChannelMember]:
        return (
            db.query(ChannelMember)
            .filter(ChannelMember.user_id == user_id)
            .order_by(ChannelMember.last_read_at.desc())
            .all()
        )

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    @staticmethod
    def get_membership(db: Session, channel_id: str, user_id: str) -> Optional[ChannelMember]:
        return (
            db.query(ChannelMember)
            .filter(ChannelMember.channel_id == channel_id, ChannelMember.user_id == user_id)
            .first()
        )

    @staticmethod
    def get_channel_members(db: Session, channel_id: str) -> list[ChannelMember]:
        return db.query(ChannelMember).filter(ChannelMember.channel_id == channel_id).all()

    @staticmethod
    def add_member(db: Session, channel_id: str, user_id: str) -> ChannelMember:
        member = ChannelMember(channel_id=channel_id, user_id=user_id)
        db.add(member)
        db.flush()
        return member

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    @staticmethod
    def count_unread(db: Session, channel_id: str, user_id: str, since: datetime) -> int:
        """Messages from other users, not deleted, newer than `since`"""
        return (
            db.query(func.count(InternalMessage.id))
            .filter(
                InternalMessage.channel_id == channel_id,
                InternalMessage.created_at > since,
                InternalMessage.is_deleted.is_(False),
                InternalMessage.sender_id != user_id,
            )
            .scalar()
            or 0
        )

    @staticmethod
    def get_last_message(db: Session, channel_id: str) -> Optional[InternalMessage]:
        return (
            db.query(InternalMessage)
            .filter(
                InternalMessage.channel_id == channel_id,
                InternalMessage.is_deleted.is_(False),
            )
            .order_by(InternalMessage.created_at.desc())
            .first()
        )

    @staticmethod
    def get_messages(db: Session, channel_id: str, limit: int, offset: int) -> list[InternalMessage]:
        """Newest page first"""
        return (
            db.query(InternalMessage)
            .filter(InternalMessage.channel_id == channel_id)
            .order_by(InternalMessage.created_at.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def get_message(db: Session, message_id: str) -> Optional[InternalMessage]:
        return db.query(InternalMessage).filter(InternalMessage.id == message_id).first()

    @staticmethod
    def create_message(db: Session, **message_data) -> InternalMessage:
        message = InternalMessage(**message_data)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message
