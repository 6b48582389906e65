"""Chat router - FastAPI endpoints for internal team chat"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ...auth import get_current_user_id
from ...config import Settings, get_settings
from ...database import get_db
from .schemas import (
    ChannelCreate,
    ChannelResponse,
    ChatStatsResponse,
    DirectMessageRequest,
    MessageCreate,
    MessageEdit,
    MessageResponse,
    MuteRequest,
)
from .service import ChatService

router = APIRouter(prefix="/chat", tags=["Chat"])


def get_chat_service(db: Session = Depends(get_db)) -> ChatService:
    return ChatService(db)


# ============================================================================
# CHANNELS
# ============================================================================


@router.get("/channels", response_model=list[ChannelResponse])
async def list_channels(
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    """Caller's channels with unread counts, most recently read first"""
    return service.get_user_channels(user_id)


@router.post("/channels", status_code=201)
async def create_channel(
    data: ChannelCreate,
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    channel = service.create_public_channel(data.name, user_id)
    return {"id": channel.id, "name": channel.name, "type": channel.type}


@router.post("/channels/{channel_id}/join")
async def join_channel(
    channel_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    channel = service.join_channel(channel_id, user_id)
    return {"success": True, "channelId": channel.id}


@router.post("/dm")
async def find_or_create_dm(
    data: DirectMessageRequest,
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    channel = service.find_or_create_dm(user_id, data.otherUserId)
    return {
        "id": channel.name,
        "dbId": channel.id,
        "type": channel.type,
        "dmParticipants": channel.dm_participants,
    }


@router.get("/channels/{channel_id}/messages", response_model=list[MessageResponse])
async def get_channel_messages(
    channel_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    """One page of history, oldest first within the page"""
    return service.get_channel_messages(channel_id, limit, offset)


@router.post("/channels/{channel_id}/read")
async def mark_channel_read(
    channel_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    read_at = service.mark_channel_read(channel_id, user_id)
    return {"success": True, "readAt": read_at.isoformat() if read_at else None}


@router.put("/channels/{channel_id}/mute")
async def mute_channel(
    channel_id: str,
    data: MuteRequest,
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    return {"success": True, "isMuted": service.set_muted(channel_id, user_id, data.muted)}


# ============================================================================
# MESSAGES
# ============================================================================


@router.post("/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    data: MessageCreate,
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    service: ChatService = Depends(get_chat_service),
):
    message = service.send_message(data, user_id)
    await run_in_threadpool(service.notify_new_message, settings, message)
    return message


@router.patch("/messages/{message_id}", response_model=MessageResponse)
async def edit_message(
    message_id: str,
    data: MessageEdit,
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    return service.edit_message(message_id, data.content, user_id)


@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    service.delete_message(message_id, user_id)
    return {"success": True}


@router.get("/stats", response_model=ChatStatsResponse)
async def chat_stats(
    user_id: str = Depends(get_current_user_id),
    service: ChatService = Depends(get_chat_service),
):
    """Total unread messages across the caller's channels"""
    return ChatStatsResponse(unreadCount=service.total_unread(user_id))
