from typing import List
from fastapi import APIRouter, Depends, Query

from skillnest_chat.api.dependencies import (
    get_conversation_directory,
    get_current_user_id,
    get_message_store,
)
from skillnest_chat.core.config import settings
from skillnest_chat.core.errors import conversation_access_denied_error, job_not_found_error
from skillnest_chat.schemas.message import ConversationSummary, MessageHistory, MessageResponse
from skillnest_chat.services.conversation_service import ConversationDirectory
from skillnest_chat.services.message_service import MessageStore

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.get("/conversations", response_model=List[ConversationSummary])
async def list_conversations(
    user_id: str = Depends(get_current_user_id),
    message_store: MessageStore = Depends(get_message_store),
):
    """
    현재 사용자의 최근 대화 목록을 조회합니다.

    상대방별로 가장 최근 메시지 하나와 해당 대화방의 읽지 않은 메시지 수를 반환합니다.
    """
    return await message_store.list_conversations(
        user_id,
        scan_limit=settings.conversation_scan_limit,
        max_conversations=settings.conversation_list_limit,
    )


@router.get("/{job_id}/messages", response_model=MessageHistory)
async def get_messages(
    job_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    message_store: MessageStore = Depends(get_message_store),
    directory: ConversationDirectory = Depends(get_conversation_directory),
):
    """대화방의 메시지 기록을 오래된 순으로 조회합니다. 대화 참여자만 접근 가능합니다."""
    job = await directory.get_job(job_id)
    if job is None:
        raise job_not_found_error(job_id)

    if not await directory.is_participant(job_id, user_id):
        raise conversation_access_denied_error(job_id)

    messages = await message_store.recent_messages(job_id, limit)
    names = await message_store.usernames({message.sender_id for message in messages})

    items = [
        MessageResponse(
            id=str(message.id),
            job_id=str(message.job_id),
            sender_id=str(message.sender_id),
            sender=names.get(str(message.sender_id), str(message.sender_id)),
            receiver_id=str(message.receiver_id),
            message=message.body,
            attachments=message.attachments,
            read=message.read,
            created_at=message.created_at,
        )
        for message in messages
    ]
    return MessageHistory(job_id=job_id, messages=items, count=len(items))
