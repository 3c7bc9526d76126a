import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.database import get_db
from wms.models.message import MessageStatus
from wms.models.user import Profile
from wms.rbac.context_resolver import resolve_data_scope
from wms.rbac.dependencies import require_permission
from wms.schemas.common import CountResponse
from wms.schemas.message import MessageOut, SendMessageRequest
from wms.services import message_service

router = APIRouter(prefix="/api/messages", tags=["Messages"])


@router.post("", response_model=MessageOut, status_code=201)
async def send_message(
    body: SendMessageRequest,
    user: Profile = Depends(require_permission("message.send")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    message = await message_service.send_message(
        user,
        scope,
        body.subject,
        body.content,
        db,
        recipient_id=body.recipient_id,
        company_id=body.company_id,
        message_type=body.message_type,
        priority=body.priority,
        reply_to=body.reply_to,
    )
    return MessageOut.model_validate(message)


@router.get("/inbox", response_model=list[MessageOut])
async def inbox(
    user: Profile = Depends(require_permission("message.view")),
    db: AsyncSession = Depends(get_db),
    company_id: uuid.UUID | None = Query(None),
    status: MessageStatus | None = Query(None),
    include_archived: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    scope = await resolve_data_scope(user, db)
    messages = await message_service.inbox(user, scope, db, company_id, status, include_archived, skip, limit)
    return [MessageOut.model_validate(m) for m in messages]


@router.get("/sent", response_model=list[MessageOut])
async def sent(
    user: Profile = Depends(require_permission("message.view")),
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    return [MessageOut.model_validate(m) for m in await message_service.sent(user, db, skip, limit)]


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(
    user: Profile = Depends(require_permission("message.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return CountResponse(count=await message_service.unread_count(user, scope, db))


@router.get("/threads/{thread_id}", response_model=list[MessageOut])
async def get_thread(
    thread_id: uuid.UUID,
    user: Profile = Depends(require_permission("message.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return [MessageOut.model_validate(m) for m in await message_service.get_thread(thread_id, user, scope, db)]


@router.get("/{message_id}", response_model=MessageOut)
async def get_message(
    message_id: uuid.UUID,
    user: Profile = Depends(require_permission("message.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return MessageOut.model_validate(await message_service.get_message(message_id, user, scope, db))


@router.post("/{message_id}/read", response_model=MessageOut)
async def mark_read(
    message_id: uuid.UUID,
    user: Profile = Depends(require_permission("message.view")),
    db: AsyncSession = Depends(get_db),
):
    """Marking an already-read message again is a no-op."""
    scope = await resolve_data_scope(user, db)
    return MessageOut.model_validate(await message_service.mark_read(message_id, user, scope, db))


@router.post("/{message_id}/archive", response_model=MessageOut)
async def archive(
    message_id: uuid.UUID,
    user: Profile = Depends(require_permission("message.view")),
    db: AsyncSession = Depends(get_db),
):
    scope = await resolve_data_scope(user, db)
    return MessageOut.model_validate(await message_service.archive(message_id, user, scope, db))
