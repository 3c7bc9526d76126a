"""
Message service: staff ↔ client messaging.

Addressing:
- `recipient_id` set: a direct message to one profile.
- `recipient_id` empty, sent by a client user: addressed to the
  warehouse staff as a whole (the sender's company is recorded).
- `recipient_id` empty, sent by staff or the system: addressed to every
  user of `company_id`.

Marking a message read is idempotent: a read (or archived) message is
left as it is.
"""

import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from wms.models.company import Company
from wms.models.message import Message, MessagePriority, MessageStatus, MessageType
from wms.models.user import Profile
from wms.rbac.context_resolver import DataScope

logger = logging.getLogger(__name__)

Sender = aliased(Profile)


def _inbox_filter(profile_id: uuid.UUID, scope: DataScope, company_id: uuid.UUID | None = None):
    """WHERE clause for the messages a caller may read as recipient."""
    if scope.is_admin:
        clause = or_(
            Message.recipient_id == profile_id,
            and_(Message.recipient_id.is_(None), Sender.company_id.is_not(None)),
        )
        if company_id is not None:
            clause = and_(clause, Message.company_id == company_id)
        return clause

    own_company = scope.company_filter(company_id)
    return and_(
        Message.company_id == own_company,
        or_(
            Message.recipient_id == profile_id,
            and_(Message.recipient_id.is_(None), Sender.company_id.is_(None)),
        ),
    )


def _inbox_query(profile_id: uuid.UUID, scope: DataScope, company_id: uuid.UUID | None = None):
    return (
        select(Message)
        .outerjoin(Sender, Sender.id == Message.sender_id)
        .where(_inbox_filter(profile_id, scope, company_id))
    )


async def send_message(
    sender: Profile,
    scope: DataScope,
    subject: str,
    content: str,
    db: AsyncSession,
    recipient_id: uuid.UUID | None = None,
    company_id: uuid.UUID | None = None,
    message_type: MessageType = MessageType.GENERAL,
    priority: MessagePriority = MessagePriority.NORMAL,
    reply_to: uuid.UUID | None = None,
) -> Message:
    if not subject or not subject.strip() or not content or not content.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Subject and content are required")

    thread_id: uuid.UUID | None = None
    if reply_to is not None:
        parent = await get_message(reply_to, sender, scope, db)
        thread_id = parent.thread_id or parent.id
        company_id = company_id or parent.company_id
        if recipient_id is None and parent.sender_id != sender.id:
            recipient_id = parent.sender_id

    if scope.is_admin:
        if recipient_id is None and company_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A message needs a recipient or a company",
            )
        if company_id is not None and await db.get(Company, company_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    else:
        company_id = scope.company_filter(company_id)

    if recipient_id is not None and await db.get(Profile, recipient_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")

    message = Message(
        id=uuid.uuid4(),
        sender_id=sender.id,
        recipient_id=recipient_id,
        company_id=company_id,
        subject=subject.strip(),
        content=content,
        message_type=message_type,
        priority=priority,
        status=MessageStatus.UNREAD,
        is_system_message=False,
    )
    message.thread_id = thread_id or message.id
    db.add(message)
    await db.flush()
    logger.info("Message %s sent by %s", message.id, sender.id)
    return message


async def send_system_message(
    company_id: uuid.UUID,
    subject: str,
    content: str,
    db: AsyncSession,
    priority: MessagePriority = MessagePriority.NORMAL,
) -> Message:
    message = Message(
        id=uuid.uuid4(),
        company_id=company_id,
        subject=subject,
        content=content,
        message_type=MessageType.SYSTEM,
        priority=priority,
        status=MessageStatus.UNREAD,
        is_system_message=True,
    )
    message.thread_id = message.id
    db.add(message)
    await db.flush()
    return message


async def inbox(
    profile: Profile,
    scope: DataScope,
    db: AsyncSession,
    company_id: uuid.UUID | None = None,
    message_status: MessageStatus | None = None,
    include_archived: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> list[Message]:
    stmt = _inbox_query(profile.id, scope, company_id).order_by(Message.created_at.desc())
    if message_status is not None:
        stmt = stmt.where(Message.status == message_status)
    elif not include_archived:
        stmt = stmt.where(Message.status != MessageStatus.ARCHIVED)
    result = await db.execute(stmt.offset(skip).limit(limit))
    return list(result.scalars().all())


async def sent(profile: Profile, db: AsyncSession, skip: int = 0, limit: int = 50) -> list[Message]:
    stmt = (
        select(Message)
        .where(Message.sender_id == profile.id)
        .order_by(Message.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())


async def unread_count(profile: Profile, scope: DataScope, db: AsyncSession) -> int:
    stmt = (
        select(func.count(Message.id))
        .outerjoin(Sender, Sender.id == Message.sender_id)
        .where(_inbox_filter(profile.id, scope), Message.status == MessageStatus.UNREAD)
    )
    return int((await db.execute(stmt)).scalar_one() or 0)


async def get_message(message_id: uuid.UUID, profile: Profile, scope: DataScope, db: AsyncSession) -> Message:
    """A message the caller sent or may receive; 404 otherwise."""
    stmt = (
        select(Message)
        .outerjoin(Sender, Sender.id == Message.sender_id)
        .where(Message.id == message_id)
    )
    if not scope.is_admin:
        stmt = stmt.where(or_(Message.sender_id == profile.id, _inbox_filter(profile.id, scope)))
    message = (await db.execute(stmt)).scalar_one_or_none()
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return message


async def get_thread(thread_id: uuid.UUID, profile: Profile, scope: DataScope, db: AsyncSession) -> list[Message]:
    stmt = (
        select(Message)
        .outerjoin(Sender, Sender.id == Message.sender_id)
        .where(or_(Message.thread_id == thread_id, Message.id == thread_id))
        .order_by(Message.created_at)
    )
    if not scope.is_admin:
        stmt = stmt.where(or_(Message.sender_id == profile.id, _inbox_filter(profile.id, scope)))
    messages = list((await db.execute(stmt)).scalars().all())
    if not messages:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Thread not found")
    return messages


async def mark_read(message_id: uuid.UUID, profile: Profile, scope: DataScope, db: AsyncSession) -> Message:
    message = await get_message(message_id, profile, scope, db)
    if message.status == MessageStatus.UNREAD:
        message.status = MessageStatus.READ
        await db.flush()
    return message


async def archive(message_id: uuid.UUID, profile: Profile, scope: DataScope, db: AsyncSession) -> Message:
    message = await get_message(message_id, profile, scope, db)
    if message.status != MessageStatus.ARCHIVED:
        message.status = MessageStatus.ARCHIVED
        await db.flush()
    return message
