import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from wms.models.message import MessagePriority, MessageStatus, MessageType


class SendMessageRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=256)
    content: str = Field(min_length=1)
    recipient_id: uuid.UUID | None = None
    company_id: uuid.UUID | None = None
    message_type: MessageType = MessageType.GENERAL
    priority: MessagePriority = MessagePriority.NORMAL
    reply_to: uuid.UUID | None = None


class MessageOut(BaseModel):
    id: uuid.UUID
    sender_id: uuid.UUID | None = None
    recipient_id: uuid.UUID | None = None
    company_id: uuid.UUID | None = None
    subject: str
    content: str
    message_type: MessageType
    priority: MessagePriority
    status: MessageStatus
    thread_id: uuid.UUID | None = None
    is_system_message: bool
    created_at: datetime

    model_config = {"from_attributes": True}
