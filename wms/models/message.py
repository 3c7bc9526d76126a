from __future__ import annotations

"""
Message: staff ↔ client messaging.

A message is addressed to a profile, to a company (every user of the
tenant sees it), or both.  Replies share the `thread_id` of the first
message in the thread.
"""

import enum
import uuid

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from wms.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, enum_type

if TYPE_CHECKING:
    from wms.models.user import Profile


class MessageType(str, enum.Enum):
    GENERAL = "general"
    SUPPORT = "support"
    BILLING = "billing"
    URGENT = "urgent"
    SYSTEM = "system"


class MessagePriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class MessageStatus(str, enum.Enum):
    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"


class Message(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "messages"

    sender_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    recipient_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    subject: Mapped[str] = mapped_column(String(256), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[MessageType] = mapped_column(
        enum_type(MessageType, "message_type"),
        default=MessageType.GENERAL,
        nullable=False,
    )
    priority: Mapped[MessagePriority] = mapped_column(
        enum_type(MessagePriority, "message_priority"),
        default=MessagePriority.NORMAL,
        nullable=False,
    )
    status: Mapped[MessageStatus] = mapped_column(
        enum_type(MessageStatus, "message_status"),
        default=MessageStatus.UNREAD,
        nullable=False,
        index=True,
    )
    thread_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, index=True)
    is_system_message: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    sender: Mapped["Profile | None"] = relationship(  # noqa: F821
        foreign_keys=[sender_id],
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Message {self.subject!r} {self.status.value}>"
