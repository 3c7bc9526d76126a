"""
Sign-in sessions.

Each successful login opens a row; its id travels inside the access
token as `session_id`.  Clearing `is_active` ends every token minted
for the row.  The refresh token is kept only as a digest.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from wms.models.base import Base, UUIDPrimaryKeyMixin, utcnow


class UserSession(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "user_sessions"
    __table_args__ = (Index("ix_user_sessions_profile_active", "profile_id", "is_active"),)

    profile_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # Role name at sign-in; the live role is always read from the profile.
    role: Mapped[str] = mapped_column(String(64), nullable=False)
    device_id: Mapped[str] = mapped_column(String(256), nullable=False)
    refresh_token_hash: Mapped[str] = mapped_column(String(512), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        state = "active" if self.is_active else "closed"
        return f"<UserSession {self.id} profile={self.profile_id} {state}>"
