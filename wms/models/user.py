from __future__ import annotations

"""
Profile model: one row per person who can sign in.

Design decisions:
- Tenant users carry a `company_id`; staff profiles leave it NULL.
- Status is an ENUM (ACTIVE → DISABLED).  Disabled profiles cannot
  sign in and their sessions are revoked.
- Roles are attached via the `user_roles` many-to-many.  In practice a
  profile holds exactly one role; `primary_role` exposes it as a
  `UserRole`.
"""

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from wms.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from wms.models.role import user_roles  # association table
from wms.rbac.roles import UserRole

if TYPE_CHECKING:
    from wms.models.company import Company
    from wms.models.role import Role


class ProfileStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"


class Profile(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "profiles"

    email: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(512), nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    company_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status: Mapped[ProfileStatus] = mapped_column(
        Enum(ProfileStatus, name="profile_status"),
        default=ProfileStatus.ACTIVE,
        nullable=False,
    )

    # ── Relationships ────────────────────────────────────────────────
    roles: Mapped[list["Role"]] = relationship(  # noqa: F821
        secondary=user_roles,
        back_populates="profiles",
        lazy="selectin",
    )
    company: Mapped["Company | None"] = relationship(  # noqa: F821
        back_populates="profiles",
        lazy="selectin",
    )

    @property
    def primary_role(self) -> UserRole | None:
        return next((r.user_role for r in self.roles if r.user_role is not None), None)

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def __repr__(self) -> str:
        return f"<Profile {self.email}>"
