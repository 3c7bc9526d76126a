from __future__ import annotations

"""
Roles and the two link tables behind them.

A role row exists for every `UserRole` member (see
`wms.rbac.permission_seed`); its `name` is the member's value.
Profiles reach their permissions through `user_roles` and then
`role_permissions`.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Column, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wms.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from wms.rbac.roles import UserRole, parse_role

if TYPE_CHECKING:
    from wms.models.permission import Permission
    from wms.models.user import Profile


def _link(name: str, left: str, right: str) -> Table:
    return Table(
        name,
        Base.metadata,
        Column(f"{left}_id", ForeignKey(f"{left}s.id", ondelete="CASCADE"), primary_key=True),
        Column(f"{right}_id", ForeignKey(f"{right}s.id", ondelete="CASCADE"), primary_key=True),
    )


user_roles = _link("user_roles", "profile", "role")
role_permissions = _link("role_permissions", "role", "permission")


class Role(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)

    permissions: Mapped[list["Permission"]] = relationship(  # noqa: F821
        secondary=role_permissions,
        back_populates="roles",
        lazy="selectin",
    )
    # Never loaded implicitly; a role can hold thousands of profiles.
    profiles: Mapped[list["Profile"]] = relationship(  # noqa: F821
        secondary=user_roles,
        back_populates="roles",
        lazy="raise",
    )

    @property
    def user_role(self) -> UserRole | None:
        return parse_role(self.name)

    @property
    def permission_codes(self) -> set[str]:
        return {p.code for p in self.permissions}

    def __repr__(self) -> str:
        return f"<Role {self.name}>"
