"""
Role vocabulary.

Every role a profile can hold is a member of `UserRole`.  The two
audience sets below partition the enum: a role is either staff
(`ADMIN_ROLES`) or tenant-side (`CLIENT_ROLES`), never both.  Screens
that list "employees" or "client users" filter on these sets instead
of matching substrings of the role name.
"""

import enum


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    WAREHOUSE_MANAGER = "warehouse_manager"
    LOGISTICS_COORDINATOR = "logistics_coordinator"
    CLIENT = "client"
    CLIENT_ADMIN = "client_admin"
    CLIENT_USER = "client_user"


ADMIN_ROLES: frozenset[UserRole] = frozenset(
    {
        UserRole.SUPER_ADMIN,
        UserRole.ADMIN,
        UserRole.WAREHOUSE_MANAGER,
        UserRole.LOGISTICS_COORDINATOR,
    }
)

CLIENT_ROLES: frozenset[UserRole] = frozenset(
    {
        UserRole.CLIENT,
        UserRole.CLIENT_ADMIN,
        UserRole.CLIENT_USER,
    }
)

# Only these may create or delete staff accounts.
USER_ADMIN_ROLES: frozenset[UserRole] = frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN})


def parse_role(value: str | UserRole | None) -> UserRole | None:
    """Map a stored role name onto the enum; unknown names yield None."""
    if value is None:
        return None
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value.strip().lower())
    except ValueError:
        return None


def is_admin_role(role: str | UserRole | None) -> bool:
    return parse_role(role) in ADMIN_ROLES


def is_client_role(role: str | UserRole | None) -> bool:
    return parse_role(role) in CLIENT_ROLES
