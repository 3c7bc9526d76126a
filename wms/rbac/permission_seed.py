"""
Default permissions and the codes each role holds.

`seed` writes both tables and can run any number of times: missing
permissions and roles are inserted, existing roles gain codes added
here since, and nothing is ever revoked.  The app runs it at startup;
`python -m wms.rbac.permission_seed` runs it by hand.

Grants follow three rules:
    * user management and finance belong to super_admin and admin
    * client roles get no review, location or delivery codes
    * client_user can neither edit the catalogue nor manage users
"""

import asyncio
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from wms.core.config import settings
from wms.models.permission import Permission
from wms.models.role import Role
from wms.rbac.roles import UserRole

logger = logging.getLogger(__name__)

PERMISSIONS: list[dict[str, str]] = [
    # Tenants & people
    {"code": "company.view", "description": "View client companies"},
    {"code": "company.manage", "description": "Create, update and deactivate client companies"},
    {"code": "user.view", "description": "View staff and client users"},
    {"code": "user.manage", "description": "Create, update and delete staff accounts"},
    {"code": "client_user.manage", "description": "Create and update client user accounts"},
    {"code": "impersonation.use", "description": "View the portal as a client company"},
    {"code": "activity.view", "description": "View client activity logs"},
    # Catalogue & stock
    {"code": "product.view", "description": "View products"},
    {"code": "product.manage", "description": "Create, update and delete products"},
    {"code": "inventory.view", "description": "View inventory"},
    {"code": "inventory.manage", "description": "Adjust and move inventory"},
    # Orders & requests
    {"code": "order.view", "description": "View client orders"},
    {"code": "order.create", "description": "Place client orders"},
    {"code": "order.manage", "description": "Change client order status"},
    {"code": "request.view", "description": "View check-in / check-out requests"},
    {"code": "request.create", "description": "Submit check-in / check-out requests"},
    {"code": "request.review", "description": "Approve or reject check-in / check-out requests"},
    {"code": "shipment.view", "description": "View shipments"},
    {"code": "shipment.manage", "description": "Create and update shipments"},
    # Messaging
    {"code": "message.view", "description": "Read messages"},
    {"code": "message.send", "description": "Send messages"},
    # Warehouse layout
    {"code": "location.view", "description": "Browse and search warehouse locations"},
    {"code": "location.manage", "description": "Create, update and delete zones, rows and bins"},
    {"code": "allocation.view", "description": "View client space allocations"},
    {"code": "allocation.manage", "description": "Allocate warehouse space to clients"},
    # Logistics & money
    {"code": "delivery.view", "description": "View carriers, drivers and delivery orders"},
    {"code": "delivery.manage", "description": "Manage carriers, drivers and delivery orders"},
    {"code": "financial.view", "description": "View financial transactions and metrics"},
    {"code": "financial.manage", "description": "Record and reconcile financial transactions"},
    # Reports
    {"code": "report.view", "description": "Export product history and product lists"},
    {"code": "report.manage", "description": "Generate and save stock reconciliation reports"},
]

ALL_CODES = [p["code"] for p in PERMISSIONS]

_CLIENT_BASE = [
    "product.view",
    "inventory.view",
    "order.view",
    "order.create",
    "request.view",
    "request.create",
    "shipment.view",
    "message.view",
    "message.send",
]


ROLE_PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.SUPER_ADMIN: ALL_CODES,
    UserRole.ADMIN: ALL_CODES,
    UserRole.WAREHOUSE_MANAGER: [
        "company.view",
        "user.view",
        "activity.view",
        "product.view",
        "product.manage",
        "inventory.view",
        "inventory.manage",
        "order.view",
        "order.manage",
        "request.view",
        "request.review",
        "shipment.view",
        "shipment.manage",
        "message.view",
        "message.send",
        "location.view",
        "location.manage",
        "allocation.view",
        "allocation.manage",
        "delivery.view",
        "report.view",
        "report.manage",
    ],
    UserRole.LOGISTICS_COORDINATOR: [
        "company.view",
        "product.view",
        "inventory.view",
        "order.view",
        "request.view",
        "shipment.view",
        "shipment.manage",
        "message.view",
        "message.send",
        "location.view",
        "delivery.view",
        "delivery.manage",
        "report.view",
    ],
    UserRole.CLIENT: _CLIENT_BASE + ["product.manage", "activity.view", "report.view"],
    UserRole.CLIENT_ADMIN: _CLIENT_BASE
    + ["product.manage", "activity.view", "report.view", "user.view", "client_user.manage"],
    UserRole.CLIENT_USER: list(_CLIENT_BASE),
}


def permissions_for(role: UserRole) -> set[str]:
    return set(ROLE_PERMISSIONS.get(role, []))


async def _by_key(session: AsyncSession, model, key: str) -> dict:
    rows = (await session.execute(select(model))).scalars().all()
    return {getattr(row, key): row for row in rows}


async def seed(session: AsyncSession) -> None:
    permissions = await _by_key(session, Permission, "code")
    added = 0
    for entry in PERMISSIONS:
        if entry["code"] not in permissions:
            permissions[entry["code"]] = Permission(id=uuid.uuid4(), **entry)
            session.add(permissions[entry["code"]])
            added += 1
    await session.flush()

    roles = await _by_key(session, Role, "name")
    for user_role, codes in ROLE_PERMISSIONS.items():
        role = roles.get(user_role.value)
        if role is None:
            role = Role(id=uuid.uuid4(), name=user_role.value, description=f"Default {user_role.value} role")
            session.add(role)
        held = role.permission_codes
        role.permissions.extend(permissions[code] for code in codes if code not in held)

    await session.commit()
    logger.info("Seed done: %d new permission(s), %d role(s) checked", added, len(ROLE_PERMISSIONS))


if __name__ == "__main__":
    async def _main() -> None:
        engine = create_async_engine(settings.DATABASE_URL, echo=False)
        try:
            async with async_sessionmaker(engine, expire_on_commit=False)() as session:
                await seed(session)
        finally:
            await engine.dispose()

    asyncio.run(_main())
