"""
Bootstrap the first super admin.

    python -m wms.scripts.create_admin

Seeds roles and permissions if needed, then creates a SUPER_ADMIN
profile from the answers typed at the prompt.  Every later user is
created through the admin API.
"""

import asyncio
import getpass

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from wms.core.config import settings
from wms.rbac.permission_seed import seed
from wms.rbac.roles import UserRole
from wms.services.user_service import create_profile


def _prompt() -> tuple[str, str, str] | None:
    print("\nWarehouse backend: first super admin\n")
    email = input("  Email:     ").strip()
    full_name = input("  Full name: ").strip()
    password = getpass.getpass("  Password:  ")
    if getpass.getpass("  Again:     ") != password:
        print("\nPasswords do not match.")
        return None
    if not (email and full_name and password):
        print("\nEmail, name and password are all required.")
        return None
    return email, full_name, password


async def create_admin(email: str, full_name: str, password: str) -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with session_factory() as session:
            await seed(session)
            try:
                profile = await create_profile(
                    email, password, UserRole.SUPER_ADMIN, session, full_name=full_name
                )
            except HTTPException as exc:
                await session.rollback()
                print(f"\nNot created: {exc.detail}")
                return
            await session.commit()
            print(f"\nSuper admin {profile.email} created (id {profile.id}).")
            print("Sign in with POST /api/auth/login\n")
    finally:
        await engine.dispose()


def main() -> None:
    answers = _prompt()
    if answers is not None:
        asyncio.run(create_admin(*answers))


if __name__ == "__main__":
    main()
