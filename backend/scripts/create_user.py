"""Create an account, or reset the credential of an existing one.

Usage:
    python -m backend.scripts.create_user
"""

from __future__ import annotations

import asyncio
import getpass

from sqlalchemy import select

from backend.app.core.database import SessionLocal
from backend.app.core.security import default_hasher
from backend.app.models.user import User, UserStatus


async def upsert_user(
    *, alias: str, password: str, business_id: int, role_id: int, name: str
) -> tuple[User, bool]:
    """Return the account and whether it was newly created."""
    async with SessionLocal.begin() as session:
        existing = await session.scalar(select(User).where(User.alias == alias))
        if existing:
            existing.hashed_password = default_hasher.hash(password)
            existing.status = UserStatus.ACTIVE
            return existing, False

        user = User(
            alias=alias,
            name=name,
            business_id=business_id,
            role_id=role_id,
            hashed_password=default_hasher.hash(password),
            status=UserStatus.ACTIVE,
        )
        session.add(user)
        await session.flush()
        return user, True


def main() -> None:
    alias = input("Alias [admin]: ").strip() or "admin"
    name = input("Name [Administrator]: ").strip() or "Administrator"
    business_id = int(input("Business ID [1]: ").strip() or "1")
    role_id = int(input("Role ID [1]: ").strip() or "1")
    password = getpass.getpass("Password: ")
    if not password:
        print("Error: password cannot be empty.")
        return

    user, created = asyncio.run(
        upsert_user(
            alias=alias,
            password=password,
            business_id=business_id,
            role_id=role_id,
            name=name,
        )
    )
    print("User created successfully!" if created else "User already exists — password reset!")
    print(f"  ID:       {user.id}")
    print(f"  Alias:    {alias}")
    print(f"  Business: {business_id}")
    print(f"  Role:     {role_id}")


if __name__ == "__main__":
    main()
