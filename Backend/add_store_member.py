#!/usr/bin/env python3
"""
Grant a user a role in a merchant store.

Usage:
    python add_store_member.py <store_code> <user_id> [ROLE] [--token] [--create-store]

ROLE defaults to SHIPPING. With --token, also prints an HS256 access token
for the user, signed with JWT_SECRET. With --create-store, a missing store is
created with the default language from the settings.

Example:
    python add_store_member.py DEFAULT ops_2abc123xyz ADMIN --token
"""

import asyncio
import sys

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.jwt_auth import issue_access_token
from app.models import MerchantStore, StoreMember, StoreMemberRole


async def add_member(
    store_code: str,
    user_id: str,
    role: StoreMemberRole,
    create_store: bool = False,
) -> bool:
    """Bind user_id to role in the store. Returns False if the store is unknown."""
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with session_maker() as session:
            async with session.begin():
                result = await session.execute(
                    select(MerchantStore).where(MerchantStore.code == store_code)
                )
                store = result.scalar_one_or_none()

                if not store and create_store:
                    store = MerchantStore(
                        code=store_code,
                        name=store_code,
                        default_language=settings.default_language,
                        supported_languages=settings.default_language,
                    )
                    session.add(store)
                    await session.flush()
                    print(f"🆕 Created store {store_code}")

                if not store:
                    print(f"❌ Store '{store_code}' not found!")
                    return False

                print(f"✅ Found store: {store.name} (ID: {store.id})")

                result = await session.execute(
                    select(StoreMember).where(
                        StoreMember.store_id == store.id,
                        StoreMember.user_id == user_id,
                        StoreMember.role == role.value,
                    )
                )
                if result.scalar_one_or_none():
                    print(f"⚠️  User {user_id} already holds {role.value} in {store_code}")
                    return True

                session.add(StoreMember(store_id=store.id, user_id=user_id, role=role.value))
                print(f"✅ Added {user_id} as {role.value} of store {store.name}")
                return True
    finally:
        await engine.dispose()


async def main():
    flags = {"--token", "--create-store"}
    args = [a for a in sys.argv[1:] if a not in flags]
    want_token = "--token" in sys.argv[1:]
    create_store = "--create-store" in sys.argv[1:]

    if len(args) not in (2, 3):
        print(__doc__)
        sys.exit(1)

    store_code, user_id = args[0], args[1]
    try:
        role = StoreMemberRole(args[2].upper()) if len(args) == 3 else StoreMemberRole.SHIPPING
    except ValueError:
        print(f"❌ Unknown role '{args[2]}'. Choose from: {', '.join(r.value for r in StoreMemberRole)}")
        sys.exit(1)

    print(f"Adding user '{user_id}' as {role.value} to store '{store_code}'...")
    if not await add_member(store_code, user_id, role, create_store):
        print("\n❌ Failed to add user.")
        sys.exit(1)

    if want_token:
        print(f"\nAuthorization: Bearer {issue_access_token(user_id)}")
    print("\n✅ Done!")


if __name__ == "__main__":
    asyncio.run(main())
