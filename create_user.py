#!/usr/bin/env python3
"""
Standalone script to provision a Tajiri user and print an access token
Usage: python create_user.py
"""

import asyncio
from tajiri.core.database import AsyncSessionLocal, engine, Base
from tajiri.core.security import create_access_token
from tajiri.crud.user import create_user, get_user_by_email
from tajiri.utils.dates import is_valid_timezone
import tajiri.models  # noqa: F401

async def provision_user():
    print("Creating user...")

    email = input("Enter email: ") or "demo@tajiri.app"
    display_name = input("Enter display name (optional): ") or None
    timezone = input("Enter timezone (optional, e.g. Africa/Dar_es_Salaam): ") or None
    if timezone and not is_valid_timezone(timezone):
        print(f"❌ Unknown timezone: {timezone}")
        return

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        try:
            user = await get_user_by_email(email, session)
            if user:
                print(f"User with email {email} already exists, issuing a new token.")
            else:
                user = await create_user(email, session, display_name=display_name, timezone=timezone)
                print("✅ User created successfully!")
            print(f"📧 Email: {user.email}")
            print(f"🔑 ID: {user.id}")
            print(f"🎟️  Token: {create_access_token(str(user.id))}")
        except Exception as e:
            print(f"❌ Error creating user: {e}")
        finally:
            await engine.dispose()

if __name__ == "__main__":
    asyncio.run(provision_user())
