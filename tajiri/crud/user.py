# tajiri/crud/user.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from tajiri.models.user import User
from typing import List, Optional
import uuid

async def get_user_by_id(user_id: uuid.UUID, db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()

async def get_user_by_email(email: str, db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()

async def list_user_ids(db: AsyncSession) -> List[uuid.UUID]:
    result = await db.execute(select(User.id).order_by(User.created_at))
    return list(result.scalars().all())

async def create_user(email: str, db: AsyncSession, display_name: Optional[str] = None, timezone: Optional[str] = None) -> User:
    user = User(email=email, display_name=display_name, timezone=timezone)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user
