# tajiri/services/goals.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tajiri.crud.goal import create_goal_for_user
from tajiri.models.goal import Goal
from tajiri.models.user import User
from tajiri.schemas.goal import GoalCreate
from tajiri.services.goal_reconciler import as_utc
from tajiri.utils.dates import get_zone


async def create_goal(user: User, goal_in: GoalCreate, db: AsyncSession, now: Optional[datetime] = None) -> Goal:
    """
    New goals start active with nothing saved. The zone falls back to the
    user's zone, then the configured default; the start date falls back to
    today in that zone.
    """
    zone = get_zone(goal_in.timezone or user.timezone)
    start_date = goal_in.start_date or as_utc(now or datetime.now(timezone.utc)).astimezone(zone).date()
    values = {
        "goal_name": goal_in.goal_name,
        "target_amount": goal_in.target_amount,
        "daily_limit": goal_in.daily_limit,
        "start_date": start_date,
        "timezone": zone.key,
    }
    return await create_goal_for_user(user.id, values, db)
