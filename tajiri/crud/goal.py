# tajiri/crud/goal.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from sqlalchemy.orm import selectinload
from tajiri.models.goal import Goal
from tajiri.models.daily_log import DailyLog
from typing import Any, Dict, List, Optional
from datetime import date, datetime
import uuid

async def get_goals_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Goal]:
    result = await db.execute(
        select(Goal).where(Goal.user_id == user_id).order_by(Goal.created_at.desc())
    )
    return list(result.scalars().all())

async def get_goal_by_id(goal_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession, with_logs: bool = False) -> Optional[Goal]:
    query = select(Goal).where(Goal.id == goal_id, Goal.user_id == user_id)
    if with_logs:
        query = query.options(selectinload(Goal.daily_logs))
    result = await db.execute(query)
    return result.scalar_one_or_none()

async def create_goal_for_user(user_id: uuid.UUID, values: Dict[str, Any], db: AsyncSession) -> Goal:
    new_goal = Goal(
        **values,
        user_id=user_id,
        saved_amount=0,
        streak_count=0,
        grace_days_used=0,
        goal_status="active",
    )
    db.add(new_goal)
    await db.commit()
    await db.refresh(new_goal)
    return new_goal

async def abandon_goal(goal: Goal, db: AsyncSession, abandoned_at: Optional[datetime] = None) -> Goal:
    goal.goal_status = "abandoned"
    goal.abandoned_at = abandoned_at or datetime.utcnow()
    goal.updated_at = goal.abandoned_at
    db.add(goal)
    await db.commit()
    await db.refresh(goal)
    return goal

async def get_active_goals_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Goal]:
    result = await db.execute(
        select(Goal).where(Goal.user_id == user_id, Goal.goal_status == "active")
    )
    return list(result.scalars().all())

async def update_active_goal(goal_id: uuid.UUID, values: Dict[str, Any], db: AsyncSession) -> int:
    """Partial update of a goal that is still active. Returns the number of rows changed."""
    result = await db.execute(
        update(Goal)
        .where(Goal.id == goal_id, Goal.goal_status == "active")
        .values(**values)
    )
    await db.commit()
    return result.rowcount

async def get_daily_log(goal_id: uuid.UUID, log_date: date, db: AsyncSession) -> Optional[DailyLog]:
    result = await db.execute(
        select(DailyLog).where(DailyLog.goal_id == goal_id, DailyLog.log_date == log_date)
    )
    return result.scalar_one_or_none()

async def upsert_daily_log(goal_id: uuid.UUID, log_date: date, values: Dict[str, Any], db: AsyncSession) -> DailyLog:
    """Write the ledger entry for (goal, date), overwriting an earlier one for the same date."""
    log = await get_daily_log(goal_id, log_date, db)
    if log is None:
        log = DailyLog(goal_id=goal_id, log_date=log_date, **values)
        db.add(log)
    else:
        for field, value in values.items():
            setattr(log, field, value)
    await db.commit()
    await db.refresh(log)
    return log

async def get_latest_log_date(goal_id: uuid.UUID, db: AsyncSession) -> Optional[date]:
    result = await db.execute(
        select(func.max(DailyLog.log_date)).where(DailyLog.goal_id == goal_id)
    )
    return result.scalar_one_or_none()

async def claim_daily_log_notification(goal_id: uuid.UUID, log_date: date, claimed_at: datetime, db: AsyncSession) -> bool:
    """Stamp notified_at on an unclaimed ledger entry. Only one caller per entry gets True."""
    result = await db.execute(
        update(DailyLog)
        .where(
            DailyLog.goal_id == goal_id,
            DailyLog.log_date == log_date,
            DailyLog.notified_at.is_(None),
        )
        .values(notified_at=claimed_at)
    )
    await db.commit()
    return result.rowcount == 1

async def get_abandoned_goal_ids(user_id: uuid.UUID, cutoff: datetime, db: AsyncSession) -> List[uuid.UUID]:
    result = await db.execute(
        select(Goal.id).where(
            Goal.user_id == user_id,
            Goal.goal_status == "abandoned",
            Goal.abandoned_at <= cutoff,
        )
    )
    return list(result.scalars().all())

async def delete_goals(goal_ids: List[uuid.UUID], db: AsyncSession) -> int:
    """Delete goals together with their ledger entries in one transaction."""
    if not goal_ids:
        return 0
    await db.execute(delete(DailyLog).where(DailyLog.goal_id.in_(goal_ids)))
    result = await db.execute(delete(Goal).where(Goal.id.in_(goal_ids)))
    await db.commit()
    return result.rowcount
