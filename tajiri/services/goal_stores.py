# tajiri/services/goal_stores.py
"""SQLAlchemy-backed collaborators for the batch jobs.

Each call opens its own short-lived session so goals reconciled in parallel
never share a session.
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from tajiri.core.db_utils import with_db_retry
from tajiri.crud import goal as crud_goal
from tajiri.crud import notification as crud_notification
from tajiri.crud import transaction as crud_transaction
from tajiri.crud import user as crud_user
from tajiri.models.daily_log import DailyLog
from tajiri.models.goal import Goal
from tajiri.services.goal_reconciler import DailyLogEntry, GoalOutcome, GoalSnapshot, GoalUpdate, as_utc
from tajiri.utils.dates import normalize_to_naive_utc
from tajiri.utils.notifications import build_goal_notifications


def goal_to_snapshot(goal: Goal) -> GoalSnapshot:
    return GoalSnapshot(
        id=goal.id,
        user_id=goal.user_id,
        goal_name=goal.goal_name,
        target_amount=goal.target_amount,
        saved_amount=goal.saved_amount if goal.saved_amount is not None else Decimal("0"),
        daily_limit=goal.daily_limit,
        start_date=goal.start_date,
        timezone=goal.timezone,
        status=goal.goal_status,
        streak_count=goal.streak_count or 0,
        grace_days_used=goal.grace_days_used or 0,
    )


def log_to_entry(log: DailyLog) -> DailyLogEntry:
    return DailyLogEntry(
        log_date=log.log_date,
        date=as_utc(log.date),
        spent_amount=log.spent_amount,
        saved_amount=log.saved_amount,
        status=log.status,
        comment=log.comment or "",
        opening_saved_amount=log.opening_saved_amount,
        opening_streak_count=log.opening_streak_count,
        opening_grace_days_used=log.opening_grace_days_used,
    )


class SqlUserDirectory:
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @with_db_retry()
    async def list_users(self) -> List[uuid.UUID]:
        async with self.session_factory() as db:
            return await crud_user.list_user_ids(db)


class SqlTransactionQuery:
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @with_db_retry()
    async def sum_expenses(self, user_id: uuid.UUID, start: datetime, end: datetime) -> Decimal:
        async with self.session_factory() as db:
            return await crud_transaction.sum_expenses_between(user_id, start, end, db)


class SqlGoalStore:
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @with_db_retry()
    async def list_active_goals(self, user_id: uuid.UUID) -> List[GoalSnapshot]:
        async with self.session_factory() as db:
            goals = await crud_goal.get_active_goals_for_user(user_id, db)
            return [goal_to_snapshot(g) for g in goals]

    @with_db_retry()
    async def get_daily_log(self, goal_id: uuid.UUID, log_date: date) -> Optional[DailyLogEntry]:
        async with self.session_factory() as db:
            log = await crud_goal.get_daily_log(goal_id, log_date, db)
            return log_to_entry(log) if log is not None else None

    @with_db_retry()
    async def update_goal(self, goal_id: uuid.UUID, update: GoalUpdate) -> None:
        async with self.session_factory() as db:
            await crud_goal.update_active_goal(
                goal_id,
                {
                    "saved_amount": update.saved_amount,
                    "streak_count": update.streak_count,
                    "grace_days_used": update.grace_days_used,
                    "goal_status": update.status,
                    "updated_at": normalize_to_naive_utc(update.updated_at),
                },
                db,
            )

    @with_db_retry()
    async def put_daily_log(self, goal_id: uuid.UUID, log_date: date, entry: DailyLogEntry) -> None:
        async with self.session_factory() as db:
            await crud_goal.upsert_daily_log(
                goal_id,
                log_date,
                {
                    "date": normalize_to_naive_utc(entry.date),
                    "spent_amount": entry.spent_amount,
                    "saved_amount": entry.saved_amount,
                    "status": entry.status,
                    "comment": entry.comment,
                    "opening_saved_amount": entry.opening_saved_amount,
                    "opening_streak_count": entry.opening_streak_count,
                    "opening_grace_days_used": entry.opening_grace_days_used,
                },
                db,
            )

    @with_db_retry()
    async def latest_log_date(self, goal_id: uuid.UUID) -> Optional[date]:
        async with self.session_factory() as db:
            return await crud_goal.get_latest_log_date(goal_id, db)

    @with_db_retry()
    async def claim_notification(self, goal_id: uuid.UUID, log_date: date, claimed_at: datetime) -> bool:
        async with self.session_factory() as db:
            return await crud_goal.claim_daily_log_notification(
                goal_id, log_date, normalize_to_naive_utc(claimed_at), db
            )


class SqlGoalNotifier:
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def notify(self, outcome: GoalOutcome) -> None:
        async with self.session_factory() as db:
            await crud_notification.create_notifications(db, build_goal_notifications(outcome))
