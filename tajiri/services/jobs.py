# tajiri/services/jobs.py
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from tajiri.services.abandoned_goals import AbandonedGoalSweeper
from tajiri.services.goal_reconciler import GoalReconciler, ReconciliationReport
from tajiri.services.goal_stores import SqlGoalNotifier, SqlGoalStore, SqlTransactionQuery, SqlUserDirectory


def build_goal_reconciler(session_factory: async_sessionmaker) -> GoalReconciler:
    return GoalReconciler(
        users=SqlUserDirectory(session_factory),
        goals=SqlGoalStore(session_factory),
        transactions=SqlTransactionQuery(session_factory),
        notifier=SqlGoalNotifier(session_factory),
    )


async def process_daily_goals(
    session_factory: async_sessionmaker,
    reference_time: Optional[datetime] = None,
) -> ReconciliationReport:
    """Scheduled nominally every day at 00:05 Africa/Dar_es_Salaam"""
    return await build_goal_reconciler(session_factory).reconcile(reference_time)


async def delete_abandoned_goals(
    session_factory: async_sessionmaker,
    reference_time: Optional[datetime] = None,
) -> int:
    """Scheduled nominally every 12 hours (UTC)"""
    return await AbandonedGoalSweeper(session_factory).sweep(reference_time)
