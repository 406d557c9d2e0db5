# tajiri/services/abandoned_goals.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from tajiri.core.config import settings
from tajiri.core.db_utils import with_db_retry
from tajiri.crud import goal as crud_goal
from tajiri.crud import user as crud_user
from tajiri.utils.dates import normalize_to_naive_utc

logger = logging.getLogger(__name__)


class AbandonedGoalSweeper:
    """Deletes goals that were abandoned longer than the retention window ago."""

    def __init__(self, session_factory: async_sessionmaker, retention_days: Optional[int] = None):
        self.session_factory = session_factory
        self.retention_days = retention_days if retention_days is not None else settings.ABANDONED_GOAL_RETENTION_DAYS

    @with_db_retry()
    async def _list_users(self):
        async with self.session_factory() as db:
            return await crud_user.list_user_ids(db)

    async def sweep(self, reference_time: Optional[datetime] = None) -> int:
        reference_time = reference_time or datetime.now(timezone.utc)
        cutoff = normalize_to_naive_utc(reference_time) - timedelta(days=self.retention_days)
        logger.info(f"Running scheduled deletion of goals abandoned before {cutoff.isoformat()}...")

        total = 0
        for user_id in await self._list_users():
            try:
                async with self.session_factory() as db:
                    goal_ids = await crud_goal.get_abandoned_goal_ids(user_id, cutoff, db)
                    if not goal_ids:
                        continue
                    for goal_id in goal_ids:
                        logger.info(f"Scheduling deletion for goal {goal_id} for user {user_id}.")
                    deleted = await crud_goal.delete_goals(goal_ids, db)
            except Exception as e:
                logger.error(f"Failed to delete abandoned goals for user {user_id}: {str(e)}")
                continue
            total += deleted
            logger.info(f"Deleted {deleted} abandoned goals for user {user_id}.")

        logger.info(f"Finished deleting abandoned goals: {total} removed.")
        return total
