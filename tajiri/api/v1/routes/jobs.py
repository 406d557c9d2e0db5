# tajiri/api/v1/routes/jobs.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import async_sessionmaker

from tajiri.api.deps import require_job_token
from tajiri.core.database import get_session_factory
from tajiri.services import jobs

router = APIRouter(prefix="/jobs", tags=["jobs"], dependencies=[Depends(require_job_token)])

@router.post("/process-daily-goals")
async def trigger_process_daily_goals(
    at: Optional[datetime] = Query(None, description="Reference instant (ISO 8601), defaults to now"),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    report = await jobs.process_daily_goals(session_factory, at)
    return report.as_dict()

@router.post("/delete-abandoned-goals")
async def trigger_delete_abandoned_goals(
    at: Optional[datetime] = Query(None, description="Reference instant (ISO 8601), defaults to now"),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    deleted = await jobs.delete_abandoned_goals(session_factory, at)
    return {"deleted": deleted}
