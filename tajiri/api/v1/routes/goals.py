# tajiri/api/v1/routes/goals.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from tajiri.schemas.goal import GoalCreate, GoalRead, GoalDetail
from tajiri.crud.goal import get_goals_for_user, get_goal_by_id, abandon_goal
from tajiri.services.goals import create_goal
from tajiri.core.database import get_async_session
from tajiri.models.user import User
from tajiri.api.deps import get_current_user

router = APIRouter(prefix="/goals", tags=["goals"])

@router.post("", response_model=GoalRead, status_code=status.HTTP_201_CREATED)
async def create_savings_goal(
    goal_in: GoalCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Create a savings goal tracked day by day.

    - **daily_limit**: spending cap per local day; unspent budget is saved
    - **start_date**: defaults to today in the goal's timezone
    - **timezone**: defaults to the user's timezone
    """
    return await create_goal(user, goal_in, db)

@router.get("", response_model=List[GoalRead])
async def read_goals(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_goals_for_user(user.id, db)

@router.get("/{goal_id}", response_model=GoalDetail)
async def read_goal(
    goal_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Goal with its daily log, newest day first"""
    goal = await get_goal_by_id(goal_id, user.id, db, with_logs=True)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal

@router.post("/{goal_id}/abandon", response_model=GoalRead)
async def abandon_savings_goal(
    goal_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    goal = await get_goal_by_id(goal_id, user.id, db)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    if goal.goal_status != "active":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Only active goals can be abandoned (goal is {goal.goal_status})",
        )
    return await abandon_goal(goal, db)
