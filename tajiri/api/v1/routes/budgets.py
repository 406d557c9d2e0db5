# tajiri/api/v1/routes/budgets.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from tajiri.schemas.budget import BudgetCreate, BudgetRead
from tajiri.crud.budget import create_budget_for_user, get_budgets_for_user
from tajiri.core.database import get_async_session
from tajiri.models.user import User
from tajiri.api.deps import get_current_user

router = APIRouter(prefix="/budgets", tags=["budgets"])

@router.get("", response_model=List[BudgetRead])
async def read_budgets(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_budgets_for_user(user.id, db)

@router.post("", response_model=BudgetRead, status_code=status.HTTP_201_CREATED)
async def create_budget(
    budget_in: BudgetCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await create_budget_for_user(user.id, budget_in, db)
