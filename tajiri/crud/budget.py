# tajiri/crud/budget.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from tajiri.models.budget import Budget
from typing import List
import uuid
from tajiri.schemas.budget import BudgetCreate

async def get_budgets_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Budget]:
    result = await db.execute(select(Budget).where(Budget.user_id == user_id).order_by(Budget.category))
    return list(result.scalars().all())

async def create_budget_for_user(user_id: uuid.UUID, budget_in: BudgetCreate, db: AsyncSession) -> Budget:
    new_budget = Budget(**budget_in.model_dump(), user_id=user_id)
    db.add(new_budget)
    await db.commit()
    await db.refresh(new_budget)
    return new_budget
