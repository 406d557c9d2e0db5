# tajiri/schemas/budget.py
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
import uuid

class BudgetCreate(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    period: Literal["daily", "weekly", "monthly"] = "monthly"

class BudgetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    category: str
    amount: float
    period: str
    created_at: datetime
