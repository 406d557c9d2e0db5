# tajiri/schemas/transaction.py
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
import uuid

class TransactionBase(BaseModel):
    type: Literal["expense", "income"] = "expense"
    category: str = Field("Other", min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255, description="E.g. Lunch at Samaki Samaki")

class TransactionCreate(TransactionBase):
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    date: Optional[datetime] = Field(None, description="ISO 8601 date/time of transaction, defaults to now")

class TransactionRead(TransactionBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    amount: float
    date: datetime
