# tajiri/schemas/insights.py
from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

class CategoryTotal(BaseModel):
    category: str
    amount: float

class SpendingSummary(BaseModel):
    period_label: str
    start: Optional[datetime] = None
    end: datetime
    total_expense: float
    total_income: float
    transaction_count: int
    by_category: List[CategoryTotal]

class DailyLimitSuggestion(BaseModel):
    suggested_limit: float
    total_spending: float
    days_considered: int
    reply: str

class AdviceRequest(BaseModel):
    message: str = Field("", description="The user's question")

class AdviceResponse(BaseModel):
    reply: str
