# tajiri/schemas/goal.py
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from decimal import Decimal
import uuid

from tajiri.utils.dates import is_valid_timezone

class GoalCreate(BaseModel):
    goal_name: str = Field(..., min_length=1, max_length=120)
    target_amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    daily_limit: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    start_date: Optional[date] = Field(None, description="Local start date, defaults to today in the goal's timezone")
    timezone: Optional[str] = Field(None, description="IANA zone name, defaults to the user's zone")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v):
        if v is not None and not is_valid_timezone(v):
            raise ValueError(f"Unknown timezone: {v}")
        return v

class DailyLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    log_date: date
    date: datetime
    spent_amount: float
    saved_amount: float
    status: str
    comment: Optional[str] = None

class GoalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    goal_name: str
    target_amount: float
    saved_amount: float
    daily_limit: Optional[float] = None
    start_date: Optional[date] = None
    timezone: Optional[str] = None
    goal_status: str
    streak_count: int
    grace_days_used: int
    abandoned_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class GoalDetail(GoalRead):
    daily_logs: List[DailyLogRead] = []
