from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
import uuid

class NotificationBase(BaseModel):
    title: str
    message: str
    type: str
    status: str
    goal_id: Optional[uuid.UUID] = None

class NotificationCreate(NotificationBase):
    user_id: uuid.UUID

class NotificationRead(NotificationBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    is_read: bool
    created_at: datetime
