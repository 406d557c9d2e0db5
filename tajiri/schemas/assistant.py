from pydantic import BaseModel, Field
from typing import Literal, Optional, Dict, Any

SUPPORTED_INTENTS = (
    "create_transaction",
    "delete_transaction",
    "create_goal",
    "create_budget",
    "get_spending_summary",
    "suggest_daily_limit",
    "get_advice",
    "unknown",
)

class AssistantRequest(BaseModel):
    message: str = Field(..., min_length=1, description="Free-text message from the user")

class AssistantIntent(BaseModel):
    intent: Literal[
        "create_transaction",
        "delete_transaction",
        "create_goal",
        "create_budget",
        "get_spending_summary",
        "suggest_daily_limit",
        "get_advice",
        "unknown",
    ]
    params: Dict[str, Any] = Field(default_factory=dict)

class AssistantResponse(BaseModel):
    intent: str
    status: Literal["success", "error"]
    reply: str
    data: Optional[Dict[str, Any]] = None
