# tajiri/api/v1/routes/assistant.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from tajiri.schemas.assistant import AssistantRequest, AssistantResponse
from tajiri.services.intent_router import handle_message
from tajiri.services.llm import LLMUnavailableError
from tajiri.core.database import get_async_session
from tajiri.models.user import User
from tajiri.api.deps import get_current_user

router = APIRouter(prefix="/assistant", tags=["assistant"])
logger = logging.getLogger(__name__)

@router.post("/message", response_model=AssistantResponse)
async def assistant_message(
    assistant_request: AssistantRequest,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Interpret a natural language message and run the matching action,
    e.g. "I spent 5000 on lunch today" or "how much did I spend last week?".
    """
    try:
        return await handle_message(user, assistant_request.message, db)
    except LLMUnavailableError as e:
        logger.error(f"Assistant unavailable for user {user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The assistant is currently unavailable.",
        )
