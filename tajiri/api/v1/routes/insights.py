# tajiri/api/v1/routes/insights.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tajiri.schemas.insights import AdviceRequest, AdviceResponse, DailyLimitSuggestion, SpendingSummary
from tajiri.services.insights import get_advisory_message, get_spending_summary, suggest_daily_limit
from tajiri.services.llm import LLMUnavailableError
from tajiri.core.database import get_async_session
from tajiri.models.user import User
from tajiri.api.deps import get_current_user

router = APIRouter(prefix="/insights", tags=["insights"])
logger = logging.getLogger(__name__)

@router.get("/spending-summary", response_model=SpendingSummary)
async def read_spending_summary(
    period: str = Query("this month", description="Time frame in words, e.g. 'today', 'last week', 'this month'"),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_spending_summary(user, period, db)

@router.get("/daily-limit-suggestion", response_model=DailyLimitSuggestion)
async def read_daily_limit_suggestion(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Suggest a daily limit from the average spend on days with expenses"""
    return await suggest_daily_limit(user, db)

@router.post("/advice", response_model=AdviceResponse)
async def ask_for_advice(
    advice_request: AdviceRequest,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    message = advice_request.message.strip()
    if not message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The function must be called with a message.")
    try:
        reply = await get_advisory_message(user, message, db)
    except LLMUnavailableError as e:
        logger.error(f"Error getting advisory message for user {user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to get advice from AI.",
        )
    return AdviceResponse(reply=reply)
