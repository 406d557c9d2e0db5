# tajiri/services/insights.py
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tajiri.core.config import settings
from tajiri.crud.goal import get_goals_for_user
from tajiri.crud.transaction import get_transactions_between
from tajiri.models.user import User
from tajiri.schemas.insights import CategoryTotal, DailyLimitSuggestion, SpendingSummary
from tajiri.services.goal_reconciler import as_utc
from tajiri.services.llm import chat_completion
from tajiri.utils.dates import date_range_from_text, get_zone

logger = logging.getLogger(__name__)


def _local_now(user: User, now: Optional[datetime]) -> datetime:
    return as_utc(now or datetime.now(timezone.utc)).astimezone(get_zone(user.timezone))


async def get_spending_summary(
    user: User,
    period_text: str,
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> SpendingSummary:
    """Totals for the time frame named in `period_text` (e.g. "this week"), in the user's zone."""
    date_range = date_range_from_text(period_text, _local_now(user, now))
    transactions = await get_transactions_between(user.id, date_range.start, date_range.end, db)

    total_expense = Decimal("0")
    total_income = Decimal("0")
    by_category = defaultdict(Decimal)
    for tx in transactions:
        if tx.type == "income":
            total_income += tx.amount
        else:
            total_expense += tx.amount
            by_category[tx.category or "Other"] += tx.amount

    categories = sorted(by_category.items(), key=lambda item: item[1], reverse=True)
    return SpendingSummary(
        period_label=date_range.label,
        start=date_range.start,
        end=date_range.end,
        total_expense=float(total_expense),
        total_income=float(total_income),
        transaction_count=len(transactions),
        by_category=[CategoryTotal(category=name, amount=float(amount)) for name, amount in categories],
    )


async def suggest_daily_limit(
    user: User,
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> DailyLimitSuggestion:
    """
    Average daily spending over the lookback window. Only days that have
    expenses count; with no expenses at all the whole window is used.
    """
    lookback = settings.DAILY_LIMIT_LOOKBACK_DAYS
    local_now = _local_now(user, now)
    expenses = await get_transactions_between(
        user.id, local_now - timedelta(days=lookback), local_now, db, tx_type="expense"
    )

    zone = local_now.tzinfo
    total_spending = sum((tx.amount for tx in expenses), Decimal("0"))
    unique_days = {as_utc(tx.date).astimezone(zone).date() for tx in expenses}
    number_of_days = len(unique_days) or lookback
    suggested_limit = (total_spending / number_of_days).quantize(Decimal("0.01"))

    if total_spending == 0:
        reply = (
            "Based on your spending history, I recommend setting a realistic daily spending limit. "
            f"You haven't recorded any expenses in the last {lookback} days, so start by tracking "
            "your usual spending to get a clearer picture."
        )
    else:
        reply = (
            f"Based on your average daily spending of {settings.CURRENCY} {suggested_limit:,.2f} over the last "
            f"{lookback} days, a reasonable daily spending limit for your goal could be "
            f"{settings.CURRENCY} {suggested_limit:,.2f}. Remember, setting a slightly lower limit can help "
            "you reach your goals faster!"
        )

    return DailyLimitSuggestion(
        suggested_limit=float(suggested_limit),
        total_spending=float(total_spending),
        days_considered=number_of_days,
        reply=reply,
    )


async def get_advisory_message(
    user: User,
    message: str,
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> str:
    """Ask the model for advice grounded in the user's expenses for the mentioned time frame and their goals."""
    local_now = _local_now(user, now)
    zone = local_now.tzinfo
    date_range = date_range_from_text(message, local_now)

    expenses = await get_transactions_between(user.id, date_range.start, date_range.end, db, tx_type="expense")
    if expenses:
        expense_context = "\n".join(
            f"- {tx.description or tx.category}: {settings.CURRENCY} {tx.amount:,.2f} on "
            f"{as_utc(tx.date).astimezone(zone).date().isoformat()}"
            for tx in expenses
        )
    else:
        expense_context = "No expenses were found for this period."

    goals = await get_goals_for_user(user.id, db)
    if goals:
        goals_context = "\n".join(
            f"- Goal: '{g.goal_name}' ({g.goal_status}), Progress: {settings.CURRENCY} "
            f"{g.saved_amount:,.2f} / {settings.CURRENCY} {g.target_amount:,.2f}"
            for g in goals
        )
    else:
        goals_context = "No active savings goals found."

    system_prompt = (
        "You are a friendly and helpful AI financial advisor named Tajiri for an expense tracker app. "
        "Your tone should be encouraging and non-judgmental. "
        "Provide a concise, helpful, and actionable response (max 3-4 sentences). "
        "Connect spending habits to goal progress where relevant. "
        "If no data was found, say so. If the question is not related to finance, politely decline to answer."
    )
    user_prompt = (
        f"The current date is {local_now.date().isoformat()}.\n"
        f"USER'S QUESTION: \"{message}\"\n\n"
        f"1. SPENDING DATA {date_range.label}:\n{expense_context}\n\n"
        f"2. SAVINGS GOALS:\n{goals_context}"
    )

    return await chat_completion(
        [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=0.3,
        max_tokens=512,
        title="Tajiri Financial Advisor",
    )
