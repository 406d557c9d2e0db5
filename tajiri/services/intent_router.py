# tajiri/services/intent_router.py
"""
Free-text assistant: the model classifies a message into one of the supported
intents plus parameters, then the matching handler runs for the user.
"""
import json
import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from tajiri.crud.budget import create_budget_for_user
from tajiri.crud.transaction import (
    create_transaction_for_user,
    delete_transaction,
    get_transaction_by_id,
    get_transactions_for_user,
)
from tajiri.models.user import User
from tajiri.schemas.assistant import SUPPORTED_INTENTS, AssistantIntent, AssistantResponse
from tajiri.schemas.budget import BudgetCreate, BudgetRead
from tajiri.schemas.goal import GoalCreate, GoalRead
from tajiri.schemas.transaction import TransactionCreate, TransactionRead
from tajiri.services.goal_reconciler import as_utc
from tajiri.services.goals import create_goal
from tajiri.services.insights import get_advisory_message, get_spending_summary, suggest_daily_limit
from tajiri.services.llm import chat_completion
from tajiri.utils.dates import get_zone

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "Sorry, I didn't quite get that. You can ask me to record an expense or income, "
    "delete a transaction, create a savings goal or budget, summarise your spending, "
    "suggest a daily limit, or give you some financial advice."
)


def _build_system_prompt() -> str:
    return (
        "You are the intent classifier of Tajiri, a personal finance app. "
        "Map the user's message to exactly one intent and extract its parameters. "
        "Respond with ONLY valid JSON of shape {\"intent\": <intent>, \"params\": {...}}, no extra commentary.\n\n"
        f"Supported intents: {', '.join(SUPPORTED_INTENTS)}.\n"
        "Params per intent:\n"
        "- create_transaction: {type: 'expense'|'income', amount: number, category?: str, description?: str, date?: ISO8601}\n"
        "- delete_transaction: {id?: uuid}  (omit id for 'the last transaction')\n"
        "- create_goal: {goal_name: str, target_amount: number, daily_limit: number, start_date?: YYYY-MM-DD}\n"
        "- create_budget: {category: str, amount: number, period: 'daily'|'weekly'|'monthly'}\n"
        "- get_spending_summary: {period: str}  (e.g. 'today', 'last week', 'this month')\n"
        "- suggest_daily_limit: {}\n"
        "- get_advice: {}\n"
        "- unknown: {}  (anything else)\n"
        "Interpret relative dates using the provided current datetime. Never invent placeholder values."
    )


def parse_intent(raw: str) -> Optional[AssistantIntent]:
    """Parse the model's answer; tolerates a fenced ```json block. Returns None when unusable."""
    text = (raw or "").strip()
    fenced = re.search(r"```(?:json)?\s*(\{.*\})\s*```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1)
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    if not isinstance(data.get("params"), dict):
        data["params"] = {}
    try:
        return AssistantIntent(**data)
    except ValidationError:
        return None


def _date_from_relative(message: str, now_local: datetime) -> Optional[datetime]:
    text = message.lower()
    if "yesterday" in text:
        return now_local - timedelta(days=1)
    if "today" in text:
        return now_local
    return None


def _error(intent: str, message: str) -> AssistantResponse:
    return AssistantResponse(intent=intent, status="error", reply=message)


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "Invalid parameters: " + "; ".join(parts)


async def handle_message(
    user: User,
    message: str,
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> AssistantResponse:
    """Classify ``message`` and run the matching handler. LLM outages propagate as LLMUnavailableError."""
    now_local = as_utc(now or datetime.now(timezone.utc)).astimezone(get_zone(user.timezone))

    raw = await chat_completion(
        [
            {"role": "system", "content": _build_system_prompt()},
            {
                "role": "user",
                "content": f"Message: {message}\nCurrent datetime ({now_local.tzinfo}): {now_local.isoformat()}",
            },
        ],
        temperature=0.0,
        max_tokens=512,
        json_mode=True,
        title="Tajiri Intent Router",
    )

    intent = parse_intent(raw)
    if intent is None or intent.intent == "unknown":
        logger.info(f"Assistant could not map message for user {user.id} to an intent")
        return AssistantResponse(intent="unknown", status="success", reply=FALLBACK_REPLY)

    logger.info(f"Assistant intent for user {user.id}: {intent.intent}")
    return await _execute_intent(intent, user, db, message, now_local)


async def _execute_intent(
    intent: AssistantIntent,
    user: User,
    db: AsyncSession,
    message: str,
    now_local: datetime,
) -> AssistantResponse:
    params = intent.params
    name = intent.intent

    if name == "create_transaction":
        values = {k: params.get(k) for k in ("type", "amount", "category", "description", "date") if params.get(k) is not None}
        values.setdefault("type", "expense")
        relative = _date_from_relative(message, now_local)
        if relative is not None:
            values["date"] = relative
        try:
            tx_in = TransactionCreate(**values)
        except ValidationError as e:
            return _error(name, _validation_message(e))
        tx = await create_transaction_for_user(user.id, tx_in, db)
        data = TransactionRead.model_validate(tx).model_dump(mode="json")
        return AssistantResponse(
            intent=name,
            status="success",
            reply=f"Recorded {tx.type} of {tx.amount:,.2f} ({tx.category}).",
            data=data,
        )

    if name == "delete_transaction":
        raw_id = params.get("id")
        if raw_id:
            try:
                tx_id = uuid.UUID(str(raw_id))
            except ValueError:
                return _error(name, "Invalid transaction id")
            tx = await get_transaction_by_id(tx_id, user.id, db)
        else:
            recent = await get_transactions_for_user(user.id, db, limit=1)
            tx = recent[0] if recent else None
        if tx is None:
            return _error(name, "Transaction not found")
        tx_id = tx.id
        await delete_transaction(tx, db)
        return AssistantResponse(
            intent=name,
            status="success",
            reply="Transaction deleted.",
            data={"transaction_id": str(tx_id)},
        )

    if name == "create_goal":
        try:
            goal_in = GoalCreate(**params)
        except ValidationError as e:
            return _error(name, _validation_message(e))
        goal = await create_goal(user, goal_in, db, now=now_local)
        data = GoalRead.model_validate(goal).model_dump(mode="json")
        return AssistantResponse(
            intent=name,
            status="success",
            reply=f"Goal '{goal.goal_name}' created with a daily limit of {goal.daily_limit:,.2f}.",
            data=data,
        )

    if name == "create_budget":
        try:
            budget_in = BudgetCreate(**params)
        except ValidationError as e:
            return _error(name, _validation_message(e))
        budget = await create_budget_for_user(user.id, budget_in, db)
        data = BudgetRead.model_validate(budget).model_dump(mode="json")
        return AssistantResponse(
            intent=name,
            status="success",
            reply=f"{budget.period.capitalize()} budget of {budget.amount:,.2f} set for {budget.category}.",
            data=data,
        )

    if name == "get_spending_summary":
        period = params.get("period") or message
        summary = await get_spending_summary(user, str(period), db, now=now_local)
        return AssistantResponse(
            intent=name,
            status="success",
            reply=(
                f"You spent {summary.total_expense:,.2f} and received {summary.total_income:,.2f} "
                f"{summary.period_label}."
            ),
            data=summary.model_dump(mode="json"),
        )

    if name == "suggest_daily_limit":
        suggestion = await suggest_daily_limit(user, db, now=now_local)
        return AssistantResponse(
            intent=name,
            status="success",
            reply=suggestion.reply,
            data=suggestion.model_dump(mode="json"),
        )

    if name == "get_advice":
        reply = await get_advisory_message(user, message, db, now=now_local)
        return AssistantResponse(intent=name, status="success", reply=reply)

    return AssistantResponse(intent="unknown", status="success", reply=FALLBACK_REPLY)
