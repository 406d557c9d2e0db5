# tajiri/crud/transaction.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, func
from tajiri.models.transaction import Transaction
from tajiri.utils.dates import normalize_to_naive_utc
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import uuid
from tajiri.schemas.transaction import TransactionCreate

async def get_transactions_for_user(user_id: uuid.UUID, db: AsyncSession, limit: Optional[int] = None) -> List[Transaction]:
    query = (
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(desc(Transaction.date))
    )
    if limit:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())

async def get_transaction_by_id(transaction_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Transaction]:
    result = await db.execute(
        select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
    )
    return result.scalar_one_or_none()

async def create_transaction_for_user(user_id: uuid.UUID, tx_in: TransactionCreate, db: AsyncSession) -> Transaction:
    values = tx_in.model_dump()
    values["date"] = normalize_to_naive_utc(values.get("date") or datetime.utcnow())
    new_tx = Transaction(**values, user_id=user_id)
    db.add(new_tx)
    await db.commit()
    await db.refresh(new_tx)
    return new_tx

async def delete_transaction(tx: Transaction, db: AsyncSession) -> None:
    await db.delete(tx)
    await db.commit()

async def get_transactions_between(
    user_id: uuid.UUID,
    start: Optional[datetime],
    end: datetime,
    db: AsyncSession,
    tx_type: Optional[str] = None,
) -> List[Transaction]:
    """Transactions dated within [start, end] inclusive, newest first. `start=None` means no lower bound."""
    query = select(Transaction).where(
        Transaction.user_id == user_id,
        Transaction.date <= normalize_to_naive_utc(end),
    )
    if start is not None:
        query = query.where(Transaction.date >= normalize_to_naive_utc(start))
    if tx_type:
        query = query.where(Transaction.type == tx_type)
    result = await db.execute(query.order_by(desc(Transaction.date)))
    return list(result.scalars().all())

async def sum_expenses_between(user_id: uuid.UUID, start: datetime, end: datetime, db: AsyncSession) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.user_id == user_id,
            Transaction.type == "expense",
            Transaction.date >= normalize_to_naive_utc(start),
            Transaction.date <= normalize_to_naive_utc(end),
        )
    )
    total = result.scalar_one()
    return total if isinstance(total, Decimal) else Decimal(str(total))
