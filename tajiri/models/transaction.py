# tajiri/models/transaction.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Numeric, DateTime, Uuid, Index
from sqlalchemy.orm import relationship
from tajiri.core.database import Base

TRANSACTION_TYPES = ("expense", "income")

class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_type_date", "user_id", "type", "date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(16), nullable=False, default="expense")  # expense | income
    amount = Column(Numeric(14, 2), nullable=False)
    category = Column(String(100), nullable=False, default="Other")
    description = Column(String(255), nullable=True)
    # Stored as naive UTC
    date = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="transactions")

    def __repr__(self):
        return f"<Transaction type={self.type} amount={self.amount} date={self.date} user_id={self.user_id}>"
