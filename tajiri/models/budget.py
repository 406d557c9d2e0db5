# tajiri/models/budget.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from tajiri.core.database import Base

class Budget(Base):
    __tablename__ = "budgets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category = Column(String(100), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    period = Column(String(16), nullable=False, default="monthly")  # daily | weekly | monthly

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="budgets")

    def __repr__(self):
        return f"<Budget category={self.category} amount={self.amount} period={self.period}>"
