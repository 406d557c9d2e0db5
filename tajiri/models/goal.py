# tajiri/models/goal.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, Date, DateTime, ForeignKey, Uuid, Index
from sqlalchemy.orm import relationship
from tajiri.core.database import Base

GOAL_STATUSES = ("active", "completed", "abandoned")

class Goal(Base):
    __tablename__ = "goals"
    __table_args__ = (
        Index("ix_goals_user_status", "user_id", "goal_status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    goal_name = Column(String(120), nullable=False)
    target_amount = Column(Numeric(14, 2), nullable=False)
    # Track how much is saved so far, updated only by the daily reconciliation
    saved_amount = Column(Numeric(14, 2), nullable=False, default=0)
    # Nullable so legacy records without a limit/start date can be detected and skipped
    daily_limit = Column(Numeric(14, 2), nullable=True)
    start_date = Column(Date, nullable=True)  # user-local calendar date
    timezone = Column(String(64), nullable=True)

    goal_status = Column(String(16), nullable=False, default="active")
    streak_count = Column(Integer, nullable=False, default=0)
    grace_days_used = Column(Integer, nullable=False, default=0)
    abandoned_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="goals")
    daily_logs = relationship(
        "DailyLog",
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="DailyLog.log_date.desc()",
    )

    def __repr__(self):
        return f"<Goal name={self.goal_name} status={self.goal_status} saved={self.saved_amount}/{self.target_amount}>"
