# tajiri/models/daily_log.py
import uuid
from sqlalchemy import Column, String, Integer, Numeric, Date, DateTime, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from tajiri.core.database import Base

class DailyLog(Base):
    __tablename__ = "goal_daily_logs"
    # One ledger entry per goal per local calendar day
    __table_args__ = (
        UniqueConstraint("goal_id", "log_date", name="uq_goal_daily_logs_goal_date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    goal_id = Column(Uuid(as_uuid=True), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    log_date = Column(Date, nullable=False)
    # Local midnight that starts log_date, as naive UTC
    date = Column(DateTime, nullable=False)

    spent_amount = Column(Numeric(14, 2), nullable=False, default=0)
    saved_amount = Column(Numeric(14, 2), nullable=False, default=0)
    status = Column(String(16), nullable=False)  # success | failed | skipped
    comment = Column(String(255), nullable=True)

    # Goal counters before this day was first applied; replays start from here
    opening_saved_amount = Column(Numeric(14, 2), nullable=False, default=0)
    opening_streak_count = Column(Integer, nullable=False, default=0)
    opening_grace_days_used = Column(Integer, nullable=False, default=0)
    # Set once when the day's notifications are claimed
    notified_at = Column(DateTime, nullable=True)

    goal = relationship("Goal", back_populates="daily_logs")

    def __repr__(self):
        return f"<DailyLog goal_id={self.goal_id} date={self.log_date} status={self.status}>"
