from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from streak_trackr.db import Base


class PastStreak(Base):
    __tablename__ = "past_streaks"
    __table_args__ = (UniqueConstraint("streak_id", "seq", name="uq_past_streaks_streak_seq"),)

    id = Column(Integer, primary_key=True, index=True)
    streak_id = Column(Integer, ForeignKey("streaks.id", ondelete="CASCADE"), nullable=False, index=True)

    seq = Column(Integer, nullable=False)  # 1-based, contiguous per streak
    start = Column(DateTime(timezone=True), nullable=False)
    end = Column(DateTime(timezone=True), nullable=False)
