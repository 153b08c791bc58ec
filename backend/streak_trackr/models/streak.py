from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from streak_trackr.db import Base


class Streak(Base):
    __tablename__ = "streaks"

    id = Column(Integer, primary_key=True, index=True)

    # Owning user, never changes after insert
    owner_id = Column(String, nullable=False, index=True)

    title = Column(String, nullable=True)
    description = Column(String, nullable=True)
    color = Column(String(7), nullable=False, server_default="#000000")  # '#RRGGBB'

    # Active run boundaries (UTC instants), start <= end
    current_start_date = Column(DateTime(timezone=True), nullable=False)
    current_end_date = Column(DateTime(timezone=True), nullable=False)

    # Longest run ever closed, in whole days
    longest_streak = Column(Integer, nullable=False, server_default="0", default=0)

    # User controlled sort key, not required to be unique or contiguous
    position = Column(Integer, nullable=False, server_default="1", default=1)

    # Closed runs, oldest first
    past_streaks = relationship(
        "PastStreak",
        order_by="PastStreak.seq",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Current length, milestones etc. are NOT stored, they're derived per request
