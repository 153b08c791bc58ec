from sqlalchemy import Column, Float, String, DateTime
from sqlalchemy.sql import func
from streak_trackr.db import Base


class UserSettings(Base):
    __tablename__ = "user_settings"

    # One row per user, created on the first extend
    owner_id = Column(String, primary_key=True, index=True, nullable=False)

    # Hours east of UTC as reported by the client, may be fractional
    timezone_offset = Column(Float, nullable=False, server_default="0", default=0.0)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
