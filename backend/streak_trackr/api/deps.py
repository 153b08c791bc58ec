from datetime import datetime
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from streak_trackr.core.constants import USER_ID_HEADER
from streak_trackr.core.time_utils import utcnow
from streak_trackr.db import get_db
from streak_trackr.engine import CallContext, StreakEngine


def get_current_user_id(
    user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
) -> str:
    # Identity is established upstream (auth proxy / session layer)
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail=f"Missing {USER_ID_HEADER} header")
    return user_id.strip()


def get_now() -> datetime:
    """Request clock. Tests override this dependency to pin `now`."""
    return utcnow()


def get_context(
    user_id: str = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
) -> CallContext:
    return CallContext(owner_id=user_id, now=now)


def get_engine(db: Session = Depends(get_db)) -> StreakEngine:
    return StreakEngine(db)
