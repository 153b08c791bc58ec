from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from streak_trackr.core.constants import DEFAULT_COLOR, HEX_COLOR_RE


def _check_color(v: str) -> str:
    if not HEX_COLOR_RE.fullmatch(v):
        raise ValueError("color must be a hex color like '#1a2b3c'")
    return v


# '#RRGGBB'
HexColor = Annotated[str, AfterValidator(_check_color)]


class StreakBase(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class StreakCreate(StreakBase):
    """Schema for creating a new streak."""

    color: HexColor = DEFAULT_COLOR


class StreakUpdate(BaseModel):
    """Schema for updating a streak (all fields optional, run state untouched)."""

    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[HexColor] = None

    # Be lenient with extra fields from clients (e.g. a whole StreakRead)
    model_config = ConfigDict(extra="ignore")


class PastStreakRead(BaseModel):
    seq: int
    start: datetime
    end: datetime


class MilestonesRead(BaseModel):
    earned: list[int]
    next: Optional[int] = None
    days_remaining: Optional[int] = None


class StreakRead(StreakBase):
    """Schema returned to the frontend.

    All dates are already shifted into the caller's timezone.
    """

    id: int
    color: str
    current_start_date: datetime
    current_end_date: datetime
    longest_streak: int
    position: int
    past_streaks: list[PastStreakRead] = []
    created_at: datetime
    updated_at: datetime

    # Derived, not stored
    current_length: int
    extended_today: bool
    milestones: MilestonesRead


class ExtendRequest(BaseModel):
    # Hours east of UTC on the client, e.g. -5 for New York in winter
    timezone_offset: float = Field(..., ge=-12, le=14)


class ExtendResult(BaseModel):
    streak: StreakRead
    was_reset: bool


class EndResult(BaseModel):
    streak: StreakRead
    was_ended_manually: bool = True


class ReorderItem(BaseModel):
    id: int
    position: int


class ReorderRequest(BaseModel):
    items: list[ReorderItem]


class ReorderResult(BaseModel):
    ok: bool = True
    updated: int


class ClientDateTime(BaseModel):
    now: datetime
    timezone_offset: float


class UserSettingsRead(BaseModel):
    timezone_offset: float


class TimezoneUpdate(BaseModel):
    timezone_offset: float = Field(..., ge=-12, le=14)
