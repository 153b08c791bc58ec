from dataclasses import dataclass
from typing import Optional, Sequence

from streak_trackr.core.constants import MILESTONE_DAYS


@dataclass(frozen=True)
class MilestoneProgress:
    earned: tuple[int, ...]
    next: Optional[int]
    days_remaining: Optional[int]


def milestone_progress(current_length: int, thresholds: Sequence[int] = MILESTONE_DAYS) -> MilestoneProgress:
    """
    Badges earned by a run of `current_length` days and the next one to go.
    Example: 10 -> earned (3, 7), next 30, 20 days remaining
    """
    ordered = sorted(thresholds)
    earned = tuple(t for t in ordered if t <= current_length)
    upcoming = next((t for t in ordered if t > current_length), None)
    remaining = upcoming - current_length if upcoming is not None else None
    return MilestoneProgress(earned=earned, next=upcoming, days_remaining=remaining)
