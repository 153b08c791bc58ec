"""Streak state-transition engine.

Every operation receives the caller and the current instant explicitly
through a `CallContext`, so the engine never reads a wall clock or a
session on its own and tests can drive it with any `now`.

A run is the pair (current_start_date, current_end_date). Extending within
the grace period moves the end forward; extending after it (or ending the
run manually) archives the run into the streak's history, folds its length
into longest_streak and starts a new one-day run at `now`.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from streak_trackr.core.config import settings
from streak_trackr.core.constants import DEFAULT_COLOR, HEX_COLOR_RE
from streak_trackr.core.errors import InternalError, NotFoundError, ValidationError
from streak_trackr.core.time_utils import apply_offset, ensure_utc, run_length
from streak_trackr.models.streak import Streak
from streak_trackr.store import StreakStore

logger = logging.getLogger("streak_trackr.engine")

# Real-world UTC offsets lie within [-12, +14]
MIN_OFFSET_HOURS = -12
MAX_OFFSET_HOURS = 14


@dataclass(frozen=True)
class CallContext:
    owner_id: str
    now: datetime


@dataclass(frozen=True)
class Transition:
    """Next run state computed from a snapshot of the record."""

    start: datetime
    end: datetime
    longest: int
    archived: Optional[tuple[datetime, datetime]] = None

    @property
    def was_reset(self) -> bool:
        return self.archived is not None


@dataclass
class ExtendOutcome:
    streak: Streak
    was_reset: bool


@dataclass
class EndOutcome:
    streak: Streak
    was_ended_manually: bool = True


def default_grace() -> timedelta:
    return timedelta(days=settings.grace_period_days)


def is_broken(end: datetime, now: datetime, grace: Optional[timedelta] = None) -> bool:
    if grace is None:
        grace = default_grace()
    # Strictly greater: exactly `grace` after the last extend is still alive
    return ensure_utc(now) - ensure_utc(end) > grace


def close_run(
    start: datetime,
    end: datetime,
    longest: int,
    now: datetime,
    offset_hours: float = 0,
) -> Transition:
    finished = run_length(start, end, offset_hours)
    now = ensure_utc(now)
    return Transition(
        start=now,
        end=now,
        longest=max(longest, finished),
        archived=(ensure_utc(start), ensure_utc(end)),
    )


def extend_run(
    start: datetime,
    end: datetime,
    longest: int,
    now: datetime,
    grace: Optional[timedelta] = None,
    offset_hours: float = 0,
) -> Transition:
    """Continue the run, or close it and start over when the grace period passed.

    Calling this several times on the same day is safe: each call just
    re-stamps the end of the run.
    """
    if is_broken(end, now, grace):
        return close_run(start, end, longest, now, offset_hours)
    return Transition(start=ensure_utc(start), end=ensure_utc(now), longest=longest)


def validate_color(color: str) -> str:
    if not isinstance(color, str) or not HEX_COLOR_RE.fullmatch(color):
        raise ValidationError("color must be a hex color like '#1a2b3c'")
    return color


def validate_offset(offset_hours: float) -> float:
    if not MIN_OFFSET_HOURS <= offset_hours <= MAX_OFFSET_HOURS:
        raise ValidationError(
            f"timezone offset must be between {MIN_OFFSET_HOURS} and {MAX_OFFSET_HOURS} hours"
        )
    return float(offset_hours)


class StreakEngine:
    def __init__(self, db: Session, grace: Optional[timedelta] = None):
        self.db = db
        self.store = StreakStore(db)
        self.grace = grace if grace is not None else default_grace()

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _require(self, ctx: CallContext, streak_id: int, lock: bool = False) -> Streak:
        streak = self.store.get_by_id(streak_id, ctx.owner_id, lock=lock)
        if streak is None:
            raise NotFoundError("Streak not found")
        return streak

    def _reload(self, ctx: CallContext, streak_id: int) -> Streak:
        streak = self.store.get_by_id(streak_id, ctx.owner_id)
        if streak is None:
            raise InternalError(f"Streak {streak_id} missing after write")
        return streak

    def _apply(self, streak: Streak, transition: Transition, now: datetime) -> None:
        if transition.archived is not None:
            self.store.append_past_streak(streak, *transition.archived)
        streak.current_start_date = transition.start
        streak.current_end_date = transition.end
        streak.longest_streak = transition.longest
        streak.updated_at = now

    # --- reads -------------------------------------------------------------

    def list_streaks(self, ctx: CallContext) -> list[Streak]:
        return self.store.list_by_owner(ctx.owner_id)

    def get(self, ctx: CallContext, streak_id: int) -> Streak:
        return self._require(ctx, streak_id)

    def timezone_offset(self, ctx: CallContext) -> float:
        return self.store.get_user_timezone_offset(ctx.owner_id)

    def client_datetime(self, ctx: CallContext) -> datetime:
        """`now` as wall-clock time in the caller's stored timezone."""
        return apply_offset(ctx.now, self.timezone_offset(ctx))

    # --- writes ------------------------------------------------------------

    def create(
        self,
        ctx: CallContext,
        title: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Streak:
        color = validate_color(color or settings.default_color or DEFAULT_COLOR)
        now = ensure_utc(ctx.now)
        with self._transaction():
            top = self.store.max_position(ctx.owner_id)
            streak = self.store.insert(
                Streak(
                    owner_id=ctx.owner_id,
                    title=title,
                    description=description,
                    color=color,
                    current_start_date=now,
                    current_end_date=now,
                    longest_streak=0,
                    position=(top or 0) + 1,
                    created_at=now,
                    updated_at=now,
                )
            )
            streak_id = streak.id
        logger.info("Created streak %s for %s", streak_id, ctx.owner_id)
        return self._reload(ctx, streak_id)

    def update(self, ctx: CallContext, streak_id: int, **fields) -> Streak:
        changes = {k: v for k, v in fields.items() if v is not None}
        if "color" in changes:
            validate_color(changes["color"])
        changes["updated_at"] = ensure_utc(ctx.now)
        with self._transaction():
            streak = self.store.update_fields(streak_id, ctx.owner_id, changes)
            if streak is None:
                raise NotFoundError("Streak not found")
        return self._reload(ctx, streak_id)

    def delete(self, ctx: CallContext, streak_id: int) -> Streak:
        """Hard delete. Returns the record as it was just before deletion."""
        with self._transaction():
            streak = self._require(ctx, streak_id, lock=True)
            # Make sure the history is loaded so the snapshot stays readable
            list(streak.past_streaks)
            self.store.delete(streak_id, ctx.owner_id)
        logger.info("Deleted streak %s for %s", streak_id, ctx.owner_id)
        return streak

    def extend(self, ctx: CallContext, streak_id: int, timezone_offset_hours: float) -> ExtendOutcome:
        offset = validate_offset(timezone_offset_hours)
        now = ensure_utc(ctx.now)
        with self._transaction():
            streak = self._require(ctx, streak_id, lock=True)
            transition = extend_run(
                streak.current_start_date,
                streak.current_end_date,
                streak.longest_streak,
                now,
                grace=self.grace,
                offset_hours=offset,
            )
            self._apply(streak, transition, now)
            # The client reports its offset on every extend; trust it
            self.store.set_user_timezone_offset(ctx.owner_id, offset)
        if transition.was_reset:
            logger.info(
                "Streak %s broken (last extend %s), archived and restarted",
                streak_id,
                transition.archived[1].isoformat(),
            )
        return ExtendOutcome(streak=self._reload(ctx, streak_id), was_reset=transition.was_reset)

    def end(self, ctx: CallContext, streak_id: int) -> EndOutcome:
        now = ensure_utc(ctx.now)
        with self._transaction():
            streak = self._require(ctx, streak_id, lock=True)
            offset = self.store.get_user_timezone_offset(ctx.owner_id)
            transition = close_run(
                streak.current_start_date,
                streak.current_end_date,
                streak.longest_streak,
                now,
                offset_hours=offset,
            )
            self._apply(streak, transition, now)
        logger.info("Streak %s ended manually by %s", streak_id, ctx.owner_id)
        return EndOutcome(streak=self._reload(ctx, streak_id))

    def reorder(self, ctx: CallContext, items: Iterable[tuple[int, int]]) -> int:
        items = list(items)
        with self._transaction():
            updated = self.store.batch_update_positions(items, ctx.owner_id)
        logger.debug("Reordered %d streaks for %s", updated, ctx.owner_id)
        return updated

    def set_timezone(self, ctx: CallContext, timezone_offset_hours: float) -> float:
        offset = validate_offset(timezone_offset_hours)
        with self._transaction():
            self.store.set_user_timezone_offset(ctx.owner_id, offset)
        return offset
