"""Record store: every read and write of streak rows goes through here.

The store never commits. The engine owns the transaction boundary so a
whole operation (e.g. archive + reset + timezone write) commits or rolls
back as one unit.
"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from streak_trackr.core.errors import NotFoundError
from streak_trackr.models.past_streak import PastStreak
from streak_trackr.models.streak import Streak
from streak_trackr.models.user_settings import UserSettings

UPDATABLE_FIELDS = ("title", "description", "color")


class StreakStore:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, streak_id: int, owner_id: str, lock: bool = False) -> Optional[Streak]:
        """Point lookup scoped to the owner.

        With `lock=True` the row is selected FOR UPDATE so concurrent
        read-modify-write operations on the same streak are serialized.
        """
        query = self.db.query(Streak).filter(Streak.id == streak_id, Streak.owner_id == owner_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def list_by_owner(self, owner_id: str) -> list[Streak]:
        return (
            self.db.query(Streak)
            .filter(Streak.owner_id == owner_id)
            .order_by(Streak.position.asc(), Streak.created_at.desc(), Streak.id.desc())
            .all()
        )

    def max_position(self, owner_id: str) -> Optional[int]:
        return (
            self.db.query(func.max(Streak.position))
            .filter(Streak.owner_id == owner_id)
            .scalar()
        )

    def insert(self, streak: Streak) -> Streak:
        self.db.add(streak)
        self.db.flush()
        return streak

    def update_fields(self, streak_id: int, owner_id: str, fields: dict) -> Optional[Streak]:
        streak = self.get_by_id(streak_id, owner_id, lock=True)
        if streak is None:
            return None
        for name, value in fields.items():
            if name not in UPDATABLE_FIELDS and name != "updated_at":
                raise ValueError(f"Field {name!r} cannot be updated")
            setattr(streak, name, value)
        self.db.flush()
        return streak

    def delete(self, streak_id: int, owner_id: str) -> None:
        streak = self.get_by_id(streak_id, owner_id, lock=True)
        if streak is None:
            raise NotFoundError("Streak not found")
        self.db.delete(streak)
        self.db.flush()

    def append_past_streak(self, streak: Streak, start: datetime, end: datetime) -> PastStreak:
        # Numbering comes from the (locked) row's own history
        entry = PastStreak(seq=len(streak.past_streaks) + 1, start=start, end=end)
        streak.past_streaks.append(entry)
        return entry

    def batch_update_positions(self, items: Iterable[tuple[int, int]], owner_id: str) -> int:
        """Apply `(id, position)` pairs for one owner.

        Every id is checked before anything is written; one unknown or
        foreign id raises NotFoundError and nothing is touched.
        """
        positions = dict(items)
        if not positions:
            return 0
        rows = (
            self.db.query(Streak)
            .filter(Streak.owner_id == owner_id, Streak.id.in_(list(positions)))
            .with_for_update()
            .all()
        )
        found = {row.id for row in rows}
        missing = sorted(set(positions) - found)
        if missing:
            raise NotFoundError(f"Streak not found: {', '.join(str(i) for i in missing)}")
        for row in rows:
            row.position = positions[row.id]
        self.db.flush()
        return len(rows)

    def get_user_timezone_offset(self, owner_id: str) -> float:
        row = self.db.get(UserSettings, owner_id)
        if row is None:
            return 0.0
        return float(row.timezone_offset)

    def set_user_timezone_offset(self, owner_id: str, offset: float) -> UserSettings:
        row = self.db.get(UserSettings, owner_id)
        if row is None:
            row = UserSettings(owner_id=owner_id, timezone_offset=offset)
            self.db.add(row)
        else:
            row.timezone_offset = offset
        self.db.flush()
        return row
