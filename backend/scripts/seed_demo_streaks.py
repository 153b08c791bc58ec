from datetime import timedelta
import argparse
import random

from streak_trackr.core.time_utils import utcnow
from streak_trackr.db import Base, SessionLocal, engine as db_engine
from streak_trackr.engine import CallContext, StreakEngine
from streak_trackr.models.streak import Streak


DEMO_STREAKS = [
    ("Morning run", "At least 20 minutes, any pace.", "#e4572e"),
    ("Read", "Ten pages before bed.", "#29335c"),
    ("No sugar", None, "#f3a712"),
    ("Practice guitar", "Scales, then one song.", "#669bbc"),
]


def clear_user_streaks(db, owner_id: str) -> None:
    """Delete the demo user's streaks so we can reseed cleanly."""
    for streak in db.query(Streak).filter(Streak.owner_id == owner_id).all():
        db.delete(streak)
    db.commit()


def seed_demo_streaks(db, owner_id: str, days: int = 90) -> None:
    """Replay `days` of activity through the engine so history is realistic.

    Each streak gets a daily hit rate; missed stretches longer than the
    grace period break the run and land in past_streaks.
    """
    engine = StreakEngine(db)
    start = utcnow() - timedelta(days=days)

    ids = []
    for title, description, color in DEMO_STREAKS:
        ctx = CallContext(owner_id=owner_id, now=start)
        ids.append(engine.create(ctx, title=title, description=description, color=color).id)

    for streak_id in ids:
        hit_rate = random.uniform(0.55, 0.95)
        for day in range(1, days + 1):
            if random.random() > hit_rate:
                continue
            now = start + timedelta(days=day, hours=random.randint(6, 21))
            engine.extend(CallContext(owner_id=owner_id, now=now), streak_id, 0)

    print(f"Seeded {len(ids)} demo streaks for {owner_id}")


def main():
    parser = argparse.ArgumentParser(description="Seed demo streaks for one user")
    parser.add_argument("--user", default="demo-user")
    parser.add_argument("--days", type=int, default=90)
    args = parser.parse_args()

    Base.metadata.create_all(bind=db_engine)
    db = SessionLocal()
    try:
        clear_user_streaks(db, args.user)
        seed_demo_streaks(db, args.user, days=args.days)
    finally:
        db.close()


if __name__ == "__main__":
    main()
