from datetime import datetime, timedelta, timezone

import pytest

from streak_trackr.core.errors import NotFoundError, ValidationError
from streak_trackr.core.time_utils import ensure_utc
from streak_trackr.engine import CallContext, StreakEngine, extend_run, is_broken


def ctx_at(now, owner="alice"):
    return CallContext(owner_id=owner, now=now)


def test_is_broken_is_strict_at_grace():
    end = datetime(2025, 1, 1, tzinfo=timezone.utc)
    grace = timedelta(days=4)
    assert not is_broken(end, end + grace, grace)
    assert is_broken(end, end + grace + timedelta(microseconds=1), grace)


def test_default_grace_follows_settings(day0, monkeypatch):
    from streak_trackr.core.config import settings

    end = day0
    now = day0 + timedelta(days=3)
    assert not is_broken(end, now)
    monkeypatch.setattr(settings, "grace_period_days", 2)
    assert is_broken(end, now)
    assert extend_run(day0, end, 0, now).was_reset


def test_extend_run_within_grace_only_moves_end(day0):
    now = day0 + timedelta(days=2)
    t = extend_run(day0, day0, 0, now)
    assert t.start == day0
    assert t.end == now
    assert t.longest == 0
    assert not t.was_reset


def test_extend_run_after_grace_archives(day0):
    end = day0 + timedelta(days=2)
    now = day0 + timedelta(days=8)
    t = extend_run(day0, end, 1, now)
    assert t.was_reset
    assert t.archived == (day0, end)
    assert t.longest == 3
    assert t.start == t.end == now


def test_create_starts_one_day_run(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0), title="Read", color="#1A2b3c")

    assert ensure_utc(s.current_start_date) == day0
    assert ensure_utc(s.current_end_date) == day0
    assert s.longest_streak == 0
    assert s.past_streaks == []
    assert s.position == 1
    assert s.color == "#1A2b3c"


def test_create_defaults_color_and_appends_position(db, day0):
    engine = StreakEngine(db)
    first = engine.create(ctx_at(day0))
    second = engine.create(ctx_at(day0))
    other_user = engine.create(ctx_at(day0, owner="bob"))

    assert first.color == "#000000"
    assert first.title is None
    assert second.position == first.position + 1
    assert other_user.position == 1


def test_create_rejects_bad_color(db, day0):
    engine = StreakEngine(db)
    with pytest.raises(ValidationError):
        engine.create(ctx_at(day0), title="x", color="red")
    with pytest.raises(ValidationError):
        engine.create(ctx_at(day0), title="x", color="#aabbcc\n")
    assert engine.list_streaks(ctx_at(day0)) == []


def test_stored_longest_only_moves_when_run_closes(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0))
    for day in range(1, 10):
        out = engine.extend(ctx_at(day0 + timedelta(days=day)), s.id, 0)
    assert out.streak.longest_streak == 0


def test_failed_breaking_extend_rolls_back(db, day0, monkeypatch):
    from streak_trackr.store import StreakStore

    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0))
    engine.extend(ctx_at(day0 + timedelta(days=2)), s.id, 0)

    def boom(self, owner_id, offset):
        raise RuntimeError("settings write failed")

    monkeypatch.setattr(StreakStore, "set_user_timezone_offset", boom)
    with pytest.raises(RuntimeError):
        engine.extend(ctx_at(day0 + timedelta(days=9)), s.id, 3)
    monkeypatch.undo()

    after = engine.get(ctx_at(day0), s.id)
    assert after.past_streaks == []
    assert after.longest_streak == 0
    assert ensure_utc(after.current_start_date) == day0
    assert ensure_utc(after.current_end_date) == day0 + timedelta(days=2)
    assert engine.timezone_offset(ctx_at(day0)) == 0


def test_same_day_extend_is_idempotent(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0 - timedelta(days=1)))

    morning = day0.replace(hour=8)
    evening = day0.replace(hour=20)
    first = engine.extend(ctx_at(morning), s.id, 0)
    second = engine.extend(ctx_at(evening), s.id, 0)

    assert not first.was_reset and not second.was_reset
    assert ensure_utc(second.streak.current_start_date) == day0 - timedelta(days=1)
    assert ensure_utc(second.streak.current_end_date) == evening
    assert second.streak.past_streaks == []


def test_grace_boundary(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0))

    exact = engine.extend(ctx_at(day0 + timedelta(days=4)), s.id, 0)
    assert not exact.was_reset

    later = day0 + timedelta(days=8, microseconds=1)
    broken = engine.extend(ctx_at(later), s.id, 0)
    assert broken.was_reset
    assert len(broken.streak.past_streaks) == 1


def test_end_to_end_breakage(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0))

    day2 = day0 + timedelta(days=2)
    out = engine.extend(ctx_at(day2), s.id, 0)
    assert not out.was_reset
    assert ensure_utc(out.streak.current_start_date) == day0
    assert ensure_utc(out.streak.current_end_date) == day2

    day8 = day0 + timedelta(days=8)
    out = engine.extend(ctx_at(day8), s.id, 0)
    assert out.was_reset
    past = out.streak.past_streaks
    assert [p.seq for p in past] == [1]
    assert ensure_utc(past[0].start) == day0
    assert ensure_utc(past[0].end) == day2
    assert out.streak.longest_streak == 3
    assert ensure_utc(out.streak.current_start_date) == day8
    assert ensure_utc(out.streak.current_end_date) == day8


def test_archive_numbering_and_longest_monotonic(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0))

    # run lengths 5, 2, 4 separated by 10 day gaps
    now = day0
    boundaries = []
    longest_seen = []
    for length in (5, 2, 4):
        start = now
        for _ in range(length - 1):
            now = now + timedelta(days=1)
            engine.extend(ctx_at(now), s.id, 0)
        boundaries.append((start, now))
        now = now + timedelta(days=10)
        out = engine.extend(ctx_at(now), s.id, 0)
        assert out.was_reset
        longest_seen.append(out.streak.longest_streak)

    past = engine.get(ctx_at(now), s.id).past_streaks
    assert [p.seq for p in past] == [1, 2, 3]
    assert [(ensure_utc(p.start), ensure_utc(p.end)) for p in past] == boundaries
    assert longest_seen == [5, 5, 5]


def test_manual_end_archives_regardless_of_elapsed(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0))
    engine.extend(ctx_at(day0 + timedelta(days=1)), s.id, 0)

    now = day0 + timedelta(days=1, hours=2)
    out = engine.end(ctx_at(now), s.id)

    assert out.was_ended_manually
    assert out.streak.longest_streak == 2
    assert len(out.streak.past_streaks) == 1
    assert ensure_utc(out.streak.current_start_date) == now


def test_extend_persists_timezone_offset(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0))
    assert engine.timezone_offset(ctx_at(day0)) == 0

    engine.extend(ctx_at(day0), s.id, -5.5)
    assert engine.timezone_offset(ctx_at(day0)) == -5.5
    engine.extend(ctx_at(day0), s.id, 2)
    assert engine.timezone_offset(ctx_at(day0)) == 2


def test_extend_rejects_offset_out_of_range(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0))
    with pytest.raises(ValidationError):
        engine.extend(ctx_at(day0), s.id, 20)


def test_finished_length_uses_local_days(db, day0):
    engine = StreakEngine(db)
    # 23:30 UTC on day 0 is already the next morning at +2
    start = day0.replace(hour=23, minute=30)
    s = engine.create(ctx_at(start))
    engine.extend(ctx_at(start + timedelta(hours=1)), s.id, 2)

    out = engine.extend(ctx_at(start + timedelta(days=6)), s.id, 2)
    assert out.was_reset
    assert out.streak.longest_streak == 1


def test_other_owner_gets_not_found_and_no_mutation(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0), title="mine")
    intruder = ctx_at(day0 + timedelta(days=9), owner="mallory")

    with pytest.raises(NotFoundError):
        engine.extend(intruder, s.id, 0)
    with pytest.raises(NotFoundError):
        engine.end(intruder, s.id)
    with pytest.raises(NotFoundError):
        engine.update(intruder, s.id, title="hacked")
    with pytest.raises(NotFoundError):
        engine.delete(intruder, s.id)

    after = engine.get(ctx_at(day0), s.id)
    assert after.title == "mine"
    assert after.past_streaks == []
    assert ensure_utc(after.current_end_date) == day0
    # mallory's failed extend must not have created her settings either
    assert engine.timezone_offset(intruder) == 0


def test_update_leaves_run_state_alone(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0), title="old", description="d")
    engine.extend(ctx_at(day0 + timedelta(days=1)), s.id, 0)

    later = day0 + timedelta(days=1, hours=3)
    out = engine.update(ctx_at(later), s.id, title="new", color="#ffffff")

    assert out.title == "new"
    assert out.description == "d"
    assert out.color == "#ffffff"
    assert ensure_utc(out.updated_at) == later
    assert ensure_utc(out.current_start_date) == day0
    assert ensure_utc(out.current_end_date) == day0 + timedelta(days=1)


def test_update_rejects_bad_color(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0))
    with pytest.raises(ValidationError):
        engine.update(ctx_at(day0), s.id, color="#12345")


def test_delete_returns_snapshot_and_removes(db, day0):
    engine = StreakEngine(db)
    s = engine.create(ctx_at(day0), title="bye")
    engine.end(ctx_at(day0 + timedelta(hours=1)), s.id)

    gone = engine.delete(ctx_at(day0), s.id)
    assert gone.title == "bye"
    assert len(gone.past_streaks) == 1
    with pytest.raises(NotFoundError):
        engine.get(ctx_at(day0), s.id)
    with pytest.raises(NotFoundError):
        engine.delete(ctx_at(day0), s.id)


def test_list_orders_by_position_then_newest(db, day0):
    engine = StreakEngine(db)
    a = engine.create(ctx_at(day0), title="a")
    b = engine.create(ctx_at(day0 + timedelta(minutes=1)), title="b")
    c = engine.create(ctx_at(day0 + timedelta(minutes=2)), title="c")

    engine.reorder(ctx_at(day0), [(a.id, 2), (b.id, 2), (c.id, 1)])

    titles = [s.title for s in engine.list_streaks(ctx_at(day0))]
    assert titles == ["c", "b", "a"]


def test_reorder_is_all_or_nothing(db, day0):
    engine = StreakEngine(db)
    a = engine.create(ctx_at(day0), title="a")
    foreign = engine.create(ctx_at(day0, owner="bob"), title="theirs")

    with pytest.raises(NotFoundError):
        engine.reorder(ctx_at(day0), [(a.id, 10), (foreign.id, 1)])
    with pytest.raises(NotFoundError):
        engine.reorder(ctx_at(day0), [(a.id, 10), (9999, 1)])

    assert engine.get(ctx_at(day0), a.id).position == 1
    assert engine.get(ctx_at(day0, owner="bob"), foreign.id).position == 1


def test_client_datetime_applies_stored_offset(db, day0):
    engine = StreakEngine(db)
    engine.set_timezone(ctx_at(day0), 3)
    local = engine.client_datetime(ctx_at(day0))
    assert local.tzinfo is None
    assert local.hour == 15
