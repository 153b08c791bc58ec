from datetime import datetime

from fastapi import APIRouter, Depends

from streak_trackr.api.deps import get_context, get_engine
from streak_trackr.core.time_utils import apply_offset, run_length, same_local_day
from streak_trackr.engine import CallContext, StreakEngine
from streak_trackr.milestones import milestone_progress
from streak_trackr.models.streak import Streak
from streak_trackr.schemas.streak import (
    ClientDateTime,
    EndResult,
    ExtendRequest,
    ExtendResult,
    MilestonesRead,
    PastStreakRead,
    ReorderRequest,
    ReorderResult,
    StreakCreate,
    StreakRead,
    StreakUpdate,
)

router = APIRouter(prefix="/streaks", tags=["streaks"])


def _to_read(streak: Streak, offset: float, now: datetime) -> StreakRead:
    """Build the response for one streak with dates in the caller's timezone."""
    current_length = run_length(streak.current_start_date, streak.current_end_date, offset)
    progress = milestone_progress(current_length)

    return StreakRead(
        id=streak.id,
        title=streak.title,
        description=streak.description,
        color=streak.color,
        current_start_date=apply_offset(streak.current_start_date, offset),
        current_end_date=apply_offset(streak.current_end_date, offset),
        # Stored value only moves when a run closes; count the active run too
        longest_streak=max(streak.longest_streak, current_length),
        position=streak.position,
        past_streaks=[
            PastStreakRead(
                seq=p.seq,
                start=apply_offset(p.start, offset),
                end=apply_offset(p.end, offset),
            )
            for p in streak.past_streaks
        ],
        created_at=apply_offset(streak.created_at, offset),
        updated_at=apply_offset(streak.updated_at, offset),
        current_length=current_length,
        # The UI disables the extend button once this is true
        extended_today=same_local_day(streak.current_end_date, now, offset),
        milestones=MilestonesRead(
            earned=list(progress.earned),
            next=progress.next,
            days_remaining=progress.days_remaining,
        ),
    )


@router.get("/", response_model=list[StreakRead])
def list_streaks(
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    """
    List the caller's streaks in display order (position, newest first on ties).
    """
    offset = engine.timezone_offset(ctx)
    return [_to_read(s, offset, ctx.now) for s in engine.list_streaks(ctx)]


@router.get("/client-datetime", response_model=ClientDateTime)
def get_client_datetime(
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    return ClientDateTime(now=engine.client_datetime(ctx), timezone_offset=engine.timezone_offset(ctx))


@router.put("/order", response_model=ReorderResult)
def reorder_streaks(
    payload: ReorderRequest,
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    """Apply every position at once; one unknown id rejects the whole batch."""
    updated = engine.reorder(ctx, [(item.id, item.position) for item in payload.items])
    return ReorderResult(updated=updated)


@router.post("/", response_model=StreakRead)
def create_streak(
    payload: StreakCreate,
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    streak = engine.create(
        ctx,
        title=payload.title,
        description=payload.description,
        color=payload.color,
    )
    return _to_read(streak, engine.timezone_offset(ctx), ctx.now)


@router.get("/{streak_id}", response_model=StreakRead)
def get_streak(
    streak_id: int,
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    streak = engine.get(ctx, streak_id)
    return _to_read(streak, engine.timezone_offset(ctx), ctx.now)


@router.patch("/{streak_id}", response_model=StreakRead)
def update_streak(
    streak_id: int,
    payload: StreakUpdate,
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    streak = engine.update(
        ctx,
        streak_id,
        title=payload.title,
        description=payload.description,
        color=payload.color,
    )
    return _to_read(streak, engine.timezone_offset(ctx), ctx.now)


@router.delete("/{streak_id}", response_model=StreakRead)
def delete_streak(
    streak_id: int,
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    offset = engine.timezone_offset(ctx)
    streak = engine.delete(ctx, streak_id)
    return _to_read(streak, offset, ctx.now)


@router.post("/{streak_id}/extend", response_model=ExtendResult)
def extend_streak(
    streak_id: int,
    payload: ExtendRequest,
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    """
    Record today's activity.

    Within the grace period this moves the end of the run to now. After it
    the old run is archived and a new one starts; `was_reset` tells the
    client which message to show.
    """
    outcome = engine.extend(ctx, streak_id, payload.timezone_offset)
    return ExtendResult(
        streak=_to_read(outcome.streak, payload.timezone_offset, ctx.now),
        was_reset=outcome.was_reset,
    )


@router.post("/{streak_id}/end", response_model=EndResult)
def end_streak(
    streak_id: int,
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    outcome = engine.end(ctx, streak_id)
    return EndResult(
        streak=_to_read(outcome.streak, engine.timezone_offset(ctx), ctx.now),
        was_ended_manually=outcome.was_ended_manually,
    )
