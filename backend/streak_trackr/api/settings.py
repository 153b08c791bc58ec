from fastapi import APIRouter, Depends

from streak_trackr.api.deps import get_context, get_engine
from streak_trackr.engine import CallContext, StreakEngine
from streak_trackr.schemas.streak import TimezoneUpdate, UserSettingsRead

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=UserSettingsRead)
def get_settings(
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    # Users who never extended anything are on UTC
    return UserSettingsRead(timezone_offset=engine.timezone_offset(ctx))


@router.put("/timezone", response_model=UserSettingsRead)
def set_timezone(
    payload: TimezoneUpdate,
    ctx: CallContext = Depends(get_context),
    engine: StreakEngine = Depends(get_engine),
):
    offset = engine.set_timezone(ctx, payload.timezone_offset)
    return UserSettingsRead(timezone_offset=offset)
