import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from streak_trackr.api.streaks import router as streaks_router
from streak_trackr.api.settings import router as settings_router
from streak_trackr.core.config import settings
from streak_trackr.core.errors import InternalError, StreakError
from streak_trackr.core.log import setup_logging
from streak_trackr.db import Base, engine
from streak_trackr.models.streak import Streak  # noqa: F401  (import ensures table is registered)
from streak_trackr.models.past_streak import PastStreak  # noqa: F401
from streak_trackr.models.user_settings import UserSettings  # noqa: F401

setup_logging()
logger = logging.getLogger("streak_trackr.api")

app = FastAPI(title="Streak Trackr")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StreakError)
async def streak_error_handler(request: Request, exc: StreakError):
    if isinstance(exc, InternalError):
        logger.error("Store invariant broken on %s %s: %s", request.method, request.url.path, exc.detail)
    else:
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Create DB tables (streaks, past_streaks, user_settings) on startup
Base.metadata.create_all(bind=engine)

app.include_router(streaks_router)
app.include_router(settings_router)


@app.get("/")
def root():
    return {"message": "Streak Trackr backend is running"}
