from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from streak_trackr.core.config import settings

# SQLAlchemy Base class for models to inherit
Base = declarative_base()


def _engine_args(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}  # helps avoid stale connections
    args = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        # One shared connection, otherwise every checkout gets an empty db
        args["poolclass"] = StaticPool
    return args


# Create SQLAlchemy engine (Postgres in production, SQLite locally/tests)
engine = create_engine(settings.database_url, **_engine_args(settings.database_url))

# Factory that creates DB sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Dependency we will use in FastAPI routes
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
