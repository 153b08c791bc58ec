import os
from datetime import datetime, timedelta, timezone

import pytest

# Use in-memory sqlite for tests; must be set before streak_trackr is imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def day0():
    return datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock(day0):
    return Clock(day0)


@pytest.fixture()
def fresh_tables():
    from streak_trackr.db import Base, engine  # noqa: WPS433
    import streak_trackr.store  # noqa: F401,WPS433  (registers every model)

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(fresh_tables):
    from streak_trackr.db import SessionLocal  # noqa: WPS433

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(clock):
    # Import after env is set so engine is created with sqlite
    from fastapi.testclient import TestClient  # noqa: WPS433
    from streak_trackr.api.deps import get_now  # noqa: WPS433
    from streak_trackr.db import Base, engine  # noqa: WPS433
    from streak_trackr.main import app  # noqa: WPS433

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_now] = lambda: clock.now
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)
