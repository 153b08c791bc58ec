"""Errors raised by the streak engine and record store.

The API layer maps each class to an HTTP status in `main.py`; the engine
never deals with transport concerns.
"""


class StreakError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(StreakError):
    """Id does not exist or belongs to another user."""

    status_code = 404


class ValidationError(StreakError):
    status_code = 422


class InternalError(StreakError):
    """The store broke one of its own guarantees (e.g. a write vanished)."""

    status_code = 500
