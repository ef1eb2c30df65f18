"""Identity and clock capabilities injected into mutating operations."""

from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def new_id() -> str:
    """Return a fresh random record id."""
    return str(uuid4())


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(tz=UTC)
