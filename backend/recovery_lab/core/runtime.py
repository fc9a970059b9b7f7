"""
Clock and identifier sources.

Everything time- or id-dependent in the planning core takes one of these as
an optional argument, so tests can pin timestamps and generated ids.
"""
from datetime import datetime, timezone
from typing import Optional, Protocol
from uuid import uuid4


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        ...


class IdGenerator(Protocol):
    """Source of short unique suffixes for generated ids."""

    def next_id(self, prefix: str = "") -> str:
        ...


def ensure_utc(instant: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare against clock readings."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to a single instant."""

    def __init__(self, instant: datetime):
        self.instant = ensure_utc(instant)

    def now(self) -> datetime:
        return self.instant


class RandomIdGenerator:
    """Random 8-character hex suffixes."""

    def next_id(self, prefix: str = "") -> str:
        suffix = uuid4().hex[:8]
        return f"{prefix}-{suffix}" if prefix else suffix


class SequentialIdGenerator:
    """Deterministic counter-based ids: prefix-0001, prefix-0002, ..."""

    def __init__(self, start: int = 1):
        self._counter = start

    def next_id(self, prefix: str = "") -> str:
        suffix = f"{self._counter:04d}"
        self._counter += 1
        return f"{prefix}-{suffix}" if prefix else suffix


_default_clock: Optional[Clock] = None
_default_id_generator: Optional[IdGenerator] = None


def get_clock() -> Clock:
    """Get global clock instance."""
    global _default_clock
    if _default_clock is None:
        _default_clock = SystemClock()
    return _default_clock


def get_id_generator() -> IdGenerator:
    """Get global id generator instance."""
    global _default_id_generator
    if _default_id_generator is None:
        _default_id_generator = RandomIdGenerator()
    return _default_id_generator
