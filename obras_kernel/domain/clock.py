"""
Clock -- Deterministic time abstraction.

Responsibility:
    Provides an injectable clock interface so that engine and lifecycle code
    never call ``datetime.now()`` or ``date.today()`` directly.  Submission,
    approval and payment dates, payment deadlines and days-late figures all
    derive from an injected Clock.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).

Failure modes:
    None.

Audit relevance:
    Every date stamped on a valorization record or its state history is
    traceable to an injected Clock instance, which keeps replays and tests
    deterministic.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        All services that need current time must receive a Clock instance
        via constructor injection.

    Guarantees:
        - ``now()`` returns a timezone-aware ``datetime``.
        - ``today()`` returns the calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def today(self) -> date:
        """Get the current calendar date."""
        return self.now().date()


class SystemClock(Clock):
    """
    Production clock that returns actual system time.

    Non-goals:
        Not suitable for deterministic replay or testing.
    """

    def now(self) -> datetime:
        """Get current system time with timezone."""
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until
          ``advance()``, ``advance_days()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        """
        Initialize with optional fixed time.

        Args:
            fixed_time: If provided, clock starts at this time.
                       If None, uses a default epoch time.
        """
        self._fixed_time = fixed_time or datetime(
            2025, 1, 1, 12, 0, 0, tzinfo=UTC
        )
        self._advance_seconds = 0

    def now(self) -> datetime:
        """Get the fixed/controlled time."""
        return self._fixed_time + timedelta(seconds=self._advance_seconds)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0

    def advance(self, seconds: int = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds

    def advance_days(self, days: int) -> None:
        """Advance the clock by whole days."""
        self.advance(days * 86_400)
