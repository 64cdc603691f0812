"""
Clock -- Injectable time source for report metadata.

Responsibility:
    Report generation stamps each ``BudgetReport`` with a ``generated_at``
    timestamp.  Services receive a ``Clock`` so that engine and assembler code
    never call ``datetime.now()`` directly and tests can pin the timestamp.

Architecture position:
    Kernel > Domain -- pure, zero I/O (``SystemClock`` is the one sanctioned
    time boundary).
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        ``now()`` returns a timezone-aware ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...


class SystemClock(Clock):
    """Production clock returning the actual UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` always returns the pinned time.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )

    def now(self) -> datetime:
        return self._fixed_time
