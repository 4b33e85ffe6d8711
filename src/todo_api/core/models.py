"""Domain models for the Todo API."""

from enum import Enum


class Priority(str, Enum):
    """Priority level for a todo item."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Reporting order used by every priority breakdown.
PRIORITY_ORDER = (Priority.HIGH, Priority.MEDIUM, Priority.LOW)


class TrendPeriod(str, Enum):
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"

    @property
    def days(self) -> int:
        return int(self.value.rstrip("d"))


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"

    @property
    def date_trunc_unit(self) -> str:
        return "week" if self is Granularity.WEEKLY else "day"


class ValidationStrictness(str, Enum):
    """Validation level applied by the testing harness."""

    NORMAL = "normal"
    STRICT = "strict"
    LOOSE = "loose"
