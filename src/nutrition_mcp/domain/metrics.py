"""Domain models for tracked metrics."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from uuid import UUID


class MetricResolution(StrEnum):
    """How many entries a metric accepts per day."""

    DAILY = "daily"
    TIMESTAMPED = "timestamped"


class MetricKind(StrEnum):
    """Whether a metric entry carries a value."""

    NUMERIC = "numeric"
    CHECKIN = "checkin"


@dataclass(frozen=True)
class Metric:
    """A metric definition owned by a user."""

    id: UUID
    owner_id: str
    name: str
    unit: str | None
    resolution: MetricResolution
    kind: MetricKind


@dataclass(frozen=True)
class MetricEntry:
    """A single recorded metric value or check-in."""

    id: UUID
    metric_id: UUID
    entry_date: date
    recorded_at: datetime
    value: float | None
