"""Service for user-defined tracked metrics."""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol
from uuid import UUID

from nutrition_mcp.domain.errors import (
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    ValidationFailure,
)
from nutrition_mcp.domain.metrics import (
    Metric,
    MetricEntry,
    MetricKind,
    MetricResolution,
)
from nutrition_mcp.services.dates import day_window, start_of_day

_logger = logging.getLogger(__name__)


class MetricRepository(Protocol):
    """Persistence interface for metrics and their entries."""

    def create_metric(self, owner_id: str, payload: dict[str, object]) -> Metric:
        """Create a metric; raise DuplicateRecordError on name clash."""

    def get_metric(self, owner_id: str, name: str) -> Metric | None:
        """Return a metric by name, if present."""

    def list_metrics(self, owner_id: str) -> list[Metric]:
        """Return all metrics of an owner."""

    def upsert_daily_entry(
        self,
        metric_id: UUID,
        entry_date: date,
        recorded_at: datetime,
        value: float | None,
    ) -> MetricEntry:
        """Insert or replace the single entry for (metric, entry_date)."""

    def append_entry(
        self,
        metric_id: UUID,
        entry_date: date,
        recorded_at: datetime,
        value: float | None,
    ) -> MetricEntry:
        """Insert a new entry unconditionally."""

    def list_entries(
        self, metric_id: UUID, start: datetime, end: datetime
    ) -> list[MetricEntry]:
        """Return entries recorded in [start, end), oldest first."""

    def delete_metric(self, owner_id: str, name: str) -> bool:
        """Delete a metric with its entries; False when absent."""


@dataclass
class MetricService:
    """Application service for metric definitions and entries."""

    repository: MetricRepository

    def create_metric(
        self,
        owner_id: str,
        name: str,
        unit: str | None,
        resolution: MetricResolution,
        kind: MetricKind,
    ) -> Metric:
        """Define a metric, reporting a conflict when the name is taken."""
        try:
            return self.repository.create_metric(
                owner_id,
                {
                    "name": name,
                    "unit": unit,
                    "resolution": resolution.value,
                    "kind": kind.value,
                },
            )
        except DuplicateRecordError as exc:
            raise ConflictError(f'A metric named "{name}" already exists.') from exc

    def list_metrics(self, owner_id: str) -> list[Metric]:
        """List metrics by name."""
        return sorted(self.repository.list_metrics(owner_id), key=lambda m: m.name)

    def log_metric(
        self,
        owner_id: str,
        name: str,
        value: float | None,
        day: date | None = None,
    ) -> tuple[Metric, MetricEntry]:
        """Record a value; daily metrics replace, timestamped metrics append."""
        metric = self.repository.get_metric(owner_id, name)
        if metric is None:
            raise NotFoundError(
                f'No metric named "{name}" found. Use create_metric first.'
            )
        if metric.kind is MetricKind.NUMERIC and value is None:
            raise ValidationFailure(
                f'Metric "{name}" is numeric — a value is required.'
            )
        if metric.kind is MetricKind.CHECKIN and value is not None:
            raise ValidationFailure(
                f'Metric "{name}" is checkin — value should not be provided.'
            )

        now = datetime.now(tz=UTC)
        if metric.resolution is MetricResolution.DAILY:
            entry_date = day or now.date()
            entry = self.repository.upsert_daily_entry(
                metric.id, entry_date, start_of_day(entry_date), value
            )
        else:
            entry = self.repository.append_entry(metric.id, now.date(), now, value)
        _logger.info("Logged metric entry for %s on %s", metric.id, entry.entry_date)
        return metric, entry

    def get_entries(
        self, owner_id: str, name: str, first: date, last: date
    ) -> tuple[Metric, list[MetricEntry]]:
        """Return a metric and its entries for first through last inclusive."""
        metric = self.repository.get_metric(owner_id, name)
        if metric is None:
            raise NotFoundError(f'No metric named "{name}" found.')
        start, end = day_window(first, last)
        return metric, self.repository.list_entries(metric.id, start, end)

    def recent_entries(
        self, owner_id: str, since: date, until: date
    ) -> list[tuple[Metric, list[MetricEntry]]]:
        """Return every metric with its entries since a day, newest first."""
        start, end = day_window(since, until)
        return [
            (
                metric,
                sorted(
                    self.repository.list_entries(metric.id, start, end),
                    key=lambda entry: entry.recorded_at,
                    reverse=True,
                ),
            )
            for metric in self.list_metrics(owner_id)
        ]

    def delete_metric(self, owner_id: str, name: str) -> None:
        """Delete a metric and all of its entries."""
        if not self.repository.delete_metric(owner_id, name):
            raise NotFoundError(f'No metric named "{name}" found.')
