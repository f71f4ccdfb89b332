"""Supabase implementation for tracked metrics."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from supabase import Client

from nutrition_mcp.adapters.supabase_errors import duplicate_guard
from nutrition_mcp.domain.metrics import (
    Metric,
    MetricEntry,
    MetricKind,
    MetricResolution,
)
from nutrition_mcp.services.metrics import MetricRepository

METRICS_TABLE = "metrics"
ENTRIES_TABLE = "metric_entries"


@dataclass
class SupabaseMetricRepository(MetricRepository):
    """Supabase-backed repository for metrics and entries."""

    client: Client

    def create_metric(self, owner_id: str, payload: dict[str, object]) -> Metric:
        """Create a metric definition."""
        with duplicate_guard():
            response = (
                self.client.table(METRICS_TABLE)
                .insert({"owner_id": owner_id, **payload})
                .execute()
            )
        if not response.data:
            raise RuntimeError("Failed to create metric")
        return parse_metric(response.data[0])

    def get_metric(self, owner_id: str, name: str) -> Metric | None:
        """Return a metric by name, if present."""
        response = (
            self.client.table(METRICS_TABLE)
            .select("*")
            .eq("owner_id", owner_id)
            .eq("name", name)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_metric(response.data[0])

    def list_metrics(self, owner_id: str) -> list[Metric]:
        """Return metrics ordered by name."""
        response = (
            self.client.table(METRICS_TABLE)
            .select("*")
            .eq("owner_id", owner_id)
            .order("name")
            .execute()
        )
        return [parse_metric(row) for row in response.data or []]

    def upsert_daily_entry(
        self,
        metric_id: UUID,
        entry_date: date,
        recorded_at: datetime,
        value: float | None,
    ) -> MetricEntry:
        """Write the day's entry, replacing an earlier one."""
        response = (
            self.client.table(ENTRIES_TABLE)
            .upsert(
                {
                    **_entry_payload(metric_id, entry_date, recorded_at, value),
                    "day_key": entry_date.isoformat(),
                },
                on_conflict="metric_id,day_key",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to write metric entry")
        return parse_entry(response.data[0])

    def append_entry(
        self,
        metric_id: UUID,
        entry_date: date,
        recorded_at: datetime,
        value: float | None,
    ) -> MetricEntry:
        """Insert a timestamped entry."""
        response = (
            self.client.table(ENTRIES_TABLE)
            .insert(_entry_payload(metric_id, entry_date, recorded_at, value))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to write metric entry")
        return parse_entry(response.data[0])

    def list_entries(
        self, metric_id: UUID, start: datetime, end: datetime
    ) -> list[MetricEntry]:
        """Return entries recorded in [start, end), oldest first."""
        response = (
            self.client.table(ENTRIES_TABLE)
            .select("*")
            .eq("metric_id", str(metric_id))
            .gte("recorded_at", start.isoformat())
            .lt("recorded_at", end.isoformat())
            .order("recorded_at")
            .execute()
        )
        return [parse_entry(row) for row in response.data or []]

    def delete_metric(self, owner_id: str, name: str) -> bool:
        """Delete a metric; entries cascade in the database."""
        response = (
            self.client.table(METRICS_TABLE)
            .delete()
            .eq("owner_id", owner_id)
            .eq("name", name)
            .execute()
        )
        return bool(response.data)


def _entry_payload(
    metric_id: UUID, entry_date: date, recorded_at: datetime, value: float | None
) -> dict[str, object]:
    return {
        "metric_id": str(metric_id),
        "entry_date": entry_date.isoformat(),
        "recorded_at": recorded_at.isoformat(),
        "value": value,
    }


def parse_metric(row: dict[str, object]) -> Metric:
    """Build a metric from a metrics row."""
    unit = row.get("unit")
    return Metric(
        id=UUID(str(row["id"])),
        owner_id=str(row["owner_id"]),
        name=str(row["name"]),
        unit=str(unit) if unit else None,
        resolution=MetricResolution(str(row["resolution"])),
        kind=MetricKind(str(row["kind"])),
    )


def parse_entry(row: dict[str, object]) -> MetricEntry:
    """Build a metric entry from a metric_entries row."""
    value = row.get("value")
    return MetricEntry(
        id=UUID(str(row["id"])),
        metric_id=UUID(str(row["metric_id"])),
        entry_date=date.fromisoformat(str(row["entry_date"])[:10]),
        recorded_at=datetime.fromisoformat(str(row["recorded_at"])),
        value=float(value) if isinstance(value, int | float) else None,
    )
