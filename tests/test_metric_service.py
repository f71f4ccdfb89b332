"""Tests for tracked metrics."""

from datetime import UTC, date, datetime, timedelta

import pytest

from nutrition_mcp.domain.errors import ConflictError, NotFoundError, ValidationFailure
from nutrition_mcp.domain.metrics import MetricKind, MetricResolution
from nutrition_mcp.gateway import formatting
from nutrition_mcp.services.metrics import MetricService
from tests.fakes import USER_ID, InMemoryDatabase


def test_daily_metric_replaces_entry_for_same_day(
    metric_service: MetricService, database: InMemoryDatabase
) -> None:
    metric_service.create_metric(
        USER_ID, "Weight", "lbs", MetricResolution.DAILY, MetricKind.NUMERIC
    )
    day = date(2025, 3, 14)

    metric_service.log_metric(USER_ID, "Weight", 180.5, day)
    metric, entry = metric_service.log_metric(USER_ID, "Weight", 179, day)

    assert len(database.metric_entries) == 1
    assert entry.value == 179
    assert entry.recorded_at == datetime(2025, 3, 14, tzinfo=UTC)
    assert formatting.metric_logged(metric, entry) == (
        "Weight: logged 179 lbs on 2025-03-14"
    )


def test_timestamped_metric_appends(
    metric_service: MetricService, database: InMemoryDatabase
) -> None:
    metric_service.create_metric(
        USER_ID, "Workout", None, MetricResolution.TIMESTAMPED, MetricKind.CHECKIN
    )

    metric_service.log_metric(USER_ID, "Workout", None)
    metric, entry = metric_service.log_metric(
        USER_ID, "Workout", None, date(2000, 1, 1)
    )

    assert len(database.metric_entries) == 2
    # The date argument does not apply to timestamped metrics.
    assert entry.entry_date == datetime.now(tz=UTC).date()
    assert formatting.metric_logged(metric, entry).startswith("Workout: checked in on")


def test_value_must_match_kind(metric_service: MetricService) -> None:
    metric_service.create_metric(
        USER_ID, "Steps", "steps", MetricResolution.DAILY, MetricKind.NUMERIC
    )
    metric_service.create_metric(
        USER_ID, "Meditate", None, MetricResolution.DAILY, MetricKind.CHECKIN
    )

    with pytest.raises(ValidationFailure, match="a value is required"):
        metric_service.log_metric(USER_ID, "Steps", None)
    with pytest.raises(ValidationFailure, match="value should not be provided"):
        metric_service.log_metric(USER_ID, "Meditate", 1)


def test_unknown_and_duplicate_metrics(metric_service: MetricService) -> None:
    metric_service.create_metric(
        USER_ID, "Steps", None, MetricResolution.DAILY, MetricKind.NUMERIC
    )

    with pytest.raises(ConflictError, match='A metric named "Steps" already exists.'):
        metric_service.create_metric(
            USER_ID, "Steps", None, MetricResolution.DAILY, MetricKind.NUMERIC
        )
    with pytest.raises(NotFoundError, match="Use create_metric first."):
        metric_service.log_metric(USER_ID, "Sleep", 8)
    with pytest.raises(NotFoundError):
        metric_service.delete_metric(USER_ID, "Sleep")


def test_get_entries_uses_inclusive_days(metric_service: MetricService) -> None:
    metric_service.create_metric(
        USER_ID, "Weight", None, MetricResolution.DAILY, MetricKind.NUMERIC
    )
    for offset, value in enumerate([181, 180, 179]):
        metric_service.log_metric(
            USER_ID, "Weight", value, date(2025, 3, 12) + timedelta(days=offset)
        )

    metric, entries = metric_service.get_entries(
        USER_ID, "Weight", date(2025, 3, 13), date(2025, 3, 14)
    )

    assert [entry.value for entry in entries] == [180, 179]
    assert formatting.metric_entries(
        metric, entries, date(2025, 3, 13), date(2025, 3, 14)
    ) == "Weight (2025-03-13 to 2025-03-14):\n- 2025-03-13: 180\n- 2025-03-14: 179"


def test_recent_entries_are_newest_first(metric_service: MetricService) -> None:
    metric_service.create_metric(
        USER_ID, "Weight", None, MetricResolution.DAILY, MetricKind.NUMERIC
    )
    metric_service.create_metric(
        USER_ID, "Mood", None, MetricResolution.DAILY, MetricKind.NUMERIC
    )
    metric_service.log_metric(USER_ID, "Weight", 181, date(2025, 3, 12))
    metric_service.log_metric(USER_ID, "Weight", 180, date(2025, 3, 13))

    recent = metric_service.recent_entries(
        USER_ID, date(2025, 3, 10), date(2025, 3, 14)
    )

    assert [metric.name for metric, _ in recent] == ["Mood", "Weight"]
    assert recent[0][1] == []
    assert [entry.value for entry in recent[1][1]] == [180, 181]


def test_delete_metric_removes_entries(
    metric_service: MetricService, database: InMemoryDatabase
) -> None:
    metric_service.create_metric(
        USER_ID, "Weight", None, MetricResolution.DAILY, MetricKind.NUMERIC
    )
    metric_service.log_metric(USER_ID, "Weight", 180)

    metric_service.delete_metric(USER_ID, "Weight")

    assert database.metric_entries == []
    assert metric_service.list_metrics(USER_ID) == []
