"""JSON endpoints read by the dashboard UI."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, status

from nutrition_mcp.api.auth import require_identity
from nutrition_mcp.domain.errors import ValidationFailure
from nutrition_mcp.domain.identity import CallerIdentity  # noqa: TC001
from nutrition_mcp.services.dates import parse_day, today
from nutrition_mcp.services.summaries import MAX_HISTORY_DAYS

if TYPE_CHECKING:
    from nutrition_mcp.containers import AppContainer
    from nutrition_mcp.domain.meals import MealLogEntry

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

DEFAULT_DAYS = 7
MAX_METRIC_DAYS = 365


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _owner(identity: CallerIdentity) -> str:
    if not identity.subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity"
        )
    return identity.subject


def _days(raw: int | None) -> int:
    return raw if raw and raw > 0 else DEFAULT_DAYS


@router.get("/meals")
def meals_for_day(
    request: Request,
    date: str | None = None,
    identity: CallerIdentity = Depends(require_identity),
) -> dict[str, object]:
    """Return one day's entries with their items and rounded totals."""
    owner_id = _owner(identity)
    try:
        day = parse_day(date) if date else today()
        report = _container(request).summary_service.meal_log(owner_id, day, day)
    except ValidationFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message
        ) from exc
    return {
        "date": day.isoformat(),
        "meals": [_meal_payload(entry) for entry in report.entries],
        "totals": report.totals.rounded(),
    }


@router.get("/metrics")
def recent_metrics(
    request: Request,
    days: int | None = None,
    identity: CallerIdentity = Depends(require_identity),
) -> dict[str, object]:
    """Return every metric with its entries from the last days, newest first."""
    owner_id = _owner(identity)
    window = min(_days(days), MAX_METRIC_DAYS)
    current = today()
    metrics = _container(request).metric_service.recent_entries(
        owner_id, current - timedelta(days=window), current
    )
    return {
        "days": window,
        "metrics": [
            {
                "id": str(metric.id),
                "name": metric.name,
                "unit": metric.unit,
                "resolution": metric.resolution.value,
                "type": metric.kind.value,
                "entries": [
                    {
                        "date": entry.entry_date.isoformat(),
                        "value": entry.value,
                        "timestamp": entry.recorded_at.isoformat(),
                    }
                    for entry in entries
                ],
            }
            for metric, entries in metrics
        ],
    }


@router.get("/nutrition-history")
def nutrition_history(
    request: Request,
    days: int | None = None,
    identity: CallerIdentity = Depends(require_identity),
) -> dict[str, object]:
    """Return a zero-filled daily calorie and macro series."""
    owner_id = _owner(identity)
    window = min(_days(days), MAX_HISTORY_DAYS)
    series = _container(request).summary_service.nutrition_history(
        owner_id, window, today()
    )
    return {
        "days": window,
        "series": [
            {
                "date": point.day.isoformat(),
                "calories": point.calories,
                "protein": point.protein,
                "fat": point.fat,
                "carbs": point.carbs,
            }
            for point in series
        ],
    }


def _meal_payload(entry: MealLogEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "loggedAt": entry.logged_at.isoformat(),
        "timeOfDay": entry.category.value if entry.category else None,
        "schemaName": entry.template_name,
        "notes": entry.notes,
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "calories": item.macros.calories,
                "protein": item.macros.protein,
                "fat": item.macros.fat,
                "carbs": item.macros.carbs,
            }
            for item in entry.items
        ],
    }
