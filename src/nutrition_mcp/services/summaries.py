"""Aggregation of logged meals into totals, breakdowns and series."""

from dataclasses import dataclass
from datetime import UTC, date, timedelta

from nutrition_mcp.domain.meals import UNSPECIFIED_CATEGORY, MealCategory, MealLogEntry
from nutrition_mcp.domain.summaries import (
    DailyNutrition,
    DailySummary,
    MacroTotals,
    MealLogReport,
    round_for_display,
)
from nutrition_mcp.services.dates import day_window
from nutrition_mcp.services.meals import MealLogRepository

MAX_HISTORY_DAYS = 90


@dataclass
class SummaryService:
    """Service for date-range meal queries and rollups."""

    repository: MealLogRepository

    def meal_log(
        self,
        owner_id: str,
        first: date,
        last: date,
        category: MealCategory | None = None,
    ) -> MealLogReport:
        """Return entries for first through last (UTC days) with grand totals."""
        start, end = day_window(first, last)
        entries = self.repository.list_entries(owner_id, start, end, category)
        return MealLogReport(
            start=first, end=last, entries=entries, totals=sum_entries(entries)
        )

    def day_entries(self, owner_id: str, day: date) -> list[MealLogEntry]:
        """Return the entries of a single UTC day."""
        start, end = day_window(day, day)
        return self.repository.list_entries(owner_id, start, end)

    def daily_summary(self, owner_id: str, day: date) -> DailySummary:
        """Return day totals and a per-category breakdown."""
        entries = self.day_entries(owner_id, day)
        by_category: dict[str, MacroTotals] = {}
        for entry in entries:
            key = entry.category.value if entry.category else UNSPECIFIED_CATEGORY
            bucket = by_category.setdefault(key, MacroTotals())
            for item in entry.items:
                bucket.add(item.macros)
        return DailySummary(
            day=day,
            entry_count=len(entries),
            totals=sum_entries(entries),
            by_category=by_category,
        )

    def nutrition_history(
        self, owner_id: str, days: int, last: date
    ) -> list[DailyNutrition]:
        """Return a zero-filled daily series ending on last."""
        days = max(1, min(days, MAX_HISTORY_DAYS))
        first = last - timedelta(days=days - 1)
        start, end = day_window(first, last)
        buckets = {
            first + timedelta(days=offset): MacroTotals() for offset in range(days)
        }
        for entry in self.repository.list_entries(owner_id, start, end):
            bucket = buckets.get(entry.logged_at.astimezone(UTC).date())
            if bucket is None:
                continue
            for item in entry.items:
                bucket.add(item.macros)
        return [_daily_nutrition(day, totals) for day, totals in buckets.items()]


def sum_entries(entries: list[MealLogEntry]) -> MacroTotals:
    """Accumulate all items of the given entries."""
    totals = MacroTotals()
    for entry in entries:
        for item in entry.items:
            totals.add(item.macros)
    return totals


def _daily_nutrition(day: date, totals: MacroTotals) -> DailyNutrition:
    return DailyNutrition(
        day=day,
        calories=round_for_display("calories", totals.get("calories") or 0.0),
        protein=round_for_display("protein", totals.get("protein") or 0.0),
        fat=round_for_display("fat", totals.get("fat") or 0.0),
        carbs=round_for_display("carbs", totals.get("carbs") or 0.0),
    )
