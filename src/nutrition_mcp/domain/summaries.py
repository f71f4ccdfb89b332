"""Domain models for nutrition aggregates."""

import math
from dataclasses import dataclass, field
from datetime import date

from nutrition_mcp.domain.foods import MACRO_FIELDS, Macros
from nutrition_mcp.domain.meals import MealLogEntry

_WHOLE_NUMBER_FIELDS = frozenset({"calories", "sodium"})


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from negative infinity, like Math.round."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def round_for_display(name: str, value: float) -> float:
    """Round a macro total for display; never persisted."""
    if name in _WHOLE_NUMBER_FIELDS:
        return round_half_up(value)
    return round_half_up(value, 1)


@dataclass
class MacroTotals:
    """Running macro sums that only hold fields something contributed to."""

    values: dict[str, float] = field(default_factory=dict)

    def add(self, macros: Macros) -> None:
        """Accumulate the defined fields of macros."""
        for name, value in macros.defined().items():
            self.values[name] = self.values.get(name, 0.0) + value

    def get(self, name: str) -> float | None:
        """Return the sum for a field, or None when nothing contributed."""
        return self.values.get(name)

    def rounded(self) -> dict[str, float]:
        """Return every field rounded for display, zero when uncontributed."""
        return {
            name: round_for_display(name, self.values.get(name, 0.0))
            for name in MACRO_FIELDS
        }


@dataclass(frozen=True)
class MealLogReport:
    """Entries in a date range with their grand totals."""

    start: date
    end: date
    entries: list[MealLogEntry]
    totals: MacroTotals


@dataclass(frozen=True)
class DailySummary:
    """Totals for one day plus a per-category breakdown."""

    day: date
    entry_count: int
    totals: MacroTotals
    by_category: dict[str, MacroTotals]


@dataclass(frozen=True)
class DailyNutrition:
    """Rounded daily totals for a history series."""

    day: date
    calories: float
    protein: float
    fat: float
    carbs: float
