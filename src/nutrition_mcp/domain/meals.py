"""Domain models for meal logging."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from nutrition_mcp.domain.foods import Macros


class MealCategory(StrEnum):
    """Fixed meal categories a log entry can be tagged with."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


UNSPECIFIED_CATEGORY = "unspecified"
CATEGORY_DISPLAY_ORDER = (
    MealCategory.BREAKFAST.value,
    MealCategory.LUNCH.value,
    MealCategory.DINNER.value,
    MealCategory.SNACK.value,
    UNSPECIFIED_CATEGORY,
)


@dataclass(frozen=True)
class FoodPortion:
    """Requested item referencing a library food by name."""

    food_name: str
    quantity: float


@dataclass(frozen=True)
class AnonymousItem:
    """Requested item with a free-form name and total macros."""

    name: str
    macros: Macros


LogItemRequest = FoodPortion | AnonymousItem


@dataclass(frozen=True)
class LogItemSnapshot:
    """Log item with macros frozen at log time."""

    name: str
    macros: Macros
    food_id: UUID | None = None
    quantity: float | None = None


@dataclass(frozen=True)
class NewMealLogEntry:
    """Meal log entry with its items, ready to persist atomically."""

    owner_id: str
    logged_at: datetime
    category: MealCategory | None
    notes: str | None
    template_id: UUID | None
    template_name: str | None
    items: list[LogItemSnapshot]


@dataclass(frozen=True)
class MealLogEntry:
    """Stored meal log entry with items."""

    id: UUID
    owner_id: str
    logged_at: datetime
    category: MealCategory | None
    notes: str | None
    template_id: UUID | None
    template_name: str | None
    items: list[LogItemSnapshot]
