"""Meal logging service."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from nutrition_mcp.domain.errors import ValidationFailure
from nutrition_mcp.domain.foods import Food
from nutrition_mcp.domain.meals import (
    AnonymousItem,
    FoodPortion,
    LogItemRequest,
    LogItemSnapshot,
    MealCategory,
    MealLogEntry,
    NewMealLogEntry,
)
from nutrition_mcp.domain.templates import MealTemplate
from nutrition_mcp.services.foods import FoodService
from nutrition_mcp.services.templates import MealTemplateService

_logger = logging.getLogger(__name__)


class MealLogRepository(Protocol):
    """Persistence interface for meal logs."""

    def create_entry(self, entry: NewMealLogEntry) -> MealLogEntry:
        """Persist an entry and all of its items atomically."""

    def list_entries(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
        category: MealCategory | None = None,
    ) -> list[MealLogEntry]:
        """Return entries logged in [start, end), oldest first."""


@dataclass
class MealLogService:
    """Service that snapshots macros and persists meal log entries."""

    repository: MealLogRepository
    food_service: FoodService
    template_service: MealTemplateService

    def log_meal(  # noqa: PLR0913
        self,
        owner_id: str,
        template_name: str | None,
        items: list[LogItemRequest],
        category: MealCategory | None = None,
        logged_at: datetime | None = None,
        notes: str | None = None,
    ) -> MealLogEntry:
        """Resolve every reference, then write the entry with its items.

        Nothing is written when the template or any referenced food is
        missing.
        """
        if not template_name and not items:
            raise ValidationFailure(
                "At least one of mealSchemaName or items is required."
            )
        template = (
            self.template_service.get_template(owner_id, template_name)
            if template_name
            else None
        )
        foods = self.food_service.resolve_names(
            owner_id,
            [item.food_name for item in items if isinstance(item, FoodPortion)],
        )

        snapshots: list[LogItemSnapshot] = []
        if template is not None:
            snapshots.extend(template_snapshots(template))
        for item in items:
            if isinstance(item, FoodPortion):
                snapshots.append(portion_snapshot(foods[item.food_name], item.quantity))
            else:
                snapshots.append(anonymous_snapshot(item))

        entry = self.repository.create_entry(
            NewMealLogEntry(
                owner_id=owner_id,
                logged_at=logged_at or datetime.now(tz=UTC),
                category=category,
                notes=notes,
                template_id=template.id if template else None,
                template_name=template.name if template else None,
                items=snapshots,
            )
        )
        _logger.info(
            "Logged meal entry %s with %s item(s)", entry.id, len(entry.items)
        )
        return entry


def portion_snapshot(food: Food, quantity: float) -> LogItemSnapshot:
    """Freeze a food's per-unit macros scaled by quantity."""
    return LogItemSnapshot(
        name=food.name,
        macros=food.macros.scaled(quantity),
        food_id=food.id,
        quantity=quantity,
    )


def anonymous_snapshot(item: AnonymousItem) -> LogItemSnapshot:
    """Store inline macros as given; they are already totals."""
    return LogItemSnapshot(name=item.name, macros=item.macros)


def template_snapshots(template: MealTemplate) -> list[LogItemSnapshot]:
    """Expand template ingredients into log items.

    An ingredient without a default quantity keeps the food's unscaled
    per-unit macros and an empty quantity.
    """
    snapshots = []
    for ingredient in template.ingredients:
        food = ingredient.food
        quantity = ingredient.default_quantity
        snapshots.append(
            LogItemSnapshot(
                name=food.name,
                macros=food.macros.scaled(quantity)
                if quantity is not None
                else food.macros,
                food_id=food.id,
                quantity=quantity,
            )
        )
    return snapshots
