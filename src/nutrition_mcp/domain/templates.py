"""Domain models for meal templates (meal schemas)."""

from dataclasses import dataclass
from uuid import UUID

from nutrition_mcp.domain.foods import Food


@dataclass(frozen=True)
class IngredientDraft:
    """Ingredient to attach to a template being created."""

    food_id: UUID
    default_quantity: float | None


@dataclass(frozen=True)
class TemplateIngredient:
    """Ingredient of a stored template, resolved to its food."""

    food: Food
    default_quantity: float | None


@dataclass(frozen=True)
class MealTemplate:
    """A reusable named list of foods."""

    id: UUID
    owner_id: str
    name: str
    description: str | None
    ingredients: list[TemplateIngredient]


@dataclass(frozen=True)
class MealTemplateSummary:
    """Listing view of a template."""

    name: str
    description: str | None
    ingredient_count: int
