"""Services for reusable meal templates."""

from dataclasses import dataclass
from typing import Protocol

from nutrition_mcp.domain.errors import (
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
)
from nutrition_mcp.domain.summaries import MacroTotals
from nutrition_mcp.domain.templates import (
    IngredientDraft,
    MealTemplate,
    MealTemplateSummary,
)
from nutrition_mcp.services.foods import FoodService


class TemplateRepository(Protocol):
    """Persistence interface for meal templates."""

    def create_template(
        self,
        owner_id: str,
        name: str,
        description: str | None,
        ingredients: list[IngredientDraft],
    ) -> MealTemplate:
        """Create a template with its ingredients in one transaction."""

    def get_template(self, owner_id: str, name: str) -> MealTemplate | None:
        """Return a template with resolved ingredients, if present."""

    def list_templates(self, owner_id: str) -> list[MealTemplateSummary]:
        """Return template summaries."""

    def delete_template(self, owner_id: str, name: str) -> bool:
        """Delete a template; False when absent."""


@dataclass
class MealTemplateService:
    """Application service for meal template operations."""

    repository: TemplateRepository
    food_service: FoodService

    def create_template(
        self,
        owner_id: str,
        name: str,
        description: str | None,
        ingredients: list[tuple[str, float | None]],
    ) -> MealTemplate:
        """Create a template after checking that every food exists."""
        foods = self.food_service.resolve_names(
            owner_id, [food_name for food_name, _ in ingredients]
        )
        drafts = [
            IngredientDraft(food_id=foods[food_name].id, default_quantity=quantity)
            for food_name, quantity in ingredients
        ]
        try:
            return self.repository.create_template(
                owner_id, name, description, drafts
            )
        except DuplicateRecordError as exc:
            raise ConflictError(
                f'A meal template named "{name}" already exists.'
            ) from exc

    def list_templates(self, owner_id: str) -> list[MealTemplateSummary]:
        """List templates by name."""
        return sorted(
            self.repository.list_templates(owner_id), key=lambda item: item.name
        )

    def get_template(self, owner_id: str, name: str) -> MealTemplate:
        """Return a template or raise NotFoundError."""
        template = self.repository.get_template(owner_id, name)
        if template is None:
            raise NotFoundError(f'No meal template named "{name}" found.')
        return template

    def delete_template(self, owner_id: str, name: str) -> None:
        """Delete a template; logged meals keep their data."""
        if not self.repository.delete_template(owner_id, name):
            raise NotFoundError(f'No meal template named "{name}" found.')


def default_quantity_totals(template: MealTemplate) -> MacroTotals:
    """Sum macros of ingredients that carry a default quantity."""
    totals = MacroTotals()
    for ingredient in template.ingredients:
        if ingredient.default_quantity is None:
            continue
        totals.add(ingredient.food.macros.scaled(ingredient.default_quantity))
    return totals
