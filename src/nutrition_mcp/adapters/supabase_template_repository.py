"""Supabase implementation for meal templates."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_mcp.adapters.supabase_errors import duplicate_guard
from nutrition_mcp.adapters.supabase_food_repository import parse_food
from nutrition_mcp.domain.templates import (
    IngredientDraft,
    MealTemplate,
    MealTemplateSummary,
    TemplateIngredient,
)
from nutrition_mcp.services.templates import TemplateRepository

TEMPLATES_TABLE = "meal_schemas"
_DETAIL_COLUMNS = (
    "id, owner_id, name, description, "
    "meal_schema_ingredients(position, default_quantity, foods(*))"
)


@dataclass
class SupabaseTemplateRepository(TemplateRepository):
    """Supabase-backed repository for meal templates."""

    client: Client

    def create_template(
        self,
        owner_id: str,
        name: str,
        description: str | None,
        ingredients: list[IngredientDraft],
    ) -> MealTemplate:
        """Insert a template with its ingredients through one database function."""
        with duplicate_guard():
            self.client.rpc(
                "create_meal_schema",
                {
                    "p_owner_id": owner_id,
                    "p_name": name,
                    "p_description": description,
                    "p_ingredients": [
                        {
                            "food_id": str(item.food_id),
                            "default_quantity": item.default_quantity,
                        }
                        for item in ingredients
                    ],
                },
            ).execute()
        template = self.get_template(owner_id, name)
        if template is None:
            raise RuntimeError("Failed to create meal template")
        return template

    def get_template(self, owner_id: str, name: str) -> MealTemplate | None:
        """Return a template with its ingredient foods."""
        response = (
            self.client.table(TEMPLATES_TABLE)
            .select(_DETAIL_COLUMNS)
            .eq("owner_id", owner_id)
            .eq("name", name)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_template(response.data[0])

    def list_templates(self, owner_id: str) -> list[MealTemplateSummary]:
        """Return template names with ingredient counts."""
        response = (
            self.client.table(TEMPLATES_TABLE)
            .select("name, description, meal_schema_ingredients(count)")
            .eq("owner_id", owner_id)
            .order("name")
            .execute()
        )
        return [_parse_summary(row) for row in response.data or []]

    def delete_template(self, owner_id: str, name: str) -> bool:
        """Delete a template; log entries keep their copied name."""
        response = (
            self.client.table(TEMPLATES_TABLE)
            .delete()
            .eq("owner_id", owner_id)
            .eq("name", name)
            .execute()
        )
        return bool(response.data)


def parse_template(row: dict[str, object]) -> MealTemplate:
    """Build a template from a row with embedded ingredients."""
    raw_ingredients = row.get("meal_schema_ingredients")
    ingredients = sorted(
        (item for item in raw_ingredients or [] if isinstance(item, dict)),
        key=lambda item: int(item.get("position") or 0),
    )
    return MealTemplate(
        id=UUID(str(row["id"])),
        owner_id=str(row["owner_id"]),
        name=str(row["name"]),
        description=_optional_str(row.get("description")),
        ingredients=[
            TemplateIngredient(
                food=parse_food(item["foods"]),
                default_quantity=_optional_float(item.get("default_quantity")),
            )
            for item in ingredients
            if isinstance(item.get("foods"), dict)
        ],
    )


def _parse_summary(row: dict[str, object]) -> MealTemplateSummary:
    counts = row.get("meal_schema_ingredients")
    count = 0
    if isinstance(counts, list) and counts and isinstance(counts[0], dict):
        count = int(counts[0].get("count") or 0)
    return MealTemplateSummary(
        name=str(row["name"]),
        description=_optional_str(row.get("description")),
        ingredient_count=count,
    )


def _optional_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _optional_float(value: object) -> float | None:
    return float(value) if isinstance(value, int | float) else None
