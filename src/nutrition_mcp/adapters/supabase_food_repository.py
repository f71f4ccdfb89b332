"""Supabase implementation for the user food library."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from nutrition_mcp.adapters.supabase_errors import duplicate_guard, like_pattern
from nutrition_mcp.domain.foods import Food, FoodSource, Macros
from nutrition_mcp.services.foods import FoodRepository

FOODS_TABLE = "foods"


@dataclass
class SupabaseFoodRepository(FoodRepository):
    """Supabase-backed repository for user foods."""

    client: Client

    def create_food(self, owner_id: str, payload: dict[str, object]) -> Food:
        """Create a food entry and return it."""
        with duplicate_guard():
            response = (
                self.client.table(FOODS_TABLE)
                .insert({"owner_id": owner_id, **payload})
                .execute()
            )
        if not response.data:
            raise RuntimeError("Failed to create food entry")
        return parse_food(response.data[0])

    def update_food(
        self, owner_id: str, name: str, payload: dict[str, object]
    ) -> Food | None:
        """Update a food by name and return it, or None when absent."""
        if not payload:
            return self.get_food(owner_id, name)
        with duplicate_guard():
            response = (
                self.client.table(FOODS_TABLE)
                .update(payload)
                .eq("owner_id", owner_id)
                .eq("name", name)
                .execute()
            )
        if not response.data:
            return None
        return parse_food(response.data[0])

    def get_food(self, owner_id: str, name: str) -> Food | None:
        """Return a food by name, if present."""
        response = (
            self.client.table(FOODS_TABLE)
            .select("*")
            .eq("owner_id", owner_id)
            .eq("name", name)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_food(response.data[0])

    def get_foods_by_names(self, owner_id: str, names: list[str]) -> list[Food]:
        """Return the foods whose names are listed."""
        if not names:
            return []
        response = (
            self.client.table(FOODS_TABLE)
            .select("*")
            .eq("owner_id", owner_id)
            .in_("name", names)
            .execute()
        )
        return [parse_food(row) for row in response.data or []]

    def list_foods(self, owner_id: str, search: str | None) -> list[Food]:
        """Return foods ordered by name, optionally filtered."""
        query = self.client.table(FOODS_TABLE).select("*").eq("owner_id", owner_id)
        if search:
            query = query.ilike("name", like_pattern(search))
        response = query.order("name").execute()
        return [parse_food(row) for row in response.data or []]

    def delete_food(self, owner_id: str, name: str) -> bool:
        """Delete a food; ingredient rows cascade in the database."""
        response = (
            self.client.table(FOODS_TABLE)
            .delete()
            .eq("owner_id", owner_id)
            .eq("name", name)
            .execute()
        )
        return bool(response.data)


def parse_food(row: dict[str, object]) -> Food:
    """Build a Food from a foods row."""
    servings = row.get("default_servings")
    return Food(
        id=UUID(str(row["id"])),
        owner_id=str(row["owner_id"]),
        name=str(row["name"]),
        base_unit=str(row["base_unit"]),
        default_servings=[str(item) for item in servings]
        if isinstance(servings, list)
        else [],
        macros=Macros.from_mapping(row),
        source=FoodSource(str(row.get("source") or FoodSource.UNKNOWN.value)),
    )
