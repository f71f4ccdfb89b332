"""Supabase implementation for meal log entries."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrition_mcp.domain.foods import Macros
from nutrition_mcp.domain.meals import (
    LogItemSnapshot,
    MealCategory,
    MealLogEntry,
    NewMealLogEntry,
)
from nutrition_mcp.services.meals import MealLogRepository

ENTRIES_TABLE = "meal_log_entries"


@dataclass
class SupabaseMealLogRepository(MealLogRepository):
    """Supabase-backed repository for meal logs."""

    client: Client

    def create_entry(self, entry: NewMealLogEntry) -> MealLogEntry:
        """Insert the entry and its items through one database function."""
        response = self.client.rpc(
            "log_meal_entry",
            {
                "p_owner_id": entry.owner_id,
                "p_logged_at": entry.logged_at.isoformat(),
                "p_category": entry.category.value if entry.category else None,
                "p_notes": entry.notes,
                "p_meal_schema_id": str(entry.template_id)
                if entry.template_id
                else None,
                "p_meal_schema_name": entry.template_name,
                "p_items": [_item_payload(item) for item in entry.items],
            },
        ).execute()
        if not response.data:
            raise RuntimeError("Failed to create meal log entry")
        data = response.data
        entry_id = data[0] if isinstance(data, list) else data
        return MealLogEntry(
            id=UUID(str(entry_id)),
            owner_id=entry.owner_id,
            logged_at=entry.logged_at,
            category=entry.category,
            notes=entry.notes,
            template_id=entry.template_id,
            template_name=entry.template_name,
            items=list(entry.items),
        )

    def list_entries(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
        category: MealCategory | None = None,
    ) -> list[MealLogEntry]:
        """Return entries logged in [start, end), oldest first."""
        query = (
            self.client.table(ENTRIES_TABLE)
            .select("*, meal_log_items(*)")
            .eq("owner_id", owner_id)
            .gte("logged_at", start.isoformat())
            .lt("logged_at", end.isoformat())
        )
        if category is not None:
            query = query.eq("category", category.value)
        response = query.order("logged_at").execute()
        return [parse_entry(row) for row in response.data or []]


def _item_payload(item: LogItemSnapshot) -> dict[str, object]:
    return {
        "food_id": str(item.food_id) if item.food_id else None,
        "name": item.name,
        "quantity": item.quantity,
        **item.macros.as_payload(),
    }


def parse_entry(row: dict[str, object]) -> MealLogEntry:
    """Build an entry from a row with embedded items."""
    raw_items = sorted(
        (item for item in row.get("meal_log_items") or [] if isinstance(item, dict)),
        key=lambda item: int(item.get("position") or 0),
    )
    category = row.get("category")
    template_id = row.get("meal_schema_id")
    template_name = row.get("meal_schema_name")
    return MealLogEntry(
        id=UUID(str(row["id"])),
        owner_id=str(row["owner_id"]),
        logged_at=datetime.fromisoformat(str(row["logged_at"])),
        category=MealCategory(str(category)) if category else None,
        notes=str(row["notes"]) if row.get("notes") is not None else None,
        template_id=UUID(str(template_id)) if template_id else None,
        template_name=str(template_name) if template_name else None,
        items=[_parse_item(item) for item in raw_items],
    )


def _parse_item(row: dict[str, object]) -> LogItemSnapshot:
    food_id = row.get("food_id")
    quantity = row.get("quantity")
    return LogItemSnapshot(
        name=str(row.get("name") or ""),
        macros=Macros.from_mapping(row),
        food_id=UUID(str(food_id)) if food_id else None,
        quantity=float(quantity) if isinstance(quantity, int | float) else None,
    )
