"""Services for managing the user food library."""

from dataclasses import dataclass
from typing import Protocol

from nutrition_mcp.domain.errors import (
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
)
from nutrition_mcp.domain.foods import Food


class FoodRepository(Protocol):
    """Persistence interface for the user food library."""

    def create_food(self, owner_id: str, payload: dict[str, object]) -> Food:
        """Create a food and return it; raise DuplicateRecordError on name clash."""

    def update_food(
        self, owner_id: str, name: str, payload: dict[str, object]
    ) -> Food | None:
        """Apply a partial update and return the food, or None when absent."""

    def get_food(self, owner_id: str, name: str) -> Food | None:
        """Return a food by name, if present."""

    def get_foods_by_names(self, owner_id: str, names: list[str]) -> list[Food]:
        """Return the foods whose names are in names."""

    def list_foods(self, owner_id: str, search: str | None) -> list[Food]:
        """Return foods ordered by name, optionally filtered by substring."""

    def delete_food(self, owner_id: str, name: str) -> bool:
        """Delete a food and its template ingredients; False when absent."""


@dataclass
class FoodService:
    """Application service for food library operations."""

    repository: FoodRepository

    def create_food(self, owner_id: str, payload: dict[str, object]) -> Food:
        """Create a food, reporting a conflict when the name is taken."""
        try:
            return self.repository.create_food(owner_id, payload)
        except DuplicateRecordError as exc:
            raise ConflictError(
                f'A food named "{payload["name"]}" already exists.'
            ) from exc

    def update_food(
        self, owner_id: str, name: str, changes: dict[str, object]
    ) -> Food:
        """Apply only the provided changes; explicit None clears a field."""
        try:
            food = self.repository.update_food(owner_id, name, changes)
        except DuplicateRecordError as exc:
            raise ConflictError(
                f'A food named "{changes.get("name")}" already exists.'
            ) from exc
        if food is None:
            raise NotFoundError(f'No food named "{name}" found.')
        return food

    def list_foods(self, owner_id: str, search: str | None = None) -> list[Food]:
        """List foods by name."""
        foods = self.repository.list_foods(owner_id, search or None)
        return sorted(foods, key=lambda food: food.name)

    def get_food(self, owner_id: str, name: str) -> Food:
        """Return a food or raise NotFoundError."""
        food = self.repository.get_food(owner_id, name)
        if food is None:
            raise NotFoundError(f'No food named "{name}" found.')
        return food

    def delete_food(self, owner_id: str, name: str) -> None:
        """Delete a food; logged items keep their snapshots."""
        if not self.repository.delete_food(owner_id, name):
            raise NotFoundError(f'No food named "{name}" found.')

    def resolve_names(self, owner_id: str, names: list[str]) -> dict[str, Food]:
        """Map every requested name to its food or raise listing the missing ones."""
        if not names:
            return {}
        foods = {
            food.name: food
            for food in self.repository.get_foods_by_names(
                owner_id, sorted(set(names))
            )
        }
        missing = [name for name in dict.fromkeys(names) if name not in foods]
        if missing:
            raise NotFoundError(
                f"Foods not found: {', '.join(missing)}. "
                "Create them first with create_food."
            )
        return foods
