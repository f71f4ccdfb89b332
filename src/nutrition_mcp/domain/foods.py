"""Domain models for the user food library."""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from enum import StrEnum
from uuid import UUID

MACRO_FIELDS = ("calories", "protein", "fat", "carbs", "fiber", "sugar", "sodium")


class FoodSource(StrEnum):
    """Data quality of a food's nutritional values."""

    VERIFIED = "verified"
    ESTIMATED = "estimated"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Macros:
    """Macro values where an unset field means "not known"."""

    calories: float | None = None
    protein: float | None = None
    fat: float | None = None
    carbs: float | None = None
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "Macros":
        """Build macros from a row or payload, ignoring unrelated keys."""
        values: dict[str, float | None] = {}
        for name in MACRO_FIELDS:
            raw = data.get(name)
            values[name] = float(raw) if isinstance(raw, int | float) else None
        return cls(**values)

    def scaled(self, factor: float) -> "Macros":
        """Multiply every defined field by factor."""
        return Macros(
            **{
                item.name: (
                    getattr(self, item.name) * factor
                    if getattr(self, item.name) is not None
                    else None
                )
                for item in fields(self)
            }
        )

    def defined(self) -> dict[str, float]:
        """Return only the fields that carry a value."""
        return {
            name: value
            for name in MACRO_FIELDS
            if (value := getattr(self, name)) is not None
        }

    def as_payload(self) -> dict[str, float | None]:
        """Return all fields, unset ones as None."""
        return {name: getattr(self, name) for name in MACRO_FIELDS}


@dataclass(frozen=True)
class Food:
    """A food in a user's library with macros per base unit."""

    id: UUID
    owner_id: str
    name: str
    base_unit: str
    default_servings: list[str]
    macros: Macros
    source: FoodSource
