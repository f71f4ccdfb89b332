"""Argument models for the nutrition tools."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nutrition_mcp.domain.foods import MACRO_FIELDS, FoodSource, Macros
from nutrition_mcp.domain.meals import MealCategory
from nutrition_mcp.domain.metrics import MetricKind, MetricResolution

_CATEGORY_ALIASES = AliasChoices("category", "timeOfDay")


class ToolArguments(BaseModel):
    """Base for tool arguments: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MacroArguments(ToolArguments):
    calories: float | None = Field(default=None, description="Calories")
    protein: float | None = Field(default=None, description="Protein in grams")
    fat: float | None = Field(default=None, description="Fat in grams")
    carbs: float | None = Field(default=None, description="Carbs in grams")
    fiber: float | None = Field(default=None, description="Fiber in grams")
    sugar: float | None = Field(default=None, description="Sugar in grams")
    sodium: float | None = Field(default=None, description="Sodium in milligrams")

    def macros(self) -> Macros:
        return Macros(**{name: getattr(self, name) for name in MACRO_FIELDS})


class NameArguments(ToolArguments):
    name: str = Field(description="Name of the item")


class NoArguments(ToolArguments):
    pass


class CreateFoodArguments(MacroArguments):
    name: str = Field(description='Food name (e.g. "Chicken Breast")')
    base_unit: str = Field(
        description='What one unit means (e.g. "1 oz", "1 medium apple")'
    )
    default_servings: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("defaultServings", "servings"),
        description='Common serving sizes (e.g. ["16 oz (1 lb)"])',
    )
    source: FoodSource | None = Field(default=None, description="Data quality source")

    def payload(self) -> dict[str, object]:
        """Return the storage payload for a new food."""
        return {
            "name": self.name,
            "base_unit": self.base_unit,
            "default_servings": self.default_servings or [],
            **self.macros().as_payload(),
            "source": (self.source or FoodSource.UNKNOWN).value,
        }


class UpdateFoodArguments(MacroArguments):
    name: str = Field(description="Food name to update")
    new_name: str | None = Field(default=None, description="Rename the food")
    base_unit: str | None = Field(default=None, description="New base unit")
    default_servings: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("defaultServings", "servings"),
        description="New default servings list",
    )
    source: FoodSource | None = Field(default=None, description="Data quality source")

    def changes(self) -> dict[str, object]:
        """Return only the fields the caller sent.

        Macros sent as null are cleared; other fields ignore null.
        """
        sent = self.model_fields_set
        changes: dict[str, object] = {}
        if self.new_name is not None:
            changes["name"] = self.new_name
        if self.base_unit is not None:
            changes["base_unit"] = self.base_unit
        if self.default_servings is not None:
            changes["default_servings"] = self.default_servings
        if self.source is not None:
            changes["source"] = self.source.value
        for name in MACRO_FIELDS:
            if name in sent:
                changes[name] = getattr(self, name)
        return changes


class ListFoodsArguments(ToolArguments):
    search: str | None = Field(
        default=None, description="Case-insensitive name filter"
    )


class IngredientArguments(ToolArguments):
    food_name: str = Field(description="Name of a food from your library")
    default_quantity: float | None = Field(
        default=None,
        description="Default quantity in base units (omit to prompt at log time)",
    )


class CreateMealSchemaArguments(ToolArguments):
    name: str = Field(description='Meal template name (e.g. "Morning Oatmeal")')
    description: str | None = Field(default=None, description="Optional description")
    ingredients: list[IngredientArguments] = Field(description="List of ingredients")


class FoodPortionArguments(ToolArguments):
    food_name: str = Field(description="Name of a food from your library")
    quantity: float = Field(description="Quantity in base units")


class AnonymousItemArguments(MacroArguments):
    name: str = Field(description="Description of the anonymous item")


class LogMealArguments(ToolArguments):
    meal_schema_name: str | None = Field(
        default=None, description="Name of a meal template to log from"
    )
    items: list[FoodPortionArguments | AnonymousItemArguments] | None = Field(
        default=None, description="Additional or ad-hoc items"
    )
    category: MealCategory | None = Field(
        default=None, validation_alias=_CATEGORY_ALIASES, description="Meal type"
    )
    logged_at: str | None = Field(
        default=None, description="ISO datetime or YYYY-MM-DD (defaults to now)"
    )
    notes: str | None = Field(default=None, description="Optional notes")


class MealLogQueryArguments(ToolArguments):
    start: str | None = Field(
        default=None,
        alias="from",
        description="Start date (YYYY-MM-DD), defaults to today",
    )
    end: str | None = Field(
        default=None, alias="to", description="End date (YYYY-MM-DD), defaults to today"
    )
    category: MealCategory | None = Field(
        default=None,
        validation_alias=_CATEGORY_ALIASES,
        description="Filter by meal type",
    )


class DailySummaryArguments(ToolArguments):
    day: str | None = Field(
        default=None,
        alias="date",
        description="Date in YYYY-MM-DD format (defaults to today)",
    )


class CreateMetricArguments(ToolArguments):
    name: str = Field(description='Metric name (e.g. "Weight", "Steps")')
    unit: str | None = Field(
        default=None, description='Unit of measurement (e.g. "lbs", "steps")'
    )
    resolution: MetricResolution = Field(
        description="daily = one entry per day, timestamped = multiple entries per day"
    )
    kind: MetricKind = Field(
        validation_alias=AliasChoices("kind", "type"),
        description="numeric = has a value, checkin = presence-only",
    )


class LogMetricArguments(ToolArguments):
    name: str = Field(description="Metric name")
    value: float | None = Field(
        default=None,
        description="Value to log (required for numeric metrics, omit for checkin)",
    )
    day: str | None = Field(
        default=None,
        alias="date",
        description=(
            "Date in YYYY-MM-DD format (defaults to today). "
            "Ignored for timestamped metrics."
        ),
    )


class MetricEntriesArguments(ToolArguments):
    name: str = Field(description="Metric name")
    start: str | None = Field(
        default=None,
        alias="from",
        description="Start date (YYYY-MM-DD), defaults to 7 days ago",
    )
    end: str | None = Field(
        default=None, alias="to", description="End date (YYYY-MM-DD), defaults to today"
    )
