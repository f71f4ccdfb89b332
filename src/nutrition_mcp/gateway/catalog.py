"""The nutrition tool catalog."""

from dataclasses import dataclass
from datetime import timedelta

from nutrition_mcp.domain.meals import AnonymousItem, FoodPortion, LogItemRequest
from nutrition_mcp.gateway import formatting
from nutrition_mcp.gateway.tool_models import (
    AnonymousItemArguments,
    CreateFoodArguments,
    CreateMealSchemaArguments,
    CreateMetricArguments,
    DailySummaryArguments,
    ListFoodsArguments,
    LogMealArguments,
    LogMetricArguments,
    MealLogQueryArguments,
    MetricEntriesArguments,
    NameArguments,
    NoArguments,
    UpdateFoodArguments,
)
from nutrition_mcp.gateway.tools import ToolRegistry, ToolSpec
from nutrition_mcp.services.dates import parse_day, parse_logged_at, today
from nutrition_mcp.services.foods import FoodService
from nutrition_mcp.services.meals import MealLogService
from nutrition_mcp.services.metrics import MetricService
from nutrition_mcp.services.summaries import SummaryService
from nutrition_mcp.services.templates import (
    MealTemplateService,
    default_quantity_totals,
)

METRIC_LOOKBACK_DAYS = 7


@dataclass
class NutritionTools:
    """Tool handlers bound to the domain services."""

    foods: FoodService
    templates: MealTemplateService
    meals: MealLogService
    summaries: SummaryService
    metrics: MetricService

    def create_food(self, owner_id: str, args: CreateFoodArguments) -> str:
        return formatting.food_created(
            self.foods.create_food(owner_id, args.payload())
        )

    def update_food(self, owner_id: str, args: UpdateFoodArguments) -> str:
        return formatting.food_updated(
            self.foods.update_food(owner_id, args.name, args.changes())
        )

    def list_foods(self, owner_id: str, args: ListFoodsArguments) -> str:
        return formatting.food_list(
            self.foods.list_foods(owner_id, args.search), args.search
        )

    def get_food(self, owner_id: str, args: NameArguments) -> str:
        return formatting.food_detail(self.foods.get_food(owner_id, args.name))

    def delete_food(self, owner_id: str, args: NameArguments) -> str:
        self.foods.delete_food(owner_id, args.name)
        return formatting.food_deleted(args.name)

    def create_meal_schema(
        self, owner_id: str, args: CreateMealSchemaArguments
    ) -> str:
        template = self.templates.create_template(
            owner_id,
            args.name,
            args.description,
            [(item.food_name, item.default_quantity) for item in args.ingredients],
        )
        return formatting.template_created(template)

    def list_meal_schemas(self, owner_id: str, args: NoArguments) -> str:
        return formatting.template_list(self.templates.list_templates(owner_id))

    def get_meal_schema(self, owner_id: str, args: NameArguments) -> str:
        template = self.templates.get_template(owner_id, args.name)
        return formatting.template_detail(template, default_quantity_totals(template))

    def delete_meal_schema(self, owner_id: str, args: NameArguments) -> str:
        self.templates.delete_template(owner_id, args.name)
        return formatting.template_deleted(args.name)

    def log_meal(self, owner_id: str, args: LogMealArguments) -> str:
        items: list[LogItemRequest] = []
        for item in args.items or []:
            if isinstance(item, AnonymousItemArguments):
                items.append(AnonymousItem(name=item.name, macros=item.macros()))
            else:
                items.append(
                    FoodPortion(food_name=item.food_name, quantity=item.quantity)
                )
        entry = self.meals.log_meal(
            owner_id,
            template_name=args.meal_schema_name,
            items=items,
            category=args.category,
            logged_at=parse_logged_at(args.logged_at) if args.logged_at else None,
            notes=args.notes,
        )
        return formatting.meal_logged(entry)

    def get_meal_log(self, owner_id: str, args: MealLogQueryArguments) -> str:
        first = parse_day(args.start, "from") if args.start else today()
        last = parse_day(args.end, "to") if args.end else today()
        return formatting.meal_log(
            self.summaries.meal_log(owner_id, first, last, args.category)
        )

    def get_daily_summary(self, owner_id: str, args: DailySummaryArguments) -> str:
        day = parse_day(args.day) if args.day else today()
        return formatting.daily_summary(self.summaries.daily_summary(owner_id, day))

    def create_metric(self, owner_id: str, args: CreateMetricArguments) -> str:
        metric = self.metrics.create_metric(
            owner_id, args.name, args.unit, args.resolution, args.kind
        )
        return formatting.metric_created(metric)

    def list_metrics(self, owner_id: str, args: NoArguments) -> str:
        return formatting.metric_list(self.metrics.list_metrics(owner_id))

    def log_metric(self, owner_id: str, args: LogMetricArguments) -> str:
        day = parse_day(args.day) if args.day else None
        metric, entry = self.metrics.log_metric(owner_id, args.name, args.value, day)
        return formatting.metric_logged(metric, entry)

    def get_metric_entries(
        self, owner_id: str, args: MetricEntriesArguments
    ) -> str:
        current = today()
        first = (
            parse_day(args.start, "from")
            if args.start
            else current - timedelta(days=METRIC_LOOKBACK_DAYS)
        )
        last = parse_day(args.end, "to") if args.end else current
        metric, entries = self.metrics.get_entries(owner_id, args.name, first, last)
        return formatting.metric_entries(metric, entries, first, last)

    def delete_metric(self, owner_id: str, args: NameArguments) -> str:
        self.metrics.delete_metric(owner_id, args.name)
        return formatting.metric_deleted(args.name)


def build_registry(tools: NutritionTools) -> ToolRegistry:
    """Register every nutrition tool."""
    registry = ToolRegistry()
    specs = [
        (
            "create_food",
            "Add a food item to your library with nutritional data per base unit",
            CreateFoodArguments,
            tools.create_food,
        ),
        (
            "update_food",
            "Update an existing food item in your library",
            UpdateFoodArguments,
            tools.update_food,
        ),
        (
            "list_foods",
            "List food items in your library, optionally filtered by name",
            ListFoodsArguments,
            tools.list_foods,
        ),
        ("get_food", "Get full details for a food item", NameArguments, tools.get_food),
        (
            "delete_food",
            "Delete a food item from your library. Meal schema ingredients using "
            "it are removed; logged meal items keep their snapshotted macros.",
            NameArguments,
            tools.delete_food,
        ),
        (
            "create_meal_schema",
            "Create a reusable meal template with ingredients from your food library",
            CreateMealSchemaArguments,
            tools.create_meal_schema,
        ),
        (
            "list_meal_schemas",
            "List your meal templates",
            NoArguments,
            tools.list_meal_schemas,
        ),
        (
            "get_meal_schema",
            "Get full details for a meal template including ingredients and "
            "computed macro totals",
            NameArguments,
            tools.get_meal_schema,
        ),
        (
            "delete_meal_schema",
            "Delete a meal template. Logged meals that used it keep their data.",
            NameArguments,
            tools.delete_meal_schema,
        ),
        (
            "log_meal",
            "Log a meal. Use a meal template, ad-hoc food items, anonymous items "
            "with inline macros, or any combination.",
            LogMealArguments,
            tools.log_meal,
        ),
        (
            "get_meal_log",
            "Query meal log entries by date range",
            MealLogQueryArguments,
            tools.get_meal_log,
        ),
        (
            "get_daily_summary",
            "Get a daily nutrition summary with total macros and per-meal-type "
            "breakdown",
            DailySummaryArguments,
            tools.get_daily_summary,
        ),
        (
            "create_metric",
            "Define a new metric to track (e.g. Weight, Steps, Workouts)",
            CreateMetricArguments,
            tools.create_metric,
        ),
        (
            "list_metrics",
            "List all metrics you are tracking",
            NoArguments,
            tools.list_metrics,
        ),
        (
            "log_metric",
            "Log an entry for a metric",
            LogMetricArguments,
            tools.log_metric,
        ),
        (
            "get_metric_entries",
            "Query entries for a metric over a date range",
            MetricEntriesArguments,
            tools.get_metric_entries,
        ),
        (
            "delete_metric",
            "Delete a metric and all its entries",
            NameArguments,
            tools.delete_metric,
        ),
    ]
    for name, description, arguments, handler in specs:
        registry.register(
            ToolSpec(
                name=name,
                description=description,
                arguments=arguments,
                handler=handler,
            )
        )
    return registry
