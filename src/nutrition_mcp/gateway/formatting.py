"""Plain-text rendering of tool results."""

from datetime import UTC, date, datetime

from nutrition_mcp.domain.foods import Food, Macros
from nutrition_mcp.domain.meals import CATEGORY_DISPLAY_ORDER, MealLogEntry
from nutrition_mcp.domain.metrics import Metric, MetricEntry, MetricKind
from nutrition_mcp.domain.summaries import (
    DailySummary,
    MacroTotals,
    MealLogReport,
    round_half_up,
)
from nutrition_mcp.domain.templates import MealTemplate, MealTemplateSummary

_MISSING = "—"


def format_number(value: float) -> str:
    """Render whole numbers without a decimal part."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _minute(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M")


def _rounded(value: float, digits: int) -> str:
    return format_number(round_half_up(value, digits))


def _totals_line(totals: MacroTotals, *, full: bool = False) -> str:
    parts = []
    if (calories := totals.get("calories")) is not None:
        parts.append(f"{_rounded(calories, 0)} cal")
    for name in ("protein", "fat", "carbs") + (("fiber", "sugar") if full else ()):
        if (value := totals.get(name)) is not None:
            parts.append(f"{_rounded(value, 1)}g {name}")
    if full and (sodium := totals.get("sodium")) is not None:
        parts.append(f"{_rounded(sodium, 0)}mg sodium")
    return ", ".join(parts)


def food_created(food: Food) -> str:
    macros = food.macros
    parts = []
    if macros.calories is not None:
        parts.append(f"{format_number(macros.calories)} cal")
    for name in ("protein", "fat", "carbs"):
        if (value := getattr(macros, name)) is not None:
            parts.append(f"{format_number(value)}g {name}")
    suffix = f": {', '.join(parts)}" if parts else ""
    return f'Created food "{food.name}" (per {food.base_unit}){suffix}'


def food_updated(food: Food) -> str:
    return f'Updated food "{food.name}".'


def food_deleted(name: str) -> str:
    return f'Deleted food "{name}".'


def food_list(foods: list[Food], search: str | None) -> str:
    if not foods:
        if search:
            return f'No foods matching "{search}".'
        return "No foods in your library yet. Use create_food to get started."
    return "\n".join(_food_line(food) for food in foods)


def _food_line(food: Food) -> str:
    macros = food.macros
    parts = []
    if macros.calories is not None:
        parts.append(f"{format_number(macros.calories)} cal")
    for name, letter in (("protein", "P"), ("fat", "F"), ("carbs", "C")):
        if (value := getattr(macros, name)) is not None:
            parts.append(f"{format_number(value)}g {letter}")
    suffix = f" — {', '.join(parts)}" if parts else ""
    return f"- {food.name} (per {food.base_unit}){suffix}"


def _macro_value(value: float | None, unit: str = "") -> str:
    if value is None:
        return _MISSING
    return f"{format_number(value)}{unit}"


def food_detail(food: Food) -> str:
    """Render every stored attribute of a food."""
    macros: Macros = food.macros
    lines = [f"Name: {food.name}", f"Base unit: {food.base_unit}"]
    if food.default_servings:
        lines.append(f"Default servings: {', '.join(food.default_servings)}")
    lines.extend(
        [
            f"Source: {food.source.value}",
            "",
            "Macros per base unit:",
            f"  Calories: {_macro_value(macros.calories)}",
            f"  Protein: {_macro_value(macros.protein, 'g')}",
            f"  Fat: {_macro_value(macros.fat, 'g')}",
            f"  Carbs: {_macro_value(macros.carbs, 'g')}",
            f"  Fiber: {_macro_value(macros.fiber, 'g')}",
            f"  Sugar: {_macro_value(macros.sugar, 'g')}",
            f"  Sodium: {_macro_value(macros.sodium, 'mg')}",
        ]
    )
    return "\n".join(lines)


def template_created(template: MealTemplate) -> str:
    return (
        f'Created meal template "{template.name}" '
        f"with {len(template.ingredients)} ingredient(s)."
    )


def template_deleted(name: str) -> str:
    return f'Deleted meal template "{name}".'


def template_list(templates: list[MealTemplateSummary]) -> str:
    if not templates:
        return "No meal templates yet. Use create_meal_schema to get started."
    lines = []
    for template in templates:
        description = f" — {template.description}" if template.description else ""
        plural = "" if template.ingredient_count == 1 else "s"
        lines.append(
            f"- {template.name}{description} "
            f"({template.ingredient_count} ingredient{plural})"
        )
    return "\n".join(lines)


def template_detail(template: MealTemplate, totals: MacroTotals) -> str:
    """Render ingredients and the totals of the default quantities."""
    header = template.name
    if template.description:
        header += f" — {template.description}"
    lines = [header, "", "Ingredients:"]
    for ingredient in template.ingredients:
        food = ingredient.food
        if ingredient.default_quantity is not None:
            lines.append(
                f"- {food.name} × {format_number(ingredient.default_quantity)} "
                f"{food.base_unit}"
            )
        else:
            lines.append(
                f"- {food.name} (quantity set at log time, per {food.base_unit})"
            )
    summary = _totals_line(totals)
    if summary:
        lines.extend(["", f"Estimated totals (default quantities): {summary}"])
    return "\n".join(lines)


def meal_logged(entry: MealLogEntry) -> str:
    total_calories = sum(item.macros.calories or 0.0 for item in entry.items)
    parts = [f"Logged {len(entry.items)} item(s)"]
    if entry.category is not None:
        parts.append(f"for {entry.category.value}")
    parts.append(f"({_rounded(total_calories, 0)} cal total)")
    parts.append(f"at {_minute(entry.logged_at)}")
    return " ".join(parts)


def meal_log(report: MealLogReport) -> str:
    """Render entries chronologically followed by grand totals."""
    if not report.entries:
        return (
            f"No meals logged between {report.start.isoformat()} "
            f"and {report.end.isoformat()}."
        )
    lines: list[str] = []
    for entry in report.entries:
        header = [_minute(entry.logged_at)]
        if entry.category is not None:
            header.append(entry.category.value)
        if entry.template_name:
            header.append(f"({entry.template_name})")
        lines.append(" ".join(header))
        for item in entry.items:
            macros = []
            if item.macros.calories is not None:
                macros.append(f"{_rounded(item.macros.calories, 0)} cal")
            if item.macros.protein is not None:
                macros.append(f"{_rounded(item.macros.protein, 1)}g P")
            quantity = ""
            if item.quantity is not None:
                quantity = f" × {format_number(item.quantity)}"
            detail = f" — {', '.join(macros)}" if macros else ""
            lines.append(f"  - {item.name or 'unnamed'}{quantity}{detail}")
        if entry.notes:
            lines.append(f"  Note: {entry.notes}")
        lines.append("")
    totals = _totals_line(report.totals)
    if totals:
        lines.append(f"Totals: {totals}")
    return "\n".join(lines)


def daily_summary(summary: DailySummary) -> str:
    """Render day totals and the per-category breakdown."""
    day = summary.day.isoformat()
    if summary.entry_count == 0:
        return f"No meals logged on {day}."
    lines = [
        f"Daily summary for {day}",
        f"{summary.entry_count} meal(s) logged",
        "",
        f"Totals: {_totals_line(summary.totals, full=True)}",
    ]
    for category in CATEGORY_DISPLAY_ORDER:
        totals = summary.by_category.get(category)
        if totals is not None:
            lines.append(f"  {category}: {_totals_line(totals, full=True)}")
    return "\n".join(lines)


def metric_created(metric: Metric) -> str:
    unit = f" in {metric.unit}" if metric.unit else ""
    return (
        f'Created metric "{metric.name}" '
        f"({metric.kind.value}, {metric.resolution.value}){unit}"
    )


def metric_deleted(name: str) -> str:
    return f'Deleted metric "{name}" and all its entries.'


def metric_list(metrics: list[Metric]) -> str:
    if not metrics:
        return "No metrics defined yet. Use create_metric to get started."
    return "\n".join(
        f"- {metric.name} ({metric.kind.value}, {metric.resolution.value})"
        + (f" [{metric.unit}]" if metric.unit else "")
        for metric in metrics
    )


def _metric_value(metric: Metric, value: float | None) -> str:
    unit = f" {metric.unit}" if metric.unit else ""
    return f"{_MISSING if value is None else format_number(value)}{unit}"


def metric_logged(metric: Metric, entry: MetricEntry) -> str:
    if metric.kind is MetricKind.CHECKIN:
        display = "checked in"
    else:
        display = f"logged {_metric_value(metric, entry.value)}"
    return f"{metric.name}: {display} on {entry.entry_date.isoformat()}"


def metric_entries(
    metric: Metric, entries: list[MetricEntry], first: date, last: date
) -> str:
    """Render entries of a metric for a date range."""
    if not entries:
        return (
            f'No entries for "{metric.name}" between '
            f"{first.isoformat()} and {last.isoformat()}."
        )
    lines = []
    for entry in entries:
        day = entry.entry_date.isoformat()
        if metric.kind is MetricKind.CHECKIN:
            lines.append(f"- {day}: ✓")
        else:
            lines.append(f"- {day}: {_metric_value(metric, entry.value)}")
    return (
        f"{metric.name} ({first.isoformat()} to {last.isoformat()}):\n"
        + "\n".join(lines)
    )
