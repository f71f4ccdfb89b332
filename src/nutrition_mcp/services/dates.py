"""Parsing of date arguments and UTC day windows."""

from datetime import UTC, date, datetime, time, timedelta

from nutrition_mcp.domain.errors import ValidationFailure

_DATE_ONLY_LENGTH = 10
_DATE_ONLY_LOG_TIME = time(12, 0, tzinfo=UTC)


def today() -> date:
    """Return the current UTC calendar day."""
    return datetime.now(tz=UTC).date()


def parse_day(raw: str, argument: str = "date") -> date:
    """Parse a YYYY-MM-DD argument."""
    try:
        if len(raw) != _DATE_ONLY_LENGTH:
            raise ValueError(raw)
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationFailure(
            f'Invalid {argument} "{raw}": expected YYYY-MM-DD.'
        ) from exc


def parse_logged_at(raw: str) -> datetime:
    """Parse a YYYY-MM-DD (noon UTC) or ISO datetime argument into UTC."""
    if len(raw) == _DATE_ONLY_LENGTH:
        return datetime.combine(parse_day(raw, "loggedAt"), _DATE_ONLY_LOG_TIME)
    try:
        parsed = datetime.fromisoformat(raw)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError) as exc:
        raise ValidationFailure(
            f'Invalid loggedAt "{raw}": expected YYYY-MM-DD or an ISO datetime.'
        ) from exc


def start_of_day(day: date) -> datetime:
    """Return midnight UTC at the start of day."""
    return datetime.combine(day, time.min, tzinfo=UTC)


def day_window(first: date, last: date) -> tuple[datetime, datetime]:
    """Return the half-open UTC window covering first through last inclusive."""
    if last >= date.max:
        raise ValidationFailure(f'Date "{last.isoformat()}" is out of range.')
    return start_of_day(first), start_of_day(last + timedelta(days=1))
