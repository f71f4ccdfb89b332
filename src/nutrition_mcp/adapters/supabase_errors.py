"""Translation of PostgREST failures into repository signals."""

from collections.abc import Iterator
from contextlib import contextmanager

from postgrest.exceptions import APIError

from nutrition_mcp.domain.errors import DuplicateRecordError

UNIQUE_VIOLATION = "23505"


@contextmanager
def duplicate_guard() -> Iterator[None]:
    """Raise DuplicateRecordError for unique-constraint violations."""
    try:
        yield
    except APIError as exc:
        if exc.code == UNIQUE_VIOLATION:
            raise DuplicateRecordError(exc.message or "duplicate key") from exc
        raise


def like_pattern(text: str) -> str:
    """Return an ILIKE substring pattern with wildcards escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
