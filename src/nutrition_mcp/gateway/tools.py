"""Tool registry: argument validation, identity check and handler dispatch."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError

from nutrition_mcp.domain.errors import IdentityError, ToolError, ToolErrorKind
from nutrition_mcp.domain.identity import CallerIdentity

_logger = logging.getLogger(__name__)

ToolHandler = Callable[[str, Any], str]


@dataclass(frozen=True)
class ToolSpec:
    """A named tool with its argument model and a sync handler.

    The handler receives the caller's subject and the validated arguments
    and returns the text shown to the agent.
    """

    name: str
    description: str
    arguments: type[BaseModel]
    handler: ToolHandler

    def describe(self) -> dict[str, object]:
        """Return the tools/list entry."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.arguments.model_json_schema(
                by_alias=True, mode="validation"
            ),
        }


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a tool call."""

    text: str
    error_kind: ToolErrorKind | None = None

    @property
    def is_error(self) -> bool:
        return self.error_kind is not None

    def as_payload(self) -> dict[str, object]:
        """Return the tools/call result body."""
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }


class UnknownToolError(Exception):
    """No tool is registered under the requested name."""


@dataclass
class ToolRegistry:
    """Registry of callable tools."""

    _tools: dict[str, ToolSpec] = field(default_factory=dict)

    def register(self, spec: ToolSpec) -> None:
        """Add a tool; names must be unique."""
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def list_tools(self) -> list[ToolSpec]:
        """Return tools in registration order."""
        return list(self._tools.values())

    async def call(
        self,
        name: str,
        arguments: dict[str, Any] | None,
        identity: CallerIdentity | None,
    ) -> ToolResult:
        """Validate, check identity, then run the handler off the event loop.

        Recoverable failures come back as error results; IdentityError and
        anything unexpected propagate.
        """
        spec = self._tools.get(name)
        if spec is None:
            raise UnknownToolError(name)
        try:
            parsed = spec.arguments.model_validate(arguments or {})
        except ValidationError as exc:
            return ToolResult(
                text=format_validation_error(name, exc),
                error_kind=ToolErrorKind.VALIDATION,
            )
        if identity is None or not identity.subject:
            raise IdentityError("Missing user identity")
        try:
            text = await run_in_threadpool(spec.handler, identity.subject, parsed)
        except ToolError as exc:
            _logger.info("Tool %s returned %s: %s", name, exc.kind, exc.message)
            return ToolResult(text=exc.message, error_kind=exc.kind)
        return ToolResult(text=text)


def format_validation_error(tool_name: str, exc: ValidationError) -> str:
    """Summarize pydantic errors as one readable line per field."""
    problems = []
    for error in exc.errors(include_url=False):
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        problems.append(f"{location}: {error['msg']}")
    return f"Invalid arguments for tool {tool_name}: " + "; ".join(problems)
