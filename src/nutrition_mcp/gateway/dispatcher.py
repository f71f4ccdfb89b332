"""Per-session JSON-RPC method dispatch."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from nutrition_mcp.domain.identity import CallerIdentity
from nutrition_mcp.gateway.protocol import (
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    SERVER_NAME,
    SERVER_VERSION,
    JsonRpcRequest,
    error_envelope,
    negotiate_version,
    notification,
    result_envelope,
)
from nutrition_mcp.gateway.tools import ToolRegistry, ToolResult, UnknownToolError

_logger = logging.getLogger(__name__)

PushCallback = Callable[[dict[str, Any]], None]

SERVER_CAPABILITIES = {"tools": {"listChanged": False}, "logging": {}}


@dataclass
class ToolDispatcher:
    """Answers JSON-RPC methods for one session.

    In stateful mode ``push`` forwards a log notification after every tool
    call to the session's server-push channel.
    """

    registry: ToolRegistry
    push: PushCallback | None = None
    protocol_version: str | None = None
    closed: bool = False

    async def handle(
        self, request: JsonRpcRequest, identity: CallerIdentity | None
    ) -> dict[str, Any] | None:
        """Return the response envelope, or None for notifications."""
        if request.is_notification or request.method.startswith("notifications/"):
            return None
        params = request.params or {}
        if request.method == "initialize":
            return result_envelope(request.id, self._initialize(params))
        if request.method == "ping":
            return result_envelope(request.id, {})
        if request.method == "tools/list":
            return result_envelope(
                request.id,
                {"tools": [spec.describe() for spec in self.registry.list_tools()]},
            )
        if request.method == "tools/call":
            return await self._call_tool(request, params, identity)
        return error_envelope(
            request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}"
        )

    def close(self) -> None:
        """Detach from the session; later pushes are dropped."""
        self.closed = True
        self.push = None

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        self.protocol_version = negotiate_version(params.get("protocolVersion"))
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": SERVER_CAPABILITIES,
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    async def _call_tool(
        self,
        request: JsonRpcRequest,
        params: dict[str, Any],
        identity: CallerIdentity | None,
    ) -> dict[str, Any]:
        name = params.get("name")
        arguments = params.get("arguments")
        if not isinstance(name, str) or not (
            arguments is None or isinstance(arguments, dict)
        ):
            return error_envelope(request.id, INVALID_PARAMS, "Invalid params")
        try:
            result = await self.registry.call(name, arguments, identity)
        except UnknownToolError:
            return error_envelope(request.id, INVALID_PARAMS, f"Tool {name} not found")
        self._publish(name, result)
        return result_envelope(request.id, result.as_payload())

    def _publish(self, tool_name: str, result: ToolResult) -> None:
        if self.push is None:
            return
        self.push(
            notification(
                "notifications/message",
                {
                    "level": "error" if result.is_error else "info",
                    "logger": "tools",
                    "data": {
                        "tool": tool_name,
                        "isError": result.is_error,
                        "text": result.text,
                    },
                },
            )
        )
