"""JSON-RPC 2.0 envelopes and protocol constants."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000
SESSION_NOT_FOUND = -32001

SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]

SERVER_NAME = "nutrition-tracking-mcp"
SERVER_VERSION = "1.0.0"

SESSION_HEADER = "Mcp-Session-Id"

RequestId = str | int


class ProtocolError(Exception):
    """A transport-level rejection rendered as an error envelope."""

    def __init__(self, status_code: int, code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class JsonRpcRequest(BaseModel):
    """A single JSON-RPC request or notification."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: str
    method: str
    id: RequestId | None = None
    params: dict[str, Any] | None = None

    @property
    def is_notification(self) -> bool:
        """Notifications carry no id and get no response."""
        return "id" not in self.model_fields_set


def parse_request(payload: object) -> JsonRpcRequest:
    """Validate a decoded body as one JSON-RPC request."""
    if isinstance(payload, list):
        raise ProtocolError(400, INVALID_REQUEST, "Batch requests are not supported")
    if not isinstance(payload, dict):
        raise ProtocolError(400, INVALID_REQUEST, "Invalid Request")
    try:
        request = JsonRpcRequest.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(400, INVALID_REQUEST, "Invalid Request") from exc
    if request.jsonrpc != JSONRPC_VERSION:
        raise ProtocolError(400, INVALID_REQUEST, "Invalid Request")
    return request


def result_envelope(request_id: RequestId | None, result: object) -> dict[str, Any]:
    """Build a success response."""
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_envelope(
    request_id: RequestId | None, code: int, message: str
) -> dict[str, Any]:
    """Build an error response."""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "error": {"code": code, "message": message},
        "id": request_id,
    }


def notification(method: str, params: dict[str, Any]) -> dict[str, Any]:
    """Build a server-to-client notification."""
    return {"jsonrpc": JSONRPC_VERSION, "method": method, "params": params}


def negotiate_version(requested: object) -> str:
    """Echo a supported client version, otherwise offer the latest one."""
    if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return LATEST_PROTOCOL_VERSION


def decode_body(raw: bytes) -> object:
    """Decode a request body, mapping malformed JSON to a parse error."""
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ProtocolError(400, PARSE_ERROR, "Parse error") from exc
