"""Tests for the /api/mcp HTTP transport."""

import asyncio
import contextlib
import json

from fastapi.testclient import TestClient

from nutrition_mcp.api.app import create_app
from nutrition_mcp.api.gateway import PushStreamResponse
from nutrition_mcp.containers import AppContainer
from nutrition_mcp.domain.identity import CallerIdentity
from tests.fakes import NO_SUBJECT_TOKEN, OTHER_USER_TOKEN, USER_ID, bearer

CALLER = CallerIdentity(subject=USER_ID)

MCP = "/api/mcp"


def _rpc(
    method: str, params: dict[str, object] | None = None, request_id: int = 1
) -> dict[str, object]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": method,
        "params": params or {},
    }


def _initialize(client: TestClient) -> str:
    response = client.post(
        MCP,
        json=_rpc("initialize", {"protocolVersion": "2025-06-18"}),
        headers=bearer(),
    )
    assert response.status_code == 200
    return response.headers["Mcp-Session-Id"]


def _session_headers(session_id: str, token: str | None = None) -> dict[str, str]:
    headers = bearer(token) if token else bearer()
    return {**headers, "Mcp-Session-Id": session_id}


def test_initialize_negotiates_and_returns_session(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        MCP,
        json=_rpc("initialize", {"protocolVersion": "1999-01-01"}),
        headers=bearer(),
    )

    assert response.status_code == 200
    assert response.headers["Mcp-Session-Id"]
    result = response.json()["result"]
    assert result["protocolVersion"] == "2025-06-18"
    assert result["serverInfo"] == {
        "name": "nutrition-tracking-mcp",
        "version": "1.0.0",
    }
    assert result["capabilities"]["tools"] == {"listChanged": False}


def test_list_and_call_tools_in_session(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _initialize(client)

    headers = _session_headers(session_id)
    arguments = {"name": "Egg", "baseUnit": "1 large", "calories": 78}

    listed = client.post(MCP, json=_rpc("tools/list", request_id=2), headers=headers)
    called = client.post(
        MCP,
        json=_rpc(
            "tools/call",
            {"name": "create_food", "arguments": arguments},
            request_id=3,
        ),
        headers=headers,
    )

    assert len(listed.json()["result"]["tools"]) == 17
    assert called.headers["Mcp-Session-Id"] == session_id
    assert called.json() == {
        "jsonrpc": "2.0",
        "id": 3,
        "result": {
            "content": [
                {"type": "text", "text": 'Created food "Egg" (per 1 large): 78 cal'}
            ],
            "isError": False,
        },
    }


def test_unknown_tool_and_method(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _initialize(client)
    headers = _session_headers(session_id)

    unknown_tool = client.post(
        MCP, json=_rpc("tools/call", {"name": "brew", "arguments": {}}), headers=headers
    )
    unknown_method = client.post(MCP, json=_rpc("resources/list"), headers=headers)

    assert unknown_tool.status_code == 200
    assert unknown_tool.json()["error"] == {
        "code": -32602,
        "message": "Tool brew not found",
    }
    assert unknown_method.json()["error"]["code"] == -32601


def test_notification_is_accepted_without_body(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _initialize(client)

    response = client.post(
        MCP,
        json={"jsonrpc": "2.0", "method": "notifications/initialized"},
        headers=_session_headers(session_id),
    )

    assert response.status_code == 202
    assert response.content == b""


def test_requests_without_session_are_rejected(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(MCP, json=_rpc("tools/list"), headers=bearer())

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32000


def test_unknown_session_is_not_found(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        MCP, json=_rpc("tools/list"), headers=_session_headers("missing")
    )

    assert response.status_code == 404
    assert response.json() == {
        "jsonrpc": "2.0",
        "error": {"code": -32001, "message": "Session not found"},
        "id": None,
    }


def test_session_is_bound_to_its_subject(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _initialize(client)

    response = client.post(
        MCP,
        json=_rpc("tools/list"),
        headers=_session_headers(session_id, OTHER_USER_TOKEN),
    )

    assert response.status_code == 404


def test_reinitialize_in_session_is_rejected(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _initialize(client)

    response = client.post(
        MCP, json=_rpc("initialize"), headers=_session_headers(session_id)
    )

    assert response.status_code == 400


def test_malformed_bodies(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    headers = {**bearer(), "Content-Type": "application/json"}

    parse_error = client.post(MCP, content=b"{not json", headers=headers)
    batch = client.post(MCP, json=[_rpc("ping")], headers=bearer())

    assert parse_error.status_code == 400
    assert parse_error.json()["error"] == {"code": -32700, "message": "Parse error"}
    assert batch.status_code == 400
    assert batch.json()["error"]["code"] == -32600


def test_delete_terminates_session(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _initialize(client)

    deleted = client.delete(MCP, headers=_session_headers(session_id))
    again = client.delete(MCP, headers=_session_headers(session_id))
    after = client.post(MCP, json=_rpc("ping"), headers=_session_headers(session_id))

    assert deleted.status_code == 200
    assert again.status_code == 404
    assert after.status_code == 404
    assert len(container.gateway.registry) == 0


def test_push_stream_preconditions(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    session_id = _initialize(client)

    not_acceptable = client.get(MCP, headers=_session_headers(session_id))
    missing_id = client.get(MCP, headers={**bearer(), "Accept": "text/event-stream"})
    unknown = client.get(
        MCP, headers={**_session_headers("missing"), "Accept": "text/event-stream"}
    )

    assert not_acceptable.status_code == 406
    assert missing_id.status_code == 400
    assert unknown.status_code == 404


def test_stateless_mode(stateless_container: AppContainer) -> None:
    client = TestClient(create_app(stateless_container))

    called = client.post(
        MCP,
        json=_rpc("tools/call", {"name": "list_foods", "arguments": {}}),
        headers=bearer(),
    )
    stream = client.get(MCP, headers={**bearer(), "Accept": "text/event-stream"})
    deleted = client.delete(MCP, headers=bearer())

    assert called.status_code == 200
    assert "Mcp-Session-Id" not in called.headers
    assert called.json()["result"]["content"][0]["text"].startswith("No foods")
    assert stream.status_code == 405
    assert stream.json()["error"]["message"] == "Method not allowed."
    assert deleted.status_code == 405
    assert len(stateless_container.gateway.registry) == 0


def test_missing_or_invalid_token_is_challenged(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    missing = client.post(MCP, json=_rpc("ping"))
    invalid = client.post(MCP, json=_rpc("ping"), headers=bearer("forged"))

    metadata = "https://proxy.example.com/.well-known/oauth-protected-resource"
    assert missing.status_code == 401
    challenge = f'Bearer resource_metadata="{metadata}"'
    assert missing.headers["WWW-Authenticate"] == challenge
    assert invalid.status_code == 401
    assert invalid.headers["WWW-Authenticate"].endswith('error="invalid_token"')


def test_tool_call_without_subject_is_internal_error(
    stateless_container: AppContainer,
) -> None:
    client = TestClient(create_app(stateless_container))

    response = client.post(
        MCP,
        json=_rpc("tools/call", {"name": "list_foods", "arguments": {}}),
        headers=bearer(NO_SUBJECT_TOKEN),
    )

    assert response.status_code == 500
    assert response.json()["error"] == {"code": -32603, "message": "Internal error"}


def test_initialize_notification_is_rejected(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        MCP,
        json={"jsonrpc": "2.0", "method": "initialize", "params": {}},
        headers=bearer(),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32600
    assert "Mcp-Session-Id" not in response.headers
    assert len(container.gateway.registry) == 0


def test_push_stream_closes_session_when_client_is_gone(
    container: AppContainer,
) -> None:
    gateway = container.gateway

    async def receive() -> dict[str, object]:
        return {"type": "http.disconnect"}

    async def send(message: dict[str, object]) -> None:
        raise OSError("connection reset")

    async def scenario() -> None:
        opened = await gateway.handle_post(
            json.dumps(_rpc("initialize")).encode(), None, CALLER
        )
        session = gateway.open_stream(opened.session_id, CALLER, "text/event-stream")
        response = PushStreamResponse(gateway.stream_events(session))
        scope = {"type": "http", "asgi": {"spec_version": "2.4"}}
        with contextlib.suppress(Exception):
            await response(scope, receive, send)

    asyncio.run(scenario())

    assert len(gateway.registry) == 0
