"""HTTP transport for the tool gateway at /api/mcp."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from nutrition_mcp.api.auth import require_identity
from nutrition_mcp.domain.identity import CallerIdentity  # noqa: TC001
from nutrition_mcp.gateway.protocol import (
    INTERNAL_ERROR,
    SESSION_HEADER,
    ProtocolError,
    error_envelope,
)
from nutrition_mcp.gateway.sessions import EVENT_STREAM

if TYPE_CHECKING:
    from starlette.types import Receive, Scope, Send

    from nutrition_mcp.containers import AppContainer
    from nutrition_mcp.gateway.sessions import PushStream, SessionGateway

_logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mcp", tags=["mcp"])


def _gateway(request: Request) -> SessionGateway:
    container: AppContainer = request.app.state.container
    return container.gateway


def _protocol_error(exc: ProtocolError) -> JSONResponse:
    return JSONResponse(
        error_envelope(None, exc.code, exc.message), status_code=exc.status_code
    )


def _internal_error() -> JSONResponse:
    return JSONResponse(
        error_envelope(None, INTERNAL_ERROR, "Internal error"), status_code=500
    )


class PushStreamResponse(StreamingResponse):
    """SSE response that closes its push stream however the response ends."""

    def __init__(self, stream: PushStream) -> None:
        super().__init__(
            stream,
            media_type=EVENT_STREAM,
            headers={SESSION_HEADER: stream.session.id, "Cache-Control": "no-cache"},
        )
        self.stream = stream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.stream.aclose()


@router.post("")
async def post_message(
    request: Request,
    identity: CallerIdentity = Depends(require_identity),
    mcp_session_id: str | None = Header(default=None),
) -> Response:
    """Deliver one JSON-RPC message to a session or a throwaway dispatcher."""
    gateway = _gateway(request)
    try:
        result = await gateway.handle_post(
            await request.body(), mcp_session_id, identity
        )
    except ProtocolError as exc:
        return _protocol_error(exc)
    except Exception:
        _logger.exception(
            "Gateway request failed",
            extra={"session_id": mcp_session_id, "subject": identity.subject},
        )
        return _internal_error()
    headers = {SESSION_HEADER: result.session_id} if result.session_id else None
    if result.body is None:
        return Response(status_code=result.status_code, headers=headers)
    return JSONResponse(result.body, status_code=result.status_code, headers=headers)


@router.get("")
async def open_push_stream(
    request: Request,
    identity: CallerIdentity = Depends(require_identity),
    mcp_session_id: str | None = Header(default=None),
    accept: str | None = Header(default=None),
) -> Response:
    """Attach the session's server-push channel."""
    gateway = _gateway(request)
    try:
        session = gateway.open_stream(mcp_session_id, identity, accept)
    except ProtocolError as exc:
        return _protocol_error(exc)
    return PushStreamResponse(gateway.stream_events(session))


@router.delete("")
async def terminate_session(
    request: Request,
    identity: CallerIdentity = Depends(require_identity),
    mcp_session_id: str | None = Header(default=None),
) -> Response:
    """Close a session on client request."""
    try:
        _gateway(request).terminate(mcp_session_id, identity)
    except ProtocolError as exc:
        return _protocol_error(exc)
    return Response(status_code=200)
