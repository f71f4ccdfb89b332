"""Session registry and the transport-facing gateway."""

import asyncio
import json
import logging
import time
from collections import deque
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from uuid import uuid4

from nutrition_mcp.config import SessionMode
from nutrition_mcp.domain.identity import CallerIdentity
from nutrition_mcp.gateway.dispatcher import ToolDispatcher
from nutrition_mcp.gateway.protocol import (
    INVALID_REQUEST,
    SERVER_ERROR,
    SESSION_NOT_FOUND,
    JsonRpcRequest,
    ProtocolError,
    decode_body,
    parse_request,
)

_logger = logging.getLogger(__name__)

EVENT_STREAM = "text/event-stream"

DispatcherFactory = Callable[[], ToolDispatcher]


class SessionState(StrEnum):
    """Lifecycle of a session."""

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(eq=False)
class Session:
    """A negotiated session with its dispatcher and push buffer."""

    id: str
    subject: str | None
    dispatcher: ToolDispatcher
    buffer_size: int = 100
    state: SessionState = SessionState.UNINITIALIZED
    stream_open: bool = False
    last_seen: float = field(default_factory=time.monotonic)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    _pending: deque[dict[str, Any]] = field(default_factory=deque)
    _wakeup: asyncio.Event = field(default_factory=asyncio.Event)

    def activate(self) -> None:
        self.state = SessionState.ACTIVE
        self.dispatcher.push = self.push
        self.touch()

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def push(self, message: dict[str, Any]) -> None:
        """Buffer a server message; the oldest is dropped when full."""
        if self.state is SessionState.CLOSED:
            return
        if len(self._pending) >= self.buffer_size:
            self._pending.popleft()
            _logger.warning("Push buffer full for session %s; dropped oldest", self.id)
        self._pending.append(message)
        self._wakeup.set()

    def close(self) -> None:
        """Tear down the dispatcher and wake any open stream."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        self._pending.clear()
        self.dispatcher.close()
        self._wakeup.set()

    async def messages(
        self, keepalive_seconds: float
    ) -> AsyncIterator[dict[str, Any] | None]:
        """Yield pushed messages in order; None marks a keepalive tick.

        Ends once the session is closed.
        """
        while self.state is not SessionState.CLOSED:
            if self._pending:
                yield self._pending.popleft()
                continue
            self._wakeup.clear()
            try:
                await asyncio.wait_for(self._wakeup.wait(), keepalive_seconds)
            except TimeoutError:
                yield None


@dataclass
class SessionRegistry:
    """Process-wide map of live sessions.

    Only mutated on the event loop, with no await between lookup and change.
    """

    _sessions: dict[str, Session] = field(default_factory=dict)

    def add(self, session: Session) -> None:
        self._sessions[session.id] = session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Session | None:
        return self._sessions.pop(session_id, None)

    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)


@dataclass(frozen=True)
class GatewayResponse:
    """What the HTTP layer should send back for a POST."""

    status_code: int
    body: dict[str, Any] | None
    session_id: str | None = None


@dataclass
class SessionGateway:
    """Routes transport verbs to sessions, or to throwaway dispatchers."""

    mode: SessionMode
    registry: SessionRegistry
    dispatcher_factory: DispatcherFactory
    buffer_size: int = 100
    keepalive_seconds: float = 15

    async def handle_post(
        self,
        raw_body: bytes,
        session_id: str | None,
        identity: CallerIdentity | None,
    ) -> GatewayResponse:
        """Handle one JSON-RPC message."""
        request = parse_request(decode_body(raw_body))
        if request.method == "initialize" and request.is_notification:
            raise ProtocolError(400, INVALID_REQUEST, "Invalid Request")
        if self.mode is SessionMode.STATELESS:
            dispatcher = self.dispatcher_factory()
            try:
                body = await dispatcher.handle(request, identity)
            finally:
                dispatcher.close()
            return _response(body)

        if session_id is None:
            if request.method != "initialize":
                raise ProtocolError(
                    400, SERVER_ERROR, "Bad Request: Mcp-Session-Id header is required"
                )
            return await self._initialize(request, identity)

        session = self._require(session_id, identity)
        if request.method == "initialize":
            raise ProtocolError(
                400, SERVER_ERROR, "Bad Request: Session already initialized"
            )
        async with session.lock:
            if session.state is SessionState.CLOSED:
                raise _session_not_found()
            session.touch()
            body = await session.dispatcher.handle(request, identity)
        return _response(body, session.id)

    def open_stream(
        self,
        session_id: str | None,
        identity: CallerIdentity | None,
        accept: str | None,
    ) -> Session:
        """Claim the session's single push channel."""
        self._require_stateful()
        if not accept or EVENT_STREAM not in accept:
            raise ProtocolError(
                406,
                SERVER_ERROR,
                "Not Acceptable: Client must accept text/event-stream",
            )
        session = self._require(_required_id(session_id), identity)
        if session.stream_open:
            raise ProtocolError(
                409,
                SERVER_ERROR,
                "Conflict: Only one SSE stream is allowed per session",
            )
        session.stream_open = True
        _logger.info("Push stream attached to session %s", session.id)
        return session

    def stream_events(self, session: Session) -> "PushStream":
        """Render pushed messages as SSE frames until the session ends.

        However the stream ends, the session is terminated with it.
        """
        return PushStream(gateway=self, session=session)

    def detach_stream(self, session: Session) -> None:
        """Release the push channel and terminate its session."""
        if not session.stream_open:
            return
        session.stream_open = False
        _logger.info("Push stream detached from session %s", session.id)
        self.close_session(session.id)

    def terminate(
        self, session_id: str | None, identity: CallerIdentity | None
    ) -> None:
        """Close a session on client request."""
        self._require_stateful()
        session = self._require(_required_id(session_id), identity)
        self.close_session(session.id)

    def close_session(self, session_id: str) -> bool:
        """Remove and tear down a session; False when it was already gone."""
        session = self.registry.remove(session_id)
        if session is None:
            return False
        session.close()
        _logger.info("Closed session %s", session_id)
        return True

    def close_idle(self, max_idle_seconds: float) -> int:
        """Close sessions without traffic or an open stream for too long."""
        cutoff = time.monotonic() - max_idle_seconds
        stale = [
            session.id
            for session in self.registry.sessions()
            if not session.stream_open and session.last_seen < cutoff
        ]
        for session_id in stale:
            self.close_session(session_id)
        if stale:
            _logger.info("Closed %s idle session(s)", len(stale))
        return len(stale)

    def close_all(self) -> None:
        """Close every session, for shutdown."""
        for session in self.registry.sessions():
            self.close_session(session.id)

    async def _initialize(
        self, request: JsonRpcRequest, identity: CallerIdentity | None
    ) -> GatewayResponse:
        session = Session(
            id=uuid4().hex,
            subject=identity.subject if identity else None,
            dispatcher=self.dispatcher_factory(),
            buffer_size=self.buffer_size,
        )
        async with session.lock:
            body = await session.dispatcher.handle(request, identity)
            session.activate()
        self.registry.add(session)
        _logger.info("Opened session %s", session.id)
        return _response(body, session.id)

    def _require(
        self, session_id: str, identity: CallerIdentity | None
    ) -> Session:
        session = self.registry.get(session_id)
        subject = identity.subject if identity else None
        if session is None or session.subject != subject:
            raise _session_not_found()
        return session

    def _require_stateful(self) -> None:
        if self.mode is SessionMode.STATELESS:
            raise ProtocolError(405, SERVER_ERROR, "Method not allowed.")


class PushStream:
    """SSE frames of one attached session.

    Closing the stream detaches it even when no frame was ever requested.
    """

    def __init__(self, gateway: SessionGateway, session: Session) -> None:
        self.gateway = gateway
        self.session = session
        self._frames = self._render()

    def __aiter__(self) -> "PushStream":
        return self

    async def __anext__(self) -> str:
        return await self._frames.__anext__()

    async def aclose(self) -> None:
        try:
            await self._frames.aclose()
        finally:
            self.gateway.detach_stream(self.session)

    async def _render(self) -> AsyncGenerator[str, None]:
        try:
            async for message in self.session.messages(self.gateway.keepalive_seconds):
                if message is None:
                    yield ": keepalive\n\n"
                else:
                    yield f"event: message\ndata: {json.dumps(message)}\n\n"
        finally:
            self.gateway.detach_stream(self.session)


def _required_id(session_id: str | None) -> str:
    if not session_id:
        raise ProtocolError(
            400, SERVER_ERROR, "Bad Request: Mcp-Session-Id header is required"
        )
    return session_id


def _session_not_found() -> ProtocolError:
    return ProtocolError(404, SESSION_NOT_FOUND, "Session not found")


def _response(
    body: dict[str, Any] | None, session_id: str | None = None
) -> GatewayResponse:
    if body is None:
        return GatewayResponse(status_code=202, body=None, session_id=session_id)
    return GatewayResponse(status_code=200, body=body, session_id=session_id)
