# =============================================================================
# tools/orchestrator.py  —  MCP client orchestrator
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Owns one MCP client session per named tool server and exposes a single
#   call path:  call_tool(server, tool, arguments) -> decoded JSON payload.
#
# SESSION LIFECYCLE:
#
#     connect() ──► CONNECTING ──handshake + list_tools──► READY
#                        │                                   │
#                        └── timeout / failure ──► (removed) │
#                                                            ▼
#                        shutdown() or transport crash ──► CLOSED
#
#   The session map only changes in connect() and shutdown().  A crashed
#   session stays in the map as CLOSED so callers get a TransportError, not
#   an UnknownServerError.
#
# TRANSPORTS (chosen by ServerLaunchSpec):
#   module=...   spawn `python -m <module>` and speak MCP over its stdio
#   server=...   talk to a FastMCP object in this process (no subprocess)
#
# One call at a time per session; JSON-RPC request ids already correlate
# replies.  There is no retry: every failure goes straight to the caller.
# =============================================================================

import asyncio
import json
import logging
import os
import sys
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import anyio
from fastmcp import Client, FastMCP
from fastmcp.client.transports import StdioTransport
from mcp.shared.exceptions import McpError
from mcp.types import CONNECTION_CLOSED

from core.config import Settings
from core.errors import (
    ServerConnectionError,
    ToolExecutionError,
    TransportError,
    UnknownServerError,
    UnknownToolError,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class SessionStatus(str, Enum):
    CONNECTING = "connecting"
    READY = "ready"
    CLOSED = "closed"


@dataclass(frozen=True)
class ToolDescriptor:
    """One entry of a server's tool catalog."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass(frozen=True)
class ServerLaunchSpec:
    """How to reach a tool server: a module to spawn, or an in-process server."""

    module: Optional[str] = None
    server: Optional[FastMCP] = None
    python: str = sys.executable
    cwd: Optional[str] = None
    env: Optional[dict[str, str]] = None

    def make_transport(self) -> Any:
        if self.server is not None:
            return self.server
        if not self.module:
            raise ValueError("ServerLaunchSpec needs either `module` or `server`")
        return StdioTransport(
            command=self.python,
            args=["-m", self.module],
            # The MCP stdio client only forwards a minimal environment by
            # default; tool servers read their settings from ours.
            env=self.env if self.env is not None else dict(os.environ),
            cwd=self.cwd or str(PROJECT_ROOT),
        )


@dataclass
class ToolServerSession:
    name: str
    client: Client
    status: SessionStatus = SessionStatus.CONNECTING
    catalog: dict[str, ToolDescriptor] = field(default_factory=dict)
    exit_stack: AsyncExitStack = field(default_factory=AsyncExitStack)


def _field(obj: Any, name: str, legacy_name: str, default: Any = None) -> Any:
    """Read an MCP attribute by its current name, then by its camelCase one."""
    value = getattr(obj, name, None)
    if value is None:
        value = getattr(obj, legacy_name, None)
    return default if value is None else value


# Failures that mean the channel itself is gone.  An McpError with any other
# code is a reply from a live server.
_CHANNEL_CLOSED_ERRORS = (
    anyio.ClosedResourceError,
    anyio.BrokenResourceError,
    anyio.EndOfStream,
    BrokenPipeError,
    ConnectionResetError,
)


def _channel_closed(error: Exception, client: Any) -> bool:
    if isinstance(error, McpError):
        return error.error.code == CONNECTION_CLOSED
    return isinstance(error, _CHANNEL_CLOSED_ERRORS) or not client.is_connected()


def _text_of(result: Any) -> str:
    parts = [getattr(item, "text", "") for item in (result.content or [])]
    return "\n".join(p for p in parts if p)


class ToolOrchestrator:
    """Connects to tool servers and routes tool calls to them."""

    def __init__(self, handshake_timeout_sec: float = 15.0, tool_call_timeout_sec: float = 60.0):
        self.handshake_timeout_sec = handshake_timeout_sec
        self.tool_call_timeout_sec = tool_call_timeout_sec
        self._sessions: dict[str, ToolServerSession] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "ToolOrchestrator":
        return cls(settings.handshake_timeout_sec, settings.tool_call_timeout_sec)

    async def __aenter__(self) -> "ToolOrchestrator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    async def connect(self, name: str, launch_spec: ServerLaunchSpec) -> ToolServerSession:
        """Start (or attach to) a tool server and complete the MCP handshake.

        Raises:
            ServerConnectionError: the server could not be started, or the
                handshake / catalog listing did not finish within
                handshake_timeout_sec.
        """
        existing = self._sessions.get(name)
        if existing is not None and existing.status != SessionStatus.CLOSED:
            await self._close_session(existing)

        logger.info("[MCP Orchestrator] Connecting to %s...", name)
        session = ToolServerSession(name=name, client=Client(launch_spec.make_transport()))
        self._sessions[name] = session

        try:
            async with asyncio.timeout(self.handshake_timeout_sec):
                await session.exit_stack.enter_async_context(session.client)
                tools = await session.client.list_tools()
        except Exception as e:
            del self._sessions[name]
            await self._close_session(session)
            reason = "handshake timed out" if isinstance(e, TimeoutError) else (str(e) or type(e).__name__)
            raise ServerConnectionError(name, reason) from e

        session.catalog = {
            tool.name: ToolDescriptor(
                name=tool.name,
                description=tool.description or "",
                input_schema=dict(_field(tool, "input_schema", "inputSchema", {})),
            )
            for tool in tools
        }
        session.status = SessionStatus.READY
        logger.info("[MCP Orchestrator] Connected to %s (%d tools)", name, len(session.catalog))
        return session

    async def _close_session(self, session: ToolServerSession) -> None:
        session.status = SessionStatus.CLOSED
        try:
            await session.exit_stack.aclose()
        except Exception as e:
            logger.warning("[MCP Orchestrator] Error while closing %s: %s", session.name, e)

    async def shutdown(self) -> None:
        """Close every open session.  Safe to call more than once."""
        for session in self._sessions.values():
            if session.status == SessionStatus.CLOSED:
                continue
            logger.info("[MCP Orchestrator] Shutting down %s...", session.name)
            await self._close_session(session)

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------
    def session(self, server_name: str) -> ToolServerSession:
        try:
            return self._sessions[server_name]
        except KeyError:
            raise UnknownServerError(server_name) from None

    def list_tools(self, server_name: str) -> list[ToolDescriptor]:
        return list(self.session(server_name).catalog.values())

    @property
    def server_names(self) -> list[str]:
        return list(self._sessions)

    # -------------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------------
    async def call_tool(self, server_name: str, tool_name: str, arguments: dict[str, Any]) -> Any:
        """Invoke `tool_name` on `server_name` and return its decoded JSON payload.

        Raises:
            UnknownServerError: no session with that name.
            UnknownToolError:   the server does not declare that tool.
            TransportError:     session closed, channel broke, or the call
                                exceeded tool_call_timeout_sec.
            ToolExecutionError: the tool answered with isError=true.
        """
        session = self.session(server_name)
        if session.status != SessionStatus.READY:
            raise TransportError(server_name, f"session is {session.status.value}")
        if tool_name not in session.catalog:
            raise UnknownToolError(tool_name, server_name)

        logger.info("[MCP Orchestrator] Calling %s.%s...", server_name, tool_name)
        try:
            async with asyncio.timeout(self.tool_call_timeout_sec):
                result = await session.client.call_tool_mcp(name=tool_name, arguments=arguments)
        except TimeoutError as e:
            raise TransportError(server_name, f"{tool_name} timed out after {self.tool_call_timeout_sec}s") from e
        except Exception as e:
            if _channel_closed(e, session.client):
                logger.error("[MCP Orchestrator] %s went away during %s: %s", server_name, tool_name, e)
                await self._close_session(session)
            raise TransportError(server_name, str(e) or type(e).__name__) from e

        text = _text_of(result)
        if _field(result, "is_error", "isError", False):
            raise ToolExecutionError(server_name, tool_name, text or f"{tool_name} failed")

        if not text:
            return _field(result, "structured_content", "structuredContent", {})
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return {"text": text}


# =============================================================================
# Standard server set
# =============================================================================
POI_SERVER = "poi"
ITINERARY_SERVER = "itinerary"


def default_launch_specs(settings: Settings) -> dict[str, ServerLaunchSpec]:
    """Launch specs for the planner's two tool servers in the configured mode."""
    if settings.tool_server_mode == "in_process":
        from tools import itinerary_server, poi_server

        return {
            POI_SERVER: ServerLaunchSpec(server=poi_server.create_server(settings=settings)),
            ITINERARY_SERVER: ServerLaunchSpec(server=itinerary_server.create_server()),
        }
    if settings.tool_server_mode == "subprocess":
        return {
            POI_SERVER: ServerLaunchSpec(module="tools.poi_server"),
            ITINERARY_SERVER: ServerLaunchSpec(module="tools.itinerary_server"),
        }
    raise ValueError(f"Unknown TOOL_SERVER_MODE {settings.tool_server_mode!r}")


async def init_tool_servers(orchestrator: ToolOrchestrator, settings: Settings) -> None:
    for name, spec in default_launch_specs(settings).items():
        await orchestrator.connect(name, spec)
