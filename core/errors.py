# =============================================================================
# core/errors.py  —  Exception taxonomy
# =============================================================================
#
# Every failure the planner can raise derives from TripPlannerError, so the
# CLI (and any future HTTP layer) can catch one type for "the turn failed".
#
#   TripPlannerError
#     ├── OrchestratorError          anything between us and a tool server
#     │     ├── ServerConnectionError   handshake failed / timed out
#     │     ├── TransportError          subprocess died, pipe broke, timeout
#     │     ├── UnknownServerError      no session with that name
#     │     ├── UnknownToolError        tool not in the server's catalog
#     │     └── ToolExecutionError      tool ran and reported isError
#     ├── ModelCallError             the LLM call itself failed
#     └── RoundTripLimitError        too many model/tool round trips
#
# Validation issues and warnings from validate_itinerary are DATA, not
# exceptions.  An infeasible plan is a normal answer.
# =============================================================================


class TripPlannerError(Exception):
    """Base class for all planner errors."""


class OrchestratorError(TripPlannerError):
    """Failure talking to a tool server."""


class ServerConnectionError(OrchestratorError, ConnectionError):
    """The tool server could not be started or never completed its handshake."""

    def __init__(self, server_name: str, reason: str):
        self.server_name = server_name
        self.reason = reason
        super().__init__(f"Could not connect to tool server '{server_name}': {reason}")


class TransportError(OrchestratorError):
    """The channel to a connected tool server broke mid-call."""

    def __init__(self, server_name: str, reason: str):
        self.server_name = server_name
        self.reason = reason
        super().__init__(f"Transport to '{server_name}' failed: {reason}")


class UnknownServerError(OrchestratorError, LookupError):
    def __init__(self, server_name: str):
        self.server_name = server_name
        super().__init__(f"Tool server '{server_name}' is not connected")


class UnknownToolError(OrchestratorError, LookupError):
    def __init__(self, tool_name: str, server_name: str | None = None):
        self.tool_name = tool_name
        self.server_name = server_name
        where = f" on server '{server_name}'" if server_name else ""
        super().__init__(f"Unknown tool '{tool_name}'{where}")


class ToolExecutionError(OrchestratorError):
    """The tool ran but answered with isError=true.  Carries the server's message."""

    def __init__(self, server_name: str, tool_name: str, message: str):
        self.server_name = server_name
        self.tool_name = tool_name
        self.message = message
        super().__init__(message)


class ModelCallError(TripPlannerError):
    """The language model could not be reached or returned garbage."""


class RoundTripLimitError(TripPlannerError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Turn exceeded {limit} model round trips without a final answer")
