# =============================================================================
# tools/itinerary_server.py  —  FastMCP server: itinerary build & validate
# =============================================================================
#
# Catalog:
#   build_itinerary(days)                       pass-through assembler
#   validate_itinerary(itinerary, constraints)  deterministic feasibility check
#
# Both tools are stateless.  The rules themselves live in core.itinerary.
# Schema problems (bad time format, duplicate day numbers) come back to the
# caller as isError results via ToolError.
#
# RUNNING THIS SERVER:
#   python -m tools.itinerary_server      (stdio, spawned by the orchestrator)
# =============================================================================

import logging
from typing import Annotated, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field, ValidationError

from core.config import Settings
from core.itinerary import build_itinerary as assemble_itinerary
from core.itinerary import validate_itinerary as check_itinerary
from core.models import DayPlan, ItineraryDocument, ValidationConstraints
from tools.server_logging import configure_server_logging, log_request, log_response, log_status

SERVER_NAME = "itinerary-builder-server"

logger = logging.getLogger(__name__)


def create_server() -> FastMCP:
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool()
    def build_itinerary(
        days: Annotated[list[DayPlan], Field(description="Array of day objects containing activities")],
    ) -> dict:
        """Build or update a structured day-by-day travel itinerary with activities, times, and locations."""
        log_request(logger, "build_itinerary", days=len(days))
        try:
            itinerary = ItineraryDocument(days=days)
        except ValidationError as e:
            raise ToolError(f"Invalid itinerary: {e}") from e

        result = assemble_itinerary(itinerary)
        log_status(logger, f"{result['total_days']} days, {result['total_activities']} activities")
        return log_response(logger, "build_itinerary", result)

    @mcp.tool()
    def validate_itinerary(
        itinerary: Annotated[ItineraryDocument, Field(description="The itinerary to validate")],
        constraints: Annotated[
            Optional[ValidationConstraints],
            Field(description="Optional constraints (max_hours_per_day, pace)"),
        ] = None,
    ) -> dict:
        """Validate an itinerary for feasibility (time span per day, pace, time conflicts)."""
        log_request(logger, "validate_itinerary", days=len(itinerary.days), constraints=constraints)
        result = check_itinerary(itinerary, constraints)
        log_status(logger, f"valid={result['valid']} issues={len(result['issues'])} warnings={len(result['warnings'])}")
        return log_response(logger, "validate_itinerary", result)

    return mcp


def main() -> None:
    settings = Settings.from_env()
    configure_server_logging("MCP Itinerary", settings.log_level)
    create_server().run()


if __name__ == "__main__":
    main()
