# =============================================================================
# tools/poi_server.py  —  FastMCP server: POI search
# =============================================================================
#
# Catalog (one tool):
#   search_pois(city, category, type)  →  up to 10 real OpenStreetMap places
#
# The tool is a thin wrapper around core.poi.PoiSearchService.  It never
# raises for network trouble: the service degrades to an empty list and the
# payload's `status` tells "no_match" apart from "lookup_failed".
#
# RUNNING THIS SERVER:
#   a) As a subprocess over stdio (what the orchestrator does):
#        python -m tools.poi_server
#   b) In-process: create_server(service) and hand the FastMCP object to the
#      orchestrator.  Tests use this with a fake service.
# =============================================================================

import logging
from dataclasses import asdict
from typing import Annotated, Optional

from fastmcp import FastMCP
from pydantic import Field

from core.config import Settings
from core.poi import PoiSearchService
from tools.server_logging import configure_server_logging, log_request, log_response, log_status

SERVER_NAME = "poi-search-server"
SOURCE_LABEL = "OpenStreetMap via Overpass API"

logger = logging.getLogger(__name__)


def create_server(service: Optional[PoiSearchService] = None, settings: Optional[Settings] = None) -> FastMCP:
    """Build the POI FastMCP server around `service` (real HTTP one by default)."""
    if service is None:
        service = PoiSearchService.from_settings(settings or Settings.from_env())

    mcp = FastMCP(SERVER_NAME)

    @mcp.tool()
    async def search_pois(
        city: Annotated[str, Field(description='The city to search in (e.g., "Paris", "Tokyo", "London")')],
        category: Annotated[str, Field(description='OSM category key (e.g., "tourism", "amenity", "leisure")')],
        type: Annotated[str, Field(description='OSM type value (e.g., "museum", "restaurant", "park", "viewpoint")')],
    ) -> dict:
        """Search for points of interest in a city using OpenStreetMap data.

        Returns real, grounded locations with coordinates: up to 10 places
        tagged category=type within 5 km of the city centre.  An empty list
        means the city was not found or the lookup failed (see `status`).
        """
        log_request(logger, "search_pois", city=city, category=category, type=type)

        outcome = await service.search(city, category, type)
        log_status(logger, f"Found {len(outcome.pois)} results (status={outcome.status})")

        return log_response(logger, "search_pois", {
            "success": True,
            "city": city,
            "category": category,
            "type": type,
            "count": len(outcome.pois),
            "status": outcome.status,
            "pois": [asdict(poi) for poi in outcome.pois],
            "source": SOURCE_LABEL,
        })

    return mcp


def main() -> None:
    settings = Settings.from_env()
    configure_server_logging("MCP POI", settings.log_level)
    create_server(settings=settings).run()


if __name__ == "__main__":
    main()
