# =============================================================================
# core/poi.py  —  Point-of-interest lookup (Nominatim + Overpass)
# =============================================================================
#
# Two steps, two collaborators:
#
#   1. Geocoder      city name  → (lat, lon)           Nominatim /search
#   2. SpatialIndex  (lat, lon) → OSM elements tagged   Overpass API
#                    category=type within RADIUS_M
#
# POLICY: degrade, don't crash.  An unknown city or a network fault on either
# step yields an EMPTY list, never an exception.  The outcome's `status`
# says which of the two happened ("no_match" vs "lookup_failed").
#
# The collaborators are tiny classes with one async method each so tests can
# swap in fakes without touching HTTP.
# =============================================================================

import logging
from typing import Any, Optional, Protocol

import httpx

from core.config import Settings
from core.models import PointOfInterest, PoiSearchOutcome

logger = logging.getLogger(__name__)

RADIUS_M = 5000
MAX_RESULTS = 10


class Geocoder(Protocol):
    async def resolve(self, city: str) -> Optional[tuple[float, float]]: ...


class SpatialIndex(Protocol):
    async def query(self, lat: float, lon: float, radius_m: int, category: str, type_: str) -> list[dict[str, Any]]: ...


# -----------------------------------------------------------------------------
# HTTP collaborators
# -----------------------------------------------------------------------------
class NominatimGeocoder:
    """Resolve a city name to coordinates with OpenStreetMap Nominatim."""

    def __init__(self, settings: Settings):
        self.base_url = settings.nominatim_base
        self.timeout = settings.http_timeout_sec
        self.headers = {"User-Agent": settings.http_user_agent}

    async def resolve(self, city: str) -> Optional[tuple[float, float]]:
        params = {"q": city, "format": "json", "limit": 1}
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
            resp = await client.get(f"{self.base_url}/search", params=params)
            resp.raise_for_status()
            data = resp.json()
        if not data:
            return None
        return float(data[0]["lat"]), float(data[0]["lon"])


class OverpassIndex:
    """Query the Overpass API for tagged nodes, ways and relations."""

    def __init__(self, settings: Settings):
        self.url = settings.overpass_url
        self.timeout = settings.http_timeout_sec
        self.headers = {"User-Agent": settings.http_user_agent}

    @staticmethod
    def build_query(lat: float, lon: float, radius_m: int, category: str, type_: str) -> str:
        around = f"(around:{radius_m},{lat},{lon})"
        return (
            "[out:json];\n"
            "(\n"
            f"  node[{category}={type_}]{around};\n"
            f"  way[{category}={type_}]{around};\n"
            f"  relation[{category}={type_}]{around};\n"
            ");\n"
            "out center;\n"
        )

    async def query(self, lat: float, lon: float, radius_m: int, category: str, type_: str) -> list[dict[str, Any]]:
        body = self.build_query(lat, lon, radius_m, category, type_)
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
            resp = await client.post(self.url, data={"data": body})
            resp.raise_for_status()
            data = resp.json()
        return (data or {}).get("elements") or []


# -----------------------------------------------------------------------------
# Service
# -----------------------------------------------------------------------------
def _to_poi(element: dict[str, Any], type_: str) -> PointOfInterest:
    tags = element.get("tags") or {}
    center = element.get("center") or {}
    return PointOfInterest(
        id=element.get("id"),
        name=tags.get("name") or "Unknown Place",
        lat=element.get("lat") or center.get("lat"),
        lon=element.get("lon") or center.get("lon"),
        tags={str(k): str(v) for k, v in tags.items()},
        type=type_,
    )


class PoiSearchService:
    def __init__(self, geocoder: Geocoder, spatial_index: SpatialIndex):
        self.geocoder = geocoder
        self.spatial_index = spatial_index

    @classmethod
    def from_settings(cls, settings: Settings) -> "PoiSearchService":
        return cls(NominatimGeocoder(settings), OverpassIndex(settings))

    async def search(self, city: str, category: str = "tourism", type_: str = "museum") -> PoiSearchOutcome:
        """Find up to MAX_RESULTS POIs tagged category=type near the city centre."""
        try:
            coords = await self.geocoder.resolve(city)
            if coords is None:
                logger.info("No geocode match for %r", city)
                return PoiSearchOutcome(pois=[], status="no_match")

            lat, lon = coords
            elements = await self.spatial_index.query(lat, lon, RADIUS_M, category, type_)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error("POI lookup failed for %r: %s", city, e)
            return PoiSearchOutcome(pois=[], status="lookup_failed")

        pois = [_to_poi(el, type_) for el in elements[:MAX_RESULTS]]
        return PoiSearchOutcome(pois=pois, status="ok")
