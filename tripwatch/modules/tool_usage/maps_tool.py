"""
tripwatch/modules/tool_usage/maps_tool.py
-----------------------------------------
Google Maps Platform wrapper: Directions (traffic-aware) and Places Nearby Search.
Implements RoutingProvider and PlacesProvider.

Every call carries config.HTTP_TIMEOUT_SECONDS. Transport errors, HTTP errors,
unexpected statuses and malformed payloads become ProviderError.
"""

from __future__ import annotations
import logging
from typing import Any, Optional

import requests

from tripwatch import config
from tripwatch.errors import ProviderError
from tripwatch.modules.tool_usage.base import PlaceRecord, Route, RouteLeg

logger = logging.getLogger(__name__)

# Directions statuses that mean "no such route" rather than failure.
_EMPTY_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}


class GoogleMapsTool:
    """Wraps the Google Directions and Places APIs."""

    name = "google-maps"

    def __init__(
        self,
        api_url: str = config.MAPS_API_URL,
        api_key: str = config.GOOGLE_MAPS_API_KEY,
        timeout: float = config.HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    # ── RoutingProvider ───────────────────────────────────────────────────────

    def directions(self, origin_lat: float, origin_lon: float,
                   dest_lat: float, dest_lon: float) -> Optional[Route]:
        """
        Driving route with traffic-aware durations.

        Returns:
            Parsed Route, or None when Google reports no route between the points.
        """
        params = {
            "origin":         f"{origin_lat},{origin_lon}",
            "destination":    f"{dest_lat},{dest_lon}",
            "mode":           "driving",
            "departure_time": "now",
            "traffic_model":  "best_guess",
            "key":            self.api_key,
        }
        data = self._get("directions/json", params)
        status = data.get("status", "OK")
        logger.debug("[Maps] directions (%s,%s) → (%s,%s): %s",
                     origin_lat, origin_lon, dest_lat, dest_lon, status)

        routes = data.get("routes") or []
        if status in _EMPTY_STATUSES or (status == "OK" and not routes):
            return None
        if status != "OK":
            raise ProviderError(self.name, f"directions status {status}: {data.get('error_message', '')}")
        return self._parse_route(routes[0])

    # ── PlacesProvider ────────────────────────────────────────────────────────

    def nearby_search(self, keyword: str, lat: float, lon: float,
                      radius_m: int, place_type: str | None = None) -> list[PlaceRecord]:
        params: dict[str, Any] = {
            "location": f"{lat},{lon}",
            "radius":   radius_m,
            "key":      self.api_key,
        }
        if place_type:
            params["type"] = place_type
        if keyword:
            params["keyword"] = keyword

        data = self._get("place/nearbysearch/json", params)
        status = data.get("status", "OK")
        if status not in ("OK", "ZERO_RESULTS"):
            raise ProviderError(self.name, f"places status {status}: {data.get('error_message', '')}")

        results = data.get("results") or []
        logger.debug("[Maps] places '%s' type=%s near (%s,%s) r=%sm → %d results",
                     keyword, place_type, lat, lon, radius_m, len(results))
        places = []
        for item in results:
            place = self._parse_place(item)
            if place is not None:
                places.append(place)
        return places

    # ── Internals ─────────────────────────────────────────────────────────────

    def _get(self, path: str, params: dict[str, Any]) -> dict:
        try:
            response = requests.get(f"{self.api_url}/{path}", params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise ProviderError(self.name, f"{path} request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderError(self.name, f"{path} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise ProviderError(self.name, f"{path} returned unexpected payload")
        return data

    def _parse_route(self, route: dict) -> Route:
        legs: list[RouteLeg] = []
        waypoints: list[tuple[float, float]] = []
        try:
            for leg in route.get("legs") or []:
                traffic = leg.get("duration_in_traffic")
                legs.append(RouteLeg(
                    duration_seconds=int(leg["duration"]["value"]),
                    distance_meters=int(leg["distance"]["value"]),
                    duration_in_traffic_seconds=int(traffic["value"]) if traffic else None,
                ))
                for step in leg.get("steps") or []:
                    end = step.get("end_location")
                    if end:
                        waypoints.append((float(end["lat"]), float(end["lng"])))
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(self.name, f"malformed route: {exc}") from exc
        if not legs:
            raise ProviderError(self.name, "route without legs")
        return Route(legs=legs, waypoints=waypoints)

    @staticmethod
    def _parse_place(item: dict) -> PlaceRecord | None:
        location = (item.get("geometry") or {}).get("location") or {}
        if item.get("place_id") is None or location.get("lat") is None or location.get("lng") is None:
            return None
        return PlaceRecord(
            place_id=item["place_id"],
            name=item.get("name", ""),
            lat=float(location["lat"]),
            lon=float(location["lng"]),
            rating=item.get("rating"),
            price_level=item.get("price_level"),
            open_now=(item.get("opening_hours") or {}).get("open_now"),
            address=item.get("vicinity") or item.get("formatted_address") or "",
        )
