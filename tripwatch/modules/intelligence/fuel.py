"""
tripwatch/modules/intelligence/fuel.py
--------------------------------------
Gas stations on the way, paired with other stops the family already needs.

A station within FUEL_PAIR_RADIUS_M (~0.25 mi, straight line) of a queued
stop (a restaurant under consideration, tonight's hotel) is flagged so gas
and the other errand happen in one stop. Stations come from the corridor
search with a 20-minute detour budget; at most MAX_SUGGESTIONS are offered.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from tripwatch import config
from tripwatch.modules.intelligence.route_search import RouteCandidate, search_corridor
from tripwatch.modules.tool_usage.base import PlacesProvider, RoutingProvider
from tripwatch.modules.tool_usage.distance_tool import distance_meters

logger = logging.getLogger(__name__)

FOOD = "food"
HOTEL = "hotel"


@dataclass
class NearbyStop:
    name: str
    lat: float
    lon: float


@dataclass
class GasOption:
    station: RouteCandidate
    paired_with: Optional[str] = None   # name of the queued stop next door


def pair_with_stops(station: RouteCandidate, stops: Iterable[NearbyStop],
                    radius_m: float = config.FUEL_PAIR_RADIUS_M) -> Optional[str]:
    """Name of the first stop within `radius_m` of the station, if any."""
    for stop in stops:
        if distance_meters(station.lat, station.lon, stop.lat, stop.lon) <= radius_m:
            return stop.name
    return None


async def find_gas(
    routing: RoutingProvider,
    places: PlacesProvider,
    origin_lat: float,
    origin_lon: float,
    dest_lat: float,
    dest_lon: float,
    nearby_stops: Iterable[NearbyStop] = (),
    *,
    detour_budget_minutes: float = config.FUEL_DETOUR_BUDGET_MIN,
    max_options: int = config.MAX_SUGGESTIONS,
    pair_radius_m: float = config.FUEL_PAIR_RADIUS_M,
) -> list[GasOption]:
    stops = list(nearby_stops)
    logger.info("[Fuel] searching gas on the way, %d queued stop(s)", len(stops))
    stations = await search_corridor(
        routing, places,
        origin_lat, origin_lon, dest_lat, dest_lon,
        "gas_station", detour_budget_minutes,
    )
    options = [
        GasOption(station=s, paired_with=pair_with_stops(s, stops, pair_radius_m))
        for s in stations[:max_options]
    ]
    paired = sum(1 for o in options if o.paired_with)
    logger.info("[Fuel] %d option(s), %d paired", len(options), paired)
    return options


def gas_message(options: list[GasOption], other_needs: Iterable[str] = (),
                detour_budget_minutes: float = config.FUEL_DETOUR_BUDGET_MIN) -> str:
    if not options:
        return (f"⛽ No gas stations found within a {detour_budget_minutes:.0f}-min detour "
                "on your route. Keep an eye on the tank.")

    needs = set(other_needs)
    lines = ["⛽ Gas stations on your route:", ""]
    for i, option in enumerate(options, 1):
        station = option.station
        rating = f" — {station.rating}★" if station.rating else ""
        detour = "right on your way" if station.detour_minutes <= 0 else f"{station.detour_minutes} min detour"
        lines.append(f"{i}. {station.name}{rating}")
        lines.append(f"   {detour}")
        if option.paired_with:
            if FOOD in needs:
                lines.append(f"   🍕 {option.paired_with} nearby — knock out gas + food in one stop")
            elif HOTEL in needs:
                lines.append(f"   🏨 {option.paired_with} nearby — check in and fill up in one stop")
            else:
                lines.append(f"   📍 Right next to {option.paired_with}")
        lines.append(f"   📍 {station.maps_link}")
        lines.append("")

    if not any(o.paired_with for o in options) and needs & {FOOD, HOTEL}:
        lines.append("💡 No overlapping stops found, so gas and food/hotel will be separate stops.")
        lines.append("")
    lines.append("Which one?")
    return "\n".join(lines)
