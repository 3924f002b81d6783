"""
tripwatch/modules/intelligence/hotels.py
----------------------------------------
Lodging near tonight's position, ranked by how well it sets up tomorrow.

For each of up to MAX_SUGGESTIONS places within HOTEL_SEARCH_RADIUS_M:
    minutes_tonight      = drive current position → hotel
    minutes_to_tomorrow  = drive hotel → tomorrow's first stop
The hotel with the shortest morning drive is "best positioning"; the
others are described relative to it. A failed drive lookup is unknown
(None), never an error.
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from tripwatch import config
from tripwatch.errors import TripwatchError
from tripwatch.modules.tool_usage.base import PlaceRecord, PlacesProvider, RoutingProvider
from tripwatch.modules.tool_usage.distance_tool import build_maps_link, format_duration

logger = logging.getLogger(__name__)

Point = tuple[float, float]

# drive-time differences under this are a tie
POSITIONING_TIE_MIN = 5


@dataclass
class HotelOption:
    place: PlaceRecord
    minutes_tonight: Optional[int] = None
    minutes_to_tomorrow: Optional[int] = None
    note: str = ""


def drive_minutes(routing: RoutingProvider, a: Point, b: Point) -> Optional[int]:
    try:
        route = routing.directions(a[0], a[1], b[0], b[1])
    except TripwatchError as exc:
        logger.warning("[Hotels] drive time %s → %s failed: %s", a, b, exc)
        return None
    if route is None:
        return None
    return round(route.duration_seconds / 60)


def positioning_note(minutes: Optional[int], best: Optional[int]) -> str:
    if minutes is None or best is None:
        return ""
    diff = minutes - best
    if abs(diff) < POSITIONING_TIE_MIN:
        return "⭐ Best positioning for tomorrow"
    if diff < 0:
        return f"⭐ {abs(diff)} min closer to tomorrow's first stop"
    return f"{diff} min further from tomorrow's first stop"


def _tomorrow_key(option: HotelOption) -> tuple[bool, int]:
    minutes = option.minutes_to_tomorrow
    return minutes is None, minutes if minutes is not None else 0


async def find_hotels(
    routing: RoutingProvider,
    places: PlacesProvider,
    lat: float,
    lon: float,
    tomorrow: Optional[Point] = None,
    *,
    radius_m: int = config.HOTEL_SEARCH_RADIUS_M,
    max_options: int = config.MAX_SUGGESTIONS,
) -> list[HotelOption]:
    """Hotels near (lat, lon); sorted by tomorrow's drive when `tomorrow` is given."""
    here = (lat, lon)
    logger.info("[Hotels] searching near %s, tomorrow=%s", here, tomorrow)
    try:
        found = await asyncio.to_thread(places.nearby_search, "", lat, lon, radius_m, "lodging")
    except TripwatchError as exc:
        logger.warning("[Hotels] lodging search failed: %s", exc)
        return []

    async def measure(hotel: PlaceRecord) -> HotelOption:
        spot = (hotel.lat, hotel.lon)
        tonight, morning = await asyncio.gather(
            asyncio.to_thread(drive_minutes, routing, here, spot),
            asyncio.to_thread(drive_minutes, routing, spot, tomorrow) if tomorrow else asyncio.sleep(0),
        )
        return HotelOption(place=hotel, minutes_tonight=tonight, minutes_to_tomorrow=morning)

    options = list(await asyncio.gather(*(measure(h) for h in found[:max_options])))

    known = [o.minutes_to_tomorrow for o in options if o.minutes_to_tomorrow is not None]
    best = min(known) if known else None
    for option in options:
        option.note = positioning_note(option.minutes_to_tomorrow, best)
    if tomorrow is not None:
        options.sort(key=_tomorrow_key)

    logger.info("[Hotels] %d option(s)", len(options))
    return options


def hotel_message(options: list[HotelOption]) -> str:
    if not options:
        return "🏨 No hotels found near your current location. Try searching a different area."

    lines = ["🏨 Hotel options for tonight:", ""]
    for i, option in enumerate(options, 1):
        hotel = option.place
        rating = f" — {hotel.rating}★" if hotel.rating else ""
        lines.append(f"{i}. {hotel.name}{rating}")
        if option.minutes_tonight is not None:
            lines.append(f"   🚗 {format_duration(option.minutes_tonight * 60)} to get there")
        if option.note:
            lines.append(f"   {option.note}")
        lines.append(f"   📍 {build_maps_link(hotel.lat, hotel.lon)}")
        lines.append("")
    lines.append("Availability can thin fast. Want to lock one in?")
    return "\n".join(lines)
