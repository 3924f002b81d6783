"""
tripwatch/modules/intelligence/route_search.py
----------------------------------------------
Route-corridor search: finds places that are genuinely "on the way".

Search flow
───────────
1. Route origin → destination. No route → [] (not an error).
2. Waypoints = origin + every step end-point + destination.
3. Downsample to ≤ max_waypoints evenly spaced points, first/last kept.
4. Places search (radius 5 km) around each point; de-duplicate by place_id.
5. Keep the first max_candidates hits.
6. Per candidate, three legs in parallel:
       detour = (origin→stop + stop→dest) − origin→dest        [minutes]
   ≤ 0 means the stop sits on the direct path. A candidate with any failed
   leg is dropped, never retried.
7. Keep detour ≤ budget.
8. Sort by detour ascending, then rating descending (no rating sorts last).

Steps 3 and 5 bound the fan-out against metered APIs: at most
max_waypoints places calls + 1 + 3 × max_candidates routing calls.
Candidates are evaluated concurrently under a semaphore; the blocking
provider calls run in worker threads.
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from tripwatch import config
from tripwatch.errors import ProviderError, TripwatchError
from tripwatch.modules.tool_usage.base import PlaceRecord, PlacesProvider, Route, RoutingProvider
from tripwatch.modules.tool_usage.distance_tool import build_maps_link

logger = logging.getLogger(__name__)

Point = tuple[float, float]


@dataclass
class RouteCandidate:
    place_id: str
    name: str
    lat: float
    lon: float
    detour_minutes: int
    maps_link: str
    rating: Optional[float] = None
    is_open: Optional[bool] = None
    price_level: Optional[int] = None
    address: str = ""


# ── Waypoints ─────────────────────────────────────────────────────────────────

def extract_waypoints(route: Route, origin: Point, destination: Point) -> list[Point]:
    return [origin, *route.waypoints, destination]


def downsample(points: list[Point], max_points: int) -> list[Point]:
    """At most `max_points` evenly spaced points, always keeping first and last."""
    if len(points) <= max_points:
        return list(points)
    if max_points <= 1:
        return points[:1]
    last = len(points) - 1
    indices = sorted({round(i * last / (max_points - 1)) for i in range(max_points)})
    return [points[i] for i in indices]


# ── Detour ────────────────────────────────────────────────────────────────────

async def _leg_seconds(routing: RoutingProvider, a: Point, b: Point) -> int:
    route = await asyncio.to_thread(routing.directions, a[0], a[1], b[0], b[1])
    if route is None:
        raise ProviderError("routing", f"no route {a} → {b}")
    return route.duration_seconds


async def estimate_detour(routing: RoutingProvider, origin: Point, stop: Point, destination: Point) -> int:
    """Extra minutes added to origin→destination by passing through `stop`."""
    direct, to_stop, from_stop = await asyncio.gather(
        _leg_seconds(routing, origin, destination),
        _leg_seconds(routing, origin, stop),
        _leg_seconds(routing, stop, destination),
    )
    return round(((to_stop + from_stop) - direct) / 60)


# ── Search ────────────────────────────────────────────────────────────────────

def _sort_key(candidate: RouteCandidate) -> tuple[int, float]:
    rating = candidate.rating if candidate.rating is not None else float("-inf")
    return candidate.detour_minutes, -rating


async def _gather_places(
    places: PlacesProvider,
    points: list[Point],
    place_type: str,
    keyword: str,
    radius_m: int,
) -> list[PlaceRecord]:
    seen: set[str] = set()
    hits: list[PlaceRecord] = []
    for lat, lon in points:
        try:
            results = await asyncio.to_thread(places.nearby_search, keyword, lat, lon, radius_m, place_type)
        except TripwatchError as exc:
            logger.warning("[Corridor] places search failed near (%s,%s): %s", lat, lon, exc)
            continue
        for place in results:
            if place.place_id not in seen:
                seen.add(place.place_id)
                hits.append(place)
    return hits


async def search_corridor(
    routing: RoutingProvider,
    places: PlacesProvider,
    origin_lat: float,
    origin_lon: float,
    dest_lat: float,
    dest_lon: float,
    place_type: str,
    detour_budget_minutes: float = config.DEFAULT_DETOUR_BUDGET_MIN,
    keyword: str = "",
    *,
    search_radius_m: int = config.CORRIDOR_SEARCH_RADIUS_M,
    max_waypoints: int = config.CORRIDOR_MAX_WAYPOINTS,
    max_candidates: int = config.CORRIDOR_MAX_CANDIDATES,
    max_parallel: int = config.CORRIDOR_MAX_PARALLEL,
) -> list[RouteCandidate]:
    """
    Places of `place_type` reachable within `detour_budget_minutes` of the
    direct route, best first. Provider trouble yields a shorter (possibly
    empty) list, never an exception.
    """
    logger.info("[Corridor] type=%s keyword='%s' budget=%smin", place_type, keyword, detour_budget_minutes)
    origin, destination = (origin_lat, origin_lon), (dest_lat, dest_lon)

    try:
        route = await asyncio.to_thread(routing.directions, origin_lat, origin_lon, dest_lat, dest_lon)
    except TripwatchError as exc:
        logger.warning("[Corridor] route lookup failed: %s", exc)
        return []
    if route is None:
        logger.info("[Corridor] no route found")
        return []

    points = downsample(extract_waypoints(route, origin, destination), max_waypoints)
    logger.debug("[Corridor] searching around %d waypoints", len(points))

    hits = await _gather_places(places, points, place_type, keyword, search_radius_m)
    logger.info("[Corridor] %d unique candidates", len(hits))
    if not hits:
        return []

    gate = asyncio.Semaphore(max(1, max_parallel))

    async def evaluate(place: PlaceRecord) -> RouteCandidate:
        async with gate:
            detour = await estimate_detour(routing, origin, (place.lat, place.lon), destination)
        return RouteCandidate(
            place_id=place.place_id,
            name=place.name,
            lat=place.lat,
            lon=place.lon,
            detour_minutes=detour,
            maps_link=build_maps_link(place.lat, place.lon),
            rating=place.rating,
            is_open=place.open_now,
            price_level=place.price_level,
            address=place.address,
        )

    outcomes = await asyncio.gather(*(evaluate(p) for p in hits[:max_candidates]), return_exceptions=True)

    candidates: list[RouteCandidate] = []
    for place, outcome in zip(hits, outcomes):
        if isinstance(outcome, BaseException):
            logger.debug("[Corridor] detour failed for '%s': %s", place.name, outcome)
            continue
        if outcome.detour_minutes <= detour_budget_minutes:
            candidates.append(outcome)

    candidates.sort(key=_sort_key)
    logger.info("[Corridor] %d within %smin detour budget", len(candidates), detour_budget_minutes)
    return candidates
