"""
tripwatch/modules/tool_usage/base.py
------------------------------------
Provider interfaces and the parsed records they return.

Components depend on these protocols only; GoogleMapsTool and WeatherApiTool
are the production implementations, tests inject in-process fakes.

Contract shared by every provider:
  - an empty answer is not an error (no route → None, no places → [])
  - anything else that goes wrong raises ProviderError
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional, Protocol


@dataclass
class RouteLeg:
    duration_seconds: int
    distance_meters: int
    duration_in_traffic_seconds: Optional[int] = None

    @property
    def best_duration_seconds(self) -> int:
        """Traffic-aware duration when the provider supplied one."""
        if self.duration_in_traffic_seconds is not None:
            return self.duration_in_traffic_seconds
        return self.duration_seconds


@dataclass
class Route:
    legs: list[RouteLeg] = field(default_factory=list)
    waypoints: list[tuple[float, float]] = field(default_factory=list)
    # ^ step end-points in travel order, origin/destination excluded

    @property
    def duration_seconds(self) -> int:
        return sum(leg.best_duration_seconds for leg in self.legs)

    @property
    def distance_meters(self) -> int:
        return sum(leg.distance_meters for leg in self.legs)


@dataclass
class PlaceRecord:
    place_id: str
    name: str
    lat: float
    lon: float
    rating: Optional[float] = None
    price_level: Optional[int] = None
    open_now: Optional[bool] = None
    address: str = ""


@dataclass
class WeatherReport:
    condition: str
    temp_f: Optional[float] = None
    precip_chance: Optional[int] = None   # percent


@dataclass
class SunsetInfo:
    """Local wall-clock times at the queried place."""
    sunrise: time
    sunset: time
    golden_hour_start: time   # sunset − 60 min
    golden_hour_end: time     # sunset − 10 min


class RoutingProvider(Protocol):
    def directions(self, origin_lat: float, origin_lon: float,
                   dest_lat: float, dest_lon: float) -> Optional[Route]: ...


class PlacesProvider(Protocol):
    def nearby_search(self, keyword: str, lat: float, lon: float,
                      radius_m: int, place_type: str | None = None) -> list[PlaceRecord]: ...


class WeatherProvider(Protocol):
    def current_conditions(self, lat: float, lon: float) -> WeatherReport: ...
    def sunset_info(self, lat: float, lon: float, on: date | None = None) -> SunsetInfo: ...
