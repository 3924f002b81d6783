from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import pytest

from tripwatch.errors import ProviderError
from tripwatch.modules.tool_usage.base import PlaceRecord, Route, RouteLeg, SunsetInfo, WeatherReport
from tripwatch.schemas.itinerary import Activity, Day

MST = timezone(timedelta(hours=-7), name="MST")

# Offsets north of BASE, in degrees latitude (1° ≈ 111.2 km).
BASE = (45.0, -124.0)
NEAR = (45.005, -124.0)     # ~556 m   → inside the arrived ring
RING = (45.0135, -124.0)    # ~1501 m  → uncertain ring
FAR = (45.03, -124.0)       # ~3336 m  → beyond both rings

SUNSET = SunsetInfo(sunrise=time(5, 48), sunset=time(20, 52), golden_hour_start=time(19, 52), golden_hour_end=time(20, 42))


def dt(hh: int, mm: int, ss: int = 0, *, day: int = 14, month: int = 7, year: int = 2026) -> datetime:
    return datetime(year, month, day, hh, mm, ss, tzinfo=MST)


def make_activity(id: str = "A1", name: str = "Cannon Beach", at=BASE, **kwargs) -> Activity:
    lat, lon = at if at is not None else (None, None)
    return Activity(id=id, name=name, lat=lat, lon=lon, **kwargs)


def one_day(*activities: Activity, date=None) -> list[Day]:
    return [Day(date=date, activities=list(activities))]


class FakeRouting:
    """
    RoutingProvider stand-in.
      seconds(a, b) → leg duration, or None for "no route"
      fail          → points whose legs raise ProviderError
    """

    def __init__(self, seconds=None, waypoints=(), fail=()) -> None:
        self.seconds = seconds or (lambda a, b: 600)
        self.waypoints = list(waypoints)
        self.fail = set(fail)
        self.calls: list[tuple] = []

    def directions(self, origin_lat, origin_lon, dest_lat, dest_lon):
        a, b = (origin_lat, origin_lon), (dest_lat, dest_lon)
        self.calls.append((a, b))
        if a in self.fail or b in self.fail:
            raise ProviderError("fake-routing", f"leg {a} → {b} failed")
        secs = self.seconds(a, b)
        if secs is None:
            return None
        return Route(legs=[RouteLeg(duration_seconds=secs, distance_meters=5000)], waypoints=list(self.waypoints))


class FakePlaces:
    def __init__(self, by_point=None, default=(), fail=()) -> None:
        self.by_point = by_point or {}
        self.default = list(default)
        self.fail = set(fail)
        self.calls: list[tuple] = []

    def nearby_search(self, keyword, lat, lon, radius_m, place_type=None):
        self.calls.append(((lat, lon), keyword, radius_m, place_type))
        if (lat, lon) in self.fail:
            raise ProviderError("fake-places", "down")
        return list(self.by_point.get((lat, lon), self.default))


class FakeWeather:
    def __init__(self, report: WeatherReport | None = None, error: Exception | None = None) -> None:
        self.report = report or WeatherReport(condition="Sunny", temp_f=70, precip_chance=0)
        self.error = error
        self.calls: list[tuple] = []

    def current_conditions(self, lat, lon):
        self.calls.append((lat, lon))
        if self.error is not None:
            raise self.error
        return self.report

    def sunset_info(self, lat, lon, on=None):
        self.calls.append((lat, lon, on))
        if self.error is not None:
            raise self.error
        return SUNSET


def place(pid: str, lat: float, lon: float, rating=None, name=None) -> PlaceRecord:
    return PlaceRecord(place_id=pid, name=name or pid, lat=lat, lon=lon, rating=rating)


@pytest.fixture
def routing():
    return FakeRouting()


@pytest.fixture
def sunny():
    return FakeWeather()
