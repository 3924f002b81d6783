"""
tripwatch/modules/tracking/eta.py
---------------------------------
Arrival estimates and schedule drift from a routing provider.

    drift_minutes = round((estimated_arrival − scheduled_time) / 60 s)
                    positive → running late

Drift policy:
    drift ≥ DRIFT_ALERT_MIN (40)                  → "alert"
    DRIFT_OBSERVE_MIN (10) ≤ drift < alert        → "observable" (pattern signal only)
    otherwise                                     → "none"

A single estimate raises on provider failure; no local duration is made up.
The itinerary batch logs and skips failing activities instead.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from tripwatch import config
from tripwatch.errors import ProviderError, TripwatchError
from tripwatch.modules.tool_usage.base import RoutingProvider
from tripwatch.modules.tool_usage.distance_tool import format_distance, format_duration
from tripwatch.schemas.itinerary import ActivityState, Day, iter_activities

logger = logging.getLogger(__name__)

DRIFT_ALERT = "alert"
DRIFT_OBSERVABLE = "observable"
DRIFT_NONE = "none"


@dataclass
class EtaEstimate:
    duration_seconds: int
    distance_meters: int
    arrival_time: datetime

    @property
    def duration_text(self) -> str:
        return format_duration(self.duration_seconds)

    @property
    def distance_text(self) -> str:
        return format_distance(self.distance_meters)


@dataclass
class ActivityEta:
    activity_id: str
    activity_name: str
    estimated_arrival: datetime
    scheduled_time: Optional[datetime] = None
    drift_minutes: Optional[int] = None
    duration_text: str = ""
    distance_text: str = ""


def estimate(
    routing: RoutingProvider,
    origin_lat: float,
    origin_lon: float,
    dest_lat: float,
    dest_lon: float,
    now: datetime,
) -> EtaEstimate:
    """
    One traffic-aware routing call.

    Raises:
        ProviderError: provider failed, or it found no route.
    """
    route = routing.directions(origin_lat, origin_lon, dest_lat, dest_lon)
    if route is None:
        raise ProviderError("routing", f"no route to ({dest_lat},{dest_lon})")
    seconds = route.duration_seconds
    return EtaEstimate(
        duration_seconds=seconds,
        distance_meters=route.distance_meters,
        arrival_time=now + timedelta(seconds=seconds),
    )


def drift_minutes(estimated_arrival: datetime, scheduled_time: datetime) -> int:
    return round((estimated_arrival - scheduled_time).total_seconds() / 60)


def classify_drift(minutes: Optional[int],
                   alert_min: int = config.DRIFT_ALERT_MIN,
                   observe_min: int = config.DRIFT_OBSERVE_MIN) -> str:
    if minutes is None:
        return DRIFT_NONE
    if minutes >= alert_min:
        return DRIFT_ALERT
    if minutes >= observe_min:
        return DRIFT_OBSERVABLE
    return DRIFT_NONE


def calculate_etas_for_itinerary(
    routing: RoutingProvider,
    lat: float,
    lon: float,
    itinerary: list[Day],
    now: datetime,
) -> list[ActivityEta]:
    """ETA + drift for every coordinate-bearing, non-completed activity; partial on failure."""
    results: list[ActivityEta] = []

    for activity in iter_activities(itinerary):
        if not activity.has_coordinates or activity.state == ActivityState.COMPLETED:
            continue
        try:
            eta = estimate(routing, lat, lon, activity.lat, activity.lon, now)
            drift = None
            if activity.scheduled_time is not None:
                drift = drift_minutes(eta.arrival_time, activity.scheduled_time)
        except (TripwatchError, TypeError) as exc:
            # TypeError: naive vs aware scheduled_time
            logger.warning("[ETA] skipped '%s': %s", activity.label, exc)
            continue

        results.append(ActivityEta(
            activity_id=activity.id,
            activity_name=activity.label,
            estimated_arrival=eta.arrival_time,
            scheduled_time=activity.scheduled_time,
            drift_minutes=drift,
            duration_text=eta.duration_text,
            distance_text=eta.distance_text,
        ))

    logger.debug("[ETA] %d estimates", len(results))
    return results
