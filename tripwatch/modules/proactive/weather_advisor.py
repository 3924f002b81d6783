"""
tripwatch/modules/proactive/weather_advisor.py
----------------------------------------------
Weather check for the next outdoor stop.

Outdoor stop : activity.is_outdoor, or its name mentions beach, hike, trail,
               dunes, coast, outdoor, park, scenic, overlook, viewpoint, cliff
               or waterfall.
Adverse      : condition mentions rain/shower/storm/drizzle/thunder,
               OR precipitation chance ≥ RAIN_PRECIP_THRESHOLD (60 %).
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Optional

from tripwatch import config
from tripwatch.modules.tool_usage.base import WeatherProvider, WeatherReport
from tripwatch.schemas.itinerary import Activity, ActivityState, Day, iter_activities

logger = logging.getLogger(__name__)

OUTDOOR_KEYWORDS = re.compile(
    r"beach|hike|trail|dunes|coast|outdoor|park|scenic|overlook|viewpoint|cliff|waterfall",
    re.IGNORECASE,
)
ADVERSE_CONDITIONS = re.compile(r"rain|shower|storm|drizzle|thunder", re.IGNORECASE)


@dataclass
class WeatherCheck:
    activity: Activity
    report: WeatherReport
    adverse: bool


def is_outdoor(activity: Activity) -> bool:
    return activity.is_outdoor or bool(OUTDOOR_KEYWORDS.search(activity.name or ""))


def is_adverse(report: WeatherReport, precip_threshold: int = config.RAIN_PRECIP_THRESHOLD) -> bool:
    if ADVERSE_CONDITIONS.search(report.condition or ""):
        return True
    return (report.precip_chance or 0) >= precip_threshold


def find_upcoming_outdoor_activity(itinerary: list[Day]) -> Optional[Activity]:
    """First non-completed outdoor activity with coordinates, in itinerary order."""
    for activity in iter_activities(itinerary):
        if activity.state == ActivityState.COMPLETED or not activity.has_coordinates:
            continue
        if is_outdoor(activity):
            return activity
    return None


def check_upcoming_weather(
    weather: WeatherProvider,
    itinerary: list[Day],
    precip_threshold: int = config.RAIN_PRECIP_THRESHOLD,
) -> Optional[WeatherCheck]:
    """
    Weather at the next outdoor stop, or None when there is none.

    Raises:
        ProviderError: the weather provider failed.
    """
    activity = find_upcoming_outdoor_activity(itinerary)
    if activity is None:
        return None
    report = weather.current_conditions(activity.lat, activity.lon)
    adverse = is_adverse(report, precip_threshold)
    logger.debug("[Weather] '%s': %s (%s%%) adverse=%s",
                 activity.label, report.condition, report.precip_chance, adverse)
    return WeatherCheck(activity=activity, report=report, adverse=adverse)
