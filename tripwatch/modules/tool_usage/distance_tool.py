"""
tripwatch/modules/tool_usage/distance_tool.py
---------------------------------------------
Arithmetic tool: great-circle distance and human-readable formatting.
Pure local math, no provider calls.
"""

from __future__ import annotations
import math


_EARTH_RADIUS_M = 6371000.0
_METERS_PER_MILE = 1609.344


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Compute great-circle distance between two points using the Haversine formula.

    Args:
        lat1, lon1: Coordinates of point A (decimal degrees).
        lat2, lon2: Coordinates of point B (decimal degrees).

    Returns:
        Distance in metres.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    return 2 * _EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def is_within_radius(lat1: float, lon1: float, lat2: float, lon2: float, radius_m: float) -> bool:
    return distance_meters(lat1, lon1, lat2, lon2) <= radius_m


def format_distance(meters: float) -> str:
    """Metres → miles with one decimal, e.g. "1.2 mi"."""
    return f"{meters / _METERS_PER_MILE:.1f} mi"


def format_duration(seconds: float) -> str:
    """Seconds → "23 min" | "1 hr" | "1 hr 15 min" (rounded to the minute)."""
    total_minutes = int(round(seconds / 60))
    if total_minutes < 60:
        return f"{total_minutes} min"
    hours, minutes = divmod(total_minutes, 60)
    if minutes == 0:
        return f"{hours} hr"
    return f"{hours} hr {minutes} min"


def build_maps_link(lat: float, lon: float) -> str:
    """Google Maps navigation deep link to (lat, lon)."""
    return f"https://www.google.com/maps/dir/?api=1&destination={lat},{lon}"
