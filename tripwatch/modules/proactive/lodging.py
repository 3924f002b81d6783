"""
tripwatch/modules/proactive/lodging.py
--------------------------------------
Evening lodging check: after LODGING_NUDGE_HOUR local time with no hotel
booking covering tonight, the family should be nudged to book.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from tripwatch import config
from tripwatch.schemas.itinerary import Activity, ActivityState, Day
from tripwatch.schemas.trip import Bookings


def has_lodging_for(bookings: Bookings, night: date) -> bool:
    return any(hotel.covers(night) for hotel in bookings.hotels)


def needs_lodging_nudge(bookings: Bookings, local_now: datetime,
                        nudge_hour: int = config.LODGING_NUDGE_HOUR) -> bool:
    if local_now.hour < nudge_hour:
        return False
    return not has_lodging_for(bookings, local_now.date())


def next_day_first_activity(itinerary: list[Day], today: date) -> Optional[Activity]:
    """First unfinished activity of the day after `today` (or of day 2 if today isn't listed)."""
    if len(itinerary) < 2:
        return None
    today_index = next((i for i, day in enumerate(itinerary) if day.date == today), None)
    next_index = today_index + 1 if today_index is not None else 1
    if next_index >= len(itinerary):
        return None
    for activity in itinerary[next_index].activities:
        if activity.state != ActivityState.COMPLETED:
            return activity
    return None


def budget_range(per_night: float | None) -> tuple[float | None, float | None]:
    """70 %–120 % of the nightly target, or (None, None) without one."""
    if not per_night:
        return None, None
    return round(per_night * 0.7), round(per_night * 1.2)
