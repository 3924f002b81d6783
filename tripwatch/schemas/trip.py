"""
tripwatch/schemas/trip.py
-------------------------
The trip document: the unit the store loads and saves once per tick.

Only the fields the tracking/alert engine reads or writes are modelled;
anything else in a stored document is preserved untouched.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import ConfigDict, Field

from tripwatch.schemas.itinerary import (
    Activity,
    Day,
    DocumentModel,
    PositionSample,
    iter_activities,
)


class HotelBooking(DocumentModel):
    name: str = ""
    check_in: Optional[date] = None
    check_out: Optional[date] = None

    def covers(self, night: date) -> bool:
        """True when the stay includes the night starting on `night`."""
        if self.check_in is None or self.check_out is None:
            return False
        return self.check_in <= night < self.check_out


class Bookings(DocumentModel):
    model_config = ConfigDict(extra="allow")

    hotels: list[HotelBooking] = Field(default_factory=list)


class DeferredRequest(DocumentModel):
    """A one-shot reminder; the origin position is informational only."""
    id: int
    category: str
    text: str
    fires_at: datetime
    origin_lat: Optional[float] = None
    origin_lon: Optional[float] = None


class PaceRecord(DocumentModel):
    observations: list[float] = Field(default_factory=list)  # actual − planned, minutes
    avg_delta_mins: Optional[float] = None


class Patterns(DocumentModel):
    model_config = ConfigDict(extra="allow")

    pace: dict[str, PaceRecord] = Field(default_factory=dict)


class TripState(DocumentModel):
    model_config = ConfigDict(extra="allow")

    trip_id: str = ""
    itinerary: list[Day] = Field(default_factory=list)
    bookings: Bookings = Field(default_factory=Bookings)
    patterns: Patterns = Field(default_factory=Patterns)
    deferred_requests: list[DeferredRequest] = Field(default_factory=list)
    alert_last_sent: dict[str, datetime] = Field(default_factory=dict)
    # ^ No-repeat guard table {alert_type: last sent}; persisted with the trip.
    last_position: Optional[PositionSample] = None
    hotel_budget_per_night: Optional[float] = None
    timezone: Optional[str] = None               # IANA name of the family's clock, e.g. "America/Los_Angeles"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def activities(self):
        return iter_activities(self.itinerary)

    def local_time(self, at: datetime) -> datetime:
        """`at` on the family's clock; unchanged when the trip has no timezone."""
        if not self.timezone:
            return at
        return at.astimezone(ZoneInfo(self.timezone))

    def find_activity(self, activity_id: str) -> Optional[Activity]:
        for act in self.activities():
            if act.id == activity_id:
                return act
        return None
