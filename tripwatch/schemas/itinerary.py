"""
tripwatch/schemas/itinerary.py
------------------------------
Itinerary structures as stored in the trip document.

The stored document uses camelCase keys (scheduledTime, arrivedAt, ...);
models accept either spelling and dump camelCase when persisted.
"""

from __future__ import annotations
import datetime as dt
from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """Base for every model persisted inside the trip document."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActivityState(str, Enum):
    PENDING     = "pending"
    ARRIVED     = "arrived"
    IN_PROGRESS = "in-progress"
    COMPLETED   = "completed"
    UNCERTAIN   = "uncertain"

    @property
    def has_started(self) -> bool:
        return self in (ActivityState.IN_PROGRESS, ActivityState.COMPLETED)


class ActivityCategory(str, Enum):
    HARD = "hard"    # fixed commitment (ferry, reservation)
    SOFT = "soft"    # flexible
    OPEN = "open"    # not yet decided


class Activity(DocumentModel):
    """
    A single planned stop.

    An activity without coordinates is inert: the state machine, ETA batch,
    and weather lookup all skip it.
    """
    id: str
    name: str = ""
    lat: Optional[float] = None
    lon: Optional[float] = None
    category: ActivityCategory = ActivityCategory.SOFT
    scheduled_time: Optional[dt.datetime] = None
    planned_duration: Optional[int] = None       # minutes
    state: ActivityState = ActivityState.PENDING
    arrived_at: Optional[dt.datetime] = None
    completed_at: Optional[dt.datetime] = None
    is_outdoor: bool = False
    activity_type: Optional[str] = None          # e.g. "beach", "museum"; derived from name if unset

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def label(self) -> str:
        return self.name or self.id


class Day(DocumentModel):
    """One calendar date; activity order is the planned visiting order."""
    date: Optional[dt.date] = None
    activities: list[Activity] = Field(default_factory=list)


class PositionSample(DocumentModel):
    lat: float
    lon: float
    timestamp: dt.datetime


def ensure_aware(at: Optional[dt.datetime] = None) -> dt.datetime:
    """`at` with a timezone attached; naive values are read as server-local, None is now."""
    if at is None:
        return dt.datetime.now().astimezone()
    if at.tzinfo is None or at.utcoffset() is None:
        return at.astimezone()
    return at


def iter_activities(itinerary: list[Day]) -> Iterator[Activity]:
    """Yield activities in day order, then activity order."""
    for day in itinerary:
        yield from day.activities
