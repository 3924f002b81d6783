"""
tripwatch/modules/patterns/pace.py
----------------------------------
Learns how long the family actually lingers at each kind of stop and turns
that into a planning buffer.

    delta          = actual_minutes − planned_minutes   (positive = ran long)
    avg_delta_mins = mean of all deltas for the activity type

PaceBufferProvider hands the average back to the state machine through the
ActivityBufferProvider interface; unknown types get no buffer.
"""

from __future__ import annotations
import logging
import re
from statistics import mean
from typing import Iterable

from tripwatch.modules.tracking.state_machine import TrackingEvent
from tripwatch.schemas.itinerary import Activity, ActivityState
from tripwatch.schemas.trip import PaceRecord, Patterns, TripState

logger = logging.getLogger(__name__)

_TYPE_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"beach|coast|shore|sand"),          "beach"),
    (re.compile(r"hike|trail|trek|walk"),            "hike"),
    (re.compile(r"scenic|overlook|viewpoint|vista"), "scenic"),
    (re.compile(r"museum|gallery|exhibit"),          "museum"),
    (re.compile(r"city|town|downtown"),              "city"),
]


def derive_activity_type(text: str) -> str:
    """Canonical type for a name or id; falls back to its first word."""
    lowered = (text or "").lower()
    for pattern, kind in _TYPE_RULES:
        if pattern.search(lowered):
            return kind
    first = re.split(r"[\s\-_]+", lowered.strip())[0] if lowered.strip() else ""
    return first or "other"


def activity_type_of(activity: Activity) -> str:
    if activity.activity_type:
        return activity.activity_type.lower()
    return derive_activity_type(activity.name or activity.id)


def learn_activity_pace(patterns: Patterns, activity: Activity,
                        planned_minutes: float, actual_minutes: float) -> PaceRecord:
    """Record one observation and refresh the running average."""
    kind = activity_type_of(activity)
    record = patterns.pace.setdefault(kind, PaceRecord())
    record.observations.append(actual_minutes - planned_minutes)
    record.avg_delta_mins = mean(record.observations)
    logger.info("[Patterns] pace '%s': delta=%.1f min avg=%.1f min (%d obs)",
                kind, actual_minutes - planned_minutes, record.avg_delta_mins,
                len(record.observations))
    return record


def learn_from_completion(patterns: Patterns, activity: Activity) -> PaceRecord | None:
    """Learn from a just-completed activity when its visit can be measured."""
    if activity.planned_duration is None or activity.arrived_at is None or activity.completed_at is None:
        return None
    try:
        actual = (activity.completed_at - activity.arrived_at).total_seconds() / 60
    except TypeError:
        logger.warning("[Patterns] skipping '%s': mixed naive/aware timestamps", activity.label)
        return None
    return learn_activity_pace(patterns, activity, activity.planned_duration, actual)


def learn_from_events(trip: TripState, events: Iterable[TrackingEvent]) -> list[PaceRecord]:
    """
    Learn from every event that just completed one of the trip's activities.

    Whichever tick sees the completion (location update or heartbeat) calls
    this; completed is absorbing, so each visit is learned once.
    """
    learned: list[PaceRecord] = []
    for event in events:
        if event.to_state != ActivityState.COMPLETED:
            continue
        activity = trip.find_activity(event.activity_id)
        if activity is None:
            continue
        record = learn_from_completion(trip.patterns, activity)
        if record is not None:
            learned.append(record)
    return learned


class PaceBufferProvider:
    """ActivityBufferProvider backed by the trip's learned pace records."""

    def __init__(self, patterns: Patterns) -> None:
        self.patterns = patterns

    def activity_buffer(self, activity: Activity) -> float:
        record = self.patterns.pace.get(activity_type_of(activity))
        if record is None or record.avg_delta_mins is None:
            return 0.0
        return record.avg_delta_mins
