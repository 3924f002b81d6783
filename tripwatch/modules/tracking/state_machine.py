"""
tripwatch/modules/tracking/state_machine.py
-------------------------------------------
Position-driven activity state machine.

Transition rules (evaluated in this order):
    completed                     → never re-evaluated (absorbing)
    in-progress → completed       distance > R_in            (family left)
    arrived     → in-progress     distance ≤ R_in AND dwell ≥ T_dwell
    not started → arrived         distance ≤ R_in
    not started → uncertain       R_in < distance ≤ R_out    (emits an "ask" event)
    otherwise                     unchanged

"Not started" means pending, arrived or uncertain. Dwell is minutes since
arrived_at and only counts while arrived/in-progress.

Uncertain never resolves on its own: it is left only when a later tick
produces a different outcome. A family's yes/no answer to the ask event is
handled by the conversational layer, not here.

The functions are pure: the batch returns a new itinerary and leaves the
input untouched. Serialising concurrent ticks is the caller's job.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from tripwatch import config
from tripwatch.modules.tool_usage.distance_tool import distance_meters
from tripwatch.schemas.itinerary import Activity, ActivityState, Day

logger = logging.getLogger(__name__)


@dataclass
class TrackingThresholds:
    arrived_radius_m: float      = config.ARRIVED_RADIUS_M
    uncertain_radius_m: float    = config.UNCERTAIN_RADIUS_M
    in_progress_dwell_min: float = config.IN_PROGRESS_DWELL_MIN


class ActivityBufferProvider(Protocol):
    """Extra minutes the family usually spends beyond an activity's plan."""

    def activity_buffer(self, activity: Activity) -> float: ...


@dataclass
class TrackingEvent:
    type: str                                  # "state-change" | "ask"
    activity_id: str
    activity_name: str
    from_state: Optional[ActivityState] = None
    to_state: Optional[ActivityState] = None
    question: str = ""
    expected_remaining_minutes: Optional[float] = None


@dataclass
class AdvanceResult:
    itinerary: list[Day]
    events: list[TrackingEvent] = field(default_factory=list)


# ── Single activity ───────────────────────────────────────────────────────────

def advance(
    activity: Activity,
    lat: float,
    lon: float,
    dwell_minutes: float = 0.0,
    thresholds: TrackingThresholds | None = None,
) -> ActivityState:
    """Return the state `activity` should be in given the family's position."""
    current = activity.state
    if not activity.has_coordinates or current == ActivityState.COMPLETED:
        return current

    t = thresholds or TrackingThresholds()
    distance = distance_meters(lat, lon, activity.lat, activity.lon)

    if current == ActivityState.IN_PROGRESS and distance > t.arrived_radius_m:
        return ActivityState.COMPLETED

    if (current == ActivityState.ARRIVED
            and distance <= t.arrived_radius_m
            and dwell_minutes >= t.in_progress_dwell_min):
        return ActivityState.IN_PROGRESS

    if not current.has_started:
        if distance <= t.arrived_radius_m:
            return ActivityState.ARRIVED
        if distance <= t.uncertain_radius_m:
            return ActivityState.UNCERTAIN

    return current


def dwell_minutes(activity: Activity, at: datetime) -> float:
    """Minutes since arrival; 0 when not on site or timestamps don't compare."""
    if activity.arrived_at is None:
        return 0.0
    if activity.state not in (ActivityState.ARRIVED, ActivityState.IN_PROGRESS):
        return 0.0
    try:
        elapsed = (at - activity.arrived_at).total_seconds() / 60
    except TypeError:
        # naive vs aware timestamps
        logger.warning("[StateMachine] cannot compare %s with arrival %s for '%s'",
                       at, activity.arrived_at, activity.label)
        return 0.0
    return max(0.0, elapsed)


def expected_remaining_minutes(
    activity: Activity,
    minutes_spent: float,
    buffer_provider: ActivityBufferProvider | None = None,
) -> float:
    """Planned duration plus learned buffer, minus time already spent (≥ 0)."""
    planned = activity.planned_duration or config.DEFAULT_PLANNED_DURATION_MIN
    buffer = buffer_provider.activity_buffer(activity) if buffer_provider else 0.0
    return max(0.0, planned + buffer - (minutes_spent or 0.0))


# ── Whole itinerary ───────────────────────────────────────────────────────────

def advance_activity_states(
    lat: float,
    lon: float,
    timestamp: datetime,
    itinerary: list[Day],
    thresholds: TrackingThresholds | None = None,
    buffer_provider: ActivityBufferProvider | None = None,
) -> AdvanceResult:
    """
    Evaluate every coordinate-bearing, non-completed activity against one tick.

    Returns the updated itinerary plus events in day/activity order.
    """
    events: list[TrackingEvent] = []
    updated_days: list[Day] = []

    for day in itinerary:
        updated_activities = []
        for activity in day.activities:
            updated, event = _advance_one(activity, lat, lon, timestamp, thresholds, buffer_provider)
            updated_activities.append(updated)
            if event is not None:
                events.append(event)
        updated_days.append(day.model_copy(update={"activities": updated_activities}))

    return AdvanceResult(itinerary=updated_days, events=events)


def _advance_one(
    activity: Activity,
    lat: float,
    lon: float,
    timestamp: datetime,
    thresholds: TrackingThresholds | None,
    buffer_provider: ActivityBufferProvider | None,
) -> tuple[Activity, TrackingEvent | None]:
    if not activity.has_coordinates or activity.state == ActivityState.COMPLETED:
        return activity, None

    current = activity.state
    dwell = dwell_minutes(activity, timestamp)
    new_state = advance(activity, lat, lon, dwell, thresholds)
    if new_state == current:
        return activity, None

    changes: dict = {"state": new_state}
    if new_state == ActivityState.ARRIVED:
        changes["arrived_at"] = timestamp
    elif new_state == ActivityState.COMPLETED:
        changes["completed_at"] = timestamp
    updated = activity.model_copy(update=changes)

    if new_state == ActivityState.UNCERTAIN:
        logger.info("[StateMachine] '%s' uncertain (nearby, not confirmed)", activity.label)
        return updated, TrackingEvent(
            type="ask",
            activity_id=activity.id,
            activity_name=activity.label,
            question=f"Are you at {activity.label}?",
        )

    logger.info("[StateMachine] '%s' %s → %s", activity.label, current.value, new_state.value)
    event = TrackingEvent(
        type="state-change",
        activity_id=activity.id,
        activity_name=activity.label,
        from_state=current,
        to_state=new_state,
    )
    if new_state == ActivityState.IN_PROGRESS:
        event.expected_remaining_minutes = expected_remaining_minutes(updated, dwell, buffer_provider)
    return updated, event
