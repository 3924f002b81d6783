"""
tripwatch/modules/proactive/heartbeat.py
----------------------------------------
The proactive heartbeat: one pass every HEARTBEAT_INTERVAL_MIN (15) minutes
that decides between staying silent (autopilot) and sending one alert.

Cycle
─────
1. Advance activity states from the current position.
2. ETA + drift for the remaining stops.
3. Weather at the next outdoor stop.
4. Candidates: schedule drift ≥ 40 min (high), adverse weather (medium).
5. Drop candidates the no-repeat guard suppresses.
6. After 17:00 on the trip's clock with no lodging for tonight: lodging nudge
   (high), guarded.
7. Deferred reminders that came due (info), never guarded.
8. Nothing left → autopilot. Otherwise the highest-severity candidate is the
   message; its send time goes into the trip's last-sent table.

Each step fails on its own: a broken step is logged and contributes nothing.
A failure outside the steps still yields autopilot. Silence means "nothing to
say" or "a provider hiccupped"; the family is never shown an error.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, TypeVar

from tripwatch import config
from tripwatch.modules.patterns.pace import PaceBufferProvider, learn_from_events
from tripwatch.modules.proactive import alerts
from tripwatch.modules.proactive.alerts import Alert
from tripwatch.modules.proactive.lodging import budget_range, needs_lodging_nudge, next_day_first_activity
from tripwatch.modules.proactive.weather_advisor import WeatherCheck, check_upcoming_weather
from tripwatch.modules.tool_usage.base import RoutingProvider, WeatherProvider
from tripwatch.modules.tracking.deferred_requests import DeferredRequestQueue
from tripwatch.modules.tracking.eta import (
    DRIFT_OBSERVABLE,
    ActivityEta,
    calculate_etas_for_itinerary,
    classify_drift,
)
from tripwatch.modules.tracking.state_machine import (
    TrackingEvent,
    TrackingThresholds,
    advance_activity_states,
)
from tripwatch.schemas.itinerary import PositionSample
from tripwatch.schemas.trip import TripState

logger = logging.getLogger(__name__)

AUTOPILOT = "autopilot"
ALERT = "alert"

T = TypeVar("T")


@dataclass
class HeartbeatResult:
    mode: str
    message: Optional[str] = None
    alerts: list[Alert] = field(default_factory=list)
    events: list[TrackingEvent] = field(default_factory=list)
    trip: Optional[TripState] = None
    # ^ updated document to persist; None when the heartbeat itself failed


class Heartbeat:
    """
    Composes tracking, ETA, weather, guard, and reminders into one decision.

    The trip passed to run() is not modified; the updated copy comes back on
    the result for the caller to save.
    """

    def __init__(
        self,
        routing: RoutingProvider,
        weather: WeatherProvider,
        thresholds: TrackingThresholds | None = None,
        drift_alert_min: int = config.DRIFT_ALERT_MIN,
        no_repeat_window_min: float = config.NO_REPEAT_WINDOW_MIN,
        lodging_nudge_hour: int = config.LODGING_NUDGE_HOUR,
        precip_threshold: int = config.RAIN_PRECIP_THRESHOLD,
    ) -> None:
        self.routing = routing
        self.weather = weather
        self.thresholds = thresholds or TrackingThresholds()
        self.drift_alert_min = drift_alert_min
        self.no_repeat_window_min = no_repeat_window_min
        self.lodging_nudge_hour = lodging_nudge_hour
        self.precip_threshold = precip_threshold

    # ── Public API ────────────────────────────────────────────────────────────

    def run(self, trip: TripState, lat: float, lon: float, timestamp: datetime) -> HeartbeatResult:
        logger.info("[Heartbeat] trip=%s (%s, %s) @ %s", trip.trip_id, lat, lon, timestamp.isoformat())
        try:
            return self._run(trip.model_copy(deep=True), lat, lon, timestamp)
        except Exception:
            logger.exception("[Heartbeat] cycle failed; staying on autopilot")
            return HeartbeatResult(mode=AUTOPILOT)

    # ── Cycle ─────────────────────────────────────────────────────────────────

    def _run(self, trip: TripState, lat: float, lon: float, timestamp: datetime) -> HeartbeatResult:
        trip.last_position = PositionSample(lat=lat, lon=lon, timestamp=timestamp)

        events = self._step("state machine", lambda: self._advance(trip, lat, lon, timestamp), [])
        etas = self._step(
            "eta",
            lambda: calculate_etas_for_itinerary(self.routing, lat, lon, trip.itinerary, timestamp),
            [],
        )
        check = self._step(
            "weather",
            lambda: check_upcoming_weather(self.weather, trip.itinerary, self.precip_threshold),
            None,
        )

        candidates = self._condition_alerts(etas, check)
        collected = [a for a in candidates if not self._suppressed(trip, a.type, timestamp)]

        lodging = self._step("lodging", lambda: self._lodging_alert(trip, timestamp), None)
        if lodging is not None:
            collected.append(lodging)

        collected.extend(self._step("deferred", lambda: self._fire_reminders(trip, timestamp), []))

        if not collected:
            logger.info("[Heartbeat] autopilot: nothing to report")
            return HeartbeatResult(mode=AUTOPILOT, events=events, trip=trip)

        primary = alerts.pick_primary(collected)
        trip.alert_last_sent[primary.type] = timestamp
        logger.info("[Heartbeat] alert: %s (%s), %d candidate(s)", primary.type, primary.severity, len(collected))
        return HeartbeatResult(mode=ALERT, message=primary.message, alerts=collected, events=events, trip=trip)

    @staticmethod
    def _step(name: str, fn: Callable[[], T], fallback: T) -> T:
        try:
            return fn()
        except Exception as exc:
            logger.warning("[Heartbeat] step '%s' failed: %s", name, exc)
            return fallback

    def _suppressed(self, trip: TripState, alert_type: str, now: datetime) -> bool:
        suppressed = alerts.should_suppress(
            alert_type, trip.alert_last_sent.get(alert_type), now, self.no_repeat_window_min
        )
        if suppressed:
            logger.debug("[Heartbeat] suppressed repeat: %s", alert_type)
        return suppressed

    # ── Steps ─────────────────────────────────────────────────────────────────

    def _advance(self, trip: TripState, lat: float, lon: float, timestamp: datetime) -> list[TrackingEvent]:
        result = advance_activity_states(
            lat, lon, timestamp, trip.itinerary,
            thresholds=self.thresholds,
            buffer_provider=PaceBufferProvider(trip.patterns),
        )
        trip.itinerary = result.itinerary
        learn_from_events(trip, result.events)
        return result.events

    def _condition_alerts(self, etas: list[ActivityEta], check: WeatherCheck | None) -> list[Alert]:
        found: list[Alert] = []

        for eta in etas:
            if classify_drift(eta.drift_minutes, alert_min=self.drift_alert_min) == DRIFT_OBSERVABLE:
                logger.info("[Heartbeat] '%s' drifting %s min (below alert level)",
                            eta.activity_name, eta.drift_minutes)

        drifting = next(
            (e for e in etas if e.drift_minutes is not None and e.drift_minutes >= self.drift_alert_min),
            None,
        )
        if drifting is not None:
            found.append(Alert(
                type=alerts.SCHEDULE_DRIFT,
                severity=alerts.HIGH,
                message=alerts.schedule_alert(drifting.drift_minutes, drifting.activity_name),
                activity_id=drifting.activity_id,
            ))

        if check is not None and check.adverse:
            found.append(Alert(
                type=alerts.WEATHER,
                severity=alerts.MEDIUM,
                message=alerts.weather_alert(check.report, check.activity.label),
                activity_id=check.activity.id,
            ))
        return found

    def _lodging_alert(self, trip: TripState, timestamp: datetime) -> Alert | None:
        local_now = trip.local_time(timestamp)
        if not needs_lodging_nudge(trip.bookings, local_now, self.lodging_nudge_hour):
            return None
        if self._suppressed(trip, alerts.LODGING_NUDGE, timestamp):
            return None
        tomorrow = next_day_first_activity(trip.itinerary, local_now.date())
        low, high = budget_range(trip.hotel_budget_per_night)
        return Alert(
            type=alerts.LODGING_NUDGE,
            severity=alerts.HIGH,
            message=alerts.lodging_nudge(tomorrow.label if tomorrow else None, low, high),
        )

    def _fire_reminders(self, trip: TripState, timestamp: datetime) -> list[Alert]:
        queue = DeferredRequestQueue.from_records(trip.deferred_requests)
        fired = queue.check_and_fire(timestamp)
        trip.deferred_requests = queue.to_records()
        return [
            Alert(type=alerts.DEFERRED, severity=alerts.INFO, message=alerts.deferred_reminder(r))
            for r in fired
        ]


def run_heartbeat(
    trip: TripState,
    lat: float,
    lon: float,
    timestamp: datetime,
    routing: RoutingProvider,
    weather: WeatherProvider,
) -> HeartbeatResult:
    """One heartbeat with default policy."""
    return Heartbeat(routing, weather).run(trip, lat, lon, timestamp)
