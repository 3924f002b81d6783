"""
tripwatch/modules/tracking/service.py
-------------------------------------
Entry point for live GPS ticks and deferred-reminder requests.

Every call runs the full load → mutate → save cycle for one trip under that
trip's lock, so two ticks for the same trip never lose each other's update.

Timestamps without a timezone are read as server-local time. A completed
visit feeds pace learning here as well as in the heartbeat, whichever tick
sees it first.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from tripwatch.modules.memory.trip_store import TripLocks, TripStore
from tripwatch.modules.patterns.pace import PaceBufferProvider, learn_from_events
from tripwatch.modules.tracking.deferred_requests import DeferredRequestQueue
from tripwatch.modules.tracking.state_machine import (
    TrackingEvent,
    TrackingThresholds,
    advance_activity_states,
)
from tripwatch.schemas.itinerary import PositionSample, ensure_aware
from tripwatch.schemas.trip import DeferredRequest

logger = logging.getLogger(__name__)


@dataclass
class LocationUpdate:
    location: PositionSample
    events: list[TrackingEvent] = field(default_factory=list)
    fired: list[DeferredRequest] = field(default_factory=list)


class TrackingService:

    def __init__(self, store: TripStore, locks: TripLocks | None = None,
                 thresholds: TrackingThresholds | None = None) -> None:
        self.store = store
        self.locks = locks or TripLocks()
        self.thresholds = thresholds or TrackingThresholds()

    def handle_location_update(self, trip_id: str, lat: float, lon: float,
                               timestamp: datetime | None = None) -> LocationUpdate:
        timestamp = ensure_aware(timestamp)
        logger.info("[Tracking] trip=%s location (%s, %s)", trip_id, lat, lon)

        with self.locks.hold(trip_id):
            trip = self.store.load(trip_id)
            result = advance_activity_states(
                lat, lon, timestamp, trip.itinerary,
                thresholds=self.thresholds,
                buffer_provider=PaceBufferProvider(trip.patterns),
            )
            trip.itinerary = result.itinerary
            learn_from_events(trip, result.events)
            trip.last_position = PositionSample(lat=lat, lon=lon, timestamp=timestamp)

            queue = DeferredRequestQueue.from_records(trip.deferred_requests)
            fired = queue.check_and_fire(timestamp)
            trip.deferred_requests = queue.to_records()

            self.store.save(trip)

        return LocationUpdate(location=trip.last_position, events=result.events, fired=fired)

    def add_deferred_request(
        self,
        trip_id: str,
        category: str,
        delay_minutes: float,
        text: str,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        now: datetime | None = None,
    ) -> DeferredRequest:
        with self.locks.hold(trip_id):
            trip = self.store.load(trip_id)
            queue = DeferredRequestQueue.from_records(trip.deferred_requests)
            request = queue.add(category, delay_minutes, text, lat, lon, now=ensure_aware(now))
            trip.deferred_requests = queue.to_records()
            self.store.save(trip)
        return request

    def check_and_fire(self, trip_id: str, now: datetime | None = None) -> list[DeferredRequest]:
        with self.locks.hold(trip_id):
            trip = self.store.load(trip_id)
            queue = DeferredRequestQueue.from_records(trip.deferred_requests)
            fired = queue.check_and_fire(ensure_aware(now))
            if fired:
                trip.deferred_requests = queue.to_records()
                self.store.save(trip)
        return fired
