"""
tripwatch/modules/proactive/service.py
--------------------------------------
Runs a heartbeat against a stored trip: load once, run, save once, under the
trip's lock. Called by the external scheduler every HEARTBEAT_INTERVAL_MIN.
"""

from __future__ import annotations
import logging
from datetime import datetime

from tripwatch.modules.memory.trip_store import TripLocks, TripStore
from tripwatch.modules.proactive.heartbeat import Heartbeat, HeartbeatResult
from tripwatch.schemas.itinerary import ensure_aware

logger = logging.getLogger(__name__)


class HeartbeatService:

    def __init__(self, store: TripStore, heartbeat: Heartbeat, locks: TripLocks | None = None) -> None:
        self.store = store
        self.heartbeat = heartbeat
        self.locks = locks or TripLocks()

    def tick(self, trip_id: str, lat: float, lon: float, timestamp: datetime | None = None) -> HeartbeatResult:
        """
        Raises:
            TripNotFoundError: no stored trip with this id.
        """
        timestamp = ensure_aware(timestamp)
        with self.locks.hold(trip_id):
            trip = self.store.load(trip_id)
            result = self.heartbeat.run(trip, lat, lon, timestamp)
            if result.trip is not None:
                self.store.save(result.trip)
        return result
