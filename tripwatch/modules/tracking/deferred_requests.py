"""
tripwatch/modules/tracking/deferred_requests.py
-----------------------------------------------
Category-keyed, one-shot timed reminders ("remind me about lunch in an hour").

Rules:
    same category      → replaces the pending request in that category
    other category     → stacks independently
    check_and_fire(now)→ removes and returns every request whose time has come

There is no timer. Whoever owns the queue polls check_and_fire() from its
own tick (heartbeat, location update). No internal locking either; the
owning service serialises access per trip.
"""

from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from tripwatch.schemas.trip import DeferredRequest

logger = logging.getLogger(__name__)


class DeferredRequestQueue:

    def __init__(self, requests: Iterable[DeferredRequest] = ()) -> None:
        self._requests: list[DeferredRequest] = list(requests)
        self._next_id = max((r.id for r in self._requests), default=0) + 1

    @classmethod
    def from_records(cls, records: Iterable[DeferredRequest]) -> "DeferredRequestQueue":
        return cls(r.model_copy() for r in records)

    def to_records(self) -> list[DeferredRequest]:
        return [r.model_copy() for r in self._requests]

    def add(
        self,
        category: str,
        delay_minutes: float,
        text: str,
        origin_lat: Optional[float] = None,
        origin_lon: Optional[float] = None,
        now: datetime | None = None,
    ) -> DeferredRequest:
        now = now or datetime.now().astimezone()
        self._requests = [r for r in self._requests if r.category != category]

        request = DeferredRequest(
            id=self._next_id,
            category=category,
            text=text,
            fires_at=now + timedelta(minutes=delay_minutes),
            origin_lat=origin_lat,
            origin_lon=origin_lon,
        )
        self._next_id += 1
        self._requests.append(request)
        logger.info("[Deferred] added [%s] '%s' fires at %s", category, text, request.fires_at.isoformat())
        return request

    def pending(self) -> list[DeferredRequest]:
        return list(self._requests)

    def check_and_fire(self, now: datetime | None = None) -> list[DeferredRequest]:
        now = now or datetime.now().astimezone()
        fired: list[DeferredRequest] = []
        waiting: list[DeferredRequest] = []
        for request in self._requests:
            (fired if self._is_due(request, now) else waiting).append(request)
        if not fired:
            return []
        self._requests = waiting
        logger.info("[Deferred] fired: %s", ", ".join(f"[{r.category}] '{r.text}'" for r in fired))
        return fired

    @staticmethod
    def _is_due(request: DeferredRequest, now: datetime) -> bool:
        try:
            return request.fires_at <= now
        except TypeError:
            # naive vs aware: cannot tell, keep it pending
            logger.warning("[Deferred] cannot compare %s with fire time %s for [%s]",
                           now, request.fires_at, request.category)
            return False

    def clear_category(self, category: str) -> int:
        before = len(self._requests)
        self._requests = [r for r in self._requests if r.category != category]
        removed = before - len(self._requests)
        logger.info("[Deferred] cleared %d request(s) for '%s'", removed, category)
        return removed

    def __len__(self) -> int:
        return len(self._requests)
