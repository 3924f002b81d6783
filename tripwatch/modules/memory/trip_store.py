"""
tripwatch/modules/memory/trip_store.py
--------------------------------------
Trip-document persistence and per-trip serialisation.

The services treat one trip document as the unit of persistence: load once,
mutate in memory, save once. Two ticks for the same trip must not interleave
that cycle, so every load–mutate–save runs under the trip's lock from
TripLocks.

Stores:
  InMemoryTripStore   — process-lifetime dict (tests, demos)
  JsonFileTripStore   — one JSON file per trip in a directory, or a single
                        configured file holding one trip
"""

from __future__ import annotations
import logging
import os
import tempfile
import threading
import weakref
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Protocol

from tripwatch import config
from tripwatch.errors import TripNotFoundError
from tripwatch.schemas.trip import TripState

logger = logging.getLogger(__name__)


class TripStore(Protocol):
    def load(self, trip_id: str) -> TripState: ...
    def save(self, state: TripState) -> None: ...


def _stamp(state: TripState) -> None:
    now = datetime.now().astimezone()
    state.updated_at = now
    if state.created_at is None:
        state.created_at = now


class InMemoryTripStore:
    """Lives only for the lifetime of the Python process."""

    def __init__(self) -> None:
        self._states: dict[str, TripState] = {}

    def load(self, trip_id: str) -> TripState:
        if trip_id not in self._states:
            raise TripNotFoundError(trip_id)
        return self._states[trip_id].model_copy(deep=True)

    def save(self, state: TripState) -> None:
        _stamp(state)
        self._states[state.trip_id] = state.model_copy(deep=True)


class JsonFileTripStore:

    def __init__(self, directory: str | None = None, path: str | None = None) -> None:
        directory = directory if directory is not None else config.TRIP_STATE_DIR
        self.directory = Path(directory) if directory else None
        self.path = Path(path or config.TRIP_STATE_PATH)

    def _file_for(self, trip_id: str) -> Path:
        if self.directory is not None:
            return self.directory / f"{trip_id}.json"
        return self.path

    def load(self, trip_id: str) -> TripState:
        file = self._file_for(trip_id)
        if not file.exists():
            raise TripNotFoundError(trip_id)
        state = TripState.model_validate_json(file.read_text(encoding="utf-8"))
        if self.directory is None and state.trip_id and state.trip_id != trip_id:
            raise TripNotFoundError(trip_id)
        if not state.trip_id:
            state.trip_id = trip_id
        return state

    def save(self, state: TripState) -> None:
        _stamp(state)
        file = self._file_for(state.trip_id)
        file.parent.mkdir(parents=True, exist_ok=True)
        payload = state.model_dump_json(by_alias=True, indent=2)

        # atomic replace: readers see the old or the new document, never half
        fd, tmp = tempfile.mkstemp(dir=file.parent, prefix=f".{file.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp, file)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        logger.debug("[Store] saved trip %s → %s", state.trip_id, file)


class TripLocks:
    """
    One lock per trip id; different trips never block each other.

    Entries are weak: a trip's lock lives while someone holds or waits on it
    and is dropped afterwards, so the table does not grow with every trip id.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def for_trip(self, trip_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(trip_id, threading.Lock())

    @contextmanager
    def hold(self, trip_id: str) -> Iterator[None]:
        with self.for_trip(trip_id):
            yield
