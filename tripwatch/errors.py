"""
tripwatch/errors.py
-------------------
Exception hierarchy shared by the provider wrappers and the services.

Provider failures are recovered at the batch call site; only
TripNotFoundError is expected to reach an outer caller.
"""

from __future__ import annotations


class TripwatchError(Exception):
    """Base class for all Tripwatch errors."""


class ProviderError(TripwatchError):
    """An external provider (routing, places, weather) failed or returned garbage."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class TripNotFoundError(TripwatchError):
    """No trip-state record exists for the requested trip id."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"trip not found: {trip_id}")
        self.trip_id = trip_id
