from tripwatch.schemas.itinerary import (
    Activity,
    ActivityCategory,
    ActivityState,
    Day,
    PositionSample,
)
from tripwatch.schemas.trip import (
    Bookings,
    DeferredRequest,
    HotelBooking,
    PaceRecord,
    Patterns,
    TripState,
)

__all__ = [
    "Activity",
    "ActivityCategory",
    "ActivityState",
    "Bookings",
    "Day",
    "DeferredRequest",
    "HotelBooking",
    "PaceRecord",
    "Patterns",
    "PositionSample",
    "TripState",
]
