"""
tripwatch/server.py
-------------------
HTTP surface for the collaborators: the messaging bot posts location ticks and
deferred requests, the scheduler posts heartbeats, the assistant asks for
corridor, gas and hotel searches and for sunset times.

Run:
    uvicorn tripwatch.server:app --port 8000
"""

from __future__ import annotations
from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import AwareDatetime, BaseModel

from tripwatch import config
from tripwatch.errors import ProviderError, TripNotFoundError
from tripwatch.modules.intelligence.fuel import NearbyStop, find_gas, gas_message
from tripwatch.modules.intelligence.hotels import find_hotels, hotel_message
from tripwatch.modules.intelligence.route_search import search_corridor
from tripwatch.modules.memory.trip_store import JsonFileTripStore, TripLocks, TripStore
from tripwatch.modules.proactive.heartbeat import Heartbeat
from tripwatch.modules.proactive.lodging import next_day_first_activity
from tripwatch.modules.proactive.service import HeartbeatService
from tripwatch.modules.tool_usage.base import PlacesProvider, RoutingProvider, WeatherProvider
from tripwatch.modules.tool_usage.maps_tool import GoogleMapsTool
from tripwatch.modules.tool_usage.weather_tool import WeatherApiTool
from tripwatch.modules.tracking.service import TrackingService
from tripwatch.schemas.itinerary import ensure_aware


class PositionIn(BaseModel):
    lat: float
    lon: float
    timestamp: Optional[AwareDatetime] = None    # offset required; omitted means now


class DeferredIn(BaseModel):
    category: str
    delay_minutes: float
    text: str
    lat: Optional[float] = None
    lon: Optional[float] = None


class StopIn(BaseModel):
    name: str
    lat: float
    lon: float


class CorridorIn(BaseModel):
    origin_lat: float
    origin_lon: float
    dest_lat: float
    dest_lon: float
    place_type: str
    detour_budget_minutes: float = config.DEFAULT_DETOUR_BUDGET_MIN
    keyword: str = ""


class GasIn(BaseModel):
    origin_lat: float
    origin_lon: float
    dest_lat: float
    dest_lon: float
    other_needs: list[str] = []
    nearby_stops: list[StopIn] = []


class HotelsIn(BaseModel):
    lat: float
    lon: float
    timestamp: Optional[AwareDatetime] = None


def create_app(
    store: TripStore | None = None,
    routing: RoutingProvider | None = None,
    places: PlacesProvider | None = None,
    weather: WeatherProvider | None = None,
) -> FastAPI:
    store = store or JsonFileTripStore()
    maps = GoogleMapsTool() if routing is None or places is None else None
    routing = routing or maps
    places = places or maps
    weather = weather or WeatherApiTool()

    locks = TripLocks()
    tracking = TrackingService(store, locks)
    heartbeats = HeartbeatService(store, Heartbeat(routing, weather), locks)

    app = FastAPI(title="Tripwatch")

    @app.get("/")
    def root():
        return {"message": "Tripwatch is running"}

    @app.post("/trips/{trip_id}/location")
    def location(trip_id: str, body: PositionIn):
        try:
            update = tracking.handle_location_update(trip_id, body.lat, body.lon, body.timestamp)
        except TripNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {
            "location": update.location.model_dump(),
            "events": [asdict(e) for e in update.events],
            "fired": [r.model_dump() for r in update.fired],
        }

    @app.post("/trips/{trip_id}/heartbeat")
    def heartbeat(trip_id: str, body: PositionIn):
        try:
            result = heartbeats.tick(trip_id, body.lat, body.lon, body.timestamp)
        except TripNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {
            "mode": result.mode,
            "message": result.message,
            "alerts": [asdict(a) for a in result.alerts],
            "events": [asdict(e) for e in result.events],
        }

    @app.post("/trips/{trip_id}/deferred")
    def deferred(trip_id: str, body: DeferredIn):
        try:
            request = tracking.add_deferred_request(
                trip_id, body.category, body.delay_minutes, body.text, body.lat, body.lon
            )
        except TripNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return request.model_dump()

    @app.post("/corridor")
    async def corridor(body: CorridorIn):
        results = await search_corridor(
            routing, places,
            body.origin_lat, body.origin_lon, body.dest_lat, body.dest_lon,
            body.place_type, body.detour_budget_minutes, body.keyword,
        )
        return {"results": [asdict(c) for c in results]}

    @app.post("/gas")
    async def gas(body: GasIn):
        stops = [NearbyStop(name=s.name, lat=s.lat, lon=s.lon) for s in body.nearby_stops]
        options = await find_gas(
            routing, places,
            body.origin_lat, body.origin_lon, body.dest_lat, body.dest_lon, stops,
        )
        return {
            "message": gas_message(options, body.other_needs),
            "options": [asdict(o) for o in options],
        }

    @app.post("/trips/{trip_id}/hotels")
    async def hotels(trip_id: str, body: HotelsIn):
        try:
            trip = store.load(trip_id)
        except TripNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        today = trip.local_time(ensure_aware(body.timestamp)).date()
        first = next_day_first_activity(trip.itinerary, today)
        tomorrow = (first.lat, first.lon) if first is not None and first.has_coordinates else None
        options = await find_hotels(routing, places, body.lat, body.lon, tomorrow)
        return {
            "message": hotel_message(options),
            "options": [asdict(o) for o in options],
        }

    @app.get("/sunset")
    def sunset(lat: float, lon: float, on: Optional[date] = None):
        try:
            info = weather.sunset_info(lat, lon, on)
        except ProviderError as e:
            raise HTTPException(status_code=502, detail=str(e))
        return {k: v.strftime("%H:%M") for k, v in asdict(info).items()}

    return app


def main() -> None:
    import uvicorn

    config.configure_logging()
    uvicorn.run("tripwatch.server:app", host="0.0.0.0", port=8000)


app = create_app()


if __name__ == "__main__":
    main()
