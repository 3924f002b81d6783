import asyncio

from tripwatch.modules.intelligence.fuel import (
    GasOption,
    NearbyStop,
    find_gas,
    gas_message,
    pair_with_stops,
)
from tripwatch.modules.intelligence.route_search import RouteCandidate

from tests.conftest import FakePlaces, FakeRouting, place

ORIGIN = (45.0, -124.0)
DEST = (46.0, -124.0)

STATIONS = [
    place("g1", 45.5, -123.95, rating=4.6, name="Chevron Seaside"),
    place("g2", 45.6, -123.95, rating=4.1, name="Shell Cannon"),
    place("g3", 45.7, -123.95, rating=3.9, name="76 Tillamook"),
    place("g4", 45.8, -123.95, rating=3.2, name="Arco Garibaldi"),
]

PIZZA_NEXT_DOOR = NearbyStop("Pacific Pizza", 45.501, -123.95)       # ~111 m from g1
DINER_ACROSS_TOWN = NearbyStop("Driftwood Diner", 45.52, -123.95)    # ~2.2 km from g1


def run(coro):
    return asyncio.run(coro)


def station(name="Chevron Seaside", detour=10, rating=4.6):
    return RouteCandidate(place_id=name, name=name, lat=45.5, lon=-123.95, detour_minutes=detour,
                          maps_link="https://maps.test/x", rating=rating)


# ---------- pairing ----------

def test_pairs_only_within_quarter_mile():
    assert pair_with_stops(station(), [DINER_ACROSS_TOWN, PIZZA_NEXT_DOOR]) == "Pacific Pizza"
    assert pair_with_stops(station(), [DINER_ACROSS_TOWN]) is None


def test_find_gas_caps_options_and_pairs():
    options = run(find_gas(FakeRouting(), FakePlaces(default=STATIONS), *ORIGIN, *DEST, [PIZZA_NEXT_DOOR]))

    assert [o.station.name for o in options] == ["Chevron Seaside", "Shell Cannon", "76 Tillamook"]
    assert [o.paired_with for o in options] == ["Pacific Pizza", None, None]


def test_find_gas_searches_gas_stations_within_budget():
    places = FakePlaces(default=STATIONS)
    slow = FakeRouting(seconds=lambda a, b: 3600 if b == DEST and a != ORIGIN else 600)
    options = run(find_gas(slow, places, *ORIGIN, *DEST))

    assert options == []
    assert {call[3] for call in places.calls} == {"gas_station"}


# ---------- message ----------

def test_message_for_food_pairing():
    text = gas_message([GasOption(station(), "Pacific Pizza")], other_needs=["food"])
    assert "1. Chevron Seaside — 4.6★" in text
    assert "10 min detour" in text
    assert "Pacific Pizza nearby — knock out gas + food in one stop" in text
    assert text.endswith("Which one?")


def test_message_for_hotel_pairing():
    text = gas_message([GasOption(station(), "Surfsand Resort")], other_needs=["hotel"])
    assert "check in and fill up in one stop" in text


def test_message_for_plain_pairing():
    text = gas_message([GasOption(station(detour=0), "Pacific Pizza")])
    assert "right on your way" in text
    assert "Right next to Pacific Pizza" in text


def test_message_suggests_separate_stops_when_nothing_overlaps():
    text = gas_message([GasOption(station())], other_needs=["food"])
    assert "No overlapping stops found" in text


def test_message_without_stations():
    assert gas_message([]).startswith("⛽ No gas stations found within a 20-min detour")
