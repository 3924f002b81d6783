import pytest

from tripwatch.errors import ProviderError
from tripwatch.modules.proactive.weather_advisor import (
    check_upcoming_weather,
    find_upcoming_outdoor_activity,
    is_adverse,
    is_outdoor,
)
from tripwatch.modules.tool_usage.base import WeatherReport
from tripwatch.schemas.itinerary import ActivityState

from tests.conftest import FakeWeather, make_activity, one_day


@pytest.mark.parametrize("name, outdoor", [
    ("Cannon Beach", True),
    ("Ecola State Park", True),
    ("Multnomah Falls Waterfall Hike", True),
    ("Maritime Museum", False),
])
def test_outdoor_by_name(name, outdoor):
    assert is_outdoor(make_activity(name=name)) is outdoor


def test_outdoor_flag_overrides_name():
    assert is_outdoor(make_activity(name="Tillamook Creamery", is_outdoor=True))


@pytest.mark.parametrize("condition, chance, adverse", [
    ("Sunny", 0, False),
    ("Patchy light drizzle", 10, True),
    ("Thundery outbreaks possible", None, True),
    ("Overcast", 59, False),
    ("Overcast", 60, True),
    ("", None, False),
])
def test_adverse(condition, chance, adverse):
    assert is_adverse(WeatherReport(condition=condition, precip_chance=chance)) is adverse


def test_upcoming_outdoor_skips_completed_and_indoor():
    itinerary = one_day(
        make_activity("done", name="Short Sands Beach", state=ActivityState.COMPLETED),
        make_activity("indoor", name="Maritime Museum"),
        make_activity("nocoords", name="Neahkahnie Trail", at=None),
        make_activity("next", name="Cannon Beach"),
    )
    assert find_upcoming_outdoor_activity(itinerary).id == "next"


def test_check_returns_none_without_outdoor_stop(sunny):
    assert check_upcoming_weather(sunny, one_day(make_activity(name="Museum"))) is None
    assert sunny.calls == []


def test_check_flags_adverse_weather():
    weather = FakeWeather(WeatherReport(condition="Moderate rain", precip_chance=90))
    check = check_upcoming_weather(weather, one_day(make_activity()))
    assert check.adverse
    assert weather.calls == [(45.0, -124.0)]


def test_check_propagates_provider_error():
    weather = FakeWeather(error=ProviderError("weatherapi", "down"))
    with pytest.raises(ProviderError):
        check_upcoming_weather(weather, one_day(make_activity()))
