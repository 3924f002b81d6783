from datetime import timedelta

import pytest

from tripwatch.modules.proactive.alerts import (
    HIGH,
    INFO,
    LOW,
    MEDIUM,
    Alert,
    Option,
    deferred_reminder,
    flight_delay_alert,
    lodging_nudge,
    pick_primary,
    schedule_alert,
    should_suppress,
    weather_alert,
)
from tripwatch.modules.tool_usage.base import WeatherReport
from tripwatch.schemas.itinerary import ActivityCategory
from tripwatch.schemas.trip import DeferredRequest

from tests.conftest import dt, make_activity

NOW = dt(15, 0)


# ---------- guard ----------

def test_never_sent_is_allowed():
    assert should_suppress("weather", None, NOW) is False


def test_just_sent_is_suppressed():
    assert should_suppress("weather", NOW, NOW) is True


@pytest.mark.parametrize("ago, suppressed", [(29, True), (30, False), (31, False)])
def test_window_boundary(ago, suppressed):
    assert should_suppress("weather", NOW - timedelta(minutes=ago), NOW) is suppressed


def test_custom_window():
    assert should_suppress("weather", NOW - timedelta(minutes=45), NOW, window_minutes=60) is True


def test_incomparable_times_are_allowed():
    assert should_suppress("weather", NOW.replace(tzinfo=None), NOW) is False


# ---------- severity ----------

def test_pick_primary_prefers_severity_then_order():
    alerts = [
        Alert("deferred", INFO, "a"),
        Alert("weather", MEDIUM, "b"),
        Alert("lodging-nudge", MEDIUM, "c"),
        Alert("x", LOW, "d"),
    ]
    assert pick_primary(alerts).message == "b"
    assert pick_primary(alerts + [Alert("schedule-drift", HIGH, "e")]).message == "e"


# ---------- catalogue ----------

def numbered_lines(text):
    return [line for line in text.splitlines() if line[:2] in ("1.", "2.", "3.", "4.")]


def test_schedule_alert_lists_three_options():
    text = schedule_alert(45, "Haystack Rock")
    assert "Running 45 min behind schedule" in text
    assert "Haystack Rock" in text
    options = numbered_lines(text)
    assert len(options) == 3
    assert options[1].startswith("2. Skip Haystack Rock")


def test_schedule_alert_caps_custom_options():
    opts = [Option(str(i)) for i in range(5)]
    assert len(numbered_lines(schedule_alert(50, "X", opts))) == 3


def test_weather_alert_mentions_chance():
    text = weather_alert(WeatherReport(condition="Light rain", precip_chance=80), "Cannon Beach")
    assert text.startswith("🌧 Light rain (80% chance) forecast at Cannon Beach.")
    assert len(numbered_lines(text)) == 3


def test_lodging_nudge_with_and_without_budget():
    with_budget = lodging_nudge("Tillamook Creamery", 105, 180)
    assert "$105–$180/night" in with_budget
    assert "Tomorrow starts at Tillamook Creamery" in with_budget

    plain = lodging_nudge(None)
    assert "budget" not in plain
    assert "tomorrow's first stop" in plain


def test_flight_delay_offers_to_skip_flexible_stops_only():
    day = [
        make_activity("ferry", name="Ferry", category=ActivityCategory.HARD),
        make_activity("a", name="Pike Place"),
        make_activity("b", name="Gum Wall", category=ActivityCategory.OPEN),
        make_activity("c", name="Space Needle"),
    ]
    text = flight_delay_alert("AS 123", 135, day)
    assert "AS 123 is delayed 2 hr 15 min" in text
    assert "skip Pike Place and Gum Wall" in text
    assert "Ferry" not in text
    assert "Space Needle" not in text


def test_flight_delay_short_and_nothing_flexible():
    text = flight_delay_alert("", 45, [make_activity(category=ActivityCategory.HARD)])
    assert "Your flight is delayed 45 min" in text
    assert "skip the first stop" in text


def test_deferred_reminder():
    req = DeferredRequest(id=1, category="food", text="find lunch", fires_at=NOW)
    assert deferred_reminder(req) == "⏰ Reminder: find lunch"
