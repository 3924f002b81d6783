from datetime import timedelta

import pytest

from tripwatch.modules.tracking.state_machine import (
    TrackingThresholds,
    advance,
    advance_activity_states,
    dwell_minutes,
    expected_remaining_minutes,
)
from tripwatch.schemas.itinerary import ActivityState, Day

from tests.conftest import BASE, FAR, NEAR, RING, dt, make_activity, one_day


# ---------- single activity ----------

def test_completed_is_absorbing():
    act = make_activity(state=ActivityState.COMPLETED)
    for pos in (BASE, NEAR, RING, FAR):
        assert advance(act, *pos, dwell_minutes=999) == ActivityState.COMPLETED


def test_pending_stays_pending_beyond_outer_ring():
    act = make_activity()
    assert advance(act, *FAR) == ActivityState.PENDING
    assert advance(act, 46.0, -124.0) == ActivityState.PENDING


def test_pending_inside_inner_ring_is_arrived_regardless_of_dwell():
    act = make_activity()
    assert advance(act, *NEAR, dwell_minutes=0) == ActivityState.ARRIVED


def test_pending_in_outer_ring_is_uncertain():
    assert advance(make_activity(), *RING) == ActivityState.UNCERTAIN


def test_uncertain_moves_to_arrived_when_close():
    act = make_activity(state=ActivityState.UNCERTAIN)
    assert advance(act, *NEAR) == ActivityState.ARRIVED


def test_uncertain_holds_when_family_moves_far_away():
    act = make_activity(state=ActivityState.UNCERTAIN)
    assert advance(act, *FAR) == ActivityState.UNCERTAIN


def test_arrived_promotes_only_after_dwell():
    act = make_activity(state=ActivityState.ARRIVED)
    assert advance(act, *NEAR, dwell_minutes=19.9) == ActivityState.ARRIVED
    assert advance(act, *NEAR, dwell_minutes=20) == ActivityState.IN_PROGRESS


def test_in_progress_completes_when_family_leaves_inner_ring():
    act = make_activity(state=ActivityState.IN_PROGRESS)
    assert advance(act, *NEAR) == ActivityState.IN_PROGRESS
    assert advance(act, *RING) == ActivityState.COMPLETED


def test_in_progress_never_becomes_uncertain():
    act = make_activity(state=ActivityState.IN_PROGRESS)
    assert advance(act, *RING) != ActivityState.UNCERTAIN


def test_activity_without_coordinates_is_inert():
    act = make_activity(at=None)
    assert advance(act, *BASE) == ActivityState.PENDING


def test_custom_thresholds():
    t = TrackingThresholds(arrived_radius_m=100, uncertain_radius_m=600, in_progress_dwell_min=5)
    act = make_activity()
    assert advance(act, *NEAR, thresholds=t) == ActivityState.UNCERTAIN
    assert advance(act, *RING, thresholds=t) == ActivityState.PENDING


# ---------- dwell ----------

def test_dwell_counts_from_arrival():
    act = make_activity(state=ActivityState.ARRIVED, arrived_at=dt(13, 30))
    assert dwell_minutes(act, dt(13, 45)) == pytest.approx(15)


def test_dwell_zero_when_not_on_site():
    act = make_activity(state=ActivityState.UNCERTAIN, arrived_at=dt(13, 30))
    assert dwell_minutes(act, dt(14, 30)) == 0


def test_dwell_zero_for_incomparable_timestamps():
    act = make_activity(state=ActivityState.ARRIVED, arrived_at=dt(13, 30).replace(tzinfo=None))
    assert dwell_minutes(act, dt(14, 30)) == 0


def test_dwell_never_negative():
    act = make_activity(state=ActivityState.ARRIVED, arrived_at=dt(13, 30))
    assert dwell_minutes(act, dt(13, 0)) == 0


# ---------- batch ----------

def test_dwell_boundary_through_batch():
    t0 = dt(10, 0)
    itinerary = one_day(make_activity(state=ActivityState.ARRIVED, arrived_at=t0))

    early = advance_activity_states(*BASE, t0 + timedelta(minutes=19), itinerary)
    assert early.itinerary[0].activities[0].state == ActivityState.ARRIVED
    assert early.events == []

    on_time = advance_activity_states(*BASE, t0 + timedelta(minutes=20), itinerary)
    assert on_time.itinerary[0].activities[0].state == ActivityState.IN_PROGRESS


def test_end_to_end_visit():
    itinerary = one_day(make_activity(scheduled_time=dt(14, 0), planned_duration=60))

    r1 = advance_activity_states(45.0, -124.0, dt(13, 30), itinerary)
    act = r1.itinerary[0].activities[0]
    assert act.state == ActivityState.ARRIVED
    assert act.arrived_at == dt(13, 30)
    assert [(e.from_state, e.to_state) for e in r1.events] == [(ActivityState.PENDING, ActivityState.ARRIVED)]

    r2 = advance_activity_states(45.0, -124.0, dt(13, 51), r1.itinerary)
    assert r2.itinerary[0].activities[0].state == ActivityState.IN_PROGRESS
    assert r2.events[0].to_state == ActivityState.IN_PROGRESS
    assert r2.events[0].expected_remaining_minutes == pytest.approx(39)

    r3 = advance_activity_states(46.0, -124.0, dt(14, 40), r2.itinerary)
    done = r3.itinerary[0].activities[0]
    assert done.state == ActivityState.COMPLETED
    assert done.completed_at == dt(14, 40)
    assert r3.events[0].from_state == ActivityState.IN_PROGRESS


def test_uncertain_emits_ask_event():
    result = advance_activity_states(*RING, dt(9, 0), one_day(make_activity(name="Haystack Rock")))
    (event,) = result.events
    assert event.type == "ask"
    assert event.question == "Are you at Haystack Rock?"
    assert result.itinerary[0].activities[0].state == ActivityState.UNCERTAIN


def test_batch_does_not_mutate_input():
    itinerary = one_day(make_activity())
    advance_activity_states(*BASE, dt(9, 0), itinerary)
    assert itinerary[0].activities[0].state == ActivityState.PENDING


def test_batch_skips_inert_and_completed_and_keeps_order():
    itinerary = [
        Day(activities=[
            make_activity("no-coords", at=None),
            make_activity("done", state=ActivityState.COMPLETED),
            make_activity("first"),
        ]),
        Day(activities=[make_activity("second", at=NEAR), make_activity("far", at=(47.0, -124.0))]),
    ]
    result = advance_activity_states(*BASE, dt(9, 0), itinerary)
    assert [e.activity_id for e in result.events] == ["first", "second"]
    assert result.itinerary[0].activities[0].state == ActivityState.PENDING
    assert result.itinerary[1].activities[1].state == ActivityState.PENDING


def test_leaving_arrival_resets_timer_on_return():
    itinerary = one_day(make_activity())
    r1 = advance_activity_states(*BASE, dt(9, 0), itinerary)
    r2 = advance_activity_states(*RING, dt(9, 10), r1.itinerary)
    assert r2.itinerary[0].activities[0].state == ActivityState.UNCERTAIN
    r3 = advance_activity_states(*BASE, dt(9, 25), r2.itinerary)
    assert r3.itinerary[0].activities[0].arrived_at == dt(9, 25)
    r4 = advance_activity_states(*BASE, dt(9, 40), r3.itinerary)
    assert r4.itinerary[0].activities[0].state == ActivityState.ARRIVED


# ---------- expected remaining time ----------

class FixedBuffer:
    def __init__(self, minutes):
        self.minutes = minutes

    def activity_buffer(self, activity):
        return self.minutes


def test_expected_remaining_uses_default_duration_and_buffer():
    act = make_activity()
    assert expected_remaining_minutes(act, 30) == 30
    assert expected_remaining_minutes(act, 30, FixedBuffer(15)) == 45


def test_expected_remaining_floors_at_zero():
    act = make_activity(planned_duration=20)
    assert expected_remaining_minutes(act, 90, FixedBuffer(5)) == 0
