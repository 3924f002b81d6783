import pytest

from tripwatch.modules.patterns.pace import (
    PaceBufferProvider,
    activity_type_of,
    derive_activity_type,
    learn_activity_pace,
    learn_from_completion,
)
from tripwatch.schemas.trip import Patterns

from tests.conftest import dt, make_activity


@pytest.mark.parametrize("name, kind", [
    ("Cannon Beach", "beach"),
    ("Saddle Mountain Trail", "hike"),
    ("Ecola Viewpoint", "scenic"),
    ("Columbia River Maritime Museum", "museum"),
    ("Downtown Astoria", "city"),
    ("Lunch at Pig 'N Pancake", "lunch"),
    ("", "other"),
])
def test_derive_activity_type(name, kind):
    assert derive_activity_type(name) == kind


def test_explicit_type_wins():
    act = make_activity(name="Cannon Beach", activity_type="Museum")
    assert activity_type_of(act) == "museum"


def test_running_average_per_type():
    patterns = Patterns()
    beach = make_activity(name="Cannon Beach")
    learn_activity_pace(patterns, beach, 60, 90)
    record = learn_activity_pace(patterns, make_activity(name="Arcadia Beach"), 60, 70)
    assert record.observations == [30, 10]
    assert record.avg_delta_mins == 20
    assert set(patterns.pace) == {"beach"}


def test_learn_from_completion_measures_visit():
    patterns = Patterns()
    act = make_activity(planned_duration=60, arrived_at=dt(13, 0), completed_at=dt(14, 15))
    record = learn_from_completion(patterns, act)
    assert record.observations == [15]


def test_learn_from_completion_needs_full_visit():
    patterns = Patterns()
    assert learn_from_completion(patterns, make_activity(planned_duration=60, completed_at=dt(14, 0))) is None
    assert learn_from_completion(patterns, make_activity(arrived_at=dt(13, 0), completed_at=dt(14, 0))) is None
    assert patterns.pace == {}


def test_buffer_provider():
    patterns = Patterns()
    learn_activity_pace(patterns, make_activity(name="Cannon Beach"), 60, 85)
    provider = PaceBufferProvider(patterns)
    assert provider.activity_buffer(make_activity(name="Short Sands Beach")) == 25
    assert provider.activity_buffer(make_activity(name="Maritime Museum")) == 0
