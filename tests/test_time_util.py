from datetime import datetime, timedelta, timezone

import pytest

from photo_sequencer import time_util

BASELINE = datetime(2018, 7, 31, 17, 3, 3, 905000, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "delta,expected",
    [
        (3600, 0),
        (1800, -1),
        (3600 + 3700, 1),
        (3600 + 360, 0),
        (3600 - 360, 0),
        (3600 + 361, 1),
        (3600 - 361, -1),
    ],
)
def test_compare_to_period_hour(delta, expected):
    later = BASELINE + timedelta(seconds=delta)
    assert time_util.compare_to_period(BASELINE, later, 3600) == expected
    # Order of the arguments does not matter
    assert time_util.compare_to_period(later, BASELINE, 3600) == expected


def test_within_an_hour():
    one_hour = BASELINE + timedelta(hours=1)
    assert time_util.within_an_hour(BASELINE, one_hour)
    assert time_util.within_an_hour(BASELINE, one_hour + timedelta(seconds=50))
    assert time_util.within_an_hour(BASELINE, one_hour - timedelta(seconds=50))
    assert time_util.within_an_hour(BASELINE, BASELINE)
    assert time_util.within_an_hour(BASELINE, BASELINE + timedelta(minutes=30))
    assert not time_util.within_an_hour(BASELINE, BASELINE + timedelta(hours=48))


def test_within_a_second_and_minute():
    assert time_util.within_a_second(BASELINE, BASELINE + timedelta(milliseconds=500))
    assert not time_util.within_a_second(BASELINE, BASELINE + timedelta(milliseconds=2000))
    assert time_util.within_a_minute(BASELINE, BASELINE + timedelta(seconds=20))
    assert not time_util.within_a_minute(BASELINE, BASELINE + timedelta(seconds=90))


def test_earliest_is_null_safe():
    later = BASELINE + timedelta(seconds=1)
    assert time_util.earliest(None, None) is None
    assert time_util.earliest(BASELINE, None) == BASELINE
    assert time_util.earliest(None, BASELINE) == BASELINE
    assert time_util.earliest(later, BASELINE) == BASELINE
    assert time_util.earliest(BASELINE, later) == BASELINE


def test_correct_if_alternative_materially_earlier():
    correct = time_util.correct_if_alternative_materially_earlier
    t = BASELINE

    assert correct(t, t + timedelta(minutes=30)) == t
    assert correct(t, t - timedelta(days=2)) == t - timedelta(days=2)
    assert correct(None, t) == t
    assert correct(t, None) == t
    # A DST hour apart is not material
    assert correct(t, t - timedelta(hours=1)) == t
    # Earlier, but not by more than ~1.1 days
    assert correct(t, t - timedelta(hours=20)) == t
    # Materially later alternatives are ignored
    assert correct(t, t + timedelta(days=5)) == t


def test_correct_zone_offset():
    bst = timezone(timedelta(hours=1))
    corrected = time_util.correct_zone_offset(BASELINE, bst)
    assert corrected == BASELINE - timedelta(hours=1)


def test_offsets():
    camera = datetime(2004, 1, 1, tzinfo=timezone.utc)
    actual = datetime(2004, 1, 2, tzinfo=timezone.utc)
    offset = time_util.offset_between(camera, actual)
    assert offset == 86400
    assert time_util.apply_offset(camera, offset) == actual
    assert time_util.apply_offset(None, offset) is None
    assert time_util.apply_offset(camera, 0) == camera


def test_local_text_uses_zone():
    tokyo = timezone(timedelta(hours=9))
    late = datetime(2020, 1, 1, 20, 30, 5, tzinfo=timezone.utc)
    assert time_util.local_date_text(late, timezone.utc) == "20200101"
    assert time_util.local_date_text(late, tokyo) == "20200102"
    assert time_util.local_time_text(late, tokyo) == "053005"
    assert time_util.local_date_text(None) == ""
