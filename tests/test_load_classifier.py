"""
Test weekly period derivation from subject load.
"""
import pytest

from models.schemas import SubjectLoad
from service.load_classifier import base_periods, classify_subjects, weekly_periods


def make_load(**overrides):
    data = {
        "subject_id": "math",
        "annual_hours": 0,
        "credits": 0,
        "practical_hours": 0,
        "is_exam_subject": False,
    }
    data.update(overrides)
    return SubjectLoad(**data)


def test_heavy_subject_gets_eight_periods():
    load = make_load(annual_hours=110, credits=65)
    assert weekly_periods(load) == 8


def test_practical_heavy_subject_gets_extra_period():
    """50 practical hours is at least 60% of 80."""
    load = make_load(annual_hours=80, credits=45, practical_hours=50)
    assert weekly_periods(load) == 7


def test_practical_below_ratio_gets_no_extra_period():
    load = make_load(annual_hours=80, credits=45, practical_hours=47)
    assert weekly_periods(load) == 6


def test_exam_subject_in_exam_term_gets_extra_period():
    load = make_load(annual_hours=30, credits=10, is_exam_subject=True)
    assert weekly_periods(load, is_exam_term=True) == 3


def test_exam_subject_outside_exam_term():
    load = make_load(annual_hours=30, credits=10, is_exam_subject=True)
    assert weekly_periods(load, is_exam_term=False) == 2


@pytest.mark.parametrize("hours,expected", [
    (100, 8),
    (99.9, 6),
    (70, 6),
    (69, 4),
    (40, 4),
    (39.5, 2),
    (0, 2),
])
def test_bucket_boundaries(hours, expected):
    """Lower bounds are inclusive, upper bounds exclusive; no credits picks the lower bucket."""
    assert base_periods(hours) == expected


@pytest.mark.parametrize("hours,credits,expected", [
    (99.5, 60, 8),
    (99.5, 45, 6),
    (69.5, 40, 6),
    (69.5, 25, 4),
    (39.5, 20, 4),
    (39.5, 19, 2),
])
def test_credits_settle_hours_between_buckets(hours, credits, expected):
    assert base_periods(hours, credits) == expected


def test_annual_hours_win_over_credits():
    assert weekly_periods(make_load(annual_hours=30, credits=80)) == 2
    assert weekly_periods(make_load(annual_hours=120, credits=5)) == 8


def test_negative_values_clamp_into_lowest_bucket():
    assert base_periods(-10, -3) == 2

    # Clamped to zero hours, zero practical hours meets the practical ratio
    load = make_load(annual_hours=-10, credits=-3, practical_hours=-1)
    assert weekly_periods(load) == 3


def test_practical_hours_clamp_to_annual_hours():
    load = make_load(annual_hours=50, credits=25, practical_hours=500)
    assert weekly_periods(load) == 5


def test_zero_hour_subject_gets_practical_bonus():
    """0 practical hours is at least 60% of 0 annual hours."""
    assert weekly_periods(make_load(annual_hours=0, credits=0, practical_hours=0)) == 3


def test_no_upper_cap():
    load = make_load(annual_hours=200, credits=90, practical_hours=150, is_exam_subject=True)
    assert weekly_periods(load, is_exam_term=True) == 10


def test_classify_subjects_annotates_copies():
    subjects = [
        make_load(subject_id="math", annual_hours=110, credits=65),
        make_load(subject_id="art", annual_hours=20),
    ]

    annotated = classify_subjects(subjects)

    assert [s.weekly_periods for s in annotated] == [8, 2]
    assert [s.subject_id for s in annotated] == ["math", "art"]
    assert all(s.weekly_periods is None for s in subjects)
