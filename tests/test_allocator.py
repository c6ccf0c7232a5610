"""
Test period placement: even spread, carry-over, teacher conflicts and shortfalls.
"""
from models.schemas import BlockKind, DayTimeConfig, ForbiddenWindow
from service.allocator import Allocator, SubjectDemand, spread_evenly
from service.exceptions import TeacherConflictUnresolvable, UnderAllocationError
from service.free_time import fill_free_time
from service.teacher_calendar import TeacherCalendar
from service.time_grid import TimeGridBuilder


def get_morning_config(end_time="12:00"):
    """08:00-end_time with a 20 minute break at 10:00."""
    return DayTimeConfig(
        start_time="08:00",
        end_time=end_time,
        morning_break={"start": "10:00", "duration": 20},
    )


def build_grids(class_id="1A", days=("monday",), windows=(), end_time="12:00"):
    config = get_morning_config(end_time)
    return TimeGridBuilder(40).build_week(
        class_id, list(days), {day: config for day in days}, list(windows)
    )


def placed_starts(result, weekday):
    return sorted(b.start_time for b in result.blocks[weekday])


def test_spread_evenly_gives_remainder_to_earliest_days():
    assert spread_evenly(7, 5) == [2, 2, 1, 1, 1]
    assert spread_evenly(4, 5) == [1, 1, 1, 1, 0]
    assert spread_evenly(10, 5) == [2, 2, 2, 2, 2]
    assert spread_evenly(3, 0) == []


def test_single_day_scenario():
    """
    Three periods before the break, the fourth after it, the rest free time.

    The worked scenario reads "10:20-12:00 becomes free_time", but with a
    single school day the carried period wraps back to Monday and takes the
    first slot after the break (10:20-11:00).
    """
    grids = build_grids()
    calendar = TeacherCalendar()

    result = Allocator(calendar).allocate("1A", grids, [SubjectDemand("math", "T", 4)])
    grid = grids["monday"]
    day = fill_free_time("monday", grid.start_time, grid.end_time, grid.fixed_blocks + result.blocks["monday"])

    assert result.shortfalls == []
    assert [(b.kind, b.start_time, b.end_time) for b in day.blocks] == [
        (BlockKind.SUBJECT, "08:00", "08:40"),
        (BlockKind.SUBJECT, "08:40", "09:20"),
        (BlockKind.SUBJECT, "09:20", "10:00"),
        (BlockKind.BREAK, "10:00", "10:20"),
        (BlockKind.SUBJECT, "10:20", "11:00"),
        (BlockKind.FREE_TIME, "11:00", "12:00"),
    ]
    assert len(calendar) == 4


def test_periods_are_spread_across_the_week():
    days = ("monday", "tuesday", "wednesday", "thursday", "friday")
    grids = build_grids(days=days)

    result = Allocator(TeacherCalendar()).allocate("1A", grids, [SubjectDemand("math", "T", 7)])

    assert [len(result.blocks[day]) for day in days] == [2, 2, 1, 1, 1]


def test_exhausted_day_carries_to_next_weekday():
    # Monday keeps a single slot at 08:00
    windows = [ForbiddenWindow(weekday="monday", start="08:40", duration=80)]
    grids = build_grids(days=("monday", "tuesday"), windows=windows, end_time="10:20")

    result = Allocator(TeacherCalendar()).allocate("1A", grids, [SubjectDemand("math", "T", 4)])

    assert result.shortfalls == []
    assert placed_starts(result, "monday") == ["08:00"]
    assert placed_starts(result, "tuesday") == ["08:00", "08:40", "09:20"]


def test_carry_from_last_day_wraps_to_start_of_week():
    # Tuesday keeps a single slot at 08:00
    windows = [ForbiddenWindow(weekday="tuesday", start="08:40", duration=80)]
    grids = build_grids(days=("monday", "tuesday"), windows=windows, end_time="10:20")

    result = Allocator(TeacherCalendar()).allocate("1A", grids, [SubjectDemand("math", "T", 4)])

    assert result.shortfalls == []
    assert placed_starts(result, "monday") == ["08:00", "08:40", "09:20"]
    assert placed_starts(result, "tuesday") == ["08:00"]


def test_heavier_subjects_are_placed_first_ties_by_subject_id():
    grids = build_grids(end_time="10:20")
    demands = [
        SubjectDemand("bio", "T1", 1),
        SubjectDemand("chem", "T3", 2),
        SubjectDemand("art", "T2", 2),
    ]

    result = Allocator(TeacherCalendar()).allocate("1A", grids, demands)

    placed = [(b.subject_id, b.start_time) for b in result.blocks["monday"]]
    assert placed == [("art", "08:00"), ("art", "08:40"), ("chem", "09:20")]
    assert [(s.subject_id, s.periods_short) for s in result.shortfalls] == [("chem", 1), ("bio", 1)]


def test_busy_teacher_moves_to_next_slot():
    calendar = TeacherCalendar()
    allocator = Allocator(calendar)
    allocator.allocate("1A", build_grids("1A"), [SubjectDemand("math", "T", 1)])

    result = allocator.allocate("1B", build_grids("1B"), [SubjectDemand("physics", "T", 1)])

    assert placed_starts(result, "monday") == ["08:40"]
    assert result.shortfalls == []


def test_capacity_shortfall_is_reported_not_raised():
    grids = build_grids(end_time="10:20")

    result = Allocator(TeacherCalendar()).allocate("1A", grids, [SubjectDemand("math", "T", 5)])

    assert len(result.blocks["monday"]) == 3
    assert len(result.shortfalls) == 1
    shortfall = result.shortfalls[0]
    assert type(shortfall) is UnderAllocationError
    assert (shortfall.subject_id, shortfall.class_id, shortfall.periods_short) == ("math", "1A", 2)


def test_teacher_contention_alone_is_unresolvable_conflict():
    calendar = TeacherCalendar()
    allocator = Allocator(calendar)
    allocator.allocate("1A", build_grids("1A", end_time="10:20"), [SubjectDemand("math", "T", 3)])

    result = allocator.allocate("1B", build_grids("1B", end_time="10:20"), [SubjectDemand("math", "T", 2)])

    assert result.blocks["monday"] == []
    shortfall = result.shortfalls[0]
    assert isinstance(shortfall, TeacherConflictUnresolvable)
    assert isinstance(shortfall, UnderAllocationError)
    assert shortfall.periods_short == 2
    assert shortfall.to_diagnostic().kind == "TeacherConflictUnresolvable"


def test_missing_teacher_is_a_shortfall():
    result = Allocator(TeacherCalendar()).allocate("1A", build_grids(), [SubjectDemand("math", None, 3)])

    assert result.blocks["monday"] == []
    assert result.shortfalls[0].periods_short == 3
    assert "no teacher" in result.shortfalls[0].reason


def test_zero_period_subject_is_skipped():
    result = Allocator(TeacherCalendar()).allocate("1A", build_grids(), [SubjectDemand("math", "T", 0)])

    assert result.blocks["monday"] == []
    assert result.shortfalls == []


def test_zero_capacity_day_pushes_load_to_other_days():
    windows = [
        ForbiddenWindow(weekday="monday", start="08:00", duration=120),
        ForbiddenWindow(weekday="monday", start="10:20", duration=100),
    ]
    grids = build_grids(days=("monday", "tuesday"), windows=windows)

    result = Allocator(TeacherCalendar()).allocate("1A", grids, [SubjectDemand("math", "T", 4)])

    assert result.blocks["monday"] == []
    assert len(result.blocks["tuesday"]) == 4
    assert result.shortfalls == []


def test_occupied_intervals_are_not_offered():
    grids = build_grids()
    occupied = {"monday": [grids["monday"].slots[0].model_copy()]}

    result = Allocator(TeacherCalendar()).allocate("1A", grids, [SubjectDemand("math", "T", 2)], occupied)

    assert placed_starts(result, "monday") == ["08:40", "09:20"]
