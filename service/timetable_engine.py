"""
Scheduling run over every class of a school.

Pipeline: load classification -> time grids -> allocation (shared teacher
calendar) -> free time. A run performs no I/O; it turns input records into
weekly schedules plus diagnostics.
"""
from typing import Dict, List, Optional
import logging

from config.settings import settings
from models.schemas import (
    TimetableRequest, TimetableResponse, RebalanceRequest, RebalanceResponse,
    SubjectLoad, TeacherAssignment, WeeklySchedule, Diagnostic, week_order, normalize_weekday
)
from service.allocator import Allocator, SubjectDemand
from service.exceptions import ScheduleValidationError
from service.free_time import fill_free_time
from service.load_classifier import classify_subjects
from service.rebalance import RebalanceEngine
from service.teacher_calendar import TeacherCalendar
from service.time_grid import TimeGridBuilder

logger = logging.getLogger(__name__)


class TimetableEngine:
    """
    Entry point of the engine.

    Classes are processed one after another in class_id order against a single
    TeacherCalendar, so identical input always yields identical schedules.
    """

    def __init__(self, period_length_minutes: Optional[int] = None, school_days: Optional[List[str]] = None):
        """
        Initialize the engine.

        Args:
            period_length_minutes: Default period length, settings value if omitted
            school_days: Default school week, settings value if omitted
        """
        self.period_length = period_length_minutes or settings.period_length_minutes
        self.school_days = week_order(
            normalize_weekday(day) for day in (school_days or settings.school_days)
        )

    def generate(self, request: TimetableRequest, calendar: Optional[TeacherCalendar] = None) -> TimetableResponse:
        """
        Run the full pipeline for every class of the request.

        Args:
            request: Subjects, class configurations, forbidden windows, assignments
            calendar: Run-scoped teacher calendar; a fresh one is created if omitted

        Returns:
            TimetableResponse with annotated subjects, one schedule per valid
            class and the diagnostics of the run
        """
        calendar = calendar if calendar is not None else TeacherCalendar()
        period_length = request.period_length_minutes or self.period_length
        school_days = request.school_days or self.school_days

        subjects = classify_subjects(request.subjects, request.is_exam_term)
        grid_builder = TimeGridBuilder(period_length)
        allocator = Allocator(calendar)

        schedules: List[WeeklySchedule] = []
        diagnostics: List[Diagnostic] = []
        seen = set()

        logger.info(
            f"Scheduling {len(request.class_configs)} class(es), {len(subjects)} subject(s) "
            f"over {len(school_days)} day(s), exam term: {request.is_exam_term}"
        )

        for class_config in sorted(request.class_configs, key=lambda c: c.class_id):
            class_id = class_config.class_id
            if class_id in seen:
                diagnostics.append(ScheduleValidationError(
                    "class_configs", "duplicate class configuration", class_id
                ).to_diagnostic())
                continue
            seen.add(class_id)

            try:
                grids = grid_builder.build_week(
                    class_id,
                    school_days,
                    class_config.days,
                    request.forbidden_windows,
                    request.default_day_config,
                )
            except ScheduleValidationError as e:
                logger.warning(f"Class {class_id} skipped: {e}")
                diagnostics.append(e.to_diagnostic())
                continue

            demands = self._demands_for(class_id, subjects, request.teacher_assignments)
            result = allocator.allocate(class_id, grids, demands)
            diagnostics.extend(shortfall.to_diagnostic() for shortfall in result.shortfalls)

            days = {
                weekday: fill_free_time(
                    weekday, grid.start_time, grid.end_time, grid.fixed_blocks + result.blocks[weekday]
                )
                for weekday, grid in grids.items()
            }
            schedules.append(WeeklySchedule(class_id=class_id, days=days))

        self._warn_unassigned(subjects, request.teacher_assignments)
        status = "PARTIAL" if diagnostics else "COMPLETE"
        logger.info(
            f"Run finished: {len(schedules)} schedule(s), {len(calendar)} reservation(s), "
            f"{len(diagnostics)} diagnostic(s)"
        )
        return TimetableResponse(
            subjects=subjects,
            schedules=schedules,
            diagnostics=diagnostics,
            status=status,
        )

    def rebalance(self, request: RebalanceRequest) -> RebalanceResponse:
        """
        Recompute one class-day after an anchor change.

        Teacher occupancy is rebuilt from every schedule in the request, so the
        re-placed periods avoid teachers booked by other classes.

        Raises:
            ScheduleValidationError: unknown class, malformed anchors or
                incompatible pinned blocks
        """
        schedule = next((s for s in request.schedules if s.class_id == request.class_id), None)
        if schedule is None:
            raise ScheduleValidationError("class_id", f"no schedule for class {request.class_id}", request.class_id)

        calendar = TeacherCalendar.from_schedules(request.schedules)
        engine = RebalanceEngine(calendar, request.period_length_minutes or self.period_length)
        day, shortfalls = engine.rebalance(
            schedule,
            request.weekday,
            request.day_config,
            request.forbidden_windows,
            request.pinned,
        )
        diagnostics = [shortfall.to_diagnostic() for shortfall in shortfalls]
        return RebalanceResponse(
            class_id=schedule.class_id,
            day=day,
            schedule=schedule.with_day(day),
            diagnostics=diagnostics,
            status="PARTIAL" if diagnostics else "COMPLETE",
        )

    def _demands_for(
        self,
        class_id: str,
        subjects: List[SubjectLoad],
        assignments: List[TeacherAssignment],
    ) -> List[SubjectDemand]:
        """Build the demands of one class from its teacher assignments."""
        by_id: Dict[str, SubjectLoad] = {s.subject_id: s for s in subjects}
        teachers: Dict[str, str] = {}

        for assignment in assignments:
            if assignment.class_id != class_id:
                continue
            if assignment.subject_id not in by_id:
                logger.warning(
                    f"Assignment of teacher {assignment.teacher_id} to unknown subject "
                    f"{assignment.subject_id} in class {class_id} ignored"
                )
                continue
            if assignment.subject_id in teachers:
                logger.warning(
                    f"Subject {assignment.subject_id} in class {class_id} already taught by "
                    f"{teachers[assignment.subject_id]}, ignoring {assignment.teacher_id}"
                )
                continue
            teachers[assignment.subject_id] = assignment.teacher_id

        return [
            SubjectDemand(
                subject_id=subject_id,
                teacher_id=teacher_id,
                periods=by_id[subject_id].weekly_periods or 0,
            )
            for subject_id, teacher_id in teachers.items()
        ]

    def _warn_unassigned(self, subjects: List[SubjectLoad], assignments: List[TeacherAssignment]):
        assigned = {a.subject_id for a in assignments}
        for subject in subjects:
            if subject.subject_id not in assigned:
                logger.warning(f"Subject {subject.subject_id} is not assigned to any class")
