"""
Local recompute of a single class-day after one of its anchors changed.
"""
from collections import Counter
from typing import Iterable, List, Tuple
import logging

from models.schemas import Block, DaySchedule, DayTimeConfig, ForbiddenWindow, TimeInterval, WeeklySchedule
from service.allocator import Allocator, SubjectDemand
from service.exceptions import ScheduleValidationError, UnderAllocationError
from service.free_time import fill_free_time
from service.teacher_calendar import TeacherCalendar
from service.time_grid import TimeGridBuilder

logger = logging.getLogger(__name__)


class RebalanceEngine:
    """
    Re-runs the allocator for one class-day, holding fixed blocks in place.

    Breaks, lunch and forbidden gaps come from the new anchors; pinned subject
    blocks keep their time and reservation. Every other subject block of the
    day is evicted and placed again on the same day only, so other days and
    other classes never move.
    """

    def __init__(self, calendar: TeacherCalendar, period_length_minutes: int):
        self.calendar = calendar
        self.grid_builder = TimeGridBuilder(period_length_minutes)
        self.allocator = Allocator(calendar)

    def rebalance(
        self,
        schedule: WeeklySchedule,
        weekday: str,
        day_config: DayTimeConfig,
        forbidden_windows: List[ForbiddenWindow],
        pinned: Iterable[TimeInterval] = (),
    ) -> Tuple[DaySchedule, List[UnderAllocationError]]:
        """
        Rebuild one day of a class schedule from new anchors.

        Args:
            schedule: Current weekly schedule of the class
            weekday: Day whose anchors changed
            day_config: New bounds and breaks of that day
            forbidden_windows: Forbidden windows in force (filtered to this class-day)
            pinned: Extra subject block intervals the caller wants held in place

        Returns:
            The new DaySchedule and the shortfalls of the re-placed subjects

        Raises:
            ScheduleValidationError: unknown day, malformed anchors or a pinned
                block that no longer fits
        """
        class_id = schedule.class_id
        current = schedule.days.get(weekday)
        if current is None:
            raise ScheduleValidationError("weekday", f"class has no schedule on {weekday}", class_id)

        windows = [w for w in forbidden_windows if w.applies_to(class_id, weekday)]
        grid = self.grid_builder.build_day(class_id, weekday, day_config, windows)

        pinned = set(pinned)
        kept: List[Block] = []
        evicted: List[Block] = []
        for block in current.subject_blocks():
            if block.pinned or block.interval in pinned:
                kept.append(block.model_copy(update={"pinned": True}))
            else:
                evicted.append(block)

        matched = {block.interval for block in kept}
        for interval in sorted(pinned - matched, key=lambda i: i.start):
            logger.warning(
                f"Pinned interval {interval} matches no subject block of class {class_id} "
                f"on {weekday}, ignored"
            )

        self._check_pinned(class_id, weekday, grid.start_time, grid.end_time, grid.fixed_blocks, kept)

        for block in evicted:
            self.calendar.release(block.teacher_id, weekday, block.interval, class_id)

        counts = Counter((b.subject_id, b.teacher_id) for b in evicted)
        demands = [
            SubjectDemand(subject_id=subject_id, teacher_id=teacher_id, periods=periods)
            for (subject_id, teacher_id), periods in sorted(counts.items())
        ]
        logger.info(
            f"Rebalancing class {class_id} on {weekday}: {len(kept)} pinned, "
            f"{len(evicted)} period(s) to re-place"
        )

        result = self.allocator.allocate(
            class_id,
            {weekday: grid},
            demands,
            occupied={weekday: [b.interval for b in kept]},
        )
        day = fill_free_time(
            weekday,
            grid.start_time,
            grid.end_time,
            grid.fixed_blocks + kept + result.blocks[weekday],
        )
        return day, result.shortfalls

    def _check_pinned(self, class_id, weekday, start_time, end_time, fixed_blocks, kept):
        for idx, block in enumerate(kept):
            field_name = f"{weekday}.pinned"
            if block.start < start_time or block.end > end_time:
                raise ScheduleValidationError(
                    field_name, f"pinned block {block.interval} lies outside the new school day", class_id
                )
            for fixed in fixed_blocks:
                if block.interval.overlaps(fixed.interval):
                    raise ScheduleValidationError(
                        field_name,
                        f"pinned block {block.interval} overlaps {fixed.label or fixed.kind.value}",
                        class_id,
                    )
            for other in kept[idx + 1:]:
                if block.interval.overlaps(other.interval):
                    raise ScheduleValidationError(
                        field_name, f"pinned blocks {block.interval} and {other.interval} overlap", class_id
                    )
