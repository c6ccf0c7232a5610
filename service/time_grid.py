"""
Capacity grid of a class: the day minus breaks and forbidden windows, cut into
fixed-length period slots.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
import logging

from models.schemas import Block, BlockKind, DayTimeConfig, ForbiddenWindow, TimeInterval
from service.exceptions import ScheduleValidationError

logger = logging.getLogger(__name__)


@dataclass
class DayGrid:
    """Placeable slots of one class-day plus the fixed blocks that shape them."""
    weekday: str
    start_time: int
    end_time: int
    fixed_blocks: List[Block] = field(default_factory=list)
    capacity: List[TimeInterval] = field(default_factory=list)
    slots: List[TimeInterval] = field(default_factory=list)


def subtract_intervals(span: TimeInterval, cuts: Iterable[TimeInterval]) -> List[TimeInterval]:
    """Return the parts of span not covered by any cut, in chronological order."""
    remaining = []
    cursor = span.start
    for cut in sorted(cuts, key=lambda c: c.start):
        if cut.start > cursor:
            remaining.append(TimeInterval(start=cursor, duration=min(cut.start, span.end) - cursor))
        cursor = max(cursor, cut.end)
        if cursor >= span.end:
            break
    if cursor < span.end:
        remaining.append(TimeInterval(start=cursor, duration=span.end - cursor))
    return remaining


def cut_slots(capacity: Iterable[TimeInterval], period_length: int) -> List[TimeInterval]:
    """Subdivide capacity intervals into periods; residues shorter than a period are dropped."""
    slots = []
    for interval in capacity:
        cursor = interval.start
        while cursor + period_length <= interval.end:
            slots.append(TimeInterval(start=cursor, duration=period_length))
            cursor += period_length
    return slots


class TimeGridBuilder:
    """
    Builds per-weekday slot grids for a class.

    Grids are recomputed on every call; nothing is cached across runs.
    """

    def __init__(self, period_length_minutes: int):
        if period_length_minutes <= 0:
            raise ValueError("Period duration must be greater than 0 minutes")
        self.period_length = period_length_minutes

    def build_week(
        self,
        class_id: str,
        school_days: List[str],
        day_configs: Dict[str, DayTimeConfig],
        forbidden_windows: List[ForbiddenWindow],
        default_config: Optional[DayTimeConfig] = None,
    ) -> Dict[str, DayGrid]:
        """
        Build the grid of every school day of a class.

        Raises:
            ScheduleValidationError: on the first malformed day
        """
        grids = {}
        for weekday in school_days:
            config = day_configs.get(weekday, default_config)
            if config is None:
                raise ScheduleValidationError(
                    f"{weekday}", "no time configuration for this school day", class_id
                )
            windows = [w for w in forbidden_windows if w.applies_to(class_id, weekday)]
            grids[weekday] = self.build_day(class_id, weekday, config, windows)
        return grids

    def build_day(
        self,
        class_id: str,
        weekday: str,
        config: DayTimeConfig,
        forbidden_windows: List[ForbiddenWindow],
    ) -> DayGrid:
        """Validate one class-day and cut its capacity into slots."""
        self._validate(class_id, weekday, config, forbidden_windows)

        fixed_blocks = [
            Block.spanning(kind, interval, label=label)
            for _, kind, label, interval in config.breaks()
        ]
        fixed_blocks.extend(
            Block.spanning(BlockKind.FORBIDDEN_GAP, window.interval, label=window.label or "Forbidden")
            for window in forbidden_windows
        )
        fixed_blocks.sort(key=lambda b: b.start)

        day_span = TimeInterval(start=config.start_time, duration=config.end_time - config.start_time)
        capacity = subtract_intervals(day_span, [b.interval for b in fixed_blocks])
        slots = cut_slots(capacity, self.period_length)

        logger.debug(
            f"Class {class_id} {weekday}: {len(capacity)} capacity interval(s), {len(slots)} slot(s)"
        )
        return DayGrid(
            weekday=weekday,
            start_time=config.start_time,
            end_time=config.end_time,
            fixed_blocks=fixed_blocks,
            capacity=capacity,
            slots=slots,
        )

    def _validate(
        self,
        class_id: str,
        weekday: str,
        config: DayTimeConfig,
        forbidden_windows: List[ForbiddenWindow],
    ):
        if config.start_time >= config.end_time:
            raise ScheduleValidationError(
                f"{weekday}.start_time", "start time must be before end time", class_id
            )

        def within_day(interval: TimeInterval) -> bool:
            return config.start_time <= interval.start and interval.end <= config.end_time

        breaks = config.breaks()
        for name, _, _, interval in breaks:
            if not within_day(interval):
                raise ScheduleValidationError(
                    f"{weekday}.{name}", f"break {interval} lies outside the school day", class_id
                )

        for idx, (name, _, _, interval) in enumerate(breaks):
            for other_name, _, _, other in breaks[idx + 1:]:
                if interval.overlaps(other):
                    raise ScheduleValidationError(
                        f"{weekday}.{name}", f"overlaps {other_name} ({other})", class_id
                    )

        for idx, window in enumerate(forbidden_windows):
            interval = window.interval
            field_name = f"{weekday}.forbidden_windows[{idx}]"
            if not within_day(interval):
                raise ScheduleValidationError(
                    field_name, f"forbidden window {interval} lies outside the school day", class_id
                )
            for name, _, _, break_interval in breaks:
                if interval.overlaps(break_interval):
                    raise ScheduleValidationError(
                        field_name, f"forbidden window {interval} overlaps {name}", class_id
                    )
            for other in forbidden_windows[idx + 1:]:
                if interval.overlaps(other.interval):
                    raise ScheduleValidationError(
                        field_name, f"forbidden window {interval} overlaps {other.interval}", class_id
                    )
