"""
Post-pass turning every unused instant of a class-day into a free_time block.
"""
from typing import Iterable, List
import logging

from models.schemas import Block, BlockKind, DaySchedule, TimeInterval
from service.time_utils import time_to_str

logger = logging.getLogger(__name__)

FREE_TIME_LABEL = "Free Time"


def fill_free_time(weekday: str, start_time: int, end_time: int, blocks: Iterable[Block]) -> DaySchedule:
    """
    Order the blocks of a day and fill every gap with free time.

    Raises:
        ValueError: if two blocks overlap or a block leaves the day
    """
    ordered = sorted(blocks, key=lambda b: (b.start, b.end))
    timeline: List[Block] = []
    cursor = start_time

    for block in ordered:
        if block.start < start_time or block.end > end_time:
            raise ValueError(
                f"{weekday}: {block.kind.value} block {block.interval} lies outside "
                f"{time_to_str(start_time)}-{time_to_str(end_time)}"
            )
        if block.start < cursor:
            raise ValueError(f"{weekday}: {block.kind.value} block {block.interval} overlaps the previous block")
        if block.start > cursor:
            timeline.append(_free_block(cursor, block.start))
        timeline.append(block)
        cursor = block.end

    if cursor < end_time:
        timeline.append(_free_block(cursor, end_time))

    free_minutes = sum(b.duration for b in timeline if b.kind == BlockKind.FREE_TIME)
    logger.debug(f"{weekday}: {free_minutes} free minute(s) over {len(timeline)} block(s)")
    return DaySchedule(weekday=weekday, start_time=start_time, end_time=end_time, blocks=timeline)


def _free_block(start: int, end: int) -> Block:
    return Block.spanning(
        BlockKind.FREE_TIME,
        TimeInterval(start=start, duration=end - start),
        label=FREE_TIME_LABEL,
    )


def coverage_problems(day: DaySchedule) -> List[str]:
    """Describe every gap or overlap in a day; empty when the day is fully covered."""
    problems = []
    cursor = day.start_time
    for block in day.blocks:
        if block.start > cursor:
            problems.append(f"gap {time_to_str(cursor)}-{time_to_str(block.start)}")
        elif block.start < cursor:
            problems.append(f"overlap at {time_to_str(block.start)}")
        cursor = max(cursor, block.end)
    if cursor != day.end_time:
        problems.append(f"blocks end at {time_to_str(cursor)}, day ends at {time_to_str(day.end_time)}")
    return problems
