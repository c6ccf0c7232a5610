"""
Greedy period placement over the slot grids of one class.

Subjects are placed one at a time, heaviest first, spread as evenly as the
week allows. Teacher conflicts are resolved by bounded linear probing over the
chronological slots; a subject that exhausts the week is reported, never
raised.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple
import logging

from models.schemas import Block, BlockKind, TimeInterval, week_order
from service.exceptions import TeacherConflictUnresolvable, UnderAllocationError
from service.teacher_calendar import TeacherCalendar
from service.time_grid import DayGrid

logger = logging.getLogger(__name__)


@dataclass
class SubjectDemand:
    """Periods one subject still needs in one class."""
    subject_id: str
    teacher_id: Optional[str]
    periods: int


@dataclass
class AllocationResult:
    blocks: Dict[str, List[Block]] = field(default_factory=dict)
    shortfalls: List[UnderAllocationError] = field(default_factory=list)


def spread_evenly(periods: int, num_days: int) -> List[int]:
    """periods // num_days per day, the remainder one per day from the first day."""
    if num_days <= 0:
        return []
    base, remainder = divmod(periods, num_days)
    return [base + (1 if idx < remainder else 0) for idx in range(num_days)]


class Allocator:
    """
    Places subject periods for a class and books its teachers.

    The calendar is shared with every other class of the same run and is
    written only through TeacherCalendar.reserve.
    """

    def __init__(self, calendar: TeacherCalendar):
        self.calendar = calendar

    def allocate(
        self,
        class_id: str,
        grids: Dict[str, DayGrid],
        demands: List[SubjectDemand],
        occupied: Optional[Dict[str, List[TimeInterval]]] = None,
    ) -> AllocationResult:
        """
        Place every demand into the class grids.

        Args:
            class_id: Class being scheduled
            grids: weekday -> DayGrid, any subset of the week
            demands: Subjects and the periods they need
            occupied: weekday -> intervals already held by pinned blocks

        Returns:
            AllocationResult with subject blocks per weekday and the shortfalls
        """
        days = week_order(grids)
        occupied = occupied or {}
        open_slots = {
            weekday: [
                slot for slot in grids[weekday].slots
                if not any(slot.overlaps(taken) for taken in occupied.get(weekday, []))
            ]
            for weekday in days
        }
        max_probes = sum(len(grids[weekday].slots) for weekday in days)
        result = AllocationResult(blocks={weekday: [] for weekday in days})

        ordered = sorted(demands, key=lambda d: (-d.periods, d.subject_id))
        for demand in ordered:
            if demand.periods <= 0:
                continue
            if demand.teacher_id is None:
                shortfall = UnderAllocationError(
                    demand.subject_id, class_id, demand.periods,
                    reason="no teacher assigned to this subject in the class",
                )
            else:
                shortfall = self._place_subject(class_id, demand, days, open_slots, max_probes, result)
            if shortfall is not None:
                logger.warning(str(shortfall))
                result.shortfalls.append(shortfall)

        placed = sum(len(blocks) for blocks in result.blocks.values())
        logger.info(
            f"Class {class_id}: placed {placed} period(s) over {len(days)} day(s), "
            f"{len(result.shortfalls)} shortfall(s)"
        )
        return result

    def _place_subject(
        self,
        class_id: str,
        demand: SubjectDemand,
        days: List[str],
        open_slots: Dict[str, List[TimeInterval]],
        max_probes: int,
        result: AllocationResult,
    ) -> Optional[UnderAllocationError]:
        if not days:
            return UnderAllocationError(
                demand.subject_id, class_id, demand.periods, reason="class has no school days"
            )

        rejected: Set[Tuple[str, int]] = set()
        probes = 0

        def fill(weekday: str, wanted: int) -> int:
            nonlocal probes
            placed = 0
            for slot in list(open_slots[weekday]):
                if placed >= wanted or probes >= max_probes:
                    break
                if (weekday, slot.start) in rejected:
                    continue
                probes += 1
                if self.calendar.reserve(demand.teacher_id, weekday, slot, class_id):
                    open_slots[weekday].remove(slot)
                    result.blocks[weekday].append(Block.spanning(
                        BlockKind.SUBJECT, slot,
                        subject_id=demand.subject_id,
                        teacher_id=demand.teacher_id,
                    ))
                    placed += 1
                    logger.debug(f"{class_id} {weekday} {slot}: {demand.subject_id} ({demand.teacher_id})")
                else:
                    # Teacher busy elsewhere; try the next slot of the same day
                    rejected.add((weekday, slot.start))
            return placed

        pending = 0
        for weekday, quota in zip(days, spread_evenly(demand.periods, len(days))):
            wanted = quota + pending
            pending = wanted - fill(weekday, wanted)

        # Carry past the last day wraps around the week once
        if pending:
            for weekday in days:
                pending -= fill(weekday, pending)
                if not pending:
                    break

        if not pending:
            return None
        if len(rejected) >= pending:
            return TeacherConflictUnresolvable(demand.subject_id, class_id, pending, demand.teacher_id)
        return UnderAllocationError(demand.subject_id, class_id, pending)
