"""
Run-scoped teacher occupancy shared by every class of one scheduling run.
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple
import logging
import threading

from models.schemas import BlockKind, TimeInterval, WeeklySchedule

logger = logging.getLogger(__name__)


class TeacherCalendar:
    """
    Mapping (teacher_id, weekday, interval) -> class_id.

    Create one per run and pass it to the allocator; a teacher is busy at an
    interval if any reservation on that weekday overlaps it, so classes with
    differently aligned grids still cannot double-book a teacher.
    """

    def __init__(self):
        self._reservations: Dict[Tuple[str, str], List[Tuple[TimeInterval, str]]] = defaultdict(list)
        self._locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_schedules(cls, schedules: Iterable[WeeklySchedule]) -> "TeacherCalendar":
        """Rebuild the occupancy recorded in existing weekly schedules."""
        calendar = cls()
        for schedule in schedules:
            for weekday, day in schedule.days.items():
                for block in day.blocks:
                    if block.kind != BlockKind.SUBJECT:
                        continue
                    if not calendar.reserve(block.teacher_id, weekday, block.interval, schedule.class_id):
                        logger.warning(
                            f"Teacher {block.teacher_id} is double-booked on {weekday} "
                            f"{block.interval} in class {schedule.class_id}"
                        )
        return calendar

    def _lock_for(self, key: Tuple[str, str]) -> threading.Lock:
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def occupant(self, teacher_id: str, weekday: str, interval: TimeInterval) -> Optional[str]:
        """Class holding the teacher during any part of interval, or None."""
        for reserved, class_id in self._reservations.get((teacher_id, weekday), []):
            if reserved.overlaps(interval):
                return class_id
        return None

    def is_free(self, teacher_id: str, weekday: str, interval: TimeInterval) -> bool:
        return self.occupant(teacher_id, weekday, interval) is None

    def reserve(self, teacher_id: str, weekday: str, interval: TimeInterval, class_id: str) -> bool:
        """
        Atomically book the teacher for interval.

        Returns:
            False (and records nothing) if the teacher is already busy
        """
        key = (teacher_id, weekday)
        with self._lock_for(key):
            if self.occupant(teacher_id, weekday, interval) is not None:
                return False
            self._reservations[key].append((interval, class_id))
            return True

    def release(self, teacher_id: str, weekday: str, interval: TimeInterval, class_id: str) -> bool:
        """Drop a reservation; only a rebalance evicting its own blocks calls this."""
        key = (teacher_id, weekday)
        with self._lock_for(key):
            entries = self._reservations.get(key, [])
            for idx, (reserved, owner) in enumerate(entries):
                if reserved == interval and owner == class_id:
                    del entries[idx]
                    return True
        return False

    def reservations(self) -> List[Tuple[str, str, TimeInterval, str]]:
        """All reservations as (teacher_id, weekday, interval, class_id), sorted."""
        return sorted(
            (
                (teacher_id, weekday, interval, class_id)
                for (teacher_id, weekday), entries in self._reservations.items()
                for interval, class_id in entries
            ),
            key=lambda r: (r[0], r[1], r[2].start, r[2].duration, r[3]),
        )

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._reservations.values())
