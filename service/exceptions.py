"""
Error taxonomy of the timetable engine.

ScheduleValidationError is fatal for the class it concerns. UnderAllocationError
and its TeacherConflictUnresolvable specialisation are collected, never raised
out of a run.
"""
from typing import Optional

from models.schemas import Diagnostic


class TimetableError(Exception):
    """Base class for engine errors."""

    kind = "TimetableError"

    def to_diagnostic(self) -> Diagnostic:
        raise NotImplementedError


class ScheduleValidationError(TimetableError):
    """Malformed time configuration or rebalance input."""

    kind = "ValidationError"

    def __init__(self, field: str, reason: str, class_id: Optional[str] = None):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason
        self.class_id = class_id

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            kind=self.kind,
            reason=self.reason,
            class_id=self.class_id,
            field=self.field,
        )


class UnderAllocationError(TimetableError):
    """A subject could not receive all of its weekly periods."""

    kind = "UnderAllocationError"

    def __init__(self, subject_id: str, class_id: str, periods_short: int, reason: str = ""):
        self.subject_id = subject_id
        self.class_id = class_id
        self.periods_short = periods_short
        self.reason = reason or "insufficient weekly capacity"
        super().__init__(
            f"{subject_id} in class {class_id} is {periods_short} period(s) short: {self.reason}"
        )

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            kind=self.kind,
            reason=self.reason,
            class_id=self.class_id,
            subject_id=self.subject_id,
            periods_short=self.periods_short,
        )


class TeacherConflictUnresolvable(UnderAllocationError):
    """Shortfall caused only by the teacher being booked elsewhere."""

    kind = "TeacherConflictUnresolvable"

    def __init__(self, subject_id: str, class_id: str, periods_short: int, teacher_id: str):
        self.teacher_id = teacher_id
        super().__init__(
            subject_id,
            class_id,
            periods_short,
            reason=f"teacher {teacher_id} is booked in every remaining free slot",
        )
