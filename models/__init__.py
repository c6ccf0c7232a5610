"""
Data models and Pydantic schemas for the timetable engine.
"""
from .schemas import (
    WEEKDAYS,
    SCHOOL_SCOPE,
    TimeInterval,
    DayTimeConfig,
    ClassTimeConfig,
    ForbiddenWindow,
    SubjectLoad,
    TeacherAssignment,
    BlockKind,
    Block,
    DaySchedule,
    WeeklySchedule,
    Diagnostic,
    TimetableRequest,
    TimetableResponse,
    RebalanceRequest,
    RebalanceResponse
)

__all__ = [
    "WEEKDAYS",
    "SCHOOL_SCOPE",
    "TimeInterval",
    "DayTimeConfig",
    "ClassTimeConfig",
    "ForbiddenWindow",
    "SubjectLoad",
    "TeacherAssignment",
    "BlockKind",
    "Block",
    "DaySchedule",
    "WeeklySchedule",
    "Diagnostic",
    "TimetableRequest",
    "TimetableResponse",
    "RebalanceRequest",
    "RebalanceResponse"
]
