from pydantic import BaseModel, Field, computed_field, field_validator, model_validator
from typing import List, Dict, Optional, Literal
from enum import Enum

from service.time_utils import MINUTES_PER_DAY, parse_time, time_to_str, format_duration


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
SCHOOL_SCOPE = "school"


def normalize_weekday(value: str) -> str:
    """Lowercase a weekday name and reject anything that is not a weekday."""
    if not isinstance(value, str) or value.strip().lower() not in WEEKDAYS:
        raise ValueError(
            f"Invalid day '{value}'. Use valid weekdays: Monday, Tuesday, Wednesday, "
            "Thursday, Friday, Saturday, or Sunday"
        )
    return value.strip().lower()


def week_order(days) -> List[str]:
    """Sort weekday names Monday first."""
    return sorted(set(days), key=WEEKDAYS.index)


# ===========================
# Time Models
# ===========================

class TimeInterval(BaseModel):
    """Half-open interval [start, start + duration) in minutes from midnight"""
    start: int = Field(ge=0, lt=MINUTES_PER_DAY)  # accepts "HH:MM" too
    duration: int = Field(gt=0)

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def accept_end_time(cls, data):
        # {"start": "10:00", "end": "10:20"} is accepted as well
        if isinstance(data, dict) and "duration" not in data and "end" in data:
            data = dict(data)
            data["duration"] = parse_time(data.pop("end")) - parse_time(data.get("start"))
        return data

    @field_validator("start", mode="before")
    @classmethod
    def parse_start(cls, value):
        return parse_time(value)

    @model_validator(mode="after")
    def check_within_day(self):
        if self.end > MINUTES_PER_DAY:
            raise ValueError("interval must end before midnight")
        return self

    @property
    def end(self) -> int:
        return self.start + self.duration

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"{time_to_str(self.start)}-{time_to_str(self.end)}"


class DayTimeConfig(BaseModel):
    """Bounds and fixed breaks of one class-day"""
    start_time: int = Field(ge=0, le=MINUTES_PER_DAY)  # HH:MM or minutes from midnight
    end_time: int = Field(ge=0, le=MINUTES_PER_DAY)
    morning_break: TimeInterval
    lunch_break: Optional[TimeInterval] = None  # None for half days
    afternoon_break: Optional[TimeInterval] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_bounds(cls, value):
        return parse_time(value)

    def breaks(self) -> List[tuple]:
        """Return (field, kind, label, interval) for every configured break."""
        entries = [("morning_break", BlockKind.BREAK, "Morning Break", self.morning_break)]
        if self.lunch_break is not None:
            entries.append(("lunch_break", BlockKind.LUNCH, "Lunch", self.lunch_break))
        if self.afternoon_break is not None:
            entries.append(("afternoon_break", BlockKind.BREAK, "Afternoon Break", self.afternoon_break))
        return entries


class ClassTimeConfig(BaseModel):
    """Per-class weekday -> day configuration"""
    class_id: str
    days: Dict[str, DayTimeConfig] = {}

    @field_validator("days", mode="before")
    @classmethod
    def normalize_days(cls, value):
        if isinstance(value, dict):
            return {normalize_weekday(day): config for day, config in value.items()}
        return value


class ForbiddenWindow(BaseModel):
    """A time range during which no subject may be scheduled"""
    weekday: str
    start: int  # HH:MM or minutes from midnight
    duration: int = Field(gt=0)
    scope: str = SCHOOL_SCOPE  # "school" or a class_id
    label: Optional[str] = None

    @field_validator("weekday", mode="before")
    @classmethod
    def check_weekday(cls, value):
        return normalize_weekday(value)

    @field_validator("start", mode="before")
    @classmethod
    def parse_start(cls, value):
        return parse_time(value)

    @model_validator(mode="after")
    def check_within_day(self):
        if self.start < 0 or self.start + self.duration > MINUTES_PER_DAY:
            raise ValueError("forbidden window must lie within one day")
        return self

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, duration=self.duration)

    def applies_to(self, class_id: str, weekday: str) -> bool:
        return self.weekday == weekday and self.scope in (SCHOOL_SCOPE, class_id)


# ===========================
# Load Models
# ===========================

class SubjectLoad(BaseModel):
    """Academic load of one subject; weekly_periods is filled by the run"""
    subject_id: str
    name: Optional[str] = None
    annual_hours: float = 0
    credits: float = 0
    practical_hours: float = 0
    is_exam_subject: bool = False
    weekly_periods: Optional[int] = None

    class Config:
        frozen = True


class TeacherAssignment(BaseModel):
    teacher_id: str
    subject_id: str
    class_id: str


# ===========================
# Schedule Models
# ===========================

class BlockKind(str, Enum):
    SUBJECT = "subject"
    BREAK = "break"
    LUNCH = "lunch"
    FORBIDDEN_GAP = "forbidden_gap"
    FREE_TIME = "free_time"


FIXED_KINDS = (BlockKind.BREAK, BlockKind.LUNCH, BlockKind.FORBIDDEN_GAP)


class Block(BaseModel):
    """One entry of a class-day timeline"""
    kind: BlockKind
    start: int = Field(ge=0)
    duration: int = Field(gt=0)
    subject_id: Optional[str] = None
    teacher_id: Optional[str] = None
    pinned: bool = False
    label: Optional[str] = None

    class Config:
        frozen = True

    @field_validator("start", mode="before")
    @classmethod
    def parse_start(cls, value):
        return parse_time(value)

    @model_validator(mode="after")
    def check_subject_fields(self):
        if self.kind == BlockKind.SUBJECT:
            if not self.subject_id or not self.teacher_id:
                raise ValueError("subject_id and teacher_id are required for subject blocks")
        elif self.subject_id is not None or self.teacher_id is not None:
            raise ValueError(f"{self.kind.value} blocks cannot carry subject_id or teacher_id")
        return self

    @classmethod
    def spanning(cls, kind: BlockKind, interval: TimeInterval, **fields) -> "Block":
        return cls(kind=kind, start=interval.start, duration=interval.duration, **fields)

    @property
    def end(self) -> int:
        return self.start + self.duration

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, duration=self.duration)

    @property
    def is_fixed(self) -> bool:
        return self.kind in FIXED_KINDS or self.pinned

    @computed_field
    @property
    def start_time(self) -> str:
        return time_to_str(self.start)

    @computed_field
    @property
    def end_time(self) -> str:
        return time_to_str(self.end)

    @computed_field
    @property
    def duration_label(self) -> str:
        return format_duration(self.duration)


class DaySchedule(BaseModel):
    """Ordered blocks covering [start_time, end_time) of one class-day"""
    weekday: str
    start_time: int
    end_time: int
    blocks: List[Block] = []

    @field_validator("weekday", mode="before")
    @classmethod
    def check_weekday(cls, value):
        return normalize_weekday(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_bounds(cls, value):
        return parse_time(value)

    def subject_blocks(self) -> List[Block]:
        return [b for b in self.blocks if b.kind == BlockKind.SUBJECT]


class WeeklySchedule(BaseModel):
    """Terminal output of a run for one class"""
    class_id: str
    days: Dict[str, DaySchedule] = {}

    def with_day(self, day: DaySchedule) -> "WeeklySchedule":
        """Return a copy with one day replaced, week order preserved."""
        days = dict(self.days)
        days[day.weekday] = day
        return WeeklySchedule(
            class_id=self.class_id,
            days={weekday: days[weekday] for weekday in week_order(days)},
        )


# ===========================
# Diagnostics
# ===========================

class Diagnostic(BaseModel):
    """Non-fatal shortfall or per-class validation failure"""
    kind: Literal["ValidationError", "UnderAllocationError", "TeacherConflictUnresolvable"]
    reason: str
    class_id: Optional[str] = None
    subject_id: Optional[str] = None
    periods_short: Optional[int] = None
    field: Optional[str] = None


# ===========================
# Request / Response Schemas
# ===========================

class TimetableRequest(BaseModel):
    """Input records of one scheduling run for a whole school"""
    subjects: List[SubjectLoad]
    class_configs: List[ClassTimeConfig]
    teacher_assignments: List[TeacherAssignment] = []
    forbidden_windows: List[ForbiddenWindow] = []
    is_exam_term: bool = False
    default_day_config: Optional[DayTimeConfig] = None
    period_length_minutes: Optional[int] = Field(default=None, gt=0)
    school_days: Optional[List[str]] = None

    @field_validator("school_days", mode="before")
    @classmethod
    def normalize_school_days(cls, value):
        if value is None:
            return value
        if not value:
            raise ValueError("school_days cannot be empty")
        return week_order(normalize_weekday(day) for day in value)


class TimetableResponse(BaseModel):
    subjects: List[SubjectLoad]
    schedules: List[WeeklySchedule]
    diagnostics: List[Diagnostic] = []
    status: str = "COMPLETE"  # "COMPLETE" or "PARTIAL"


class RebalanceRequest(BaseModel):
    """Anchor change for a single class-day"""
    schedules: List[WeeklySchedule]  # every class of the school, for teacher occupancy
    class_id: str
    weekday: str
    day_config: DayTimeConfig
    forbidden_windows: List[ForbiddenWindow] = []
    pinned: List[TimeInterval] = []  # extra subject blocks to hold in place
    period_length_minutes: Optional[int] = Field(default=None, gt=0)

    @field_validator("weekday", mode="before")
    @classmethod
    def check_weekday(cls, value):
        return normalize_weekday(value)


class RebalanceResponse(BaseModel):
    class_id: str
    day: DaySchedule
    schedule: WeeklySchedule
    diagnostics: List[Diagnostic] = []
    status: str = "COMPLETE"
