"""
Time helpers shared by the schemas and the engine.

All engine arithmetic happens on integer minutes from midnight; HH:MM strings
only appear at the edges (request parsing and response rendering).
"""
import re
from datetime import datetime

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
MINUTES_PER_DAY = 24 * 60


def parse_time(value) -> int:
    """
    Convert an HH:MM string (or an int offset) to minutes from midnight.

    Raises:
        ValueError: if the string is not a 24-hour HH:MM value
    """
    if isinstance(value, bool):
        raise ValueError("time must be HH:MM or minutes from midnight")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if not HHMM_PATTERN.match(value.strip()):
            raise ValueError(f"'{value}' is not a valid HH:MM 24-hour time")
        parsed = datetime.strptime(value.strip(), "%H:%M")
        return parsed.hour * 60 + parsed.minute
    raise ValueError("time must be HH:MM or minutes from midnight")


def time_to_str(minutes: int) -> str:
    """Render minutes from midnight as HH:MM."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def format_duration(total_minutes: int) -> str:
    """Format a duration as 'Xh Ymin'."""
    hours = total_minutes // 60
    minutes = total_minutes % 60

    if hours > 0 and minutes > 0:
        return f"{hours}h {minutes}min"
    elif hours > 0:
        return f"{hours}h"
    else:
        return f"{minutes}min"
