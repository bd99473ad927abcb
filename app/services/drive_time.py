"""
Drive time arithmetic for shop departure.

Example: jobsite arrival 8:00 AM, 4 hours of driving and a 1 hour buffer
means the crew must be at the shop by 3:00 AM.
"""

from datetime import datetime, time, timedelta
import re

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*(AM|PM)?\s*$", re.IGNORECASE)


def parse_clock(value: str) -> time:
    """Parse "HH:MM" (24h) or "h:MM AM/PM"."""
    match = _CLOCK_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Unrecognised time '{value}'")
    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    period = (match.group(3) or "").upper()

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0

    if hours > 23 or minutes > 59:
        raise ValueError(f"Unrecognised time '{value}'")
    return time(hours, minutes)


def format_clock(value: time, use_12_hour: bool = False) -> str:
    if use_12_hour:
        period = "PM" if value.hour >= 12 else "AM"
        return f"{value.hour % 12 or 12}:{value.minute:02d} {period}"
    return f"{value.hour:02d}:{value.minute:02d}"


def calculate_shop_arrival(jobsite_arrival: str, drive_hours: float, buffer_hours: float = 0) -> time:
    """Jobsite arrival minus drive time and buffer, wrapping past midnight."""
    arrival = parse_clock(jobsite_arrival)
    anchor = datetime.combine(datetime(2000, 1, 2).date(), arrival)
    total_minutes = round((drive_hours + buffer_hours) * 60)
    return (anchor - timedelta(minutes=total_minutes)).time()
