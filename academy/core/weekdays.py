from __future__ import annotations

import re
from datetime import date, time, timedelta


# Indexed like date.weekday(): Monday == 0.
WEEKDAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']
# Display order of the academy week, which starts on Saturday and has no Friday classes.
ACADEMY_DAYS = ['Saturday', 'Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday']

_HHMM_RE = re.compile(r'^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$')
_DISPLAY_RE = re.compile(r'^(\d{1,2}):(\d{2})\s*(AM|PM)$', re.IGNORECASE)


def normalize_day(value: str) -> str:
    candidate = (value or '').strip().capitalize()
    if candidate not in WEEKDAY_NAMES:
        raise ValueError(f'Unknown day: {value!r}')
    return candidate


def day_index(day: str) -> int:
    return WEEKDAY_NAMES.index(normalize_day(day))


def day_name(d: date) -> str:
    return WEEKDAY_NAMES[d.weekday()]


def week_start_for(d: date, start_day: str = 'Saturday') -> date:
    """Shift ``d`` back to the most recent ``start_day`` (inclusive)."""
    offset = (d.weekday() - day_index(start_day)) % 7
    return d - timedelta(days=offset)


def week_dates(week_start: date) -> list[date]:
    return [week_start + timedelta(days=i) for i in range(7)]


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_hhmm(value: str) -> time:
    match = _HHMM_RE.match((value or '').strip())
    if not match:
        raise ValueError('Time must use HH:MM format (e.g. 14:00)')
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def parse_session_time(value: str) -> time:
    """Accepts both ``14:00`` and the display form ``2:00 PM``."""
    text = (value or '').strip()
    match = _DISPLAY_RE.match(text)
    if not match:
        return parse_hhmm(text)
    hour = int(match.group(1))
    minute = int(match.group(2))
    if hour < 1 or hour > 12 or minute > 59:
        raise ValueError(f'Invalid time: {value!r}')
    meridiem = match.group(3).upper()
    if meridiem == 'PM' and hour != 12:
        hour += 12
    if meridiem == 'AM' and hour == 12:
        hour = 0
    return time(hour=hour, minute=minute)


def format_hhmm(value: time) -> str:
    return f'{value.hour:02d}:{value.minute:02d}'


def format_display_time(value: time) -> str:
    hour = value.hour % 12 or 12
    meridiem = 'AM' if value.hour < 12 else 'PM'
    return f'{hour}:{value.minute:02d} {meridiem}'


def add_hours(value: time, hours: float) -> time:
    total = value.hour * 60 + value.minute + int(round(hours * 60))
    total %= 24 * 60
    return time(hour=total // 60, minute=total % 60)


def slot_key(day: str, teacher_name: str, start: time) -> str:
    compact = format_display_time(start).replace(' ', '').replace(':', '')
    return f'{day}-{teacher_name}-{compact}'
