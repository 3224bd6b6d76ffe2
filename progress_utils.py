"""
Period utilities for progress tracking.
Monthly period keys, month ranges for report columns and zero-safe ratios.
"""

from datetime import date
import re
from typing import List, Optional, Tuple


_PERIOD_RE = re.compile(r'^\s*(\d{4})-(\d{1,2})(?:-(\d{1,2}))?\s*$')

MONTH_LABELS = (
    'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
    'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec',
)

# Period keys are fixed-width "YYYY-MM" so they sort chronologically as text
MAX_YEAR = 9999


def period_key(year: int, month: int) -> str:
    """Return the "YYYY-MM" key of a period"""
    return f'{int(year):04d}-{int(month):02d}'


def parse_period(value, field: str = 'period') -> Tuple[int, int]:
    """Parse "YYYY-MM", "YYYY-MM-DD", a date or a (year, month) pair"""
    from services.base import ValidationError

    if isinstance(value, date):
        return value.year, value.month
    if isinstance(value, (tuple, list)) and len(value) == 2:
        year, month = value
    elif isinstance(value, str):
        match = _PERIOD_RE.match(value)
        if not match:
            raise ValidationError(f"Invalid period '{value}', expected YYYY-MM", field=field)
        year, month = match.group(1), match.group(2)
    else:
        raise ValidationError(f"Invalid period {value!r}, expected YYYY-MM", field=field)

    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid period {value!r}, expected YYYY-MM", field=field)
    if not 1 <= year <= MAX_YEAR or not 1 <= month <= 12:
        raise ValidationError(f"Invalid period {value!r}, year must be 1..{MAX_YEAR} and month 1..12", field=field)
    return year, month


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def months_between(start: Tuple[int, int], end: Tuple[int, int]) -> List[Tuple[int, int]]:
    """Inclusive list of (year, month) between start and end; empty when start > end"""
    months = []
    current = start
    while current <= end:
        months.append(current)
        current = next_month(*current)
    return months


def month_column(year: int, month: int) -> dict:
    """Report column descriptor for a period"""
    return {
        'key': period_key(year, month),
        'year': year,
        'month': month,
        'label': f'{MONTH_LABELS[month - 1]} {year}',
    }


def safe_percent(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, or 0 when the denominator is not positive"""
    if not denominator or denominator <= 0:
        return 0.0
    return numerator / denominator * 100.0


def current_period(today: Optional[date] = None) -> Tuple[int, int]:
    today = today or date.today()
    return today.year, today.month
