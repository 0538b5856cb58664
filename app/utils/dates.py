import numbers
import re
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

# Excel serial day 0 (accounts for the 1900 leap-year bug).
EXCEL_EPOCH = date(1899, 12, 30)

_DMY = re.compile(r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})")
_ISO = re.compile(r"^\d{4}-\d{2}-\d{2}")


def to_date(value: Any) -> Optional[date]:
    """Parse an ISO date, returning ``None`` for empty values."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def add_days(start: Optional[date], days: int) -> Optional[date]:
    if start is None:
        return None
    return start + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def dates_in_range(start: Optional[date], end: Optional[date]) -> List[date]:
    """Every calendar day from ``start`` to ``end`` inclusive."""
    if start is None or end is None:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def month_key(value: Optional[date]) -> str:
    return value.strftime("%Y-%m") if value else ""


def parse_excel_date(value: Any) -> Optional[date]:
    """Parse spreadsheet date cells: date objects, Excel serials, ``d/m/yyyy`` text or ISO text."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real):
        if value != value:  # NaN
            return None
        return EXCEL_EPOCH + timedelta(days=round(value))
    text = str(value).strip()
    if _ISO.match(text):
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    match = _DMY.search(text)
    if not match:
        return None
    day, month, year = match.groups()
    if len(year) == 2:
        year = f"20{year}"
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None
