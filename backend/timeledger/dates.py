"""
Calendar-day helpers shared by the services and schemas.
"""
from datetime import date, datetime
from typing import Optional, Tuple, Union

from .errors import ValidationError

DayLike = Union[date, datetime, str]


def to_day(value: DayLike) -> date:
    """
    Truncate a date, datetime or ISO string to its calendar day.

    Raises:
        ValueError: if a string is not an ISO date or datetime
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    raise ValueError(f"Expected a date, got {type(value).__name__}")


def parse_day(value: Optional[DayLike], field: str) -> Optional[date]:
    """to_day() that maps bad input to ValidationError and passes None through."""
    if value is None or value == "":
        return None
    try:
        return to_day(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {field}: {value!r}", details={"field": field}) from e


def parse_range(
    start: Optional[DayLike],
    end: Optional[DayLike],
) -> Tuple[Optional[date], Optional[date]]:
    """Parse an optional inclusive range, rejecting start > end."""
    start_date = parse_day(start, "startDate")
    end_date = parse_day(end, "endDate")
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValidationError(
            "startDate must be on or before endDate",
            details={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
        )
    return start_date, end_date
