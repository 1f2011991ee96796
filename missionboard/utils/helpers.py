"""Shared utility functions for dates and record serialisation.

parse_date:        returns None on bad input (query-string filters)
parse_date_input:  raises ValueError on bad input (request bodies)
parse_datetime:    ISO timestamp → aware datetime, None on bad input
clean_text:        strip a text field from a JSON body, ValidationError on non-strings
optional_id:       record id from a JSON body, None when absent
"""
from datetime import date, datetime, timezone

from missionboard.core.exceptions import ValidationError


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY (European format)
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Same as parse_date() but raises ValueError instead of returning None,
    so services can turn a malformed deadline into a ValidationError.
    """
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError("Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY.")
    return parsed


def parse_datetime(value):
    """Parse an ISO timestamp; naive values are treated as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except (ValueError, TypeError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def clean_text(value, field: str, *, required: bool = True) -> str:
    """Strip a text field taken from a JSON body.

    None counts as empty.  Numbers, lists and objects raise ValidationError
    instead of reaching the store.
    """
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={field: "type"})
    value = value.strip()
    if required and not value:
        raise ValidationError(f"{field} is required", details={field: "required"})
    return value


def optional_id(value, field: str):
    """Validate an optional record id from a JSON body; '' and None mean absent."""
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={field: "type"})
    return value
