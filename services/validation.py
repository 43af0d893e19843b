import re
from datetime import date, datetime

from services.errors import InvalidInput

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
_TIME_RE = re.compile(r"([01]\d|2[0-3]):[0-5]\d", re.ASCII)
_ID_RE = re.compile(r"\d{1,18}", re.ASCII)
_MAX_ID = 2 ** 63 - 1  # signed 64-bit primary keys


def parse_id(value, field: str) -> int:
    """Accepts positive ints or their decimal string form."""
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid {field}")
    if isinstance(value, int):
        if 0 < value <= _MAX_ID:
            return value
        raise InvalidInput(f"Invalid {field}")
    if isinstance(value, str) and _ID_RE.fullmatch(value.strip()):
        parsed = int(value.strip())
        if parsed > 0:
            return parsed
    raise InvalidInput(f"Invalid {field}")


def parse_date(value, field: str = "date") -> str:
    # Expect "YYYY-MM-DD" naming a real calendar day
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        raise InvalidInput(f"Invalid {field}. Use YYYY-MM-DD")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise InvalidInput(f"Invalid {field}. Use YYYY-MM-DD")
    return value


def parse_time(value, field: str = "time") -> str:
    if not isinstance(value, str) or not _TIME_RE.fullmatch(value):
        raise InvalidInput(f"Invalid {field}. Use HH:MM")
    return value


def to_day(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(parse_date(value, "fromDate"), "%Y-%m-%d").date()


def clean_note(value):
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value[:1000] or None
