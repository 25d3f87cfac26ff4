import re
from datetime import date, datetime, timedelta, timezone

_YYYYMMDD_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(dt: datetime) -> datetime:
    # Mongo hands back naive datetimes that are UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_recall_date(value) -> datetime | None:
    """
    Parse a provider date into an aware datetime, or None if it can't be read.

    Accepts datetime/date objects, 8-digit YYYYMMDD (str or int), MM/DD/YYYY
    and ISO-8601 strings (a trailing "Z" is allowed).
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    try:
        if isinstance(value, (int, float)):
            value = str(int(value))

        text = str(value).strip()
        if not text:
            return None

        m = _YYYYMMDD_RE.match(text)
        if m:
            year, month, day = (int(g) for g in m.groups())
            return datetime(year, month, day, tzinfo=timezone.utc)

        m = _US_DATE_RE.match(text)
        if m:
            month, day, year = (int(g) for g in m.groups())
            return datetime(year, month, day, tzinfo=timezone.utc)

        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return _aware(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        # NaN, inf and out-of-range numbers
        return None


def parse_or_now(value) -> datetime:
    return parse_recall_date(value) or utcnow()


def months_ago(months: int, now: datetime | None = None) -> datetime:
    """Approximate calendar months back (30-day months), used for provider windows."""
    now = now or utcnow()
    return now - timedelta(days=30 * max(months, 0))


def yyyymmdd(dt: datetime) -> str:
    return dt.strftime("%Y%m%d")
