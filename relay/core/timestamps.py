"""Timestamp handling for Instagram items.

Instagram sends item timestamps as ints or numeric strings, sometimes in
milliseconds and sometimes in microseconds. We try milliseconds first and fall
back to dividing by 1000 when the year looks wrong.
"""

from datetime import datetime, timezone

MIN_YEAR = 2010  # Instagram didn't exist before 2010
MAX_YEAR = 2030


def _as_number(raw):
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return raw
    try:
        return float(str(raw).strip())
    except ValueError:
        return None


def _from_millis(value, scale=1):
    try:
        date = datetime.fromtimestamp(value / scale / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    if MIN_YEAR <= date.year <= MAX_YEAR:
        return date
    return None


def resolve_timestamp(raw):
    """Raw item timestamp -> aware UTC datetime, or None if indeterminate."""
    value = _as_number(raw)
    if value is None or value != value:  # NaN
        return None
    return _from_millis(value) or _from_millis(value, scale=1000)


def sort_key(raw):
    """Numeric ordering key. Unparseable timestamps sort after everything else."""
    value = _as_number(raw)
    if value is None or value != value:
        return float("inf")
    return value


def timestamp_field(raw, sent):
    """Labeled (name, value) field for display. Never raises."""
    if _as_number(raw) is None:
        return ("Timestamp", "No timestamp available")
    date = resolve_timestamp(raw)
    if date is None:
        return ("Timestamp", "Unable to determine exact time")
    label = "📤 Sent at" if sent else "📥 Received at"
    return (label, date.astimezone().strftime("%Y-%m-%d %I:%M:%S %p"))
