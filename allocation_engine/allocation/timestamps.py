"""Coercion of stored date values into Python datetimes.

Order documents carry dates in whatever shape the writing client produced:
ISO strings, native datetimes, or the document store's timestamp type
(an object or mapping exposing ``seconds``/``_seconds``, or a ``to_date``/
``toDate`` accessor). Everything is turned into a ``datetime`` here and
never branched on again downstream.
"""

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Mapping

from dateutil import parser as dup

logger = logging.getLogger(__name__)

_SECONDS_KEYS = ("seconds", "_seconds")
_ACCESSORS = ("to_date", "toDate", "to_datetime")


def _from_epoch_seconds(seconds: Any) -> datetime | None:
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_date_string(text: str) -> datetime | None:
    """Parse a date string, ISO first, then free-form; None if unusable."""
    text = text.strip()
    if not text:
        return None
    try:
        return dup.isoparse(text)
    except (ValueError, OverflowError):
        pass
    try:
        return dup.parse(text)
    except (ValueError, OverflowError):
        return None


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce a stored date value into a datetime.

    Args:
        value: datetime, date, string, or platform timestamp

    Returns:
        datetime, or None when the value is missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, str):
        return parse_date_string(value)

    for name in _ACCESSORS:
        accessor = getattr(value, name, None)
        if callable(accessor):
            return coerce_datetime(accessor())

    if isinstance(value, Mapping):
        for key in _SECONDS_KEYS:
            if key in value:
                return _from_epoch_seconds(value[key])
        return None

    for key in _SECONDS_KEYS:
        if hasattr(value, key):
            return _from_epoch_seconds(getattr(value, key))

    logger.debug(f"Unrecognized date value of type {type(value).__name__}")
    return None


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def timestamp_to_iso(value: Any, now: str | None = None) -> str:
    """
    Normalize an ``appliedAt`` value to an ISO-8601 string.

    Strings that already parse as ISO-8601 are returned unchanged; anything
    else parseable is re-encoded. Missing or unparseable values become the
    current instant.

    Args:
        value: Stored timestamp in any supported shape
        now: Optional replacement for the current instant

    Returns:
        ISO-8601 string
    """
    if isinstance(value, str):
        text = value.strip()
        try:
            dup.isoparse(text)
            return text
        except (ValueError, OverflowError):
            pass

    parsed = coerce_datetime(value)
    if parsed is not None:
        return parsed.isoformat()

    if value is not None:
        logger.warning(f"Unparseable appliedAt value {value!r}, using current time")
    return now or utc_now_iso()
