"""
Database Schemas

MongoDB collection schemas and request value parsing for the countdown API.

Each collection holds a single document, created out-of-band:

    StartTime    {"timestamp": <date>}
    MoneyRaised  {"money": <number>}
"""

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Number = Union[int, float]

_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", re.ASCII)
_INTEGER_RE = re.compile(r"^[+-]?\d+$", re.ASCII)
_INT64_MIN, _INT64_MAX = -(2 ** 63), 2 ** 63 - 1
_RADIX_RE = re.compile(r"^0[xXoObB][0-9a-fA-F]+$")
_INFINITY = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


class UpdateResponse(BaseModel):
    message: str
    modifiedCount: int = Field(..., description="Number of documents modified by the update")


class StartTimeResponse(BaseModel):
    timestamp: Any


class MoneyResponse(BaseModel):
    money: Any


def is_number(value: Any) -> bool:
    """True for JSON numbers only; booleans and numeric strings are rejected"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_bson_number(value: Number) -> Number:
    """Integers beyond 64 bits cannot be stored in BSON; keep them as doubles"""
    if isinstance(value, int) and not _INT64_MIN <= value <= _INT64_MAX:
        try:
            return float(value)
        except OverflowError:
            return math.copysign(math.inf, value)
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a request timestamp into an aware UTC datetime.

    Numbers are epoch milliseconds, strings are ISO 8601 (naive values are
    read as UTC). Returns None for anything that is not a valid date-time.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return EPOCH + timedelta(milliseconds=int(value))
        except OverflowError:
            return None

    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    return None


def offset_from_now(value: datetime, now: Optional[datetime] = None) -> Optional[datetime]:
    """Treat a parsed timestamp's epoch value as a duration and add it to now.

    Returns None when the result falls outside the representable range.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    try:
        return now + (value - EPOCH)
    except OverflowError:
        return None


def coerce_number(value: Any) -> Optional[Number]:
    """Loosely convert a request value to a number.

    null and blank strings count as 0, booleans as 1/0; numeric strings may be
    decimal, exponent, Infinity or 0x/0o/0b literals. Returns None when the
    value is not numeric (NaN included).
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else to_bson_number(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return 0
    if _INTEGER_RE.match(text):
        try:
            return to_bson_number(int(text))
        except ValueError:
            # past the int conversion digit limit
            return float(text)
    if _DECIMAL_RE.match(text):
        return float(text)
    if _RADIX_RE.match(text):
        try:
            return to_bson_number(int(text, 0))
        except ValueError:
            return None
    return _INFINITY.get(text)


def format_timestamp(value: Any) -> Any:
    """Render a stored date as ISO 8601 with milliseconds and a Z suffix"""
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
