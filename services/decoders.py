"""Decoders for the two value encodings used in telegram payloads."""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Dict

from models.readings import Instant, Measurement
from services.errors import MalformedMeasurement, MalformedTimestamp

_TIMESTAMP_DIGITS = 12
_MEASUREMENT_VALUE = re.compile(r"[0-9]+(?:\.[0-9]+)?")

# The meter states which offset applies, so no timezone database is consulted.
DST_OFFSETS: Dict[str, timezone] = {
    "W": timezone(timedelta(hours=1)),
    "S": timezone(timedelta(hours=2)),
}


def decode_timestamp(token: str) -> Instant:
    """Decode ``YYMMDDhhmmss`` followed by ``W`` (UTC+1) or ``S`` (UTC+2)."""
    candidate = token.strip()
    digits, flag = candidate[:-1], candidate[-1:]

    offset = DST_OFFSETS.get(flag)
    if offset is None:
        raise MalformedTimestamp(
            f"Timestamp {token!r} has no W/S daylight saving flag", token
        )
    if len(digits) != _TIMESTAMP_DIGITS or not digits.isdigit():
        raise MalformedTimestamp(
            f"Timestamp {token!r} is not {_TIMESTAMP_DIGITS} digits plus a flag", token
        )

    try:
        local = datetime(
            2000 + int(digits[0:2]),
            int(digits[2:4]),
            int(digits[4:6]),
            int(digits[6:8]),
            int(digits[8:10]),
            int(digits[10:12]),
        )
    except ValueError as exc:
        raise MalformedTimestamp(f"Timestamp {token!r} is not a valid date", token) from exc

    aware = local.replace(tzinfo=offset)
    try:
        aware.astimezone(timezone.utc)
    except OverflowError as exc:
        raise MalformedTimestamp(
            f"Timestamp {token!r} cannot be mapped to an absolute time", token
        ) from exc
    return Instant(timestamp=aware)


def decode_measurement(token: str) -> Measurement:
    """Decode ``<number>*<unit>``; the unit is kept exactly as given."""
    if "*" not in token:
        raise MalformedMeasurement(f"Measurement {token!r} has no unit separator", token)

    value_raw, unit = token.split("*", 1)
    if not _MEASUREMENT_VALUE.fullmatch(value_raw):
        raise MalformedMeasurement(f"Measurement {token!r} has a non-numeric value", token)
    value = float(value_raw)
    # A long enough digit string still overflows to infinity.
    if not math.isfinite(value):
        raise MalformedMeasurement(f"Measurement {token!r} is not a finite number", token)

    return Measurement(value=value, unit=unit)
