"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple, Union


@dataclass(frozen=True, slots=True)
class Measurement:
    """A numeric quantity with the unit exactly as the meter reported it."""

    value: float
    unit: str


@dataclass(frozen=True, slots=True)
class Instant:
    """A point in time carrying the fixed offset declared by the telegram."""

    timestamp: datetime


Reading = Union[Measurement, Instant]


@dataclass(frozen=True, slots=True)
class UsageSnapshot:
    """All readings decoded from one telegram."""

    electricity_timestamp: Instant
    power_receiving: Measurement
    power_returning: Measurement
    electricity_reading_low_tariff: Measurement
    electricity_reading_normal_tariff: Measurement
    electricity_returned_reading_low_tariff: Measurement
    electricity_returned_reading_normal_tariff: Measurement
    voltage: Measurement
    current: Measurement
    gas_reading: Measurement
    gas_timestamp: Instant


@dataclass(frozen=True, slots=True)
class RawTelegram:
    """Lines of one telegram, start line included and end line excluded."""

    lines: Tuple[str, ...]

    @property
    def header(self) -> str:
        return self.lines[0] if self.lines else ""
