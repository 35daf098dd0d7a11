"""Map usage snapshots onto time-series points."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Protocol, Sequence, Tuple

from models.readings import UsageSnapshot

ELECTRICITY = "electricity"
GAS = "gas"

# (snapshot field, energy_type, reading tag, snapshot timestamp field)
POINT_LAYOUT: Tuple[Tuple[str, str, str, str], ...] = (
    ("electricity_reading_low_tariff", ELECTRICITY, "low_tariff", "electricity_timestamp"),
    ("electricity_reading_normal_tariff", ELECTRICITY, "normal_tariff", "electricity_timestamp"),
    (
        "electricity_returned_reading_low_tariff",
        ELECTRICITY,
        "returned_reading_low_tariff",
        "electricity_timestamp",
    ),
    (
        "electricity_returned_reading_normal_tariff",
        ELECTRICITY,
        "returned_reading_normal_tariff",
        "electricity_timestamp",
    ),
    ("power_receiving", ELECTRICITY, "receiving", "electricity_timestamp"),
    ("power_returning", ELECTRICITY, "returning", "electricity_timestamp"),
    ("gas_reading", GAS, "receiving", "gas_timestamp"),
    ("voltage", ELECTRICITY, "voltage", "electricity_timestamp"),
    ("current", ELECTRICITY, "current", "electricity_timestamp"),
)


@dataclass(frozen=True, slots=True)
class Point:
    """One time-series sample: a single ``value`` field plus tags."""

    series: str
    tags: Dict[str, str]
    value: float
    time: datetime

    @property
    def epoch_seconds(self) -> int:
        # Points are written with second precision.
        return int(self.time.timestamp())


class PointSink(Protocol):
    def write_points(self, points: Sequence[Point]) -> None:
        ...


def snapshot_to_points(snapshot: UsageSnapshot, series: str = "dsmr") -> List[Point]:
    points: List[Point] = []
    for field_name, energy_type, reading, timestamp_field in POINT_LAYOUT:
        measurement = getattr(snapshot, field_name)
        instant = getattr(snapshot, timestamp_field)
        points.append(
            Point(
                series=series,
                tags={
                    "energy_type": energy_type,
                    "reading": reading,
                    "unit": measurement.unit,
                },
                value=measurement.value,
                time=instant.timestamp,
            )
        )
    return points
