"""OBIS identifiers consumed from a telegram and the snapshot field each fills."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


class FieldRole(str, Enum):
    """Semantic role of a telegram field; the value names the snapshot attribute."""

    electricity_timestamp = "electricity_timestamp"
    power_receiving = "power_receiving"
    power_returning = "power_returning"
    electricity_reading_low_tariff = "electricity_reading_low_tariff"
    electricity_reading_normal_tariff = "electricity_reading_normal_tariff"
    electricity_returned_reading_low_tariff = "electricity_returned_reading_low_tariff"
    electricity_returned_reading_normal_tariff = "electricity_returned_reading_normal_tariff"
    voltage = "voltage"
    current = "current"
    gas_reading = "gas_reading"
    gas_timestamp = "gas_timestamp"
    unrecognized = "unrecognized"


FIELD_ROLES: Dict[str, FieldRole] = {
    "0-0:1.0.0": FieldRole.electricity_timestamp,
    "1-0:1.7.0": FieldRole.power_receiving,
    "1-0:2.7.0": FieldRole.power_returning,
    "1-0:1.8.1": FieldRole.electricity_reading_low_tariff,
    "1-0:1.8.2": FieldRole.electricity_reading_normal_tariff,
    "1-0:2.8.1": FieldRole.electricity_returned_reading_low_tariff,
    "1-0:2.8.2": FieldRole.electricity_returned_reading_normal_tariff,
    "1-0:32.7.0": FieldRole.voltage,
    "1-0:31.7.0": FieldRole.current,
    # Carries both the gas timestamp and the gas volume.
    "0-1:24.2.1": FieldRole.gas_reading,
}

# Snapshot order; every one of these must be present for a telegram to decode.
REQUIRED_ROLES: Tuple[FieldRole, ...] = tuple(
    role for role in FieldRole if role is not FieldRole.unrecognized
)


def lookup_role(identifier: str) -> FieldRole:
    return FIELD_ROLES.get(identifier.strip(), FieldRole.unrecognized)
