"""Turn the lines of one telegram into a usage snapshot."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from models.readings import Reading, RawTelegram, UsageSnapshot
from services.decoders import decode_measurement, decode_timestamp
from services.errors import FieldDecodeError, IncompleteTelegram, MalformedMeasurement
from services.fields import REQUIRED_ROLES, FieldRole, lookup_role


def split_line(line: str) -> Optional[Tuple[str, List[str]]]:
    """Split ``ID(a)(b)`` into ``("ID", ["a", "b"])``; ``None`` if there is no payload."""
    candidate = line.strip()
    if "(" not in candidate:
        return None
    identifier, remainder = candidate.split("(", 1)
    if remainder.endswith(")"):
        remainder = remainder[:-1]
    return identifier.strip(), remainder.split(")(")


class TelegramDecoder:
    """Stateless decoder; one instance can be reused for every telegram."""

    def decode(self, telegram: RawTelegram) -> UsageSnapshot:
        readings: Dict[FieldRole, Reading] = {}
        errors: List[FieldDecodeError] = []

        for line in telegram.lines:
            parts = split_line(line)
            if parts is None:
                continue
            identifier, payloads = parts
            role = lookup_role(identifier)
            if role is FieldRole.unrecognized:
                continue

            if role is FieldRole.gas_reading:
                self._decode_gas(identifier, payloads, readings, errors)
            elif role is FieldRole.electricity_timestamp:
                try:
                    readings[role] = decode_timestamp(payloads[0])
                except FieldDecodeError as exc:
                    errors.append(exc.attach(identifier, role))
            elif "*" in payloads[0]:
                try:
                    readings[role] = decode_measurement(payloads[0])
                except FieldDecodeError as exc:
                    errors.append(exc.attach(identifier, role))

        missing = [role for role in REQUIRED_ROLES if role not in readings]
        if missing:
            decoded = [role for role in REQUIRED_ROLES if role in readings]
            raise IncompleteTelegram(missing=missing, field_errors=errors, decoded=decoded)

        return UsageSnapshot(**{role.value: reading for role, reading in readings.items()})

    @staticmethod
    def _decode_gas(
        identifier: str,
        payloads: List[str],
        readings: Dict[FieldRole, Reading],
        errors: List[FieldDecodeError],
    ) -> None:
        # The gas line is the one field that yields two readings.
        try:
            readings[FieldRole.gas_timestamp] = decode_timestamp(payloads[0])
        except FieldDecodeError as exc:
            errors.append(exc.attach(identifier, FieldRole.gas_timestamp))

        if len(payloads) < 2:
            errors.append(
                MalformedMeasurement(
                    f"Gas field {identifier!r} carries no measurement", payloads[0]
                ).attach(identifier, FieldRole.gas_reading)
            )
            return
        try:
            readings[FieldRole.gas_reading] = decode_measurement(payloads[1])
        except FieldDecodeError as exc:
            errors.append(exc.attach(identifier, FieldRole.gas_reading))
