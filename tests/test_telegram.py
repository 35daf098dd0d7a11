"""Tests for turning framed telegrams into usage snapshots."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from models.readings import Instant, Measurement, RawTelegram, UsageSnapshot
from services.errors import IncompleteTelegram, MalformedMeasurement, MalformedTimestamp
from services.fields import REQUIRED_ROLES, FieldRole
from services.telegram import TelegramDecoder, split_line

CET = timezone(timedelta(hours=1))


def _without(telegram: RawTelegram, prefix: str) -> RawTelegram:
    return RawTelegram(lines=tuple(line for line in telegram.lines if not line.startswith(prefix)))


def _replace(telegram: RawTelegram, prefix: str, replacement: str) -> RawTelegram:
    return RawTelegram(
        lines=tuple(replacement if line.startswith(prefix) else line for line in telegram.lines)
    )


def test_decodes_sample_telegram(raw_telegram: RawTelegram) -> None:
    snapshot = TelegramDecoder().decode(raw_telegram)

    assert snapshot == UsageSnapshot(
        electricity_timestamp=Instant(datetime(2020, 12, 21, 1, 8, 33, tzinfo=CET)),
        power_receiving=Measurement(0.229, "kW"),
        power_returning=Measurement(0.0, "kW"),
        electricity_reading_low_tariff=Measurement(2134.177, "kWh"),
        electricity_reading_normal_tariff=Measurement(3448.211, "kWh"),
        electricity_returned_reading_low_tariff=Measurement(0.0, "kWh"),
        electricity_returned_reading_normal_tariff=Measurement(0.0, "kWh"),
        voltage=Measurement(236.7, "V"),
        current=Measurement(1.0, "A"),
        gas_reading=Measurement(3799.479, "m3"),
        gas_timestamp=Instant(datetime(2010, 12, 21, 1, 5, 11, tzinfo=CET)),
    )
    assert snapshot.electricity_timestamp.timestamp.isoformat() == "2020-12-21T01:08:33+01:00"
    assert snapshot.gas_timestamp.timestamp.isoformat() == "2010-12-21T01:05:11+01:00"


def test_decoding_is_order_independent(raw_telegram: RawTelegram) -> None:
    decoder = TelegramDecoder()
    expected = decoder.decode(raw_telegram)

    shuffled = list(raw_telegram.lines)
    random.Random(1234).shuffle(shuffled)

    assert decoder.decode(RawTelegram(lines=tuple(shuffled))) == expected
    assert decoder.decode(RawTelegram(lines=tuple(reversed(raw_telegram.lines)))) == expected


@pytest.mark.parametrize(
    ("prefix", "missing"),
    [
        ("0-0:1.0.0", [FieldRole.electricity_timestamp]),
        ("1-0:1.7.0", [FieldRole.power_receiving]),
        ("1-0:2.7.0", [FieldRole.power_returning]),
        ("1-0:1.8.1", [FieldRole.electricity_reading_low_tariff]),
        ("1-0:1.8.2", [FieldRole.electricity_reading_normal_tariff]),
        ("1-0:2.8.1", [FieldRole.electricity_returned_reading_low_tariff]),
        ("1-0:2.8.2", [FieldRole.electricity_returned_reading_normal_tariff]),
        ("1-0:32.7.0", [FieldRole.voltage]),
        ("1-0:31.7.0", [FieldRole.current]),
        ("0-1:24.2.1", [FieldRole.gas_reading, FieldRole.gas_timestamp]),
    ],
)
def test_missing_field_fails_whole_telegram(raw_telegram, prefix, missing) -> None:
    with pytest.raises(IncompleteTelegram) as excinfo:
        TelegramDecoder().decode(_without(raw_telegram, prefix))

    assert list(excinfo.value.missing) == missing
    assert excinfo.value.field_errors == ()
    for role in missing:
        assert role.value in str(excinfo.value)


def test_empty_telegram_lists_every_role_as_missing() -> None:
    with pytest.raises(IncompleteTelegram) as excinfo:
        TelegramDecoder().decode(RawTelegram(lines=("/HDR",)))

    assert excinfo.value.missing == REQUIRED_ROLES
    assert excinfo.value.decoded == ()


def test_malformed_gas_measurement_drops_whole_snapshot(raw_telegram: RawTelegram) -> None:
    telegram = _replace(raw_telegram, "0-1:24.2.1", "0-1:24.2.1(101221010511W)(03799.479)")

    with pytest.raises(IncompleteTelegram) as excinfo:
        TelegramDecoder().decode(telegram)

    error = excinfo.value
    assert error.missing == (FieldRole.gas_reading,)
    # Every other field, including the gas timestamp, still decoded.
    assert set(error.decoded) == set(REQUIRED_ROLES) - {FieldRole.gas_reading}
    assert len(error.field_errors) == 1
    field_error = error.field_errors[0]
    assert isinstance(field_error, MalformedMeasurement)
    assert field_error.identifier == "0-1:24.2.1"
    assert field_error.role is FieldRole.gas_reading
    assert field_error.token == "03799.479"


def test_gas_line_without_measurement_payload(raw_telegram: RawTelegram) -> None:
    telegram = _replace(raw_telegram, "0-1:24.2.1", "0-1:24.2.1(101221010511W)")

    with pytest.raises(IncompleteTelegram) as excinfo:
        TelegramDecoder().decode(telegram)

    assert excinfo.value.missing == (FieldRole.gas_reading,)
    assert isinstance(excinfo.value.field_errors[0], MalformedMeasurement)


def test_malformed_timestamp_is_reported_per_field(raw_telegram: RawTelegram) -> None:
    telegram = _replace(raw_telegram, "0-0:1.0.0", "0-0:1.0.0(201221010833X)")

    with pytest.raises(IncompleteTelegram) as excinfo:
        TelegramDecoder().decode(telegram)

    assert excinfo.value.missing == (FieldRole.electricity_timestamp,)
    field_error = excinfo.value.field_errors[0]
    assert isinstance(field_error, MalformedTimestamp)
    assert field_error.identifier == "0-0:1.0.0"
    assert field_error.role is FieldRole.electricity_timestamp


def test_malformed_numeric_value_is_reported(raw_telegram: RawTelegram) -> None:
    telegram = _replace(raw_telegram, "1-0:32.7.0", "1-0:32.7.0(2x6.7*V)")

    with pytest.raises(IncompleteTelegram) as excinfo:
        TelegramDecoder().decode(telegram)

    assert excinfo.value.missing == (FieldRole.voltage,)
    assert excinfo.value.field_errors[0].role is FieldRole.voltage


def test_recognized_field_without_unit_is_ignored(raw_telegram: RawTelegram) -> None:
    # A unit-less duplicate does not clobber the decoded value.
    telegram = RawTelegram(lines=raw_telegram.lines + ("1-0:32.7.0(00012)",))

    snapshot = TelegramDecoder().decode(telegram)

    assert snapshot.voltage == Measurement(236.7, "V")


def test_later_duplicate_overrides_earlier_value(raw_telegram: RawTelegram) -> None:
    telegram = RawTelegram(lines=raw_telegram.lines + ("1-0:32.7.0(230.1*V)",))

    assert TelegramDecoder().decode(telegram).voltage == Measurement(230.1, "V")


def test_unknown_units_pass_through(raw_telegram: RawTelegram) -> None:
    telegram = _replace(raw_telegram, "1-0:31.7.0", "1-0:31.7.0(002*mA)")

    assert TelegramDecoder().decode(telegram).current == Measurement(2.0, "mA")


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("1-0:1.8.1(002134.177*kWh)", ("1-0:1.8.1", ["002134.177*kWh"])),
        ("0-1:24.2.1(101221010511W)(03799.479*m3)", ("0-1:24.2.1", ["101221010511W", "03799.479*m3"])),
        ("0-0:96.13.0()", ("0-0:96.13.0", [""])),
        ("  1-0:32.7.0(236.7*V)  \r\n", ("1-0:32.7.0", ["236.7*V"])),
        ("/ISK5\\2M550E-1012", None),
        ("", None),
    ],
)
def test_split_line(line, expected) -> None:
    assert split_line(line) == expected
