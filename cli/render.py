from __future__ import annotations

from typing import Any, Iterable

import typer

from models.readings import Measurement, UsageSnapshot
from services.errors import IncompleteTelegram


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format(measurement: Measurement) -> str:
    return f"{measurement.value} {measurement.unit}"


def render_snapshot(snapshot: UsageSnapshot, heading: str = "Usage Snapshot") -> None:
    echo_heading(heading)
    echo_key_values(
        [
            ("electricity_timestamp", snapshot.electricity_timestamp.timestamp.isoformat()),
            ("electricity_reading_low_tariff", _format(snapshot.electricity_reading_low_tariff)),
            (
                "electricity_reading_normal_tariff",
                _format(snapshot.electricity_reading_normal_tariff),
            ),
            (
                "electricity_returned_reading_low_tariff",
                _format(snapshot.electricity_returned_reading_low_tariff),
            ),
            (
                "electricity_returned_reading_normal_tariff",
                _format(snapshot.electricity_returned_reading_normal_tariff),
            ),
            ("power_receiving", _format(snapshot.power_receiving)),
            ("power_returning", _format(snapshot.power_returning)),
            ("voltage", _format(snapshot.voltage)),
            ("current", _format(snapshot.current)),
            ("gas_timestamp", snapshot.gas_timestamp.timestamp.isoformat()),
            ("gas_reading", _format(snapshot.gas_reading)),
        ]
    )


def render_dropped(header: str, error: IncompleteTelegram) -> None:
    typer.secho(f"Dropped telegram {header!r}: {error}", fg=typer.colors.RED, err=True)
    for field_error in error.field_errors:
        typer.secho(
            f"  - {field_error.identifier}: {field_error}",
            fg=typer.colors.RED,
            err=True,
        )
