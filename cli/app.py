from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from cli.render import render_dropped, render_snapshot
from logging_config import configure_logging
from services.errors import (
    IncompleteTelegram,
    SinkUnavailable,
    SourceExhausted,
    SourceUnavailable,
)
from services.framer import TelegramFramer
from services.pipeline import build_default_pipeline
from services.points import snapshot_to_points
from services.telegram import TelegramDecoder
from settings import get_settings
from storage.influx import encode_points


app = typer.Typer(
    help="Read DSMR P1 telegrams from a smart meter and forward them to InfluxDB.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def main() -> None:
    """Entry point for the CLI."""


@app.command("run")
def run_command(
    device: Optional[str] = typer.Option(
        None,
        "--device",
        "-d",
        help="Serial device (defaults to P1_SERIAL_DEVICE env or /dev/ttyUSB0).",
    ),
    baud_rate: Optional[int] = typer.Option(
        None,
        "--baud-rate",
        help="Serial baud rate (defaults to P1_BAUD_RATE env or 115200).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Override LOG_LEVEL for this process.",
    ),
) -> None:
    """Read telegrams until the serial port goes away, writing every snapshot to InfluxDB."""
    configure_logging(log_level.upper() if log_level else None)
    try:
        pipeline = build_default_pipeline(device=device, baud_rate=baud_rate)
    except (SourceUnavailable, SinkUnavailable) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    try:
        pipeline.run()
    except SourceExhausted as exc:
        typer.secho(f"Telegram source exhausted: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        typer.echo("Interrupted, shutting down.")
    finally:
        pipeline.shutdown()
        build_default_pipeline.cache_clear()


@app.command("decode")
def decode_command(
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Captured serial output."
    ),
    points: bool = typer.Option(
        False,
        "--points/--no-points",
        help="Print InfluxDB line protocol instead of the decoded readings.",
    ),
) -> None:
    """Decode every telegram in a captured dump without touching the serial port."""
    series = get_settings().series_name
    decoder = TelegramDecoder()
    decoded = 0
    with file.open("r", encoding="ascii", errors="replace") as handle:
        for telegram in TelegramFramer(handle).telegrams():
            try:
                snapshot = decoder.decode(telegram)
            except IncompleteTelegram as exc:
                render_dropped(telegram.header, exc)
                continue
            decoded += 1
            if points:
                typer.echo(encode_points(snapshot_to_points(snapshot, series=series)))
            else:
                render_snapshot(snapshot, heading=f"Telegram {decoded}")
                typer.echo()

    if not decoded:
        typer.secho("No complete telegram found.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
