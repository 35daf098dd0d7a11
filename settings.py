from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_SERIAL_DEVICE_ENV = "P1_SERIAL_DEVICE"
_BAUD_RATE_ENV = "P1_BAUD_RATE"
_READ_TIMEOUT_ENV = "P1_READ_TIMEOUT"
_INFLUX_ADDRESS_ENV = "INFLUX_DB_ADDRESS"
_INFLUX_PORT_ENV = "INFLUX_DB_PORT"
_INFLUX_NAME_ENV = "INFLUX_DB_NAME"
_INFLUX_TIMEOUT_ENV = "INFLUX_WRITE_TIMEOUT"
_SERIES_NAME_ENV = "P1_SERIES_NAME"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    serial_device: str
    baud_rate: int
    read_timeout: float
    influx_address: str
    influx_port: int
    influx_database: str
    influx_timeout: float
    series_name: str
    log_level: str

    @property
    def influx_url(self) -> str:
        return f"{self.influx_address.rstrip('/')}:{self.influx_port}"


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        serial_device=_read_str_env(_SERIAL_DEVICE_ENV, "/dev/ttyUSB0"),
        baud_rate=_read_positive_int(_BAUD_RATE_ENV, 115_200),
        read_timeout=_read_positive_float(_READ_TIMEOUT_ENV, 1.0),
        influx_address=_read_str_env(_INFLUX_ADDRESS_ENV, "http://localhost"),
        influx_port=_read_positive_int(_INFLUX_PORT_ENV, 8086),
        influx_database=_read_str_env(_INFLUX_NAME_ENV, "dsmr"),
        influx_timeout=_read_positive_float(_INFLUX_TIMEOUT_ENV, 10.0),
        series_name=_read_str_env(_SERIES_NAME_ENV, "dsmr"),
        log_level=_read_log_level("INFO"),
    )
