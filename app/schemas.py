"""Pydantic schemas for the status API."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from models.readings import Measurement, UsageSnapshot


class PipelineStatus(str, Enum):
    """Lifecycle states of the acquisition pipeline."""

    idle = "idle"
    running = "running"
    exhausted = "exhausted"
    failed = "failed"
    stopped = "stopped"


class PipelineStats(BaseModel):
    """Counters describing what the pipeline has done so far."""

    status: PipelineStatus
    telegrams_framed: int = Field(default=0, ge=0)
    snapshots_decoded: int = Field(default=0, ge=0)
    telegrams_dropped: int = Field(default=0, ge=0)
    points_written: int = Field(default=0, ge=0)
    writes_failed: int = Field(default=0, ge=0)
    last_error: Optional[str] = Field(
        default=None, description="Message of the most recent dropped telegram or failed write."
    )


class MeasurementResponse(BaseModel):
    value: float
    unit: str

    @classmethod
    def from_measurement(cls, measurement: Measurement) -> "MeasurementResponse":
        return cls(value=measurement.value, unit=measurement.unit)


class SnapshotResponse(BaseModel):
    """The most recent snapshot written to the time-series store."""

    electricity_timestamp: datetime
    power_receiving: MeasurementResponse
    power_returning: MeasurementResponse
    electricity_reading_low_tariff: MeasurementResponse
    electricity_reading_normal_tariff: MeasurementResponse
    electricity_returned_reading_low_tariff: MeasurementResponse
    electricity_returned_reading_normal_tariff: MeasurementResponse
    voltage: MeasurementResponse
    current: MeasurementResponse
    gas_reading: MeasurementResponse
    gas_timestamp: datetime

    @classmethod
    def from_snapshot(cls, snapshot: UsageSnapshot) -> "SnapshotResponse":
        measure = MeasurementResponse.from_measurement
        return cls(
            electricity_timestamp=snapshot.electricity_timestamp.timestamp,
            power_receiving=measure(snapshot.power_receiving),
            power_returning=measure(snapshot.power_returning),
            electricity_reading_low_tariff=measure(snapshot.electricity_reading_low_tariff),
            electricity_reading_normal_tariff=measure(snapshot.electricity_reading_normal_tariff),
            electricity_returned_reading_low_tariff=measure(
                snapshot.electricity_returned_reading_low_tariff
            ),
            electricity_returned_reading_normal_tariff=measure(
                snapshot.electricity_returned_reading_normal_tariff
            ),
            voltage=measure(snapshot.voltage),
            current=measure(snapshot.current),
            gas_reading=measure(snapshot.gas_reading),
            gas_timestamp=snapshot.gas_timestamp.timestamp,
        )
