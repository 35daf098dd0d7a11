"""Acquisition pipeline: decode telegrams on one thread, emit points on another."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
from typing import Iterable, List, Optional

from app.schemas import PipelineStats, PipelineStatus
from models.readings import RawTelegram, UsageSnapshot
from services.errors import (
    IncompleteTelegram,
    SinkUnavailable,
    SinkWriteFailed,
    SourceExhausted,
    SourceUnavailable,
)
from services.framer import TelegramFramer
from services.points import PointSink, snapshot_to_points
from services.telegram import TelegramDecoder
from settings import get_settings
from storage.influx import InfluxDBSink
from storage.serial_port import open_serial_source

logger = logging.getLogger(__name__)


@dataclass
class _Counters:
    telegrams_framed: int = 0
    snapshots_decoded: int = 0
    telegrams_dropped: int = 0
    points_written: int = 0
    writes_failed: int = 0
    last_error: Optional[str] = None


class AcquisitionPipeline:
    """Pairs a telegram reader with a point writer, one snapshot at a time.

    The acquisition thread hands each snapshot over through a queue of size
    one and then waits on ``Queue.join()`` until the emission thread has
    finished writing it, so at most one undelivered snapshot ever exists.
    Bad telegrams and failed writes are logged and counted; only exhaustion
    of the line source ends the pipeline.
    """

    def __init__(
        self,
        source: Iterable[str],
        sink: PointSink,
        series: str = "dsmr",
        decoder: Optional[TelegramDecoder] = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.series = series
        self.framer = TelegramFramer(source)
        self.decoder = decoder or TelegramDecoder()
        self._handoff: queue.Queue[Optional[UsageSnapshot]] = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []
        self._lock = Lock()
        self._counters = _Counters()
        self._status = PipelineStatus.idle
        self._latest: Optional[UsageSnapshot] = None
        self._failure: Optional[Exception] = None

    def start(self) -> None:
        """Start the acquisition and emission threads; calling it again is a no-op."""
        with self._lock:
            if self._threads:
                return
            self._status = PipelineStatus.running
            self._threads = [
                threading.Thread(target=self._emit_loop, name="p1-emission", daemon=True),
                threading.Thread(target=self._acquire_loop, name="p1-acquisition", daemon=True),
            ]
            for thread in self._threads:
                thread.start()

    def run(self) -> None:
        """Run in the foreground until the source is gone, then raise ``SourceExhausted``.

        An unexpected error that ends the acquisition thread is re-raised as is.
        """
        self.start()
        for thread in self._threads:
            thread.join()
        if self._failure is not None:
            raise self._failure

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop reading; a snapshot still in flight may be lost."""
        self._stop.set()
        close_source = getattr(self.source, "close", None)
        if callable(close_source):
            close_source()
        for thread in self._threads:
            thread.join(timeout)
        with self._lock:
            if self._status in (PipelineStatus.idle, PipelineStatus.running):
                self._status = PipelineStatus.stopped
        close_sink = getattr(self.sink, "close", None)
        if callable(close_sink):
            close_sink()

    def stats(self) -> PipelineStats:
        with self._lock:
            counters = self._counters
            return PipelineStats(
                status=self._status,
                telegrams_framed=counters.telegrams_framed,
                snapshots_decoded=counters.snapshots_decoded,
                telegrams_dropped=counters.telegrams_dropped,
                points_written=counters.points_written,
                writes_failed=counters.writes_failed,
                last_error=counters.last_error,
            )

    def latest_snapshot(self) -> Optional[UsageSnapshot]:
        """Return the last snapshot whose points reached the sink."""
        with self._lock:
            return self._latest

    def _acquire_loop(self) -> None:
        try:
            while not self._stop.is_set():
                telegram = self.framer.next_telegram()
                with self._lock:
                    self._counters.telegrams_framed += 1
                snapshot = self._decode(telegram)
                if snapshot is None:
                    continue
                self._handoff.put(snapshot)
                self._handoff.join()
        except SourceExhausted as exc:
            if self._stop.is_set():
                logger.info("Line source closed during shutdown")
            else:
                logger.error("Telegram source exhausted: %s", exc)
                with self._lock:
                    self._failure = exc
                    self._status = PipelineStatus.exhausted
        except Exception as exc:
            logger.exception("Acquisition thread failed")
            with self._lock:
                self._failure = exc
                self._status = PipelineStatus.failed
                self._counters.last_error = f"{type(exc).__name__}: {exc}"
        finally:
            self._handoff.put(None)

    def _decode(self, telegram: RawTelegram) -> Optional[UsageSnapshot]:
        try:
            snapshot = self.decoder.decode(telegram)
        except IncompleteTelegram as exc:
            for error in exc.field_errors:
                logger.warning(
                    "Dropping malformed field: %s",
                    error,
                    extra={
                        "identifier": error.identifier,
                        "role": error.role.value if error.role else None,
                        "token": error.token,
                    },
                )
            logger.warning(
                "Dropping telegram: %s",
                exc,
                extra={
                    "header": telegram.header,
                    "missing": ",".join(role.value for role in exc.missing),
                },
            )
            with self._lock:
                self._counters.telegrams_dropped += 1
                self._counters.last_error = str(exc)
            return None

        with self._lock:
            self._counters.snapshots_decoded += 1
        return snapshot

    def _emit_loop(self) -> None:
        while True:
            snapshot = self._handoff.get()
            try:
                if snapshot is None:
                    return
                self._emit(snapshot)
            finally:
                self._handoff.task_done()

    def _emit(self, snapshot: UsageSnapshot) -> None:
        points = snapshot_to_points(snapshot, series=self.series)
        try:
            self.sink.write_points(points)
        except SinkWriteFailed as exc:
            logger.warning(
                "Dropping points after failed write: %s",
                exc,
                extra={
                    "point_count": len(points),
                    "status_code": exc.status_code,
                    "series": self.series,
                },
            )
            with self._lock:
                self._counters.writes_failed += 1
                self._counters.last_error = str(exc)
            return
        except Exception as exc:  # sink bugs must not stall the handoff
            logger.exception(
                "Dropping points after unexpected sink error",
                extra={"point_count": len(points), "series": self.series},
            )
            with self._lock:
                self._counters.writes_failed += 1
                self._counters.last_error = f"{type(exc).__name__}: {exc}"
            return

        with self._lock:
            self._counters.points_written += len(points)
            self._latest = snapshot
        logger.debug("Points written", extra={"point_count": len(points), "series": self.series})


@lru_cache
def build_default_pipeline(
    device: Optional[str] = None,
    baud_rate: Optional[int] = None,
) -> AcquisitionPipeline:
    """Factory that wires the serial port and InfluxDB from settings."""
    settings = get_settings()
    sink = InfluxDBSink(
        base_url=settings.influx_url,
        database=settings.influx_database,
        timeout=settings.influx_timeout,
    )
    try:
        sink.ensure_database()
    except SinkUnavailable:
        sink.close()
        raise
    try:
        source = open_serial_source(device=device, baud_rate=baud_rate)
    except SourceUnavailable:
        sink.close()
        raise
    return AcquisitionPipeline(source=source, sink=sink, series=settings.series_name)
