from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

import serial

from services.errors import SourceUnavailable
from settings import get_settings

logger = logging.getLogger(__name__)


class SerialLineSource:
    """Blocking iterator over the text lines arriving on a P1 serial port.

    Read timeouts are not end-of-stream: the meter only speaks once per
    interval, so an empty read just means "keep waiting". Iteration ends when
    the port fails or is closed.
    """

    def __init__(self, device: str, port: Any) -> None:
        self.device = device
        self._port = port

    def __iter__(self) -> Iterator[str]:
        while True:
            try:
                raw = self._port.readline()
            except (serial.SerialException, OSError) as exc:
                logger.error(
                    "Serial read failed: %s", exc, extra={"device": self.device}
                )
                return
            if not raw:
                continue
            yield raw.decode("ascii", errors="replace").rstrip("\r\n")

    def close(self) -> None:
        self._port.close()


def open_serial_source(
    device: Optional[str] = None,
    baud_rate: Optional[int] = None,
    timeout: Optional[float] = None,
) -> SerialLineSource:
    """Open the meter's serial port (8N1) and wrap it as a line source."""
    settings = get_settings()
    device = device or settings.serial_device
    baud_rate = baud_rate or settings.baud_rate
    timeout = timeout or settings.read_timeout
    try:
        port = serial.Serial(
            port=device,
            baudrate=baud_rate,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=timeout,
        )
    except (serial.SerialException, ValueError) as exc:
        raise SourceUnavailable(f"Unable to open serial port {device}: {exc}") from exc

    logger.info(
        "Receiving data on %s at %s baud", device, baud_rate, extra={"device": device}
    )
    return SerialLineSource(device=device, port=port)
