from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

import httpx

from services.errors import SinkUnavailable, SinkWriteFailed
from services.points import Point

logger = logging.getLogger(__name__)


def _escape(text: str, special: str) -> str:
    escaped = text.replace("\\", "\\\\")
    for char in special:
        escaped = escaped.replace(char, f"\\{char}")
    return escaped


def to_line_protocol(point: Point) -> str:
    """Render a point as one InfluxDB line, with a seconds timestamp."""
    parts = [_escape(point.series, ", ")]
    for key in sorted(point.tags):
        value = point.tags[key]
        # Influx rejects empty tag values, so such tags are left out.
        if not value:
            continue
        parts.append(f"{_escape(key, ',= ')}={_escape(value, ',= ')}")
    return f"{','.join(parts)} value={float(point.value)!r} {point.epoch_seconds}"


def encode_points(points: Iterable[Point]) -> str:
    return "\n".join(to_line_protocol(point) for point in points)


class InfluxDBSink:
    """Write points to an InfluxDB 1.x HTTP endpoint."""

    def __init__(
        self,
        base_url: str,
        database: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.database = database
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def ping(self) -> bool:
        try:
            response = self._client.get("/ping")
        except httpx.HTTPError as exc:
            logger.warning("InfluxDB ping failed: %s", exc, extra={"database": self.database})
            return False
        return response.status_code == 204

    def ensure_database(self) -> None:
        """Check connectivity and create the database if it does not exist yet."""
        if not self.ping():
            raise SinkUnavailable(f"Cannot connect to InfluxDB at {self.base_url}")

        quoted = _escape(self.database, '"')
        statement = f'CREATE DATABASE "{quoted}"'
        try:
            response = self._client.post("/query", params={"q": statement})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SinkUnavailable(
                f"Unable to create database {self.database!r}: {exc}"
            ) from exc
        logger.info("InfluxDB ready", extra={"database": self.database})

    def write_points(self, points: Sequence[Point]) -> None:
        if not points:
            return
        try:
            response = self._client.post(
                "/write",
                params={"db": self.database, "precision": "s"},
                content=encode_points(points).encode("utf-8"),
            )
        except httpx.HTTPError as exc:
            raise SinkWriteFailed(f"Write to {self.base_url} failed: {exc}") from exc

        if response.status_code >= 300:
            detail = response.text.strip() or "no detail provided."
            raise SinkWriteFailed(
                f"Write rejected with status {response.status_code}: {detail}",
                status_code=response.status_code,
            )

