"""Exceptions raised while reading, decoding and forwarding telegrams."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from services.fields import FieldRole


class P1ReaderError(Exception):
    """Base class for every error raised by the reader."""


class FieldDecodeError(P1ReaderError, ValueError):
    def __init__(self, message: str, token: str) -> None:
        super().__init__(message)
        self.token = token
        self.identifier: Optional[str] = None
        self.role: Optional[FieldRole] = None

    def attach(self, identifier: str, role: FieldRole) -> FieldDecodeError:
        self.identifier = identifier
        self.role = role
        return self


class MalformedTimestamp(FieldDecodeError):
    """The payload is not a ``YYMMDDhhmmss`` + ``W``/``S`` timestamp."""


class MalformedMeasurement(FieldDecodeError):
    """The payload is not a ``<number>*<unit>`` measurement."""


class IncompleteTelegram(P1ReaderError):
    """A telegram did not yield every reading a snapshot needs."""

    def __init__(
        self,
        missing: Sequence[FieldRole],
        field_errors: Sequence[FieldDecodeError] = (),
        decoded: Sequence[FieldRole] = (),
    ) -> None:
        self.missing: Tuple[FieldRole, ...] = tuple(missing)
        self.field_errors: Tuple[FieldDecodeError, ...] = tuple(field_errors)
        self.decoded: Tuple[FieldRole, ...] = tuple(decoded)
        names = ", ".join(role.value for role in self.missing)
        super().__init__(f"Telegram is missing required fields: {names}")


class SourceExhausted(P1ReaderError):
    """The line source ended; no further telegrams can arrive."""


class SourceUnavailable(P1ReaderError):
    """The line source could not be opened."""


class SinkWriteFailed(P1ReaderError):
    """Points could not be written to the time-series store."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SinkUnavailable(P1ReaderError):
    """The time-series store could not be prepared for writing."""
