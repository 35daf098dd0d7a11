"""Isolate complete telegrams from a continuous stream of lines."""

from __future__ import annotations

from typing import Iterable, Iterator, List

from models.readings import RawTelegram
from services.errors import SourceExhausted

START_MARKER = "/"
END_MARKER = "!"


class TelegramFramer:
    """Cuts a line stream into telegrams delimited by ``/`` and ``!`` lines.

    The start line is kept as the first line of each telegram; the end line
    (which carries the CRC) is dropped. Lines before a start marker are noise
    and are discarded.
    """

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines: Iterator[str] = iter(lines)

    def next_telegram(self) -> RawTelegram:
        """Block until one full telegram has been read and return it."""
        for line in self._lines:
            line = line.rstrip("\r\n")
            if line.startswith(START_MARKER):
                break
        else:
            raise SourceExhausted("Line source ended while waiting for a telegram start")

        collected: List[str] = [line]
        for line in self._lines:
            line = line.rstrip("\r\n")
            if line.startswith(END_MARKER):
                return RawTelegram(lines=tuple(collected))
            collected.append(line)

        raise SourceExhausted("Line source ended in the middle of a telegram")

    def telegrams(self) -> Iterator[RawTelegram]:
        """Yield telegrams until the source is exhausted."""
        while True:
            try:
                yield self.next_telegram()
            except SourceExhausted:
                return
