"""Text formatting helpers for memory dumps, bit strings and progress bars."""

from __future__ import annotations

import sys
from typing import TextIO

_ROW_SIZE = 16
_ROW_MASK = ~(_ROW_SIZE - 1) & 0xFFFFFFFF
_HEADER = "            0  1  2  3  4  5  6  7  8  9  a  b  c  d  e  f\n"
_BARS = 30


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte < 0x7F else "."


def hexdump(addr: int, data: bytes) -> str:
    """Return a hexadecimal and ASCII dump of ``data`` starting at ``addr``."""
    lines = [_HEADER]
    addr &= 0xFFFFFFFF
    remaining = memoryview(bytes(data))
    while remaining:
        lpad = addr % _ROW_SIZE
        rpad = _ROW_SIZE - min(lpad + len(remaining), _ROW_SIZE)
        size = _ROW_SIZE - rpad - lpad
        row = remaining[:size]
        hex_part = "".join(f"{b:02x} " for b in row)
        text_part = "".join(_printable(b) for b in row)
        lines.append(
            f"{addr & _ROW_MASK:08x} | "
            f"{' ' * (3 * lpad)}{hex_part}{' ' * (3 * rpad)}"
            f"| {' ' * lpad}{text_part}{' ' * rpad}\n"
        )
        remaining = remaining[size:]
        addr = (addr + size) & 0xFFFFFFFF
    return "".join(lines)


def binstr(value: int, bits: int, low: str = "0", high: str = "1") -> str:
    """Render the low ``bits`` bits of ``value``, most significant first, in bytes."""
    if not 0 < bits <= 32:
        raise ValueError("bits must be between 1 and 32")
    parts = []
    for bitnum in range(bits - 1, -1, -1):
        parts.append(high if value & (1 << bitnum) else low)
        if bitnum % 8 == 0 and bitnum:
            parts.append(" ")
    return "".join(parts)


class ProgressBar:
    """Flasher observer that draws a text progress bar."""

    def __init__(self, out: TextIO | None = None):
        self._out = out
        self._last_ticks = -1

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    def on_status(self, message: str, *args) -> None:
        """Write a printf-style status message."""
        self.out.write(message % args if args else message)

    def on_progress(self, num: int, div: int) -> None:
        """Redraw the bar for ``num`` of ``div`` pages."""
        ticks = num * _BARS // div
        if ticks == self._last_ticks:
            return
        out = self.out
        out.write(
            f"\r[{'=' * ticks}{' ' * (_BARS - ticks)}] "
            f"{num * 100 // div}% ({num}/{div} pages)"
        )
        out.flush()
        self._last_ticks = 0