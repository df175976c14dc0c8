"""Background workers that write, verify and read flash.

Workers report through a ``parent`` callable that receives
:class:`WorkerEvent` objects; passing ``queue.Queue().put`` hands them to
another thread. The objects they drive are duck typed:

* ``device.flash``: ``erase_all(offset)``, ``erase_auto(enable)``,
  ``can_boot_flash()``, ``set_boot_flash(v)``, ``can_bod()``, ``set_bod(v)``,
  ``can_bor()``, ``set_bor(v)``, ``lock_regions()`` (count),
  ``set_lock_regions(flags)``, ``set_security()``, ``write_options()``
* ``flasher_factory(observer)`` returns a flasher with ``write(path, offset)``,
  ``verify(path, offset) -> (ok, page_errors, byte_errors)`` and
  ``read(path, size, offset)``
"""

from __future__ import annotations

import enum
import re
import threading
from dataclasses import dataclass
from typing import Any, Callable

_UINT32_MASK = 0xFFFFFFFF
_SIZE_MASK = 0xFFFFFFFFFFFFFFFF
_NUMBER = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")


def _parse_c_integer(text: str, message: str) -> int:
    if text == "":
        return 0
    match = _NUMBER.fullmatch(text)
    if match is None:
        raise ValueError(message)
    sign, digits = match.groups()
    if digits[:2].lower() == "0x":
        value = int(digits[2:], 16)
    elif digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits, 10)
    return -value if sign == "-" else value


def parse_offset(text: str) -> int:
    """Parse a flash offset; empty text means 0."""
    return _parse_c_integer(text, "Flash offset is invalid") & _UINT32_MASK


def parse_size(text: str) -> int:
    """Parse a read size; empty text means 0 (the whole flash)."""
    return _parse_c_integer(text, "Read size is invalid") & _SIZE_MASK


class EventKind(enum.Enum):
    """What a worker is reporting."""

    PROGRESS = "progress"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class WorkerEvent:
    """A report from a worker to its parent."""

    kind: EventKind
    message: str
    pos: int = 0


class WorkerThread(threading.Thread):
    """Base class for flash workers that post events to a parent."""

    success_message = ""

    def __init__(self, parent: Callable[[WorkerEvent], Any]):
        super().__init__(daemon=True)
        self._parent = parent
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        """Ask the worker to stop."""
        self._stopped = True

    def _post(self, kind: EventKind, message: str, pos: int = 0) -> None:
        self._parent(WorkerEvent(kind, message, pos))

    def progress(self, message: str, pos: int) -> None:
        self._post(EventKind.PROGRESS, message, pos)

    def success(self, message: str) -> None:
        self._post(EventKind.SUCCESS, message)

    def warning(self, message: str) -> None:
        self._post(EventKind.WARNING, message)

    def error(self, message: str) -> None:
        self._post(EventKind.ERROR, message)

    def run(self) -> None:
        """Do the work and post exactly one final event."""
        try:
            finished = self._work()
        except Exception as exc:  # every failure is reported to the parent
            self.error(str(exc))
            return
        if finished:
            self.success(self.success_message)

    def _work(self) -> bool:
        """Perform the operation; return False if a warning was already posted."""
        raise NotImplementedError


class ThreadObserver:
    """Flasher observer that turns page progress into worker events."""

    def __init__(self, thread: WorkerThread, operation: str):
        self._thread = thread
        self._operation = operation
        self._last_percent = -1
        self.status = ""

    def on_status(self, message: str, *args) -> None:
        """Keep the latest status text; workers post no event for it."""
        self.status = message % args if args else message

    def on_progress(self, num: int, div: int) -> None:
        percent = num * 100 // div
        if percent != self._last_percent:
            self._thread.progress(f"{self._operation} page {num} ({percent}%)", percent)
            self._last_percent = percent


class WriteThread(WorkerThread):
    """Writes a file into flash and then applies the option flags."""

    success_message = "Write completed successfully"

    def __init__(
        self,
        parent,
        device,
        flasher_factory,
        filename: str,
        erase_all: bool = False,
        boot_flash: bool = False,
        bod: bool = False,
        bor: bool = False,
        lock: bool = False,
        security: bool = False,
        offset: int = 0,
    ):
        super().__init__(parent)
        self._device = device
        self._flasher_factory = flasher_factory
        self.filename = filename
        self.erase_all = erase_all
        self.boot_flash = boot_flash
        self.bod = bod
        self.bor = bor
        self.lock = lock
        self.security = security
        self.offset = offset

    def _work(self) -> bool:
        flash = self._device.flash
        flasher = self._flasher_factory(ThreadObserver(self, "Writing"))
        if self.erase_all:
            flash.erase_all(self.offset)
            flash.erase_auto(False)
        else:
            flash.erase_auto(True)

        flasher.write(self.filename, self.offset)

        if flash.can_boot_flash():
            flash.set_boot_flash(self.boot_flash)
        if flash.can_bod():
            flash.set_bod(self.bod)
        if flash.can_bor():
            flash.set_bor(self.bor)
        if self.lock:
            flash.set_lock_regions([True] * flash.lock_regions())
        if self.security:
            flash.set_security()
        flash.write_options()
        return True


class VerifyThread(WorkerThread):
    """Compares a file with the flash contents."""

    success_message = "Verify successful\n"

    def __init__(self, parent, flasher_factory, filename: str, offset: int = 0):
        super().__init__(parent)
        self._flasher_factory = flasher_factory
        self.filename = filename
        self.offset = offset

    def _work(self) -> bool:
        flasher = self._flasher_factory(ThreadObserver(self, "Verifying"))
        ok, page_errors, byte_errors = flasher.verify(self.filename, self.offset)
        if not ok:
            self.warning(
                f"Verify failed\nPage errors: {page_errors}\nByte errors: {byte_errors}\n"
            )
            return False
        return True


class ReadThread(WorkerThread):
    """Reads flash into a file."""

    success_message = "Read completed successfully"

    def __init__(self, parent, flasher_factory, filename: str, size: int = 0, offset: int = 0):
        super().__init__(parent)
        self._flasher_factory = flasher_factory
        self.filename = filename
        self.size = size
        self.offset = offset

    def _work(self) -> bool:
        flasher = self._flasher_factory(ThreadObserver(self, "Reading"))
        flasher.read(self.filename, self.size, self.offset)
        return True