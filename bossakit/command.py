"""Interactive shell commands that talk to a SAM-BA boot loader.

Commands work against a :class:`CommandContext`, which holds the objects they
drive. Those are duck typed:

* ``samba``: ``connect(port) -> bool``, ``debug`` attribute, ``read(addr, count) -> bytes``,
  ``go(addr)``
* ``port_factory``: ``create(name)`` returning a port object
* ``device``: ``create()``, ``flash`` attribute (``None`` when unsupported)
* ``flash``: ``can_bod()``, ``set_bod(v)``, ``can_bor()``, ``set_bor(v)``, ``set_boot_flash(v)``
* ``flasher``: ``erase(offset)``, ``info()``, ``lock(bits, enable)``
* ``shell``: ``exit_flag`` attribute, ``help()``, ``usage(name)``
"""

from __future__ import annotations

import abc
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Sequence, TextIO

from .textfmt import hexdump

_UINT32_MAX = 0xFFFFFFFF
_LLONG_MAX = (1 << 63) - 1
_LLONG_MIN = -(1 << 63)
_NUMBER = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")


class CommandError(Exception):
    """A command failed; ``str()`` gives the message to show the user."""

    def __init__(self, message: str, command: str | None = None):
        super().__init__(message)
        self.message = message
        self.command = command

    def __str__(self) -> str:
        if self.command is None:
            return self.message
        return f'{self.message}.  Try "help {self.command}".'


def parse_uint32(text: str) -> int:
    """Parse a C-style integer (decimal, 0x hex or 0 octal) in the uint32 range."""
    if text == "":
        return 0
    match = _NUMBER.fullmatch(text)
    if match is None:
        raise CommandError(f'Invalid number "{text}"')
    sign, digits = match.groups()
    if digits[:2].lower() == "0x":
        value = int(digits[2:], 16)
    elif digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits, 10)
    if sign == "-":
        value = -value
    if not _LLONG_MIN <= value <= _LLONG_MAX:
        raise CommandError(f'Invalid number "{text}"')
    if not 0 <= value <= _UINT32_MAX:
        raise CommandError(f'Number "{text}" is out of range')
    return value


def _prefix_choice(text: str, true_word: str, false_word: str, kind: str) -> bool:
    lowered = text.lower()
    if true_word.startswith(lowered):
        return True
    if false_word.startswith(lowered):
        return False
    raise CommandError(f'Invalid {kind} "{text}"')


def parse_bool(text: str) -> bool:
    """Parse "true" or "false", or any case-insensitive prefix of them."""
    return _prefix_choice(text, "true", "false", "boolean")


def parse_state(text: str) -> bool:
    """Parse "enable" or "disable", or any case-insensitive prefix of them."""
    return _prefix_choice(text, "enable", "disable", "state")


@dataclass
class CommandContext:
    """Shared state for the shell commands."""

    samba: Any
    port_factory: Any
    device: Any
    flasher: Any = None
    shell: Any = None
    out: TextIO | None = None
    connected: bool = False
    history: list[str] = field(default_factory=list)
    history_base: int = 1
    unsupported_errors: tuple = ()

    @property
    def stream(self) -> TextIO:
        return self.out if self.out is not None else sys.stdout

    @property
    def flash(self) -> Any:
        return self.device.flash

    def write(self, text: str) -> None:
        self.stream.write(text)

    def require_connected(self) -> None:
        """Raise unless a device is connected."""
        if not self.connected:
            raise CommandError('No device connected.  Use "connect" first.')

    def require_flash(self) -> None:
        """Raise unless a device with supported flash is connected."""
        self.require_connected()
        if self.flash is None:
            raise CommandError("Flash on device is not supported.")

    def create_device(self) -> None:
        """Identify the connected device."""
        try:
            self.device.create()
        except self.unsupported_errors as exc:
            raise CommandError("Device is not supported") from exc

    def disconnect(self) -> None:
        self.connected = False


class Command(abc.ABC):
    """A shell command with a name, one-line help and usage text."""

    name: str = ""
    help: str = ""
    usage: str = ""

    @abc.abstractmethod
    def invoke(self, ctx: CommandContext, argv: Sequence[str]) -> None:
        """Run the command; ``argv[0]`` is the command name."""
        raise NotImplementedError

    def __lt__(self, other: "Command") -> bool:
        return self.name < other.name

    def error(self, message: str) -> CommandError:
        return CommandError(message, self.name)

    def arg_num(self, argv: Sequence[str], num: int) -> None:
        """Raise unless ``argv`` holds exactly ``num`` entries."""
        if len(argv) != num:
            plural = "s" if num > 1 else ""
            raise self.error(f"Command requires {num - 1} argument{plural}")

    def arg_range(self, argv: Sequence[str], low: int, high: int) -> None:
        """Raise unless ``argv`` holds between ``low`` and ``high`` entries."""
        if not low <= len(argv) <= high:
            raise self.error(f"Command requires {low - 1} to {high - 1} arguments")

    def _wrap(self, parser, text: str):
        try:
            return parser(text)
        except CommandError as exc:
            raise self.error(exc.message) from None

    def _uint32(self, text: str) -> int:
        return self._wrap(parse_uint32, text)

    def _bool(self, text: str) -> bool:
        return self._wrap(parse_bool, text)

    def _state(self, text: str) -> bool:
        return self._wrap(parse_state, text)


class CommandBod(Command):
    name = "bod"
    help = "Change the brownout detect flag."
    usage = 'bod [BOOL]\n  BOOL -- boolean value either "true" or "false"'

    def invoke(self, ctx, argv):
        self.arg_num(argv, 2)
        value = self._bool(argv[1])
        ctx.require_flash()
        if not ctx.flash.can_bod():
            raise CommandError("Unsupported on this flash device")
        ctx.flash.set_bod(value)
        ctx.write(f"BOD flag set to {'true' if value else 'false'}\n")


class CommandBootf(Command):
    name = "bootf"
    help = "Change the boot to flash flag."
    usage = 'bootf [BOOL]\n  BOOL -- boolean value either "true" or "false"'

    def invoke(self, ctx, argv):
        self.arg_num(argv, 2)
        value = self._bool(argv[1])
        ctx.require_flash()
        ctx.flash.set_boot_flash(value)
        ctx.write(f"Boot to flash flag set to {'true' if value else 'false'}\n")


class CommandBor(Command):
    name = "bor"
    help = "Change the brownout reset flag."
    usage = 'bor [BOOL]\n  BOOL -- boolean value either "true" or "false"'

    def invoke(self, ctx, argv):
        self.arg_num(argv, 2)
        value = self._bool(argv[1])
        ctx.require_flash()
        if not ctx.flash.can_bor():
            raise CommandError("Unsupported on this flash device")
        ctx.flash.set_bor(value)
        ctx.write(f"BOR flag set to {'true' if value else 'false'}\n")


class CommandConnect(Command):
    name = "connect"
    help = "Connect to device over serial port."
    usage = "connect [SERIAL]\n  SERIAL -- host-specific serial port"

    def invoke(self, ctx, argv):
        self.arg_num(argv, 2)
        port_name = argv[1]
        if not ctx.samba.connect(ctx.port_factory.create(port_name)):
            ctx.connected = False
            raise CommandError(f"No device found on {port_name}")
        ctx.write(f"Connected to device on {port_name}\n")
        ctx.connected = True
        ctx.create_device()


class CommandDebug(Command):
    name = "debug"
    help = "Change the debug state."
    usage = 'debug [STATE]\n  STATE - either "disable" or "enable"'

    def invoke(self, ctx, argv):
        self.arg_num(argv, 2)
        ctx.samba.debug = self._state(argv[1])


class CommandDump(Command):
    name = "dump"
    help = "Dump memory in hexadecimal and ascii."
    usage = (
        "dump [ADDRESS] [COUNT]\n"
        "  ADDRESS -- starting memory address\n"
        "  COUNT -- count of bytes to display"
    )

    def invoke(self, ctx, argv):
        self.arg_num(argv, 3)
        addr = self._uint32(argv[1])
        count = self._uint32(argv[2])
        ctx.require_connected()
        data = ctx.samba.read(addr, count)
        ctx.write(hexdump(addr, data))


class CommandErase(Command):
    name = "erase"
    help = "Erase the flash to the end."
    usage = (
        "erase <offset>"
        "  OFFSET -- (optional) start erase operation at flash OFFSET\n"
        "            OFFSET must be aligned to a flash page boundary"
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 1, 2)
        offset = self._uint32(argv[1]) if len(argv) >= 2 else 0
        ctx.require_flash()
        ctx.flasher.erase(offset)
        ctx.write("Flash is erased\n")


class CommandExit(Command):
    name = "exit"
    help = "Exit the BOSSA shell."
    usage = "exit"

    def invoke(self, ctx, argv):
        self.arg_num(argv, 1)
        ctx.shell.exit_flag = True


class CommandGo(Command):
    name = "go"
    help = "Execute ARM code at address."
    usage = "go [ADDRESS]\n  ADDRESS -- starting memory address of code to execute"

    def invoke(self, ctx, argv):
        self.arg_num(argv, 2)
        addr = self._uint32(argv[1])
        ctx.require_connected()
        shown = f"{addr:#x}" if addr else "0"
        ctx.write(f"Executing code at {shown}\n")
        ctx.samba.go(addr)


class CommandHelp(Command):
    name = "help"
    help = "Display help for a command."
    usage = (
        "help <COMMAND>\n"
        "  COMMAND -- (optional) display detailed usage for this command,\n"
        "             display summary help for all commands if not given"
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 1, 2)
        if len(argv) == 1:
            ctx.shell.help()
        else:
            ctx.shell.usage(argv[1])


class CommandHistory(Command):
    name = "history"
    help = "List the command history."
    usage = "history"

    def invoke(self, ctx, argv):
        self.arg_num(argv, 1)
        ctx.write(f"history_base={ctx.history_base}\n")
        for number, line in enumerate(ctx.history, start=ctx.history_base):
            ctx.write(f"  {number}  {line}\n")


class CommandInfo(Command):
    name = "info"
    help = "Display information about the flash."
    usage = "info"

    def invoke(self, ctx, argv):
        self.arg_num(argv, 1)
        ctx.require_flash()
        text = str(ctx.flasher.info())
        ctx.write(text if text.endswith("\n") else text + "\n")


class CommandLock(Command):
    name = "lock"
    help = "Set lock bits in the flash."
    usage = (
        "lock <BITS>"
        "  BITS -- (optional) comma separated list of bits,"
        "          all bits if not given\n"
    )

    def invoke(self, ctx, argv):
        ctx.require_flash()
        bits = "".join(argv[1:])
        ctx.flasher.lock(bits, True)
        ctx.write(f"Locked regions {bits}\n")