"""Shell commands that read and write target memory and drive PIO lines."""

from __future__ import annotations

from typing import Any, Callable

from .command import Command, CommandError
from .textfmt import binstr

_UINT32_MASK = 0xFFFFFFFF
_CHUNK = 1024
_ALL_LINES = 0xFFFFFFFF

_PIO_PER = 0x0
_PIO_PDR = 0x4
_PIO_PSR = 0x8
_PIO_OER = 0x10
_PIO_ODR = 0x14
_PIO_OSR = 0x18
_PIO_SODR = 0x30
_PIO_CODR = 0x34
_PIO_ODSR = 0x38
_PIO_PDSR = 0x3C
_PIO_MDER = 0x50
_PIO_MDDR = 0x54
_PIO_MDSR = 0x58
_PIO_PUDR = 0x60
_PIO_PUER = 0x64
_PIO_PUSR = 0x68
_PIO_ABSR = 0x70

_SAM3U_PORTS = {"a": 0x400E0C00, "b": 0x400E0E00, "c": 0x400E1000}
_SAM3NS_PORTS = {"a": 0x400E0E00, "b": 0x400E1000, "c": 0x400E1200}
_SAM7_PORTS = {"a": 0xFFFFF400, "b": 0xFFFFF600, "c": 0xFFFFF800}

_PIO_PORTS = {
    "SAM3U": _SAM3U_PORTS,
    "SAM3N": _SAM3NS_PORTS,
    "SAM3S": _SAM3NS_PORTS,
    "SAM7S": _SAM7_PORTS,
    "SAM7SE": _SAM7_PORTS,
    "SAM7X": _SAM7_PORTS,
    "SAM7XC": _SAM7_PORTS,
    "SAM7L": _SAM7_PORTS,
}


def _family_name(family: Any) -> str:
    name = getattr(family, "name", family)
    return str(name).upper().removeprefix("FAMILY_")


def pio_base_address(family: Any, port: str) -> int | None:
    """Return the PIO controller base address for ``port`` on ``family``.

    Returns ``None`` when the family has no such port and raises
    :class:`CommandError` when the family has no known PIO layout.
    """
    ports = _PIO_PORTS.get(_family_name(family))
    if ports is None:
        raise CommandError("Unsupported device")
    return ports.get(port.lower())


def _matches(text: str, word: str) -> bool:
    """True when ``text`` is a case-insensitive prefix of ``word``."""
    return word.startswith(text.lower())


class _Prompting(Command):
    """Command that may read further values interactively."""

    def __init__(self, prompt: Callable[[str], str] = input):
        self._prompt = prompt

    def _values(self, argv):
        """Yield the value from argv, or values typed at the prompt."""
        if len(argv) >= 3:
            yield self._uint32(argv[2])
            return
        while True:
            try:
                text = self._prompt("? ")
            except EOFError:
                return
            if text == "":
                return
            yield self._uint32(text)


class CommandMrb(Command):
    name = "mrb"
    help = "Read bytes from memory."
    usage = (
        "mrb [ADDRESS] <COUNT>\n"
        "  ADDRESS -- starting memory address\n"
        "  COUNT -- (optional) count of bytes to display, 1 if not given"
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 2, 3)
        addr = self._uint32(argv[1])
        count = self._uint32(argv[2]) if len(argv) >= 3 else 1
        ctx.require_connected()
        for _ in range(count):
            value = ctx.samba.read_byte(addr)
            ctx.write(f"{addr:08x} : {value:02x}  {binstr(value, 8)}\n")
            addr = (addr + 1) & _UINT32_MASK


class CommandMrf(Command):
    name = "mrf"
    help = "Read memory to file."
    usage = (
        "mrf [ADDRESS] [COUNT] [FILE]\n"
        "  ADDRESS -- memory address to read\n"
        "  COUNT -- count of bytes to read\n"
        "  FILE -- file name on host filesystem to write"
    )

    def invoke(self, ctx, argv):
        self.arg_num(argv, 4)
        addr = self._uint32(argv[1])
        count = self._uint32(argv[2])
        ctx.require_connected()
        with open(argv[3], "wb") as outfile:
            while count > 0:
                size = min(count, _CHUNK)
                data = bytes(ctx.samba.read(addr, size))
                written = outfile.write(data)
                if written != size:
                    raise OSError("Short write to file")
                addr = (addr + written) & _UINT32_MASK
                count -= written


class CommandMrw(Command):
    name = "mrw"
    help = "Read words from memory."
    usage = (
        "mrw [ADDRESS] <COUNT>\n"
        "  ADDRESS -- starting memory address\n"
        "  COUNT -- (optional) count of words to display, 1 if not given"
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 2, 3)
        addr = self._uint32(argv[1])
        count = self._uint32(argv[2]) if len(argv) >= 3 else 1
        ctx.require_connected()
        for _ in range(count):
            value = ctx.samba.read_word(addr)
            ctx.write(f"{addr:08x} : {value:08x}  {binstr(value, 32)}\n")
            addr = (addr + 4) & _UINT32_MASK


class CommandMwb(_Prompting):
    name = "mwb"
    help = "Write bytes to memory."
    usage = (
        "mwb [ADDRESS] <VALUE>\n"
        "  ADDRESS -- starting memory address\n"
        "  VALUE -- (optional) value of byte to write, if not given"
        "           command will repeatedly prompt for input"
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 2, 3)
        addr = self._uint32(argv[1])
        values = self._values(argv)
        if len(argv) >= 3:
            values = iter(list(values))
        ctx.require_connected()
        for value in values:
            if value > 255:
                raise self.error("Value out of range")
            ctx.samba.write_byte(addr, value)
            ctx.write(f"{addr:08x} : {value:02x}\n")
            addr = (addr + 1) & _UINT32_MASK


class CommandMwf(Command):
    name = "mwf"
    help = "Write memory from file."
    usage = (
        "mwf [ADDRESS] [FILE]\n"
        "  ADDRESS -- memory address to write\n"
        "  FILE -- file name on host filesystem to read"
    )

    def invoke(self, ctx, argv):
        self.arg_num(argv, 3)
        addr = self._uint32(argv[1])
        ctx.require_connected()
        with open(argv[2], "rb") as infile:
            infile.seek(0, 2)
            fsize = infile.tell()
            infile.seek(0)
            pos = 0
            while pos < fsize:
                chunk = infile.read(min(fsize, _CHUNK))
                if not chunk:
                    break
                ctx.samba.write(addr, chunk)
                pos += len(chunk)
        ctx.write(f"Wrote {fsize} bytes to address {addr:08x}\n")


class CommandMww(_Prompting):
    name = "mww"
    help = "Write words to memory."
    usage = (
        "mww [ADDRESS] <VALUE>\n"
        "  ADDRESS -- starting memory address\n"
        "  VALUE -- (optional) value of word to write, if not given"
        "           command will repeatedly prompt for input"
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 2, 3)
        addr = self._uint32(argv[1])
        values = self._values(argv)
        if len(argv) >= 3:
            values = iter(list(values))
        ctx.require_connected()
        for value in values:
            ctx.samba.write_word(addr, value)
            ctx.write(f"{addr:08x} : {value:08x}\n")
            addr = (addr + 1) & _UINT32_MASK


class CommandPio(Command):
    name = "pio"
    help = "Parallel input/output operations."
    usage = (
        "pio [LINE] [OPERATION]\n"
        "  LINE -- PIO line name (i.e. pa28, pc5, etc.)\n"
        "          All lines if only port given (i.e. pa, pc, etc.)\n"
        "  OPERATION -- operation to perform on the PIO line.\n"
        "    status -- show the line status\n"
        "    high -- drive the output high\n"
        "    low -- drive the output low\n"
        "    read -- read the input level\n"
        "    input -- make the line an input\n"
        "    peripheral [AB] -- set the line to a peripheral\n"
        '      [AB] -- peripheral "a" or "b"\n'
        "    multidrive [STATE] -- set the multi-drive state\n"
        '      STATE - either "disable" or "enable"\n'
        "    pullup [STATE] -- set the pull-up state\n"
        '      STATE - either "disable" or "enable"'
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 3, 4)
        ctx.require_connected()

        line_name = argv[1]
        if len(line_name) < 2 or line_name[0].lower() != "p":
            raise self.error("Invalid PIO line name")
        if len(line_name) == 2:
            line = _ALL_LINES
        else:
            number = self._uint32(line_name[2:])
            if number >= 32:
                raise self.error("Invalid PIO line number")
            line = 1 << number

        addr = pio_base_address(ctx.device.family, line_name[1])
        if addr is None:
            raise CommandError(f'Invalid PIO line "{line_name}"')

        samba = ctx.samba
        op = argv[2]
        if _matches(op, "status"):
            self._status(ctx, addr, line)
        elif _matches(op, "high"):
            samba.write_word(addr + _PIO_SODR, line)
            samba.write_word(addr + _PIO_OER, line)
            samba.write_word(addr + _PIO_PER, line)
            ctx.write(f"{line_name} is high output\n")
        elif _matches(op, "low"):
            samba.write_word(addr + _PIO_CODR, line)
            samba.write_word(addr + _PIO_OER, line)
            samba.write_word(addr + _PIO_PER, line)
            ctx.write(f"{line_name} is low output\n")
        elif _matches(op, "read"):
            reg = samba.read_word(addr + _PIO_PDSR)
            ctx.write(f"{line_name} is {'high' if reg & line else 'low'}\n")
        elif _matches(op, "input"):
            samba.write_word(addr + _PIO_ODR, line)
            samba.write_word(addr + _PIO_PER, line)
            ctx.write(f"{line_name} is an input\n")
        elif _matches(op, "peripheral"):
            self.arg_num(argv, 4)
            reg = samba.read_word(addr + _PIO_ABSR)
            choice = argv[3].lower()
            if choice == "a":
                reg &= ~line & _UINT32_MASK
            elif choice == "b":
                reg |= line
            else:
                raise self.error('Peripheral must be "a" or "b"')
            samba.write_word(addr + _PIO_ABSR, reg)
            samba.write_word(addr + _PIO_PDR, line)
            ctx.write(f"{line_name} set to peripheral {argv[3]}\n")
        elif _matches(op, "pullup"):
            self.arg_num(argv, 4)
            state = self._state(argv[3])
            samba.write_word(addr + (_PIO_PUER if state else _PIO_PUDR), line)
            ctx.write(f"{line_name} pullup is {argv[3]}\n")
        elif _matches(op, "multidrive"):
            self.arg_num(argv, 4)
            state = self._state(argv[3])
            samba.write_word(addr + (_PIO_MDER if state else _PIO_MDDR), line)
            ctx.write(f"{line_name} multidrive is {argv[3]}\n")
        else:
            raise CommandError("Invalid PIO operation")

    @staticmethod
    def _status(ctx, addr: int, line: int) -> None:
        read = ctx.samba.read_word
        if line != _ALL_LINES:
            rows = [
                ("PIO Mode      ", _PIO_PSR, "disable", "enable"),
                ("Direction     ", _PIO_OSR, "input", "output"),
                ("Input Level   ", _PIO_PDSR, "low", "high"),
                ("Output Level  ", _PIO_ODSR, "low", "high"),
                ("Multi-Drive   ", _PIO_MDSR, "disable", "enable"),
                ("Pull-Up       ", _PIO_PUSR, "enable", "disable"),
                ("Peripheral    ", _PIO_ABSR, "A", "B"),
            ]
            for label, offset, low, high in rows:
                reg = read(addr + offset)
                ctx.write(f"{label}: {high if reg & line else low}\n")
            return
        ctx.write("                3      2 2      1 1\n")
        ctx.write("                1      4 3      6 5      8 7      0\n")
        rows = [
            ("PIO Mode      ", _PIO_PSR, "D", "E"),
            ("Direction     ", _PIO_OSR, "I", "O"),
            ("Input Level   ", _PIO_PDSR, "L", "H"),
            ("Output Level  ", _PIO_ODSR, "L", "H"),
            ("Multi-Drive   ", _PIO_MDSR, "D", "E"),
            ("Pull-Up       ", _PIO_PUSR, "E", "D"),
            ("Peripheral    ", _PIO_ABSR, "A", "B"),
        ]
        for label, offset, low, high in rows:
            reg = read(addr + offset)
            ctx.write(f"{label}: {binstr(reg, 32, low, high)}\n")