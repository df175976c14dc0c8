"""Command-line option parsing in the style of GNU getopt_long."""

from __future__ import annotations

import enum
import string
from dataclasses import dataclass
from typing import Any, Iterable, Sequence, TextIO

_NAME_WIDTH = 39
_HELP_COLUMN = 24


class ArgHas(enum.Enum):
    """Whether an option takes an argument."""

    NONE = "none"
    OPTIONAL = "optional"
    REQUIRED = "required"


class ArgType(enum.Enum):
    """How an option argument is converted."""

    INT = "int"
    STRING = "string"


class OptionError(ValueError):
    """Raised when the command line cannot be parsed."""


@dataclass
class Option:
    """A single command-line option; ``present`` and ``value`` are set by parsing."""

    letter: str
    name: str
    help: str = ""
    has: ArgHas = ArgHas.NONE
    type: ArgType = ArgType.STRING
    arg_name: str = ""
    value: Any = None
    present: bool = False


def _strtol(text: str) -> int:
    """Convert the leading number in ``text`` as C's strtol with base 0 does."""
    s = text.lstrip()
    sign = 1
    if s and s[0] in "+-":
        if s[0] == "-":
            sign = -1
        s = s[1:]
    if s[:2].lower() == "0x" and len(s) > 2 and s[2] in string.hexdigits:
        base, digits, s = 16, string.hexdigits, s[2:]
    elif s.startswith("0"):
        base, digits = 8, string.octdigits
    else:
        base, digits = 10, string.digits
    end = 0
    while end < len(s) and s[end] in digits:
        end += 1
    if end == 0:
        return 0
    return sign * int(s[:end], base)


class CmdOpts:
    """Parses argument lists against a fixed set of options."""

    def __init__(self, options: Iterable[Option]):
        self._options = list(options)

    @property
    def options(self) -> list[Option]:
        return self._options

    def usage(self, out: TextIO) -> None:
        """Write a help line for every option to ``out``."""
        for opt in self._options:
            if opt.has is ArgHas.OPTIONAL:
                name = f"  -{opt.letter}, --{opt.name}[={opt.arg_name}]"
            elif opt.has is ArgHas.REQUIRED:
                name = f"  -{opt.letter}, --{opt.name}={opt.arg_name}"
            else:
                name = f"  -{opt.letter}, --{opt.name}"
            name = name[:_NAME_WIDTH]
            help_text = ("\n" + " " * _HELP_COLUMN).join(opt.help.split("\n"))
            out.write(f"{name:<23} {help_text}\n")

    def parse(self, argv: Sequence[str]) -> list[str]:
        """Parse ``argv`` (without the program name); return the positional arguments."""
        for opt in self._options:
            opt.present = False

        args = list(argv)
        positional: list[str] = []
        i = 0
        while i < len(args):
            arg = args[i]
            i += 1
            if arg == "--":
                positional.extend(args[i:])
                break
            if arg.startswith("--"):
                i = self._parse_long(arg[2:], args, i)
            elif arg.startswith("-") and len(arg) > 1:
                i = self._parse_short(arg[1:], args, i)
            else:
                positional.append(arg)
        return positional

    def _find_letter(self, letter: str) -> Option:
        for opt in self._options:
            if opt.letter == letter:
                return opt
        raise OptionError(f"invalid option -- '{letter}'")

    def _find_long(self, name: str) -> Option:
        for opt in self._options:
            if opt.name == name:
                return opt
        matches = [opt for opt in self._options if opt.name.startswith(name)]
        if not matches:
            raise OptionError(f"unrecognized option '--{name}'")
        if len(matches) > 1:
            raise OptionError(f"option '--{name}' is ambiguous")
        return matches[0]

    def _parse_long(self, body: str, args: list[str], i: int) -> int:
        name, sep, value = body.partition("=")
        opt = self._find_long(name)
        arg: str | None = value if sep else None
        if opt.has is ArgHas.NONE and sep:
            raise OptionError(f"option '--{opt.name}' doesn't allow an argument")
        if opt.has is ArgHas.REQUIRED and not sep:
            if i >= len(args):
                raise OptionError(f"option '--{opt.name}' requires an argument")
            arg = args[i]
            i += 1
        self._apply(opt, arg)
        return i

    def _parse_short(self, chars: str, args: list[str], i: int) -> int:
        pos = 0
        while pos < len(chars):
            opt = self._find_letter(chars[pos])
            pos += 1
            if opt.has is ArgHas.NONE:
                self._apply(opt, None)
                continue
            rest = chars[pos:]
            if opt.has is ArgHas.REQUIRED and not rest:
                if i >= len(args):
                    raise OptionError(f"option requires an argument -- '{opt.letter}'")
                rest = args[i]
                i += 1
            self._apply(opt, rest or None)
            break
        return i

    @staticmethod
    def _apply(opt: Option, arg: str | None) -> None:
        opt.present = True
        if opt.has is not ArgHas.NONE and arg is not None:
            opt.value = _strtol(arg) if opt.type is ArgType.INT else arg