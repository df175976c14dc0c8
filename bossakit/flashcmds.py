"""Shell commands that work on the whole flash, and the full command set.

Besides what :mod:`bossakit.command` documents, these commands use:

* ``flasher``: ``read(path, count, offset)``, ``write(path, offset)``,
  ``verify(path, offset) -> (ok, page_errors, byte_errors)``,
  ``lock(bits, enable)``
* ``flash``: ``set_security()``, ``write_options()``
* ``device``: ``reset()``
"""

from __future__ import annotations

from .command import (
    Command,
    CommandBod,
    CommandBootf,
    CommandBor,
    CommandConnect,
    CommandDebug,
    CommandDump,
    CommandError,
    CommandErase,
    CommandExit,
    CommandGo,
    CommandHelp,
    CommandHistory,
    CommandInfo,
    CommandLock,
)
from .memory import (
    CommandMrb,
    CommandMrf,
    CommandMrw,
    CommandMwb,
    CommandMwf,
    CommandMww,
    CommandPio,
)


class CommandRead(Command):
    name = "read"
    help = "Read flash into a binary file."
    usage = (
        "read [FILE] <COUNT> <OFFSET>\n"
        "  FILE -- file name on host filesystem\n"
        "  COUNT -- (optional) count of bytes to read, defaults\n"
        "           to entire flash if not given\n"
        "  OFFSET -- (optional) start read operation at flash OFFSET\n"
        "            OFFSET must be aligned to a flash page boundary"
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 2, 4)
        count = self._uint32(argv[2]) if len(argv) >= 3 else 0
        offset = self._uint32(argv[3]) if len(argv) >= 4 else 0
        ctx.require_flash()
        ctx.write(f"count:{count} offset:{offset}\n")
        ctx.flasher.read(argv[1], count, offset)
        ctx.write("\nRead successful\n")


class CommandSecurity(Command):
    name = "security"
    help = "Enable the security flag."
    usage = "security"

    def invoke(self, ctx, argv):
        self.arg_num(argv, 1)
        ctx.require_flash()
        ctx.flash.set_security()


class CommandUnlock(Command):
    name = "unlock"
    help = "Clear lock bits in the flash."
    usage = (
        "unlock <BITS>"
        "  BITS -- (optional) comma separated list of bits,"
        "          all bits if not given\n"
    )

    def invoke(self, ctx, argv):
        ctx.require_flash()
        bits = "".join(argv[1:])
        ctx.flasher.lock(bits, False)
        ctx.write(f"Unlocked regions {bits}")


class CommandVerify(Command):
    name = "verify"
    help = "Verify binary file with the flash."
    usage = (
        "verify [FILE] <OFFSET>\n"
        "  FILE -- file name on host filesystem\n"
        "  OFFSET -- (optional) start verify operation at flash OFFSET\n"
        "            OFFSET must be aligned to a flash page boundary"
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 2, 3)
        offset = self._uint32(argv[2]) if len(argv) >= 3 else 0
        ctx.require_flash()
        ok, page_errors, byte_errors = ctx.flasher.verify(argv[1], offset)
        ctx.write("\n")
        if not ok:
            raise CommandError(
                f"Verify failed\nPage errors: {page_errors}\nByte errors: {byte_errors}"
            )
        ctx.write("Verify successful\n")


class CommandWrite(Command):
    name = "write"
    help = "Write binary file into flash."
    usage = (
        "write [FILE] <OFFSET>\n"
        "  FILE -- file name on host filesystem\n"
        "  OFFSET -- (optional) start write operation at flash OFFSET\n"
        "            OFFSET must be aligned to a flash page boundary"
    )

    def invoke(self, ctx, argv):
        self.arg_range(argv, 2, 3)
        offset = self._uint32(argv[2]) if len(argv) >= 3 else 0
        ctx.require_flash()
        ctx.flasher.write(argv[1], offset)
        ctx.write("\nWrite successful\n")


class CommandReset(Command):
    name = "reset"
    help = "Reset the CPU. (only for supported CPU)"
    usage = "reset\n"

    def invoke(self, ctx, argv):
        ctx.device.reset()


class CommandOptions(Command):
    name = "options"
    help = "Write options to flash."
    usage = "options\n"

    def invoke(self, ctx, argv):
        ctx.flash.write_options()


_COMMAND_CLASSES = (
    CommandBod,
    CommandBootf,
    CommandBor,
    CommandConnect,
    CommandDebug,
    CommandDump,
    CommandErase,
    CommandExit,
    CommandGo,
    CommandHelp,
    CommandHistory,
    CommandInfo,
    CommandLock,
    CommandMrb,
    CommandMrf,
    CommandMrw,
    CommandMwb,
    CommandMwf,
    CommandMww,
    CommandPio,
    CommandRead,
    CommandSecurity,
    CommandUnlock,
    CommandVerify,
    CommandWrite,
    CommandReset,
    CommandOptions,
)


def all_commands() -> list[Command]:
    """Return one instance of every shell command, sorted by name."""
    return sorted(cls() for cls in _COMMAND_CLASSES)