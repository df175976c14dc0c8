# bossakit

bossakit is a host-side library for tools that talk to microcontrollers
running the SAM-BA boot loader. It holds the command layer of an
interactive flashing shell, a command-line option parser, text formatting
for memory dumps and registers, and background worker threads for flash
jobs. It has no runtime dependencies and needs Python 3.10 or later.

## Modules

- **`bossakit.cmdopts`**: command-line options in the style of GNU
  `getopt_long`. Describe each option with an `Option` (a letter, a long
  name, help text, an `ArgHas` and an `ArgType`). Then hand the options to
  `CmdOpts`. `CmdOpts.parse(argv)` sets each option's `present` and `value`
  and returns the positional arguments. It accepts long-name prefixes,
  bundled short options and `--`. Bad input raises `OptionError`.
  `CmdOpts.usage(out)` writes aligned help lines.
- **`bossakit.textfmt`**: text helpers.
  - `hexdump(addr, data)` returns a hex and ASCII dump with 16 bytes per row.
  - `binstr(value, bits, low, high)` renders the low bits of a value in
    groups of eight, most significant bit first.
  - `ProgressBar` is a flasher observer. It writes status messages and draws
    a 30-column progress bar to a stream, or to stdout.
- **`bossakit.command`**: the shell commands `bod`, `bootf`, `bor`,
  `connect`, `debug`, `dump`, `erase`, `exit`, `go`, `help`, `history`,
  `info` and `lock`.
  - Each is a `Command` subclass with `name`, `help` and `usage`, and an
    `invoke(ctx, argv)` method. Here `argv[0]` is the command name.
  - The commands share a `CommandContext`.
  - They raise `CommandError` on bad arguments or when no device or flash is
    available.
  - `parse_uint32`, `parse_bool` and `parse_state` are the argument parsers
    they use.
- **`bossakit.memory`**: the memory and PIO commands `mrb`, `mrf`, `mrw`,
  `mwb`, `mwf`, `mww` and `pio`.
  - `pio_base_address(family, port)` returns a PIO controller's base
    address for the SAM3U, SAM3N, SAM3S and SAM7 families.
  - It returns `None` for a port the family lacks.
  - It raises `CommandError` for other families.
- **`bossakit.flashcmds`**: the flash commands `read`, `security`,
  `unlock`, `verify`, `write`, `reset` and `options`. `all_commands()`
  returns one instance of every command, sorted by name.
- **`bossakit.worker`**: `WriteThread`, `VerifyThread` and `ReadThread`,
  which are `threading.Thread` subclasses of `WorkerThread`.
  - Each reports `WorkerEvent`s to a `parent` callable. An event's kind is an
    `EventKind`: progress, success, warning or error.
  - `ThreadObserver` turns page progress into progress events.
  - `parse_offset` and `parse_size` parse user-entered numbers. Empty text
    gives 0. Invalid text raises `ValueError`.

## Examples

Formatting memory for display:

```python
from bossakit.textfmt import hexdump, binstr

print(hexdump(0x20000004, b"Hello, world!"))
print(binstr(0xA5, 8, "0", "1"))   # "10100101"
```

Parsing shell arguments:

```python
from bossakit.command import parse_uint32, parse_bool, parse_state, CommandError

parse_uint32("0x400e0c00")   # decimal, 0x hex and leading-0 octal
parse_bool("t")              # any prefix of "true" or "false"
parse_state("dis")           # any prefix of "enable" or "disable"

try:
    parse_uint32("-1")
except CommandError as exc:
    print(exc)               # Number "-1" is out of range
```

Declaring and parsing options:

```python
import sys
from bossakit.cmdopts import ArgHas, ArgType, CmdOpts, Option

offset = Option("o", "offset", "start at flash OFFSET", ArgHas.REQUIRED, ArgType.INT, "OFFSET")
verbose = Option("v", "verbose", "print more")
opts = CmdOpts([offset, verbose])
files = opts.parse(["-v", "--offset=0x2000", "firmware.bin"])
# offset.value == 0x2000, verbose.present is True, files == ["firmware.bin"]
opts.usage(sys.stdout)
```

Running a flash job in the background:

```python
import queue
from bossakit.worker import ReadThread

events = queue.Queue()
job = ReadThread(events.put, flasher_factory, "dump.bin", size=0, offset=0)
job.start()
```

Here `flasher_factory(observer)` must return an object with
`read(path, size, offset)`. The job posts progress events while it runs.
It ends with one success or error event.

## What the package does not do

bossakit holds no serial port access and no SAM-BA protocol. It does not
identify chips and has no flash drivers. The commands and workers drive
objects that you supply: a SAM-BA connection, a port factory, a device, a
flash and a flasher. They reach these through `CommandContext` or through
worker constructor arguments. The module docstrings of
`bossakit.command`, `bossakit.flashcmds` and `bossakit.worker` list the
methods these objects must have.

There is no shell loop that reads lines and dispatches them to commands,
and no installed command-line program or graphical window. Build those on
`all_commands()` and `CommandContext`.