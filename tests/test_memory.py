import io

import pytest

from bossakit.command import CommandContext, CommandError
from bossakit.memory import (
    CommandMrb,
    CommandMrf,
    CommandMrw,
    CommandMwb,
    CommandMwf,
    CommandMww,
    CommandPio,
    pio_base_address,
)
from bossakit.textfmt import binstr


class FakeSamba:
    def __init__(self):
        self.mem = {}
        self.word_writes = []

    def read_byte(self, addr):
        return self.mem.get(addr, 0)

    def write_byte(self, addr, value):
        self.mem[addr] = value

    def read_word(self, addr):
        return int.from_bytes(bytes(self.read_byte(addr + i) for i in range(4)), "little")

    def write_word(self, addr, value):
        self.word_writes.append((addr, value))
        for i, b in enumerate(value.to_bytes(4, "little")):
            self.mem[addr + i] = b

    def read(self, addr, count):
        return bytes(self.read_byte(addr + i) for i in range(count))

    def write(self, addr, data):
        for i, b in enumerate(data):
            self.mem[addr + i] = b


class FakeDevice:
    def __init__(self, family="SAM7S"):
        self.family = family
        self.flash = None


def make_ctx(family="SAM7S", connected=True):
    return CommandContext(
        samba=FakeSamba(),
        port_factory=None,
        device=FakeDevice(family),
        out=io.StringIO(),
        connected=connected,
    )


def test_pio_base_address_source_constants():
    assert pio_base_address("SAM3U", "a") == 0x400E0C00
    assert pio_base_address("SAM7S", "c") == 0xFFFFF800
    assert pio_base_address("FAMILY_SAM3S", "B") == 0x400E1000


def test_pio_base_address_unknown_port_and_family():
    assert pio_base_address("SAM7X", "z") is None
    with pytest.raises(CommandError):
        pio_base_address("SAMD21", "a")


def test_mrb_prints_byte_and_bits():
    ctx = make_ctx()
    ctx.samba.mem[0x100] = 0xA5
    CommandMrb().invoke(ctx, ["mrb", "0x100"])
    assert ctx.out.getvalue() == f"00000100 : a5  {binstr(0xA5, 8)}\n"


def test_mrw_steps_by_four():
    ctx = make_ctx()
    ctx.samba.write_word(0x200, 0x12345678)
    CommandMrw().invoke(ctx, ["mrw", "0x200", "2"])
    lines = ctx.out.getvalue().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("00000200 : 12345678")
    assert lines[1].startswith("00000204 : 00000000")


def test_mww_writes_given_value():
    ctx = make_ctx()
    CommandMww().invoke(ctx, ["mww", "0x300", "0xdeadbeef"])
    assert ctx.samba.read_word(0x300) == 0xDEADBEEF


def test_mww_prompts_until_empty_input():
    ctx = make_ctx()
    answers = iter(["1", "2", ""])
    CommandMww(prompt=lambda _: next(answers)).invoke(ctx, ["mww", "0x10"])
    assert [addr for addr, _ in ctx.samba.word_writes] == [0x10, 0x11]


def test_mwb_rejects_large_value():
    ctx = make_ctx()
    with pytest.raises(CommandError, match="Value out of range"):
        CommandMwb().invoke(ctx, ["mwb", "0x10", "256"])


def test_mwb_writes_byte():
    ctx = make_ctx()
    CommandMwb().invoke(ctx, ["mwb", "0x10", "0x7f"])
    assert ctx.samba.mem[0x10] == 0x7F


def test_mwf_then_mrf_round_trip(tmp_path):
    data = bytes(range(200))
    src = tmp_path / "in.bin"
    dst = tmp_path / "out.bin"
    src.write_bytes(data)
    ctx = make_ctx()
    CommandMwf().invoke(ctx, ["mwf", "0x2000", str(src)])
    CommandMrf().invoke(ctx, ["mrf", "0x2000", str(len(data)), str(dst)])
    assert dst.read_bytes() == data
    assert "Wrote 200 bytes" in ctx.out.getvalue()


def test_memory_commands_require_connection():
    ctx = make_ctx(connected=False)
    with pytest.raises(CommandError, match="No device connected"):
        CommandMrb().invoke(ctx, ["mrb", "0"])


def test_mrb_wrong_argument_count():
    ctx = make_ctx()
    with pytest.raises(CommandError, match="help mrb"):
        CommandMrb().invoke(ctx, ["mrb"])


def test_pio_high_writes_registers():
    ctx = make_ctx("SAM7S")
    CommandPio().invoke(ctx, ["pio", "pa5", "high"])
    base = 0xFFFFF400
    assert ctx.samba.word_writes == [
        (base + 0x30, 1 << 5),
        (base + 0x10, 1 << 5),
        (base + 0x0, 1 << 5),
    ]
    assert ctx.out.getvalue() == "pa5 is high output\n"


def test_pio_read_reports_level():
    ctx = make_ctx("SAM7S")
    ctx.samba.write_word(0xFFFFF400 + 0x3C, 1 << 3)
    CommandPio().invoke(ctx, ["pio", "pa3", "read"])
    assert ctx.out.getvalue() == "pa3 is high\n"


def test_pio_peripheral_b_sets_bit():
    ctx = make_ctx("SAM3U")
    CommandPio().invoke(ctx, ["pio", "pb2", "per", "b"])
    base = 0x400E0E00
    assert ctx.samba.read_word(base + 0x70) == 1 << 2


def test_pio_invalid_names():
    ctx = make_ctx()
    with pytest.raises(CommandError, match="Invalid PIO line name"):
        CommandPio().invoke(ctx, ["pio", "x1", "read"])
    with pytest.raises(CommandError, match="Invalid PIO line number"):
        CommandPio().invoke(ctx, ["pio", "pa32", "read"])
    with pytest.raises(CommandError, match="Invalid PIO operation"):
        CommandPio().invoke(ctx, ["pio", "pa1", "bogus"])


def test_pio_unsupported_family():
    ctx = make_ctx("SAMD21")
    with pytest.raises(CommandError, match="Unsupported device"):
        CommandPio().invoke(ctx, ["pio", "pa1", "read"])