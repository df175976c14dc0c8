import io

import pytest

from bossakit.cmdopts import ArgHas, ArgType, CmdOpts, Option, OptionError


def make_opts():
    return [
        Option("e", "erase", "erase the entire flash"),
        Option("w", "write", "write FILE to the flash"),
        Option("o", "offset", "start at OFFSET", ArgHas.REQUIRED, ArgType.INT, "OFFSET", 0),
        Option("p", "port", "use serial PORT", ArgHas.REQUIRED, ArgType.STRING, "PORT"),
        Option("i", "info", "display info", ArgHas.OPTIONAL, ArgType.STRING, "WHAT"),
        Option("R", "reset", "reset CPU\nafter programming"),
    ]


def by_letter(opts, letter):
    return next(o for o in opts if o.letter == letter)


def test_short_flags_grouped():
    opts = make_opts()
    rest = CmdOpts(opts).parse(["-ew", "file.bin"])
    assert by_letter(opts, "e").present
    assert by_letter(opts, "w").present
    assert not by_letter(opts, "R").present
    assert rest == ["file.bin"]


def test_long_option_with_int_value_hex():
    opts = make_opts()
    CmdOpts(opts).parse(["--offset=0x2000"])
    offset = by_letter(opts, "o")
    assert offset.present
    assert offset.value == 0x2000


def test_required_argument_from_next_word():
    opts = make_opts()
    rest = CmdOpts(opts).parse(["-p", "ttyACM0", "--offset", "010", "x"])
    assert by_letter(opts, "p").value == "ttyACM0"
    assert by_letter(opts, "o").value == 0o10
    assert rest == ["x"]


def test_attached_short_argument():
    opts = make_opts()
    CmdOpts(opts).parse(["-o4096"])
    assert by_letter(opts, "o").value == 4096


def test_int_argument_is_lenient_like_strtol():
    opts = make_opts()
    CmdOpts(opts).parse(["-o", "12abc"])
    assert by_letter(opts, "o").value == 12
    CmdOpts(opts).parse(["-o", "junk"])
    assert by_letter(opts, "o").value == 0


def test_optional_argument_only_when_attached():
    opts = make_opts()
    rest = CmdOpts(opts).parse(["-i", "later"])
    info = by_letter(opts, "i")
    assert info.present
    assert info.value is None
    assert rest == ["later"]
    CmdOpts(opts).parse(["--info=flash"])
    assert info.value == "flash"


def test_long_prefix_abbreviation():
    opts = make_opts()
    CmdOpts(opts).parse(["--era"])
    assert by_letter(opts, "e").present


def test_permutes_options_after_positionals():
    opts = make_opts()
    rest = CmdOpts(opts).parse(["a", "-e", "b"])
    assert rest == ["a", "b"]
    assert by_letter(opts, "e").present


def test_double_dash_ends_options():
    opts = make_opts()
    rest = CmdOpts(opts).parse(["--", "-e"])
    assert rest == ["-e"]
    assert not by_letter(opts, "e").present


def test_present_is_reset_on_each_parse():
    opts = make_opts()
    parser = CmdOpts(opts)
    parser.parse(["-e"])
    parser.parse([])
    assert not by_letter(opts, "e").present


@pytest.mark.parametrize(
    "argv",
    [["-z"], ["--bogus"], ["-o"], ["--port"], ["--erase=yes"]],
)
def test_invalid_command_lines_raise(argv):
    with pytest.raises(OptionError):
        CmdOpts(make_opts()).parse(argv)


def test_ambiguous_prefix_raises():
    opts = [Option("a", "alpha"), Option("b", "alps")]
    with pytest.raises(OptionError):
        CmdOpts(opts).parse(["--al"])


def test_usage_layout():
    out = io.StringIO()
    CmdOpts(make_opts()).usage(out)
    lines = out.getvalue().split("\n")
    assert lines[0].startswith("  -e, --erase ")
    assert lines[0][24:] == "erase the entire flash"
    offset_line = next(line for line in lines if "--offset" in line)
    assert offset_line.startswith("  -o, --offset=OFFSET")
    info_line = next(line for line in lines if "--info" in line)
    assert info_line.startswith("  -i, --info[=WHAT]")
    reset_index = next(n for n, line in enumerate(lines) if "--reset" in line)
    assert lines[reset_index][24:] == "reset CPU"
    assert lines[reset_index + 1] == " " * 24 + "after programming"


def test_usage_long_name_is_truncated():
    out = io.StringIO()
    opt = Option("x", "y" * 60, "help text")
    CmdOpts([opt]).usage(out)
    line = out.getvalue().rstrip("\n")
    assert line.endswith(" help text")
    assert len(line) == 39 + 1 + len("help text")