"""
Test command line option parsing
"""

import pytest

from opentmf_utils import __version__
from opentmf_utils.lsopentmf.main import (
    USAGE_TEXT,
    VERSION_TEXT,
    EarlyExit,
    UsageError,
    parse_options,
)


def test_defaults():
    """Test no options"""
    options = parse_options([])
    assert options.devices is False
    assert options.verbose == 0


def test_short_and_long_forms():
    """Test every flag in both spellings"""
    assert parse_options(["-d"]).devices is True
    assert parse_options(["--devices"]).devices is True
    assert parse_options(["-v"]).verbose == 1
    assert parse_options(["--verbose", "--verbose"]).verbose == 2

    # Combined short flags
    options = parse_options(["-dvv"])
    assert options.devices is True
    assert options.verbose == 2

    # Unique prefix of a long option
    assert parse_options(["--dev"]).devices is True


def test_verbose_clamped():
    """Test -v five times equals -v twice"""
    assert parse_options(["-v"] * 5).verbose == 2
    assert parse_options(["-vvvvv"]).verbose == parse_options(["-vv"]).verbose


def test_positional_arguments_ignored():
    """Test extra arguments are accepted"""
    options = parse_options(["extra", "-d", "more"])
    assert options.devices is True


def test_help_and_version():
    """Test -h and -V stop parsing with their text"""
    with pytest.raises(EarlyExit) as exc_info:
        parse_options(["-h"])
    assert exc_info.value.text == USAGE_TEXT

    with pytest.raises(EarlyExit) as exc_info:
        parse_options(["--version"])
    assert exc_info.value.text == VERSION_TEXT
    assert VERSION_TEXT == f"lsopentmf (opentmf-utils) {__version__}\n"

    # First one wins
    with pytest.raises(EarlyExit) as exc_info:
        parse_options(["-d", "-V", "-h"])
    assert exc_info.value.text == VERSION_TEXT


def test_unknown_option():
    """Test unrecognized options are rejected"""
    with pytest.raises(UsageError):
        parse_options(["-x"])

    with pytest.raises(UsageError):
        parse_options(["--all"])

    with pytest.raises(UsageError):
        parse_options(["-d", "--bogus", "-v"])

    # Unknown letter inside a group of short flags
    with pytest.raises(UsageError):
        parse_options(["-dxv"])

    # Ambiguous prefix and value on a flag
    with pytest.raises(UsageError):
        parse_options(["--ver"])
    with pytest.raises(UsageError):
        parse_options(["--devices=yes"])


def test_numeric_option_rejected():
    """Test numeric looking options are unknown options, not arguments"""
    for argv in (["-1"], ["-5"], ["-d", "-1"], ["extra", "-10"]):
        with pytest.raises(UsageError):
            parse_options(argv)


def test_options_processed_in_order():
    """Test the first of an unknown option and -h/-V decides"""
    with pytest.raises(UsageError):
        parse_options(["-x", "-h"])

    with pytest.raises(UsageError):
        parse_options(["--bogus", "-V"])

    with pytest.raises(UsageError):
        parse_options(["-1", "--help"])

    with pytest.raises(EarlyExit) as exc_info:
        parse_options(["-h", "-x"])
    assert exc_info.value.text == USAGE_TEXT

    with pytest.raises(EarlyExit) as exc_info:
        parse_options(["--vers", "--bogus"])
    assert exc_info.value.text == VERSION_TEXT

    # Within one group of short flags too
    with pytest.raises(EarlyExit):
        parse_options(["-dhx"])
    with pytest.raises(UsageError):
        parse_options(["-dxh"])


def test_usage_text():
    """Test usage lists all four options"""
    assert USAGE_TEXT.startswith("Usage: lsopentmf [options]\nList OpenTMF drivers\n")
    for option in ["-d, --devices", "-v, --verbose", "-h, --help", "-V, --version"]:
        assert f"  {option}\n" in USAGE_TEXT
