"""
Test the lsopentmf entry point end to end
"""

import copy
import io

import pytest

from opentmf_utils import __version__
from opentmf_utils.exceptions import Status
from opentmf_utils.lsopentmf import main as lsopentmf
from opentmf_utils.lsopentmf.main import USAGE_TEXT, main


def run_main(argv):
    stdout, stderr = io.StringIO(), io.StringIO()
    status = main(argv, stdout=stdout, stderr=stderr)
    return status, stdout.getvalue(), stderr.getvalue()


@pytest.fixture
def no_registry(monkeypatch):
    """Fail the test if the backend registry is touched"""
    def forbidden():
        raise AssertionError("registry must not be used")
    monkeypatch.setattr(lsopentmf, "get_registry", forbidden)


def test_help(no_registry):
    """Test -h prints usage and exits 0 without touching the registry"""
    status, out, err = run_main(["-h"])

    assert status == 0
    assert out == USAGE_TEXT
    assert err == ""


def test_version(no_registry):
    """Test -V prints the version line only"""
    status, out, err = run_main(["--version", "-d"])

    assert status == 0
    assert out == f"lsopentmf (opentmf-utils) {__version__}\n"
    assert err == ""


def test_unknown_option(no_registry):
    """Test an unknown option prints usage and exits 1"""
    status, out, err = run_main(["-d", "--frobnicate"])

    assert status == 1
    assert out == USAGE_TEXT


@pytest.mark.parametrize("argv", [["-1"], ["-x", "-h"], ["--bogus", "-V"], ["-5", "-d"]])
def test_unknown_option_comes_first(no_registry, argv):
    """Test an unknown option before -h/-V, or a numeric one, exits 1 with usage"""
    status, out, err = run_main(argv)

    assert status == 1
    assert out == USAGE_TEXT
    assert err == ""


def test_help_before_unknown_option(no_registry):
    """Test -h before an unknown option still prints usage and exits 0"""
    status, out, err = run_main(["-h", "-x"])

    assert status == 0
    assert out == USAGE_TEXT
    assert err == ""


def test_list_with_mock_backend(mock_backend):
    """Test a full run against a YAML registry"""
    mock_backend()
    status, out, err = run_main(["-d"])

    assert status == 0
    assert out == (
        "usbtmc\n"
        "  /0957:1796/MY52012345\n"
        "  /1ab1:04ce/DS1ZA1234\n"
        "vxi11\n"
        "gpib\n"
    )
    assert err == ""


def test_verbose_repeated(mock_backend):
    """Test -v five times equals -v twice"""
    mock_backend()
    _, twice, _ = run_main(["-vv", "-d"])
    _, five_times, _ = run_main(["-v", "-v", "-v", "-v", "-v", "-d"])

    assert five_times == twice
    assert twice.startswith("Driver: usbtmc\n")


def test_driver_list_failure(mock_backend):
    """Test a failing driver list exits 1 after one error line"""
    mock_backend({"drivers": [], "driver_list_status": int(Status.ERROR_NO_MEMORY)})
    status, out, err = run_main([])

    assert status == 1
    assert out == ""
    assert err == "Error getting driver list: Out of memory (-5)\n"


def test_one_of_three_drivers_fails(mock_backend, sample_registry):
    """Test the other drivers are listed and the status stays 0"""
    registry = copy.deepcopy(sample_registry)
    registry["drivers"][0]["open_status"] = int(Status.ERROR_BUSY)
    mock_backend(registry)

    status, out, err = run_main(["-v"])

    assert status == 0
    assert out == "vxi11\t0.9\tMIT\tfree\ngpib\t2.0\tProprietary\tnon-free\n"
    assert err == "Error opening driver `usbtmc`: Resource busy (-8)\n"


def test_init_failure(mock_backend):
    """Test a failing init exits 1 without listing"""
    mock_backend({"drivers": [], "init_status": int(Status.ERROR_IO)})
    status, out, err = run_main([])

    assert status == 1
    assert out == ""
    assert err == "Error initializing library: Input/output error (-7)\n"


def test_exit_failure(mock_backend, sample_registry):
    """Test a failing finalize flips the status after a full listing"""
    registry = copy.deepcopy(sample_registry)
    registry["exit_status"] = int(Status.ERROR_UNKNOWN)
    mock_backend(registry)

    status, out, err = run_main([])

    assert status == 1
    assert out == "usbtmc\nvxi11\ngpib\n"
    assert err == "Error finalizing library: Unknown error (-1)\n"


def test_native_library_missing(monkeypatch, tmp_path):
    """Test the native backend reports an unloadable library as init failure"""
    monkeypatch.setenv("OPENTMF_BACKEND", "native")
    monkeypatch.setenv("OPENTMF_LIBRARY_PATH", str(tmp_path / "libopentmf-missing.so"))

    status, out, err = run_main(["-d"])

    assert status == 1
    assert out == ""
    assert err == f"Error initializing library: Not found ({int(Status.ERROR_NOT_FOUND)})\n"


def test_invalid_configuration(monkeypatch, no_registry):
    """Test invalid settings are reported before the registry is used"""
    monkeypatch.setenv("OPENTMF_BACKEND", "serial")

    status, out, err = run_main([])

    assert status == 1
    assert out == ""
    assert err.startswith("Error loading configuration:")


def test_malformed_registry_file(monkeypatch, tmp_path):
    """Test a broken mock registry file is a configuration error"""
    path = tmp_path / "broken.yaml"
    path.write_text("drivers: [ {id: usbtmc", encoding="utf-8")
    monkeypatch.setenv("OPENTMF_BACKEND", "mock")
    monkeypatch.setenv("OPENTMF_MOCK_REGISTRY", str(path))

    status, out, err = run_main([])

    assert status == 1
    assert err.startswith("Error loading configuration:")
