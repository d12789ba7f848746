"""
lsopentmf - List OpenTMF drivers

Enumerates the drivers known to the OpenTMF registry, prints their metadata
and, on request, the devices available under each of them.

Flow:
- Parse options (no registry access before this completes)
- Load settings, configure logging, initialize the selected backend
- Open every driver, print its info, optionally list its devices
- Finalize the backend

Failures of a single driver or device are reported on stderr and the listing
continues with the next entry.
"""

import argparse
import sys
from contextlib import contextmanager
from functools import partial
from typing import Callable, Iterator, List, Optional, TextIO

from pydantic import ValidationError

from opentmf_utils import __version__
from opentmf_utils.config import get_settings
from opentmf_utils.exceptions import OpenTMFError
from opentmf_utils.logging_config import get_logger, setup_logging
from opentmf_utils.opentmf.base import BaseContext, Handle, IdentifierList, driver_url
from opentmf_utils.opentmf.registry import get_registry
from .formatter import clamp_verbosity, format_device, format_driver

logger = get_logger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

PROGRAM = "lsopentmf"
VERSION_TEXT = f"{PROGRAM} (opentmf-utils) {__version__}\n"
USAGE_TEXT = (
    f"Usage: {PROGRAM} [options]\n"
    "List OpenTMF drivers\n"
    "  -d, --devices\n"
    "    Show available devices per driver\n"
    "  -v, --verbose\n"
    "    Show more driver details, may be given multiple times\n"
    "  -h, --help\n"
    "    Show usage and help\n"
    "  -V, --version\n"
    "    Show program version\n"
)


# ============ Option Parsing ============

class UsageError(Exception):
    """Command line could not be parsed"""
    pass


class EarlyExit(Exception):
    """Option that prints a text and ends the program successfully"""
    def __init__(self, text: str):
        self.text = text
        super().__init__(text)


# short flag -> long name
FLAGS = {
    "d": "devices",
    "v": "verbose",
    "h": "help",
    "V": "version",
}
EXIT_FLAGS = {
    "help": USAGE_TEXT,
    "version": VERSION_TEXT,
}


def _long_flag(token: str) -> str:
    """Resolve "--name" or a unique prefix of it, as getopt_long does"""
    name = token[2:]
    if name in FLAGS.values():
        return name
    if "=" not in name:
        matches = [flag for flag in FLAGS.values() if name and flag.startswith(name)]
        if len(matches) == 1:
            return matches[0]
    raise UsageError(f"unrecognized option '{token}'")


def scan_options(argv: List[str]) -> None:
    """
    Walk the options left to right and stop at the first decisive one

    An unknown option, including a numeric one such as "-1", ends parsing
    with a usage error; -h/--help and -V/--version end it with their text.
    Whichever comes first wins. Tokens after "--" are never options.

    Raises:
        EarlyExit: On -h/--help or -V/--version
        UsageError: On an unrecognized option
    """
    for token in argv:
        if token == "--":
            return
        if not token.startswith("-") or token == "-":
            continue

        if token.startswith("--"):
            flags = [_long_flag(token)]
        else:
            flags = token[1:]

        for flag in flags:
            if len(flag) == 1:
                if flag not in FLAGS:
                    raise UsageError(f"invalid option -- '{flag}'")
                flag = FLAGS[flag]
            if flag in EXIT_FLAGS:
                raise EarlyExit(EXIT_FLAGS[flag])


class OptionParser(argparse.ArgumentParser):
    """ArgumentParser that reports errors instead of exiting"""

    def format_usage(self) -> str:
        return USAGE_TEXT

    def format_help(self) -> str:
        return USAGE_TEXT

    def error(self, message):
        raise UsageError(message)


class Options(argparse.Namespace):
    devices: bool = False
    verbose: int = 0


def build_parser() -> OptionParser:
    parser = OptionParser(prog=PROGRAM, add_help=False)
    parser.add_argument("-d", "--devices", action="store_true", default=False)
    parser.add_argument("-v", "--verbose", action="count", default=0)
    # Handled by scan_options() before argparse sees them
    parser.add_argument("-h", "--help", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("-V", "--version", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("arguments", nargs="*", help=argparse.SUPPRESS)
    return parser


def parse_options(argv: Optional[List[str]] = None) -> Options:
    """
    Parse command line options

    Positional arguments are accepted and ignored.

    Raises:
        EarlyExit: On -h/--help or -V/--version
        UsageError: On an unrecognized option
    """
    if argv is None:
        argv = sys.argv[1:]

    scan_options(argv)
    options = build_parser().parse_intermixed_args(argv, namespace=Options())
    options.verbose = clamp_verbosity(options.verbose)
    return options


# ============ Enumeration ============

class DriverLister:
    """
    Walks the driver registry and writes the listing

    Example:
        ctx = MockContext(registry)
        ctx.init()
        status = DriverLister(ctx, verbose=1, show_devices=True).run()
        ctx.exit()
    """

    def __init__(
        self,
        context: BaseContext,
        verbose: int = 0,
        show_devices: bool = False,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        self.context = context
        self.verbose = clamp_verbosity(verbose)
        self.show_devices = show_devices
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    def report(self, what: str, error: OpenTMFError) -> None:
        """Write "Error <what>: <message> (<status>)" to stderr"""
        message = self.context.get_status_str(error.status)
        self.stderr.write(f"Error {what}: {message} ({error.status})\n")
        logger.debug(f"Error {what}", extra={"status": error.status, "detail": error.message})

    @contextmanager
    def borrowed(
        self,
        identifiers: IdentifierList,
        release: Callable[[IdentifierList], None],
        what: str,
    ) -> Iterator[IdentifierList]:
        """Hand an identifier list back to its provider once the block is done"""
        try:
            yield identifiers
        finally:
            try:
                release(identifiers)
            except OpenTMFError as e:
                self.report(f"freeing {what} list", e)

    def close(self, handle: Handle, what: str) -> None:
        try:
            self.context.close(handle)
        except OpenTMFError as e:
            self.report(f"closing {what}", e)

    def run(self) -> int:
        """
        List all drivers

        Returns:
            EXIT_FAILURE if the driver list cannot be obtained, else EXIT_SUCCESS
        """
        try:
            names = self.context.get_driver_list()
        except OpenTMFError as e:
            self.report("getting driver list", e)
            return EXIT_FAILURE

        logger.debug(f"Found {len(names)} driver(s)")

        with self.borrowed(names, self.context.free_driver_list, "driver"):
            for name in names:
                self.list_driver(name)

        return EXIT_SUCCESS

    def list_driver(self, name: str) -> None:
        url = driver_url(name)

        try:
            drv = self.context.open(url)
        except OpenTMFError as e:
            self.report(f"opening driver `{name}`", e)
            return

        try:
            try:
                info = self.context.drv_get_info(drv)
            except OpenTMFError as e:
                self.report(f"getting driver info `{name}`", e)
                return

            self.stdout.write(format_driver(info, self.verbose))

            if self.show_devices:
                self.list_devices(drv, url)
        finally:
            self.close(drv, f"driver `{name}`")

    def list_devices(self, drv: Handle, url_base: str) -> None:
        """List the devices of an opened driver whose URL is url_base"""
        try:
            devices = self.context.drv_get_device_list(drv)
        except OpenTMFError as e:
            self.report("getting device list", e)
            return

        release = partial(self.context.drv_free_device_list, drv)
        with self.borrowed(devices, release, "device"):
            for device in devices:
                self.list_device(url_base + device, device)

    def list_device(self, url: str, device: str) -> None:
        try:
            dev = self.context.open(url)
        except OpenTMFError as e:
            self.report(f"opening device `{device}`", e)
            return

        try:
            info = self.context.dev_get_info(dev)
        except OpenTMFError as e:
            self.report(f"getting device info `{device}`", e)
        else:
            self.stdout.write(format_device(device, info, self.verbose))
        finally:
            self.close(dev, f"device `{device}`")


# ============ Entry Point ============

def main(
    argv: Optional[List[str]] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """
    Run lsopentmf

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])
        stdout: Stream for the listing (defaults to sys.stdout)
        stderr: Stream for error lines (defaults to sys.stderr)

    Returns:
        Process exit status
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    try:
        options = parse_options(argv)
    except EarlyExit as e:
        stdout.write(e.text)
        return EXIT_SUCCESS
    except UsageError:
        stdout.write(USAGE_TEXT)
        return EXIT_FAILURE

    try:
        settings = get_settings()
    except ValidationError as e:
        stderr.write(f"Error loading configuration: {e}\n")
        return EXIT_FAILURE

    setup_logging(settings)
    log = get_logger(__name__, backend=settings.backend)

    try:
        context = get_registry().create(settings.backend, settings)
    except (OSError, ValueError) as e:
        # Unreadable or malformed mock registry file
        stderr.write(f"Error loading configuration: {e}\n")
        return EXIT_FAILURE

    try:
        context.init()
    except OpenTMFError as e:
        stderr.write(f"Error initializing library: {context.get_status_str(e.status)} ({e.status})\n")
        log.debug("Initialization failed", extra={"detail": e.message})
        return EXIT_FAILURE

    log.debug(f"Listing drivers (verbose={options.verbose}, devices={options.devices})")

    status = EXIT_FAILURE
    try:
        status = DriverLister(
            context,
            verbose=options.verbose,
            show_devices=options.devices,
            stdout=stdout,
            stderr=stderr,
        ).run()
    finally:
        try:
            context.exit()
        except OpenTMFError as e:
            stderr.write(f"Error finalizing library: {context.get_status_str(e.status)} ({e.status})\n")
            status = EXIT_FAILURE

    return status


def cli() -> None:
    """Console script entry point"""
    sys.exit(main())


if __name__ == "__main__":
    cli()
