import sys
import logging
import argparse

from portpeek import __version__, datatype, output
from portpeek.config import Settings, setup_logging
from portpeek.exceptions import InvalidPortError, OSQueryError
from portpeek.ports import MAX_PORT, MIN_PORT, parse_port
from portpeek.process_provider import get_provider
from portpeek.process_provider.abstract_provider import PROTOCOLS

LOGGER = logging.getLogger(__name__)

EXIT_FOUND = 0
EXIT_INVALID = 1
EXIT_NOT_FOUND = 2
EXIT_OS_ERROR = 3


class UsageFormatter(argparse.HelpFormatter):
    def add_usage(self, usage, actions, groups, prefix=None):
        if prefix is None:
            prefix = "Usage: "
        return super().add_usage(usage, actions, groups, prefix)


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_INVALID, f"{self.prog}: error: {message}\n")


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="portpeek",
        formatter_class=UsageFormatter,
        description=(
            "Find the process using a network port and show its PID, name, executable path, "
            "command line and working directory."
        ),
        epilog=(
            f"Exit status: {EXIT_FOUND} when a process was found, {EXIT_INVALID} for an invalid port, "
            f"{EXIT_NOT_FOUND} when nothing uses the port, {EXIT_OS_ERROR} when the system could not be queried."
        ),
    )
    parser.add_argument("port", nargs="?", help=f"port number ({MIN_PORT}-{MAX_PORT})")
    parser.add_argument(
        "-p",
        "--protocol",
        choices=PROTOCOLS,
        default="any",
        help="only consider sockets of this protocol (default: any)",
    )
    parser.add_argument(
        "-a",
        "--all",
        action="store_true",
        help="list every process using the port, not only the best match",
    )
    parser.add_argument("--json", action="store_true", help="print the result as JSON")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--lsof", action="store_true", help="enumerate sockets with lsof instead of psutil")
    group.add_argument("--mock", action="store_true", help="use a fixed mock process table")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve(settings: Settings) -> datatype.LookupResult:
    try:
        port = parse_port(settings.port_arg)
    except InvalidPortError as e:
        return datatype.InvalidPort(e.value, e.reason)

    provider = get_provider(settings.backend)
    LOGGER.debug("Looking up port %d with %s", port, provider.name)
    return provider.lookup(port, settings.protocol)


def main(argv=None) -> int:
    parser = build_parser()
    args, extras = parser.parse_known_args(argv)
    if extras:
        # "portpeek -1x" lands here, report it as a bad port
        if args.port is None and len(extras) == 1:
            args.port = extras[0]
        else:
            parser.error(f"unrecognized arguments: {' '.join(extras)}")
    if args.port is None:
        parser.error("a port number is required")

    settings = Settings.from_args(args)
    setup_logging(settings.verbose)

    console = output.make_console()
    err_console = output.make_console(stderr=True)

    try:
        result = resolve(settings)
    except OSQueryError as e:
        LOGGER.debug("OS query failed", exc_info=True)
        output.render_error(err_console, str(e), e.hint)
        return EXIT_OS_ERROR

    if isinstance(result, datatype.InvalidPort):
        output.render_invalid_port(err_console, result)
        return EXIT_INVALID

    if settings.as_json:
        output.render_json(console, result, settings.show_all)

    if isinstance(result, datatype.NotFound):
        output.render_not_found(err_console, result)
        return EXIT_NOT_FOUND

    if not settings.as_json:
        output.render_found(console, err_console, result, settings.show_all)
    return EXIT_FOUND


if __name__ == "__main__":
    sys.exit(main())
