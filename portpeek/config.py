import argparse
import logging
import sys

from dataclasses import dataclass

from portpeek.utils import default_backend

FORMATTER = logging.Formatter("[%(asctime)s %(levelname)-5s] %(message)s", datefmt="%H:%M:%S")


@dataclass
class Settings:
    port_arg: str | None
    protocol: str = "any"
    backend: str = "psutil"
    show_all: bool = False
    as_json: bool = False
    verbose: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Settings":
        if args.mock:
            backend = "mock"
        elif args.lsof:
            backend = "lsof"
        else:
            backend = default_backend()
        return cls(
            port_arg=args.port,
            protocol=args.protocol,
            backend=backend,
            show_all=args.all,
            as_json=args.json,
            verbose=args.verbose,
        )


_handler: logging.Handler | None = None


def setup_logging(verbose: bool = False) -> logging.Handler:
    global _handler

    # stdout is reserved for lookup results
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if _handler is not None:
        root_logger.removeHandler(_handler)

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(FORMATTER)
    root_logger.addHandler(_handler)
    return _handler
