import os
import shlex
import sys

from portpeek.datatype import UNKNOWN


def join_cmdline(argv: list[str]) -> str:
    """Join an argv list into a shell-quoted command line."""
    if not argv:
        return UNKNOWN
    return shlex.join(argv)


def or_unknown(value) -> str:
    if value is None or value == "":
        return UNKNOWN
    return str(value)


def default_backend() -> str:
    """
    psutil cannot enumerate other processes' sockets on macOS without root,
    while lsof can for the current user, so that is the default there.
    """
    if sys.platform.startswith("darwin"):
        return "lsof"
    return "psutil"


def is_root() -> bool:
    # os.geteuid does not exist on Windows
    return hasattr(os, "geteuid") and os.geteuid() == 0
