import logging
import subprocess

from portpeek import datatype
from portpeek.exceptions import OSQueryError
from portpeek.utils import is_root
from .local import PsutilProvider

LOGGER = logging.getLogger(__name__)

LSOF_TIMEOUT = 10
LSOF_PROTOCOLS = {"tcp": "TCP", "udp": "UDP", "any": ""}


def _split_address(address: str) -> tuple[str, int] | None:
    if ":" not in address:
        return None
    host, port_str = address.rsplit(":", 1)
    if not port_str.isdigit():
        return None
    return host.strip("[]"), int(port_str)


def parse_lsof_output(output: str) -> list[datatype.SocketEntry]:
    """
    Parse the column output of ``lsof -nP -i``.

    Each row looks like::

        COMMAND  PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
        python3 4242 me   3u IPv4 0x1234      0t0  TCP 127.0.0.1:8080 (LISTEN)

    The NAME of a connected socket is ``local->remote``; only the local half
    is kept. Rows that cannot be parsed are skipped.
    """
    entries = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 9:
            continue
        try:
            pid = int(parts[1])
        except ValueError:
            continue

        # SIZE/OFF is missing on some platforms, so locate the NODE column
        node_index = next((i for i in range(4, len(parts) - 1) if parts[i] in ("TCP", "UDP")), None)
        if node_index is None:
            continue
        protocol = parts[node_index].lower()
        name = parts[node_index + 1]
        state_part = parts[node_index + 2] if len(parts) > node_index + 2 else ""

        address = _split_address(name.split("->", 1)[0])
        if address is None:
            LOGGER.debug("Skipping unparsable lsof address: %s", name)
            continue
        host, port = address

        if state_part.startswith("(") and state_part.endswith(")"):
            state = state_part[1:-1]
        else:
            state = datatype.NONE

        entries.append(datatype.SocketEntry(protocol=protocol, local_address=host, port=port, state=state, pid=pid))
    return entries


class LsofProvider(PsutilProvider):
    """Enumerates sockets with ``lsof``; process details still come from psutil."""

    def __init__(self):
        super().__init__()
        # ports whose sockets of other users could not be checked
        self.unverified_ports: set[int] = set()

    def get_sockets(self, port: int, protocol: str = "any") -> list[datatype.SocketEntry]:
        entries = self.run_lsof(port, protocol)
        if is_root() or any(e.port == port for e in entries):
            return entries

        # without root lsof silently omits sockets of other users, psutil
        # may still list them with a hidden pid
        try:
            return super().get_sockets(port, protocol)
        except OSQueryError as e:
            LOGGER.debug("Cannot check sockets of other users on port %d: %s", port, e)
            self.unverified_ports.add(port)
            return entries

    def not_found_hint(self, port: int) -> str | None:
        if port in self.unverified_ports:
            return "lsof only lists sockets of the current user, run portpeek with sudo to check every process"
        return None

    def run_lsof(self, port: int, protocol: str = "any") -> list[datatype.SocketEntry]:
        args = ["lsof", "-nP", "-w", f"-i{LSOF_PROTOCOLS[protocol]}:{port}"]
        LOGGER.debug("Running %s", " ".join(args))
        try:
            result = subprocess.run(args, capture_output=True, text=True, timeout=LSOF_TIMEOUT)
        except FileNotFoundError as e:
            raise OSQueryError("lsof is not installed", hint="install lsof, or drop --lsof") from e
        except subprocess.TimeoutExpired as e:
            raise OSQueryError(f"lsof did not finish within {LSOF_TIMEOUT} seconds") from e

        # lsof exits with 1 when nothing matched
        if result.returncode == 1 and not result.stdout.strip():
            if result.stderr.strip():
                LOGGER.debug("lsof stderr: %s", result.stderr.strip())
            return []
        if result.returncode not in (0, 1):
            raise OSQueryError(
                f"lsof failed with exit code {result.returncode}: {result.stderr.strip()}",
                hint="run portpeek with sudo",
            )
        return parse_lsof_output(result.stdout)
