import dataclasses
import logging
import socket

import psutil

from portpeek import datatype
from portpeek.exceptions import OSQueryError
from portpeek.utils import join_cmdline, or_unknown
from .abstract_provider import AbstractProvider

LOGGER = logging.getLogger(__name__)

PSUTIL_KINDS = {"tcp": "tcp", "udp": "udp", "any": "inet"}


def _attr(getter, default=None):
    # a single unreadable attribute should not hide the rest of the process
    try:
        return getter()
    except (psutil.AccessDenied, psutil.ZombieProcess) as e:
        LOGGER.debug("Cannot read %s: %s", getter.__name__, e)
        return default


class PsutilProvider(AbstractProvider):
    def get_sockets(self, port: int, protocol: str = "any") -> list[datatype.SocketEntry]:
        try:
            connections = psutil.net_connections(kind=PSUTIL_KINDS[protocol])
        except psutil.AccessDenied as e:
            raise OSQueryError(
                "Permission denied while reading the socket table",
                hint="run portpeek with sudo, or use --lsof",
            ) from e
        except (psutil.Error, OSError) as e:
            raise OSQueryError(f"Failed to read the socket table: {e}") from e

        entries = []
        for c in connections:
            # unbound sockets have an empty laddr
            if not c.laddr or c.laddr[1] != port:
                continue
            entries.append(
                datatype.SocketEntry(
                    protocol="tcp" if c.type == socket.SOCK_STREAM else "udp",
                    local_address=c.laddr[0],
                    port=c.laddr[1],
                    state=c.status,
                    pid=c.pid,
                )
            )
        return entries

    def describe(self, pid: int) -> datatype.ProcessInfo | None:
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                return datatype.ProcessInfo(
                    pid=proc.pid,
                    name=or_unknown(_attr(proc.name)),
                    path=or_unknown(_attr(proc.exe)),
                    command=join_cmdline(_attr(proc.cmdline, [])),
                    cwd=or_unknown(_attr(proc.cwd)),
                    user=or_unknown(_attr(proc.username)),
                    status=or_unknown(_attr(proc.status)),
                    create_time=_attr(proc.create_time),
                )
        except psutil.NoSuchProcess:
            return None


def _mock_socket(port: int, pid: int | None, state: str = datatype.LISTEN, protocol: str = "tcp"):
    return datatype.SocketEntry(protocol=protocol, local_address="127.0.0.1", port=port, state=state, pid=pid)


class MockProvider(AbstractProvider):
    """A fixed process table, for demos and tests."""

    def __init__(self):
        super().__init__()
        self.processes: dict[int, datatype.ProcessInfo] = {
            p.pid: p
            for p in [
                datatype.ProcessInfo(
                    pid=1234,
                    name="nginx",
                    path="/usr/sbin/nginx",
                    command="nginx -g 'daemon off;'",
                    cwd="/etc/nginx",
                    user="root",
                    status="sleeping",
                    create_time=1234567890.0,
                ),
                datatype.ProcessInfo(
                    pid=1235,
                    name="nginx",
                    path="/usr/sbin/nginx",
                    command="nginx: worker process",
                    cwd="/etc/nginx",
                    user="www-data",
                    status="sleeping",
                    create_time=1234567895.0,
                ),
                datatype.ProcessInfo(
                    pid=5678,
                    name="python",
                    path="/usr/bin/python3.12",
                    command="python -m http.server 8000",
                    cwd="/home/user/code",
                    user="user",
                    status="running",
                    create_time=1234567891.0,
                ),
                datatype.ProcessInfo(
                    pid=9012,
                    name="postgres",
                    path="/usr/lib/postgresql/16/bin/postgres",
                    command="/usr/lib/postgresql/16/bin/postgres -D /var/lib/postgresql/16/main",
                    cwd="/var/lib/postgresql",
                    user="postgres",
                    status="sleeping",
                    create_time=1234567892.0,
                ),
                datatype.ProcessInfo(
                    pid=9013,
                    name="dnsmasq",
                    path="/usr/sbin/dnsmasq",
                    command="dnsmasq --keep-in-foreground",
                    cwd="/",
                    user="nobody",
                    status="sleeping",
                    create_time=1234567893.0,
                ),
                datatype.ProcessInfo(
                    pid=4321,
                    name="psql",
                    path="/usr/bin/psql",
                    command="psql -h localhost",
                    cwd="/home/user",
                    user="user",
                    status="sleeping",
                    create_time=1234567899.0,
                ),
            ]
        }
        self.sockets: list[datatype.SocketEntry] = [
            _mock_socket(80, 1235),
            _mock_socket(80, 1234),
            _mock_socket(443, 1234),
            _mock_socket(8000, 5678),
            _mock_socket(5432, 9012),
            _mock_socket(5432, 9012, state=datatype.ESTABLISHED),
            _mock_socket(51234, 4321, state=datatype.ESTABLISHED),
            _mock_socket(51235, 4321, state="TIME_WAIT"),
            _mock_socket(53, 9013, state=datatype.NONE, protocol="udp"),
            # owned by another user, invisible without root
            _mock_socket(631, None),
        ]

    def get_sockets(self, port: int, protocol: str = "any") -> list[datatype.SocketEntry]:
        return [dataclasses.replace(s) for s in self.sockets if s.port == port]

    def describe(self, pid: int) -> datatype.ProcessInfo | None:
        info = self.processes.get(pid)
        if info is None:
            return None
        return dataclasses.replace(info, sockets=[])
