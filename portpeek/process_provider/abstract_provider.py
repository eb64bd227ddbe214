import logging

from abc import ABC, abstractmethod

from portpeek import datatype
from portpeek.exceptions import OSQueryError

LOGGER = logging.getLogger(__name__)

PROTOCOLS = ("tcp", "udp", "any")


def _rank(info: datatype.ProcessInfo):
    # listeners first, then the oldest process; an unknown start time sorts last
    unknown = info.create_time is None
    return (0 if info.is_listening else 1, unknown, info.create_time or 0.0, info.pid)


class AbstractProvider(ABC):
    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def get_sockets(self, port: int, protocol: str = "any") -> list[datatype.SocketEntry]:
        """
        Enumerate the sockets bound to ``port``.

        Implementations may return extra entries; ``lookup`` filters them.
        Raises ``OSQueryError`` when the socket table cannot be read.
        """

    @abstractmethod
    def describe(self, pid: int) -> datatype.ProcessInfo | None:
        """Return the details of ``pid``, or None if it no longer exists."""

    def not_found_hint(self, port: int) -> str | None:
        """Explain why ``port`` may be in use even though nothing matched."""
        return None

    def matching_sockets(self, port: int, protocol: str = "any") -> list[datatype.SocketEntry]:
        if protocol not in PROTOCOLS:
            raise ValueError(f"Unknown protocol: {protocol}")

        matches = []
        for entry in self.get_sockets(port, protocol):
            if entry.port != port:
                continue
            if protocol != "any" and entry.protocol != protocol:
                continue
            if entry.protocol == "tcp" and entry.state not in (datatype.LISTEN, datatype.ESTABLISHED):
                continue
            matches.append(entry)
        return matches

    def lookup(self, port: int, protocol: str = "any") -> datatype.Found | datatype.NotFound:
        """
        Find the processes owning ``port``, best candidate first.

        A listening socket outranks an established one; among equals the
        process that started first wins.
        """
        sockets = self.matching_sockets(port, protocol)
        LOGGER.debug("%s: %d socket(s) on port %d", self.name, len(sockets), port)
        if not sockets:
            return datatype.NotFound(port, self.not_found_hint(port))

        by_pid: dict[int, list[datatype.SocketEntry]] = {}
        hidden = 0
        for entry in sockets:
            if not entry.pid:
                hidden += 1
                continue
            by_pid.setdefault(entry.pid, []).append(entry)

        if not by_pid:
            raise OSQueryError(
                f"Port {port} is in use, but the owning process is not visible to this user",
                hint="run portpeek with sudo to inspect processes of other users",
            )
        if hidden:
            LOGGER.warning("%d socket(s) on port %d belong to processes that are not visible", hidden, port)

        processes = []
        for pid, entries in by_pid.items():
            info = self.describe(pid)
            if info is None:
                LOGGER.debug("Process %d exited before it could be inspected", pid)
                continue
            info.sockets = entries
            processes.append(info)

        if not processes:
            return datatype.NotFound(port, self.not_found_hint(port))

        processes.sort(key=_rank)
        return datatype.Found(port, processes)
