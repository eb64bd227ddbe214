from dataclasses import dataclass, field

UNKNOWN = "?"

LISTEN = "LISTEN"
ESTABLISHED = "ESTABLISHED"
# psutil reports connectionless sockets (UDP) with this status
NONE = "NONE"


@dataclass
class SocketEntry:
    protocol: str
    local_address: str
    port: int
    state: str
    pid: int | None

    @property
    def is_listening(self) -> bool:
        return self.state in (LISTEN, NONE)


@dataclass
class ProcessInfo:
    pid: int
    name: str
    path: str
    command: str
    cwd: str
    user: str = UNKNOWN
    status: str = UNKNOWN
    create_time: float | None = None
    sockets: list[SocketEntry] = field(default_factory=list)

    @property
    def is_listening(self) -> bool:
        return any(s.is_listening for s in self.sockets)


@dataclass
class Found:
    port: int
    processes: list[ProcessInfo]

    @property
    def owner(self) -> ProcessInfo:
        return self.processes[0]


@dataclass
class NotFound:
    port: int
    # set when other users' sockets could not be checked
    hint: str | None = None


@dataclass
class InvalidPort:
    value: str
    reason: str


LookupResult = Found | NotFound | InvalidPort
