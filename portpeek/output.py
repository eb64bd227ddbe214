import json

from dataclasses import asdict

from rich.console import Console
from rich.markup import escape

from portpeek import datatype

FIELDS = [
    ("PID", "pid"),
    ("Name", "name"),
    ("Path", "path"),
    ("Command", "command"),
    ("CWD", "cwd"),
    ("User", "user"),
]


def make_console(stderr: bool = False) -> Console:
    # soft_wrap keeps long command lines on a single line
    return Console(stderr=stderr, highlight=False, emoji=False, soft_wrap=True)


def describe_sockets(sockets: list[datatype.SocketEntry]) -> str:
    return ", ".join(f"{s.protocol.upper()} {s.local_address}:{s.port} {s.state}" for s in sockets)


def render_process(console: Console, port: int, info: datatype.ProcessInfo) -> None:
    console.print(f"[bold]Port {port}[/bold] ({escape(describe_sockets(info.sockets))})")
    for label, attr in FIELDS:
        console.print(f"  [cyan]{label + ':':<9}[/cyan]{escape(str(getattr(info, attr)))}")


def render_found(console: Console, err_console: Console, result: datatype.Found, show_all: bool = False) -> None:
    processes = result.processes if show_all else [result.owner]
    for i, info in enumerate(processes):
        if i:
            console.print()
        render_process(console, result.port, info)

    others = len(result.processes) - len(processes)
    if others:
        err_console.print(f"[dim]{others} more process(es) use port {result.port}, pass --all to list them[/dim]")


def to_json(result: datatype.Found | datatype.NotFound, show_all: bool = False) -> dict:
    if isinstance(result, datatype.NotFound):
        return {"port": result.port, "found": False, "processes": []}
    processes = result.processes if show_all else [result.owner]
    return {"port": result.port, "found": True, "processes": [asdict(p) for p in processes]}


def render_json(console: Console, result: datatype.Found | datatype.NotFound, show_all: bool = False) -> None:
    console.out(json.dumps(to_json(result, show_all), indent=2), highlight=False)


def render_not_found(err_console: Console, result: datatype.NotFound) -> None:
    err_console.print(f"[yellow]No process found listening on port {result.port}[/yellow]")
    if result.hint:
        err_console.print(f"[dim]Hint: {escape(result.hint)}[/dim]")


def render_invalid_port(err_console: Console, result: datatype.InvalidPort) -> None:
    err_console.print(f"[red]Invalid port: {escape(repr(result.value))} ({escape(result.reason)})[/red]")


def render_error(err_console: Console, message: str, hint: str | None = None) -> None:
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    if hint:
        err_console.print(f"[dim]Hint: {escape(hint)}[/dim]")
