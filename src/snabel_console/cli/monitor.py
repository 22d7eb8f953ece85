"""CLI: snabel monitor <session-id>"""

import click
from rich.console import Console
from rich.markup import escape
from rich.text import Text

from snabel_console.models.log import LogEntry, StreamEventKind
from snabel_console.transport.logstream import LogStreamManager

console = Console()

LEVEL_STYLES = {"ERROR": "red", "WARN": "yellow", "WARNING": "yellow", "DEBUG": "dim"}


def _get_client():
    from snabel_console.cli.main import _get_client
    return _get_client()


def _run(coro):
    from snabel_console.cli.main import _run
    return _run(coro)


def _print_entry(entry: LogEntry) -> None:
    console.print(Text(entry.format(), style=LEVEL_STYLES.get(entry.level, "")))


async def _follow(stream: LogStreamManager, session_id: str, after_seq: int = 0) -> None:
    """Print entries newer than ``after_seq`` until the session's channel closes."""
    events = stream.events()
    try:
        async for event in events:
            if event.session_id != session_id or event.entry is None or event.entry.seq <= after_seq:
                continue
            _print_entry(event.entry)
            if event.kind == StreamEventKind.CLOSE:
                break
    finally:
        await events.aclose()


@click.command("monitor")
@click.argument("session_id")
def monitor_cmd(session_id: str):
    """Follow a session's log stream (Ctrl+C to exit)."""

    async def _monitor():
        async with _get_client() as client:
            client.poller.start()
            session = await client.view(session_id)
            console.print(f"[bold]{session.description}[/bold] [dim]({session.session_id})[/dim] {escape(session.status_display)}")
            if not client.stream.connected:
                for entry in client.registry.logs(session_id):
                    _print_entry(entry)
                console.print("[yellow]No agent is running for this session; nothing to follow.[/yellow]")
                return

            last_seq = 0
            for entry in client.registry.logs(session_id):
                _print_entry(entry)
                last_seq = entry.seq
            await _follow(client.stream, session_id, last_seq)

            latest = client.registry.get(session_id)
            if latest is not None:
                console.print(f"[dim]Status: {escape(latest.status_display)}{' (merged)' if latest.merged else ''}[/dim]")

    try:
        _run(_monitor())
    except KeyboardInterrupt:
        pass
