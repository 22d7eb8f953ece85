"""
snabel CLI — `snabel` command.

Commands:
  snabel status                  Service health and session count
  snabel mfes                    Target micro-frontends
  snabel sessions <cmd>          Session lifecycle
  snabel monitor <session-id>    Follow a session's log stream
  snabel reset-frontend          git reset --hard HEAD in the frontend
  snabel config <cmd>            Local and service configuration
"""

import asyncio
import logging
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from snabel_console import __version__
from snabel_console.client import AsyncSnabelConsole
from snabel_console.config import ConsoleSettings, load_settings
from snabel_console.errors import SnabelError

console = Console()


def _settings() -> ConsoleSettings:
    ctx = click.get_current_context(silent=True)
    obj = (ctx.find_root().obj if ctx else None) or {}
    settings = load_settings()
    if obj.get("base_url"):
        settings = settings.model_copy(update={"base_url": obj["base_url"]})
    return settings


def _get_client() -> AsyncSnabelConsole:
    ctx = click.get_current_context(silent=True)
    assume_yes = bool(((ctx.find_root().obj if ctx else None) or {}).get("yes"))

    def confirm(prompt: str) -> bool:
        return assume_yes or click.confirm(prompt, default=False)

    return AsyncSnabelConsole.from_settings(_settings(), confirm=confirm)


def _run(coro):
    try:
        return asyncio.run(coro)
    except SnabelError as e:
        console.print(f"Error: {e}", style="red", markup=False, highlight=False)
        raise SystemExit(1)


@click.group()
@click.version_option(__version__)
@click.option("--base-url", default=None, envvar="SNABEL_BASE_URL", help="Import service URL")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompts")
@click.option("-v", "--verbose", is_flag=True, help="Log to stderr")
@click.pass_context
def main(ctx: click.Context, base_url: Optional[str], yes: bool, verbose: bool):
    """snabel — control and monitor migration sessions."""
    ctx.ensure_object(dict)
    ctx.obj.update(base_url=base_url, yes=yes)
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(message)s", datefmt="[%X]",
            handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        )


def _running(flag: Optional[bool]) -> str:
    if flag is None:
        return "[dim]unknown[/dim]"
    return "[green]Running[/green]" if flag else "[red]Stopped[/red]"


@main.command("status")
def status_cmd():
    """Service health and session count."""

    async def _status():
        async with _get_client() as client:
            snap = await client.poller.tick()
        table = Table(title="Import service")
        table.add_column("Check", style="bold")
        table.add_column("Value")
        table.add_row("Frontend", _running(snap.frontend_running))
        table.add_row("Backend", _running(snap.backend_running))
        table.add_row("Sessions", "-" if snap.session_count is None else str(snap.session_count))
        console.print(table)
        for source, err in snap.errors.items():
            console.print(f"{source}: {err}", style="yellow", markup=False, highlight=False)

    _run(_status())


@main.command("mfes")
def mfes_cmd():
    """List micro-frontends a session can target."""

    async def _mfes():
        async with _get_client() as client:
            mfes = await client.controller.list_mfes()
        if not mfes:
            console.print("[dim]None - sessions use the frontend root directory[/dim]")
            return
        for mfe in mfes:
            console.print(f"[bold]{mfe.name}[/bold] - {mfe.description}")

    _run(_mfes())


@main.command("reset-frontend")
def reset_frontend_cmd():
    """Discard uncommitted changes in the frontend checkout."""

    async def _reset():
        async with _get_client() as client:
            message = await client.controller.reset_frontend()
        if message is None:
            console.print("[dim]Cancelled.[/dim]")
        else:
            console.print(f"[green]Frontend reset successfully![/green] {message}")

    _run(_reset())


# Register subcommands from separate modules
from snabel_console.cli.config import config  # noqa: E402
from snabel_console.cli.monitor import monitor_cmd  # noqa: E402
from snabel_console.cli.sessions import sessions  # noqa: E402

main.add_command(config)
main.add_command(monitor_cmd)
main.add_command(sessions)


if __name__ == "__main__":
    main()
