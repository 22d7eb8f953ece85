"""CLI: snabel sessions list|show|create|upload|start|stop|send|merge|validate|diff|changes"""

import json
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

STATUS_STYLES = {
    "CREATED": "white",
    "UNPACKING": "blue",
    "ANALYZING": "blue",
    "TRANSFORMING": "yellow",
    "RUNNING": "yellow",
    "PAUSED": "dark_orange",
    "VALIDATING": "magenta",
    "COMPLETED": "green",
    "FAILED": "red",
    "MERGED": "magenta",
}


def _get_client():
    from snabel_console.cli.main import _get_client
    return _get_client()


def _run(coro):
    from snabel_console.cli.main import _run
    return _run(coro)


def _status_cell(session) -> str:
    style = STATUS_STYLES.get(session.status_label, "white")
    cell = f"[{style}]{escape(session.status_display)}[/{style}]"
    if session.merged and session.status_label != "MERGED":
        cell += " [magenta]MERGED[/magenta]"
    return cell


@click.group()
def sessions():
    """Import session lifecycle."""


@sessions.command("list")
@click.option("--json-output", "--json", is_flag=True)
def sessions_list(json_output):
    """List sessions."""

    async def _list():
        async with _get_client() as client:
            result = await client.controller.refresh_sessions()
        if json_output:
            click.echo(json.dumps([s.model_dump(by_alias=True) for s in result], indent=2))
            return
        if not result:
            console.print("[dim]No sessions yet[/dim]")
            return
        table = Table(title=f"Sessions ({len(result)} total)")
        table.add_column("ID", style="bold")
        table.add_column("Status")
        table.add_column("Description")
        table.add_column("Created")
        for s in result:
            table.add_row(s.session_id, _status_cell(s), s.description, s.created_at)
        console.print(table)

    _run(_list())


@sessions.command("show")
@click.argument("session_id")
@click.option("--json-output", "--json", is_flag=True)
def sessions_show(session_id, json_output):
    """Show one session."""

    async def _show():
        async with _get_client() as client:
            s = await client.view(session_id, attach_stream=False)
        if json_output:
            click.echo(json.dumps(s.model_dump(by_alias=True), indent=2))
            return
        console.print(f"[bold]{s.description}[/bold]  {_status_cell(s)}")
        console.print(f"Session ID: {s.session_id}")
        console.print(f"Created: {s.created_at}")
        if s.branch_name:
            console.print(f"Branch: {s.branch_name}")
        console.print(f"Agent running: {'yes' if s.is_running else 'no'}")
        if s.files_created is not None:
            console.print(f"Files: +{s.files_created} ~{s.files_modified or 0} -{s.files_deleted or 0}")
        if s.error_message:
            console.print(f"Error: {s.error_message}", style="red", markup=False)

    _run(_show())


@sessions.command("create")
@click.argument("description")
@click.option("-i", "--instructions", default="", help="Instructions for the agent")
@click.option("-m", "--target-mfe", default="", help="Micro-frontend to work in (default: frontend root)")
def sessions_create(description, instructions, target_mfe):
    """Create a new session."""

    async def _create():
        async with _get_client() as client:
            with console.status("Creating session..."):
                session_id = await client.create(description, instructions, target_mfe)
        console.print(f"[green]Session created: {session_id}[/green]")

    _run(_create())


@sessions.command("upload")
@click.argument("session_id")
@click.argument("archive", type=click.Path(dir_okay=False))
def sessions_upload(session_id, archive):
    """Upload a zip archive and show its analysis."""

    async def _upload():
        async with _get_client() as client:
            with console.status("Uploading..."):
                result = await client.upload_archive(archive, session_id)
        a = result.analysis
        console.print("[bold]Analysis Complete:[/bold]")
        console.print(f"  - Total files: {a.total_files}")
        console.print(f"  - TypeScript files: {a.typescript_files}")
        console.print(f"  - JavaScript files: {a.javascript_files}")
        console.print(f"  - Size: {a.total_size_mb:.2f} MB")

    _run(_upload())


@sessions.command("start")
@click.argument("session_id")
@click.option("-i", "--instructions", "additional", default=None, help="Additional instructions")
def sessions_start(session_id, additional: Optional[str]):
    """Start the agent on a new branch."""

    async def _start():
        async with _get_client() as client:
            with console.status("Starting agent..."):
                result = await client.start(session_id, additional)
        console.print(f"[green]Agent started on branch: {result.branch_name}[/green]")
        console.print(f"[dim]Follow it with `snabel monitor {session_id}`.[/dim]")

    _run(_start())


@sessions.command("stop")
@click.argument("session_id")
def sessions_stop(session_id):
    """Stop the running agent."""

    async def _stop():
        async with _get_client() as client:
            ack = await client.stop(session_id)
        if ack is None:
            console.print("[dim]Cancelled.[/dim]")
        else:
            console.print("[green]Process stopped[/green]")

    _run(_stop())


@sessions.command("send")
@click.argument("session_id")
@click.argument("command")
def sessions_send(session_id, command):
    """Send input to the running agent."""

    async def _send():
        async with _get_client() as client:
            await client.view(session_id, attach_stream=False)
            await client.send_command(command)
        console.print("[green]Command sent.[/green]")

    _run(_send())


@sessions.command("merge")
@click.argument("session_id")
@click.option("-m", "--message", "commit_message", default=None, help="Merge commit message")
def sessions_merge(session_id, commit_message):
    """Merge the session branch into main."""

    async def _merge():
        async with _get_client() as client:
            ack = await client.merge(session_id, commit_message)
        if ack is None:
            console.print("[dim]Cancelled.[/dim]")
        else:
            console.print("[green]Branch merged successfully![/green]")

    _run(_merge())


@sessions.command("validate")
@click.argument("session_id")
def sessions_validate(session_id):
    """Run type, API, test and build checks on the session branch."""

    async def _validate():
        async with _get_client() as client:
            with console.status("Validating..."):
                report = await client.controller.validate(session_id)
        for name, value in (
            ("TypeScript", report.typescript), ("API compatibility", report.api_compatibility),
            ("Tests", report.tests), ("Build", report.build),
        ):
            mark = "[dim]-[/dim]" if value is None else ("[green]pass[/green]" if value else "[red]fail[/red]")
            console.print(f"{name}: {mark}")
        console.print("[green]Passed[/green]" if report.passed else "[red]Failed[/red]")
        if report.error:
            console.print(report.error, style="red", markup=False)

    _run(_validate())


@sessions.command("diff")
@click.argument("session_id")
def sessions_diff(session_id):
    """Print the session branch diff."""

    async def _diff():
        async with _get_client() as client:
            click.echo(await client.controller.diff(session_id))

    _run(_diff())


@sessions.command("changes")
@click.argument("session_id")
def sessions_changes(session_id):
    """List files changed on the session branch."""

    async def _changes():
        async with _get_client() as client:
            for path in await client.controller.changes(session_id):
                click.echo(path)

    _run(_changes())
