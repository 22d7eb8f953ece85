"""CLI: snabel config show|set|remote"""

import json

import click
from pydantic import ValidationError
from rich.console import Console

from snabel_console.config import CONFIG_FILE, ConsoleSettings, load_settings, save_settings

console = Console()


def _get_client():
    from snabel_console.cli.main import _get_client
    return _get_client()


def _run(coro):
    from snabel_console.cli.main import _run
    return _run(coro)


@click.group()
def config():
    """Local settings and service configuration."""


@config.command("show")
def config_show():
    """Show effective local settings."""
    click.echo(json.dumps(load_settings().model_dump(), indent=2))


@config.command("set")
@click.argument("key", type=click.Choice(sorted(ConsoleSettings.model_fields)))
@click.argument("value")
def config_set(key: str, value: str):
    """Persist one local setting."""
    raw = load_settings(env={}).model_dump()
    raw[key] = value
    try:
        settings = ConsoleSettings.model_validate(raw)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint=key)
    save_settings(settings)
    console.print(f"[green]{key} saved to {CONFIG_FILE}[/green]")


@config.command("remote")
@click.option("--json-output", "--json", is_flag=True)
def config_remote(json_output: bool):
    """Show the import service's own configuration."""

    async def _remote():
        async with _get_client() as client:
            cfg = await client.status.config()
        if json_output:
            click.echo(json.dumps(cfg, indent=2))
            return
        for key, value in sorted(cfg.items()):
            console.print(f"[bold]{key}[/bold] = {value}")

    _run(_remote())
