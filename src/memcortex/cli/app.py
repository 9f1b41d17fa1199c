"""
CLI application for memcortex.

Provides commands for scoring text and inspecting the resolved settings.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

TIER_STYLES = {
    "explicit": "bold green",
    "silent": "yellow",
    "ephemeral": "dim",
}

_LOG_FORMATS = {
    "text": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s"}',
}


def configure_logging(level: str, fmt: str = "text", verbose: int = 0) -> None:
    """Set up root logging; each ``-v`` lowers the level by one step."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    numeric = max(logging.DEBUG, numeric - 10 * verbose)
    logging.basicConfig(level=numeric, format=_LOG_FORMATS.get(fmt, _LOG_FORMATS["text"]))


@click.group()
@click.version_option(package_name="memcortex")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v, -vv)")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML or JSON settings file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: int, config_path: str | None) -> None:
    """memcortex - importance scoring and memory lifecycle."""
    from memcortex.config.settings import CortexSettings, configure, get_settings

    if config_path:
        settings = configure(settings=CortexSettings.from_file(config_path))
    else:
        settings = get_settings()

    configure_logging(settings.log_level, settings.log_format, verbose)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("text", nargs=-1, required=True)
@click.option(
    "-r",
    "--role",
    type=click.Choice(["user", "assistant"]),
    default="user",
    help="Speaker of the text",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def score(ctx: click.Context, text: tuple[str, ...], role: str, as_json: bool) -> None:
    """
    Score TEXT and show the retention tier it would get.

    Each argument is one conversation segment.  Scoring runs against an
    empty in-process store, so repetition and anchoring are always zero.
    """
    from memcortex.core.types import ConversationSegment, Role
    from memcortex.exceptions import ConfigurationError
    from memcortex.memory.in_memory import InMemoryMemoryStore
    from memcortex.scoring.scorer import MemoryScorer

    settings = ctx.obj["settings"]

    try:
        config = settings.scoring_config()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    store = InMemoryMemoryStore(
        ephemeral_hours=config.default_ephemeral_hours,
        silent_days=config.default_silent_days,
    )
    scorer = MemoryScorer(store, config)
    segments = [ConversationSegment(content=part, role=Role(role)) for part in text]

    result = asyncio.run(scorer.score_conversation(segments))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    style = TIER_STYLES.get(result.tier.value, "")
    expires = (
        f"{result.expires_in_hours}h" if result.expires_in_hours is not None else "never"
    )

    table = Table(show_header=False, box=None)
    table.add_column(style="dim")
    table.add_column()
    table.add_row("Score", f"{result.score}/10")
    table.add_row("Tier", f"[{style}]{result.tier.value}[/{style}]" if style else result.tier.value)
    table.add_row("Action", result.recommended_action.value)
    table.add_row("Expires", expires)
    table.add_row("Reasoning", result.reasoning)

    console.print(Panel(table, title="Importance"))


@cli.command("settings")
@click.pass_context
def show_settings(ctx: click.Context) -> None:
    """Show the resolved settings (secrets excluded)."""
    settings = ctx.obj["settings"]
    console.print(Panel(json.dumps(settings.to_dict(), indent=2), title="Configuration"))


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
