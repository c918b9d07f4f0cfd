"""CLI commands for tiergc."""

import json
import math
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from tiergc import __logo__, __version__
from tiergc.compaction.budget import compute_dynamic_budget, get_pressure_zone
from tiergc.compaction.classifier import classify_messages
from tiergc.compaction.service import ContextGCService
from tiergc.compaction.types import message_role
from tiergc.config.loader import load_config
from tiergc.errors import ConversationFormatError

app = typer.Typer(
    name="tiergc",
    help=f"{__logo__} tiergc - tiered context GC for agent conversations",
    no_args_is_help=True,
)

console = Console()

TIER_STYLES = {"hot": "red", "warm": "yellow", "cold": "cyan", "gone": "dim"}


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} tiergc v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """tiergc - tiered context GC for agent conversations."""
    pass


def read_conversation(path: Path) -> list[dict[str, Any]]:
    """
    Read a conversation file.

    Accepts either a JSON list of messages or an object with a "messages" list.

    Raises:
        ConversationFormatError: If the file is not valid JSON or holds no message list.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConversationFormatError(f"Cannot read conversation {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("messages")
    if not isinstance(data, list) or not all(isinstance(m, dict) for m in data):
        raise ConversationFormatError(f"{path} does not contain a list of messages")
    return data


def _load_or_exit(path: Path) -> list[dict[str, Any]]:
    try:
        return read_conversation(path)
    except ConversationFormatError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def classify(
    file: Path = typer.Argument(..., help="Conversation JSON file"),
    usage: float = typer.Option(0.35, "--usage", "-u", help="Context usage ratio (0-1)"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Show the tier of every message in a conversation."""
    config = load_config(config_path).gc
    messages = _load_or_exit(file)

    budget = compute_dynamic_budget(config, usage)
    classifications = classify_messages(messages, config.with_budget(budget))

    console.print(
        f"Pressure: [bold]{get_pressure_zone(usage)}[/bold]  "
        f"Budget: hot<{budget.hot_turns} warm<{budget.warm_turns} "
        f"cold<{budget.gone_turns} gone>={budget.gone_turns}"
    )

    table = Table(title=f"Tiers for {file.name}")
    table.add_column("#", justify="right")
    table.add_column("Role")
    table.add_column("Tier")
    table.add_column("Turn age", justify="right")
    table.add_column("Tokens", justify="right")

    for c in classifications:
        style = TIER_STYLES.get(c.tier, "")
        table.add_row(
            str(c.message_index),
            message_role(messages[c.message_index]),
            f"[{style}]{c.tier}[/{style}]",
            str(c.turn_age),
            str(c.estimated_tokens),
        )

    console.print(table)


@app.command()
def compact(
    file: Path = typer.Argument(..., help="Conversation JSON file"),
    usage: float = typer.Option(None, "--usage", "-u", help="Context usage ratio (0-1); measured when omitted"),
    tokens_to_free: int = typer.Option(None, "--tokens-to-free", "-t", help="Compression budget in tokens"),
    output: Path = typer.Option(None, "--output", "-o", help="Where to write the result (default: stdout)"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Run one GC cycle over a conversation and write the result."""
    config = load_config(config_path).gc
    messages = _load_or_exit(file)

    service = ContextGCService(config)
    result = service.run_cycle(
        messages,
        usage_ratio=usage,
        tokens_to_free=tokens_to_free if tokens_to_free is not None else math.inf,
        force=True,
    )

    rendered = json.dumps(messages, indent=2, ensure_ascii=False)
    if output:
        output.write_text(rendered, encoding="utf-8")
    else:
        typer.echo(rendered)

    stats = result.stats
    table = Table(title="GC cycle")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Tool outputs compressed", str(stats.tool_outputs_compressed))
    table.add_row("Thinking blocks removed", str(stats.thinking_blocks_removed))
    table.add_row("Text parts compressed", str(stats.text_parts_compressed))
    table.add_row("System parts removed", str(stats.system_parts_removed))
    table.add_row("Messages removed", str(stats.messages_removed))
    table.add_row("Tokens", f"{result.tokens_before} -> {result.tokens_after}")
    Console(stderr=True).print(table)
