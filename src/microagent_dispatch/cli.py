# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Microagent CLI for inspecting trigger dispatch.

Loads a microagent directory (or YAML registry file) and shows which agents
a prompt would activate.

Usage:
    microagents list [--dir PATH] [--json]
    microagents match PROMPT [--dir PATH] [--json]
    microagents show AGENT_ID [--dir PATH]
    microagents context PROMPT [--dir PATH] [--max-chars N]
"""

from __future__ import annotations

import json as json_module
import logging
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from microagent_dispatch import __version__
from microagent_dispatch.dispatcher import dispatch
from microagent_dispatch.errors import MicroagentError
from microagent_dispatch.injection import render_context
from microagent_dispatch.loader import MarkdownAgentLoader, load_registry_yaml
from microagent_dispatch.registry import Registry
from microagent_dispatch.settings import MicroagentSettings, get_settings

console = Console()
error_console = Console(stderr=True)


# =============================================================================
# Registry Loading
# =============================================================================


def load_settings() -> MicroagentSettings:
    """Return settings, reporting invalid environment values as a CLI error.

    Raises:
        click.ClickException: If a MICROAGENTS_* value fails validation.
    """
    try:
        return get_settings()
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise click.ClickException(f"Invalid settings: {details}") from e


def load_registry(agents_dir: Path | None, registry_file: Path | None) -> Registry:
    """Build a registry from CLI options, falling back to settings.

    Raises:
        click.ClickException: If loading or registration fails.
    """
    settings = load_settings()
    registry_file = registry_file or (None if agents_dir else settings.registry_file)
    agents_dir = agents_dir or settings.agents_dir

    try:
        if registry_file is not None:
            specs = load_registry_yaml(registry_file)
        else:
            specs = MarkdownAgentLoader(agents_dir).load_all()
        return Registry.from_specs(specs)
    except MicroagentError as e:
        raise click.ClickException(str(e)) from e


def _registry_options(func):
    func = click.option(
        "--registry-file",
        type=click.Path(dir_okay=False, path_type=Path),
        help="YAML registry file (overrides --dir).",
    )(func)
    func = click.option(
        "--dir",
        "agents_dir",
        type=click.Path(file_okay=False, path_type=Path),
        help="Microagent directory (default: MICROAGENTS_AGENTS_DIR or .microagents).",
    )(func)
    return func


# =============================================================================
# CLI Group
# =============================================================================


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, version: bool, verbose: bool) -> None:
    """Inspect microagents and the prompts that trigger them.

    Examples:

        # List agents in the default directory
        microagents list

        # See which agents a prompt activates
        microagents match "Implement the Django backend and write tests"
    """
    if version:
        click.echo(f"microagents {__version__}")
        ctx.exit(0)

    level = "DEBUG" if verbose else load_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# =============================================================================
# Commands
# =============================================================================


@cli.command("list")
@_registry_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def cmd_list(agents_dir: Path | None, registry_file: Path | None, as_json: bool) -> None:
    """List registered agents and their triggers."""
    registry = load_registry(agents_dir, registry_file)

    if as_json:
        click.echo(
            json_module.dumps(
                [
                    agent.model_dump(mode="json", exclude={"payload"})
                    for agent in registry.all()
                ],
                indent=2,
            )
        )
        return

    if not len(registry):
        console.print("[yellow]No microagents found.[/yellow]")
        return

    table = Table(title=f"Microagents ({len(registry)})")
    table.add_column("ID", style="cyan")
    table.add_column("Triggers")
    table.add_column("Description", style="dim")
    for agent in registry.all():
        table.add_row(agent.id, ", ".join(agent.triggers), agent.description)
    console.print(table)


@cli.command("match")
@click.argument("prompt")
@_registry_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def cmd_match(
    prompt: str, agents_dir: Path | None, registry_file: Path | None, as_json: bool
) -> None:
    """Show which agents PROMPT activates, in dispatch order."""
    registry = load_registry(agents_dir, registry_file)
    try:
        results = dispatch(prompt, registry)
    except MicroagentError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(
            json_module.dumps([r.model_dump(mode="json") for r in results], indent=2)
        )
        return

    if not results:
        console.print("[yellow]No microagents triggered.[/yellow]")
        return

    table = Table(title=f"Triggered Microagents ({len(results)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Matched Triggers", style="green")
    for position, result in enumerate(results, start=1):
        table.add_row(str(position), result.agent_id, ", ".join(result.matched_triggers))
    console.print(table)


@cli.command("show")
@click.argument("agent_id")
@_registry_options
def cmd_show(agent_id: str, agents_dir: Path | None, registry_file: Path | None) -> None:
    """Print one agent's triggers and payload."""
    registry = load_registry(agents_dir, registry_file)
    try:
        agent = registry.get(agent_id)
    except MicroagentError as e:
        raise click.ClickException(str(e)) from e

    console.print(f"[bold]ID:[/bold] {agent.id}")
    if agent.description:
        console.print(f"[bold]Description:[/bold] {agent.description}")
    console.print(f"[bold]Triggers:[/bold] {', '.join(agent.triggers)}")
    if agent.source:
        console.print(f"[bold]Source:[/bold] {agent.source}")
    console.print()
    console.print(Markdown(agent.payload or "_(empty payload)_"))


@cli.command("context")
@click.argument("prompt")
@_registry_options
@click.option(
    "--max-chars",
    type=click.IntRange(min=0),
    default=None,
    help="Character budget (default: MICROAGENTS_MAX_CONTEXT_CHARS).",
)
def cmd_context(
    prompt: str,
    agents_dir: Path | None,
    registry_file: Path | None,
    max_chars: int | None,
) -> None:
    """Print the context block PROMPT would inject."""
    registry = load_registry(agents_dir, registry_file)
    if max_chars is None:
        max_chars = load_settings().max_context_chars

    snapshot = registry.snapshot()
    try:
        rendered = render_context(dispatch(prompt, snapshot), snapshot, max_chars)
    except MicroagentError as e:
        raise click.ClickException(str(e)) from e

    if rendered.content:
        click.echo(rendered.content)
    for skipped in rendered.skipped_agent_ids:
        error_console.print(
            f"[yellow]Skipped {skipped}: over the {max_chars}-character budget[/yellow]"
        )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
