"""Flatten, unflatten and round-trip commands over markup documents."""

from __future__ import annotations

from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

import typer
from rich.table import Table

from unflattened.casting import flatten, unflatten
from unflattened.entities import MarkupNode, build_key_factory, render_markup
from unflattened.errors import UnflattenedError
from unflattened.io import load_markup, read_records, write_markup, write_records
from unflattened.utils.helpers import serialize_json
from unflattened.utils.logging import log_timing, logging_context

from .common import CLIError, CLIState, console, get_state, render_panel, resolve_path


def _load_document(path: Path, state: CLIState) -> MarkupNode:
    key_factory = build_key_factory(state.settings.policies.markup)
    try:
        return load_markup(path, key_factory=key_factory)
    except ET.ParseError as exc:
        raise CLIError(f"Could not parse {path}: {exc}") from exc


def _flatten_command(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Markup document to flatten."),
    output: Path = typer.Option(..., "--output", help="Destination JSON Lines file."),
) -> None:
    state = get_state(ctx)
    source = resolve_path(input_path)
    root = _load_document(source, state)
    with logging_context(step="flatten"), log_timing("flatten"):
        try:
            nodes = flatten(root, policy=state.settings.policies.flatten)
        except UnflattenedError as exc:
            raise CLIError(f"Flatten failed: {exc}") from exc
    destination = write_records((node.to_record() for node in nodes), output)
    console.print(f"[green]Flattened {len(nodes)} nodes into {destination}[/green]")


def _unflatten_command(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="JSON Lines file produced by 'flatten'."),
    output: Path = typer.Option(..., "--output", help="Destination markup file."),
) -> None:
    state = get_state(ctx)
    source = resolve_path(input_path)
    try:
        records = read_records(source)
    except ValueError as exc:
        raise CLIError(f"Could not read {source}: {exc}") from exc
    with logging_context(step="unflatten"), log_timing("unflatten"):
        try:
            roots = unflatten(
                records,
                policy=state.settings.policies.unflatten,
                converter=MarkupNode.from_record,
            )
        except UnflattenedError as exc:
            raise CLIError(f"Unflatten failed: {exc}") from exc
    destination = write_markup(roots, output, indent=state.settings.policies.markup.indent)
    if len(roots) > 1:
        console.print(f"[yellow]Input describes a forest of {len(roots)} trees.[/yellow]")
    console.print(f"[green]Rebuilt {len(records)} nodes into {destination}[/green]")


def _roundtrip_command(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Markup document to flatten and rebuild."),
    report: Optional[Path] = typer.Option(
        None,
        "--report",
        help="Optional JSON file receiving the round-trip statistics.",
    ),
) -> None:
    state = get_state(ctx)
    policies = state.settings.policies
    source = resolve_path(input_path)
    root = _load_document(source, state)
    with logging_context(step="roundtrip"):
        try:
            nodes = flatten(root, policy=policies.flatten)
            records = [node.to_record() for node in nodes]
            roots = unflatten(records, policy=policies.unflatten, converter=MarkupNode.from_record)
        except UnflattenedError as exc:
            raise CLIError(f"Round trip failed: {exc}") from exc

    stats = {
        "input": str(source),
        "nodes": len(nodes),
        "roots": len(roots),
        "root_keys": [entity.key() for entity in roots],
    }
    table = Table(title="Round trip", show_header=False, box=None)
    table.add_row("Nodes flattened", str(stats["nodes"]))
    table.add_row("Roots rebuilt", str(stats["roots"]))
    console.print(table)
    if state.verbose:
        for rebuilt in roots:
            console.print(render_markup(rebuilt, indent=policies.markup.indent), markup=False)
    if report is not None:
        serialize_json(stats, report)
        render_panel("Report", stats)
    if len(roots) != 1:
        raise typer.Exit(code=1)


def _config_command(ctx: typer.Context) -> None:
    state = get_state(ctx)
    render_panel(
        f"Configuration ({state.environment})",
        state.settings.model_dump(mode="json"),
    )


def register(app: typer.Typer) -> None:
    app.command("flatten")(_flatten_command)
    app.command("unflatten")(_unflatten_command)
    app.command("roundtrip")(_roundtrip_command)
    app.command("config")(_config_command)
