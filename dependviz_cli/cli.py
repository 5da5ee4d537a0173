"""Typer-based CLI for filtering and slicing dependency graphs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config, config_manager
from .cli_groups import config_grp, query_grp
from .controls import DEFAULT_CONTROLS, TYPE_FLAG_PREFIX, Controls, type_flag_key
from .graph import GraphDataError, find_node, find_node_by_path, load_graph, merge_graph_data, save_graph
from .graph_export import export_view, view_payload
from .models import GraphData, GraphView
from .pipeline import compute_view
from .query import QueryParseError, format_ast, parse_query, tokenize
from .slicing import compute_slice

console = Console()

app = typer.Typer(
    help="🕸️  DependViz CLI — query, slice, and filter code dependency graphs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(query_grp, name="query")
app.add_typer(config_grp, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"DependViz CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """DependViz CLI: narrow a dependency graph with queries and slices."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load(graph_file: Path) -> GraphData:
    try:
        return load_graph(graph_file)
    except GraphDataError as exc:
        console.print(f"[red]❌ Invalid graph file:[/red] {exc}")
        raise typer.Exit(code=1)


def _resolve_focus(graph: GraphData, focus: Optional[str], focus_path: Optional[str]) -> Optional[str]:
    if focus:
        return focus
    if focus_path:
        node = find_node_by_path(graph.nodes, focus_path)
        if node is None:
            raise typer.BadParameter(f"No node matches file path '{focus_path}'.")
        return node.node_id
    return None


def _build_controls(
    graph: GraphData,
    query: Optional[str],
    focus: Optional[str],
    focus_path: Optional[str],
    forward: Optional[bool],
    backward: Optional[bool],
    depth: Optional[int],
    hide_isolated: Optional[bool],
    hide_types: List[str],
    show_types: List[str],
) -> Controls:
    overrides: Dict[str, Any] = {}
    if query is not None:
        overrides["search"] = query
    if forward is not None:
        overrides["enableForwardSlice"] = forward
    if backward is not None:
        overrides["enableBackwardSlice"] = backward
    if depth is not None:
        overrides["sliceDepth"] = depth
    if hide_isolated is not None:
        overrides["hideIsolatedNodes"] = hide_isolated
    for type_name in show_types:
        overrides[type_flag_key(type_name)] = True
    for type_name in hide_types:
        overrides[type_flag_key(type_name)] = False
    focused = _resolve_focus(graph, focus, focus_path)
    if focused:
        overrides["focusedNode"] = focused
    return config_manager.load_controls(overrides)


def _print_view(graph: GraphData, view: GraphView) -> None:
    table = Table(title="Filtered graph", show_lines=False)
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Name")
    table.add_column("Path", style="dim")
    if view.slice is not None:
        table.add_column("Slice", justify="center")

    for node in view.nodes:
        row = [node.node_id, node.node_type, node.name or "", node.path or ""]
        if view.slice is not None:
            row.append("●" if node.node_id in view.slice.slice_nodes else "")
        table.add_row(*row)

    if view.nodes:
        console.print(table)
    typer.echo(
        f"Nodes: {len(view.nodes)}/{len(graph.nodes)} | Links: {len(view.links)}/{len(graph.links)}"
    )


# Shared option declarations for filter-style commands
_QUERY_OPT = typer.Option(None, "--query", "-q", help="Search query, e.g. 'type:Class AND NOT name:Impl'.")
_FOCUS_OPT = typer.Option(None, "--focus", help="Focused node id.")
_FOCUS_PATH_OPT = typer.Option(None, "--focus-path", help="Focus the node recorded for this file path.")
_FORWARD_OPT = typer.Option(None, "--forward/--no-forward", help="Follow links from the focus to its dependencies.")
_BACKWARD_OPT = typer.Option(None, "--backward/--no-backward", help="Follow links from dependents to the focus.")
_DEPTH_OPT = typer.Option(None, "--depth", "-d", min=0, help="Slice depth in hops.")
_ISOLATED_OPT = typer.Option(None, "--hide-isolated/--show-isolated", help="Hide nodes without any links.")
_HIDE_TYPE_OPT = typer.Option([], "--hide-type", help="Node or link type to hide (repeatable).")
_SHOW_TYPE_OPT = typer.Option([], "--show-type", help="Node or link type to show (repeatable).")


@app.command("filter")
def filter_graph(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Graph JSON file."),
    query: Optional[str] = _QUERY_OPT,
    focus: Optional[str] = _FOCUS_OPT,
    focus_path: Optional[str] = _FOCUS_PATH_OPT,
    forward: Optional[bool] = _FORWARD_OPT,
    backward: Optional[bool] = _BACKWARD_OPT,
    depth: Optional[int] = _DEPTH_OPT,
    hide_isolated: Optional[bool] = _ISOLATED_OPT,
    hide_types: List[str] = _HIDE_TYPE_OPT,
    show_types: List[str] = _SHOW_TYPE_OPT,
    as_json: bool = typer.Option(False, "--json", help="Print the filtered view as JSON."),
):
    """Apply type, search, slice, and isolation filters to a graph."""
    graph = _load(graph_file)
    controls = _build_controls(
        graph, query, focus, focus_path, forward, backward, depth, hide_isolated, hide_types, show_types
    )
    view = compute_view(graph, controls)

    if as_json:
        typer.echo(json.dumps(view_payload(view), indent=2))
        return
    _print_view(graph, view)


@app.command("slice")
def slice_graph(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Graph JSON file."),
    focus: str = typer.Argument(..., help="Focused node id or file path."),
    forward: bool = typer.Option(True, "--forward/--no-forward", help="Follow outgoing links."),
    backward: bool = typer.Option(True, "--backward/--no-backward", help="Follow incoming links."),
    depth: Optional[int] = typer.Option(
        None, "--depth", "-d", min=0, help="Slice depth in hops (defaults to the configured sliceDepth)."
    ),
):
    """Show the bounded dependency slice around a node."""
    graph = _load(graph_file)
    if depth is None:
        depth = config_manager.load_controls().slice_depth
    node = find_node(graph.nodes, focus) or find_node_by_path(graph.nodes, focus)
    if node is None:
        raise typer.BadParameter(f"Node '{focus}' not found.")

    result = compute_slice(node.node_id, forward, backward, depth, graph.nodes, graph.links)

    typer.echo(f"Focus: {node.node_id}")
    typer.echo("Slice nodes:")
    for node_id in sorted(result.slice_nodes):
        typer.echo(f"- {node_id}")
    typer.echo("Slice links:")
    for link in sorted(result.slice_links, key=lambda item: item.key):
        typer.echo(f"- {link.source} --{link.link_type}--> {link.target}")
    if not result.slice_links:
        typer.echo("  none")


@app.command("merge")
def merge(
    target_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Graph to merge into."),
    source_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Graph to merge from."),
    output: Path = typer.Option(..., "--output", "-o", help="Output file path."),
):
    """Merge two graph snapshots, deduplicating nodes and links."""
    merged = merge_graph_data(_load(target_file), _load(source_file))
    save_graph(merged, output)
    typer.echo(f"Merged graph written to {output}")
    typer.echo(f"Nodes: {len(merged.nodes)} | Links: {len(merged.links)}")


@app.command("export")
def export(
    graph_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Graph JSON file."),
    fmt: str = typer.Option("html", "--format", "-f", help="Export format: html, dot, or json."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
    query: Optional[str] = _QUERY_OPT,
    focus: Optional[str] = _FOCUS_OPT,
    focus_path: Optional[str] = _FOCUS_PATH_OPT,
    forward: Optional[bool] = _FORWARD_OPT,
    backward: Optional[bool] = _BACKWARD_OPT,
    depth: Optional[int] = _DEPTH_OPT,
    hide_isolated: Optional[bool] = _ISOLATED_OPT,
    hide_types: List[str] = _HIDE_TYPE_OPT,
    show_types: List[str] = _SHOW_TYPE_OPT,
):
    """Export the filtered graph to standalone HTML, Graphviz DOT, or JSON."""
    fmt = fmt.lower()
    if fmt not in config.EXPORT_FORMATS:
        raise typer.BadParameter(f"Format must be one of: {', '.join(sorted(config.EXPORT_FORMATS))}")

    graph = _load(graph_file)
    controls = _build_controls(
        graph, query, focus, focus_path, forward, backward, depth, hide_isolated, hide_types, show_types
    )
    view = compute_view(graph, controls)

    if output is None:
        output = Path.cwd() / f"{graph_file.stem}_view.{fmt}"
    export_view(view, output, fmt)
    typer.echo(f"Exported graph to {output}")


# ── dviz query ───────────────────────────────────────────────


@query_grp.command("parse")
def query_parse(query: str = typer.Argument(..., help="Search query to parse.")):
    """Print the syntax tree a query parses to."""
    try:
        ast = parse_query(query)
    except QueryParseError as exc:
        console.print(f"[red]❌ Parse error:[/red] {exc}")
        console.print("[dim]The filter treats this query as matching every node.[/dim]")
        raise typer.Exit(code=1)
    typer.echo(format_ast(ast))


@query_grp.command("tokens")
def query_tokens(query: str = typer.Argument(..., help="Search query to tokenize.")):
    """Print the token stream of a query."""
    tokens = tokenize(query)
    if not tokens:
        typer.echo("No tokens.")
        return
    for token in tokens:
        typer.echo(f"{token.kind.value:<9} {token.value}")


# ── dviz config ──────────────────────────────────────────────


@config_grp.command("show")
def config_show():
    """Show control defaults used by filter and export."""
    settings = config_manager.load_control_settings()
    controls = config_manager.load_controls()

    table = Table(title=f"Controls ({config.CONFIG_FILE})")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row(config_manager.ANALYZER_KEY, str(settings[config_manager.ANALYZER_KEY]))
    for key, value in controls.to_mapping().items():
        table.add_row(key, str(value))
    console.print(table)


@config_grp.command("set")
def config_set(
    key: str = typer.Argument(..., help="Control key, e.g. sliceDepth or showInterface."),
    value: str = typer.Argument(..., help="New value."),
):
    """Persist a control default."""
    known = set(DEFAULT_CONTROLS) | {config_manager.ANALYZER_KEY}
    if key not in known and not (key.startswith(TYPE_FLAG_PREFIX) and len(key) > len(TYPE_FLAG_PREFIX)):
        raise typer.BadParameter(f"Unknown control '{key}'.")
    try:
        coerced = config_manager.coerce_setting(key, value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    config_manager.save_control_setting(key, coerced)
    typer.echo(f"Set {key} = {coerced}")


@config_grp.command("reset")
def config_reset():
    """Restore built-in control defaults."""
    config_manager.reset_controls()
    typer.echo("Controls reset to defaults.")


if __name__ == "__main__":
    app()
