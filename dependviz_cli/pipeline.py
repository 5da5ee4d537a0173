"""Filter pipeline turning a graph snapshot plus controls into the rendered subset."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .controls import Controls
from .models import GraphData, GraphView, Link, Node, SliceResult
from .query import QueryNode, QueryParseError, evaluate, parse_query
from .slicing import compute_slice

logger = logging.getLogger(__name__)


def _compile_search(search: str) -> Optional[QueryNode]:
    if not search or not search.strip():
        return None
    try:
        return parse_query(search)
    except QueryParseError as exc:
        logger.debug("Search %r not applied: %s", search, exc)
        return None


def slice_for(controls: Controls, nodes: List[Node], links: List[Link]) -> Optional[SliceResult]:
    """Slice around the focused node, or ``None`` when slicing is inactive."""
    if not controls.has_slice:
        return None
    return compute_slice(
        controls.focused_node,
        controls.enable_forward_slice,
        controls.enable_backward_slice,
        controls.slice_depth,
        nodes,
        links,
    )


def apply_filters(
    nodes: Iterable[Node],
    links: Iterable[Link],
    controls: Controls,
    slice_result: Optional[SliceResult] = None,
) -> GraphData:
    """Apply type, search, slice, and isolation rules in that order.

    Isolation is judged on each node's ``neighbors`` in the full graph, so a
    node whose neighbours were all filtered out is still kept. Input order
    is preserved for both nodes and links.
    """
    nodes = list(nodes)
    links = list(links)

    ast = _compile_search(controls.search)
    if slice_result is None:
        slice_result = slice_for(controls, nodes, links)

    kept: List[Node] = []
    for node in nodes:
        if not controls.is_type_enabled(node.node_type):
            continue
        if ast is not None and not evaluate(ast, node):
            continue
        if slice_result is not None and node.node_id not in slice_result.slice_nodes:
            continue
        if controls.hide_isolated_nodes and not node.neighbors:
            continue
        kept.append(node)

    kept_ids = {node.node_id for node in kept}
    kept_links = [
        link
        for link in links
        if controls.is_type_enabled(link.link_type)
        and link.source in kept_ids
        and link.target in kept_ids
    ]
    return GraphData(nodes=kept, links=kept_links)


def compute_view(graph: GraphData, controls: Controls) -> GraphView:
    """Filtered subset for rendering together with the raw slice sets."""
    slice_result = slice_for(controls, graph.nodes, graph.links)
    filtered = apply_filters(graph.nodes, graph.links, controls, slice_result=slice_result)
    logger.debug(
        "Filtered %d/%d nodes, %d/%d links",
        len(filtered.nodes),
        len(graph.nodes),
        len(filtered.links),
        len(graph.links),
    )
    return GraphView(nodes=filtered.nodes, links=filtered.links, slice=slice_result)
