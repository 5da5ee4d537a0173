"""Bounded forward/backward dependency slices around a focused node."""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import Deque, Dict, Iterable, List, Set, Tuple

from .models import Link, Node, SliceResult

logger = logging.getLogger(__name__)

FORWARD = "forward"
BACKWARD = "backward"


def _index_links(node_ids: Set[str], links: Iterable[Link]) -> Tuple[Dict[str, List[Link]], Dict[str, List[Link]]]:
    outgoing: Dict[str, List[Link]] = defaultdict(list)
    incoming: Dict[str, List[Link]] = defaultdict(list)
    for link in links:
        if link.source not in node_ids or link.target not in node_ids:
            continue
        outgoing[link.source].append(link)
        incoming[link.target].append(link)
    return outgoing, incoming


def compute_slice(
    focus: str,
    forward: bool,
    backward: bool,
    max_depth: int,
    nodes: Iterable[Node],
    links: Iterable[Link],
) -> SliceResult:
    """Collect nodes and links within *max_depth* hops of *focus*.

    Forward hops follow links from source to target, backward hops from
    target to source. Both directions share one visited set, so every node
    is expanded at most once and cyclic graphs terminate. The focus node is
    always part of the result.
    """
    slice_nodes: Set[str] = {focus}
    slice_links: Set[Link] = set()

    node_ids = {node.node_id for node in nodes}
    if focus not in node_ids:
        logger.debug("Focus node %s is not in the graph", focus)
        return SliceResult(slice_nodes, slice_links)
    if max_depth <= 0 or not (forward or backward):
        return SliceResult(slice_nodes, slice_links)

    outgoing, incoming = _index_links(node_ids, links)

    queue: Deque[Tuple[str, int, str]] = deque()
    if forward:
        queue.append((focus, max_depth, FORWARD))
    if backward:
        queue.append((focus, max_depth, BACKWARD))

    while queue:
        current, remaining, direction = queue.popleft()
        if remaining <= 0:
            continue
        if direction == FORWARD:
            edges = outgoing.get(current, [])
        else:
            edges = incoming.get(current, [])
        for link in edges:
            slice_links.add(link)
            nxt = link.target if direction == FORWARD else link.source
            if nxt not in slice_nodes:
                slice_nodes.add(nxt)
                queue.append((nxt, remaining - 1, direction))

    return SliceResult(slice_nodes, slice_links)
