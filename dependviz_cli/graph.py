"""Graph snapshot helpers: validation, neighbour derivation, merge, file IO."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from . import DependVizError
from .models import GraphData, Link, Node

logger = logging.getLogger(__name__)

UNKNOWN_TYPE = "Unknown"
UNKNOWN_LOC = -1


class GraphDataError(DependVizError):
    """Raised when a graph payload does not have the ``{nodes, links}`` shape."""


def validate_graph_data(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise GraphDataError("data must be an object")
    if not isinstance(payload.get("nodes"), list):
        raise GraphDataError("data.nodes must be an array")
    if not isinstance(payload.get("links"), list):
        raise GraphDataError("data.links must be an array")


def build_neighbors(nodes: Iterable[Node], links: Iterable[Link]) -> List[Node]:
    """Return copies of *nodes* with ``neighbors`` recomputed from *links*.

    Adjacency is undirected and recorded once per link endpoint. Links that
    reference unknown node ids are ignored.
    """
    nodes = list(nodes)
    adjacency: Dict[str, List[str]] = {node.node_id: [] for node in nodes}
    for link in links:
        if link.source not in adjacency or link.target not in adjacency:
            continue
        adjacency[link.source].append(link.target)
        adjacency[link.target].append(link.source)
    return [replace(node, neighbors=tuple(adjacency[node.node_id])) for node in nodes]


def graph_from_dict(payload: Any) -> GraphData:
    validate_graph_data(payload)

    nodes: List[Node] = []
    seen: set = set()
    for raw in payload["nodes"]:
        if not isinstance(raw, dict) or raw.get("id") is None:
            logger.warning("Skipping node without id: %r", raw)
            continue
        try:
            node = Node.from_dict(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping malformed node %r: %s", raw.get("id"), exc)
            continue
        if node.node_id in seen:
            logger.warning("Skipping duplicate node id %s", node.node_id)
            continue
        seen.add(node.node_id)
        nodes.append(node)

    links: List[Link] = []
    for raw in payload["links"]:
        if not isinstance(raw, dict) or "source" not in raw or "target" not in raw:
            logger.warning("Skipping malformed link: %r", raw)
            continue
        links.append(Link.from_dict(raw))

    return GraphData(nodes=build_neighbors(nodes, links), links=links)


def load_graph(path: Path) -> GraphData:
    """Read a ``{nodes, links}`` JSON file into a snapshot."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise GraphDataError(f"{path} is not valid UTF-8 JSON: {exc}") from exc
    return graph_from_dict(payload)


def save_graph(graph: GraphData, path: Path) -> None:
    Path(path).write_text(json.dumps(graph.to_dict(), indent=2), encoding="utf-8")


def _merge_node(existing: Node, incoming: Node) -> Node:
    updates: Dict[str, Any] = {}
    if existing.node_type == UNKNOWN_TYPE and incoming.node_type != UNKNOWN_TYPE:
        updates["node_type"] = incoming.node_type
    if existing.lines_of_code == UNKNOWN_LOC and incoming.lines_of_code not in (None, UNKNOWN_LOC):
        updates["lines_of_code"] = incoming.lines_of_code
    if not existing.file_path and incoming.file_path:
        updates["file_path"] = incoming.file_path
    return replace(existing, **updates) if updates else existing


def merge_graph_data(target: GraphData, source: GraphData) -> GraphData:
    """Merge *source* into a copy of *target*.

    Node identity is kept by id; attributes only fill in what the existing
    record lacks. Links are deduplicated on ``(source, type, target)``.
    """
    merged: Dict[str, Node] = {node.node_id: node for node in target.nodes}
    order = [node.node_id for node in target.nodes]
    for node in source.nodes:
        if node.node_id in merged:
            merged[node.node_id] = _merge_node(merged[node.node_id], node)
        else:
            merged[node.node_id] = node
            order.append(node.node_id)

    links = list(target.links)
    keys = {link.key for link in links}
    for link in source.links:
        if link.key not in keys:
            links.append(link)
            keys.add(link.key)

    nodes = build_neighbors((merged[node_id] for node_id in order), links)
    return GraphData(nodes=nodes, links=links)


def normalize_path(path: str) -> str:
    if not path:
        return ""
    normalized = path.replace("\\", "/").rstrip("/")
    result: List[str] = []
    for part in normalized.split("/"):
        if not part or part == ".":
            continue
        if part == "..":
            if result and result[-1] != "..":
                result.pop()
            else:
                result.append(part)
        else:
            result.append(part)
    return "/".join(result)


def paths_match(left: str, right: str) -> bool:
    """Loose match between an editor path and a recorded node path.

    Equal normalized paths match. Otherwise both need at least two segments
    and a shared trailing suffix.
    """
    if not left or not right:
        return False
    norm_left = normalize_path(left)
    norm_right = normalize_path(right)
    if norm_left == norm_right:
        return True
    parts_left = [p for p in norm_left.split("/") if p]
    parts_right = [p for p in norm_right.split("/") if p]
    shortest = min(len(parts_left), len(parts_right))
    if shortest < 2:
        return False
    for size in range(1, shortest + 1):
        if parts_left[-size:] == parts_right[-size:]:
            return True
    return False


def find_node_by_path(nodes: Iterable[Node], file_path: str) -> Optional[Node]:
    for node in nodes:
        if paths_match(node.path or "", file_path):
            return node
    return None


def find_node(nodes: Iterable[Node], node_id: str) -> Optional[Node]:
    for node in nodes:
        if node.node_id == node_id:
            return node
    return None
