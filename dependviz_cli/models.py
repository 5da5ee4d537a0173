"""Core data models shared by the query, slicing, and filter layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple


def _endpoint_id(value: Any) -> str:
    # Renderers embed node objects in link endpoints after layout.
    if isinstance(value, dict):
        return str(value.get("id", ""))
    return str(value)


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True)
class Node:
    node_id: str
    node_type: str = "Unknown"
    name: Optional[str] = None
    file_path: Optional[str] = None
    file: Optional[str] = None
    lines_of_code: Optional[int] = None
    neighbors: Tuple[str, ...] = ()

    @property
    def path(self) -> Optional[str]:
        return self.file_path or self.file

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Node":
        loc = payload.get("linesOfCode")
        return cls(
            node_id=str(payload["id"]),
            node_type=str(payload.get("type") or "Unknown"),
            name=_opt_str(payload.get("name")),
            file_path=_opt_str(payload.get("filePath")),
            file=_opt_str(payload.get("file")),
            lines_of_code=int(loc) if loc is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.node_id, "type": self.node_type}
        if self.name is not None:
            out["name"] = self.name
        if self.file_path is not None:
            out["filePath"] = self.file_path
        if self.file is not None:
            out["file"] = self.file
        if self.lines_of_code is not None:
            out["linesOfCode"] = self.lines_of_code
        return out


@dataclass(frozen=True)
class Link:
    source: str
    target: str
    link_type: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Link":
        return cls(
            source=_endpoint_id(payload["source"]),
            target=_endpoint_id(payload["target"]),
            link_type=str(payload.get("type", "")),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "target": self.target, "type": self.link_type}

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.source, self.link_type, self.target)


@dataclass
class GraphData:
    nodes: List[Node] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [link.to_dict() for link in self.links],
        }


@dataclass
class SliceResult:
    slice_nodes: Set[str]
    slice_links: Set[Link]


@dataclass
class GraphView:
    """Filtered subset for rendering plus the raw slice for dimming."""

    nodes: List[Node]
    links: List[Link]
    slice: Optional[SliceResult] = None
