"""Explicit control map consumed by the filter pipeline.

The extension stores controls as one flat camelCase map
(``search``, ``hideIsolatedNodes``, ``showClass``, ``sliceDepth`` ...).
:class:`Controls` is the typed form of that map.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TYPE_FLAG_PREFIX = "show"

# Node and edge types each analyzer emits, with their default visibility.
ANALYZER_PROFILES: Dict[str, Dict[str, Dict[str, bool]]] = {
    "java": {
        "node": {"Class": True, "AbstractClass": True, "Interface": True, "Unknown": False},
        "edge": {
            "ObjectCreate": True,
            "Extends": True,
            "Implements": True,
            "TypeUse": True,
            "MethodCall": True,
        },
    },
    "javascript": {
        "node": {"File": True},
        "edge": {"Import": True, "Require": True, "DynamicImport": True},
    },
}
DEFAULT_ANALYZER = "java"

DEFAULT_CONTROLS: Dict[str, Any] = {
    "search": "",
    "hideIsolatedNodes": False,
    "sliceDepth": 3,
    "enableForwardSlice": True,
    "enableBackwardSlice": True,
}


def type_flag_key(type_name: str) -> str:
    return f"{TYPE_FLAG_PREFIX}{type_name}"


def profile_type_flags(analyzer: str) -> Dict[str, bool]:
    """Default ``show<Type>`` flags for an analyzer profile."""
    if analyzer not in ANALYZER_PROFILES:
        raise KeyError(f"Unknown analyzer profile: {analyzer}")
    profile = ANALYZER_PROFILES[analyzer]
    flags: Dict[str, bool] = {}
    for category in ("node", "edge"):
        flags.update(profile[category])
    return flags


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass
class Controls:
    search: str = ""
    hide_isolated_nodes: bool = False
    enable_forward_slice: bool = True
    enable_backward_slice: bool = True
    slice_depth: int = 3
    focused_node: Optional[str] = None
    type_flags: Dict[str, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.slice_depth < 0:
            raise ValueError("slice_depth must be >= 0")

    @property
    def has_slice(self) -> bool:
        return bool(self.focused_node) and (self.enable_forward_slice or self.enable_backward_slice)

    def is_type_enabled(self, type_name: str) -> bool:
        # Types the active profile never declared stay visible.
        return self.type_flags.get(type_name, True)

    def disabled_types(self) -> List[str]:
        return sorted(name for name, enabled in self.type_flags.items() if not enabled)

    @classmethod
    def from_mapping(
        cls,
        flat: Dict[str, Any],
        analyzer: Optional[str] = None,
    ) -> "Controls":
        """Build controls from a flat camelCase map.

        When *analyzer* is given its profile seeds the type flags before the
        ``show<Type>`` entries of *flat* are applied.
        """
        merged = {**DEFAULT_CONTROLS, **flat}
        flags = profile_type_flags(analyzer) if analyzer else {}
        for key, value in flat.items():
            if key.startswith(TYPE_FLAG_PREFIX) and len(key) > len(TYPE_FLAG_PREFIX):
                flags[key[len(TYPE_FLAG_PREFIX):]] = _as_bool(value)

        focus = merged.get("focusedNode")
        return cls(
            search=str(merged.get("search") or ""),
            hide_isolated_nodes=_as_bool(merged["hideIsolatedNodes"]),
            enable_forward_slice=_as_bool(merged["enableForwardSlice"]),
            enable_backward_slice=_as_bool(merged["enableBackwardSlice"]),
            slice_depth=int(merged["sliceDepth"]),
            focused_node=str(focus) if focus else None,
            type_flags=flags,
        )

    def to_mapping(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "search": self.search,
            "hideIsolatedNodes": self.hide_isolated_nodes,
            "enableForwardSlice": self.enable_forward_slice,
            "enableBackwardSlice": self.enable_backward_slice,
            "sliceDepth": self.slice_depth,
        }
        if self.focused_node:
            out["focusedNode"] = self.focused_node
        for name, enabled in sorted(self.type_flags.items()):
            out[type_flag_key(name)] = enabled
        return out
