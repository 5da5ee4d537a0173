"""Pytest configuration and fixtures for DependViz CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator, List

import pytest

from dependviz_cli.graph import build_neighbors, load_graph
from dependviz_cli.models import GraphData, Link, Node


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def temp_config_home(temp_dir: Path, monkeypatch) -> Path:
    """Point the settings directory at a temporary location.

    Keeps tests from reading or writing the developer's ~/.dependviz.
    """
    home = temp_dir / "home"
    monkeypatch.setattr("dependviz_cli.config.BASE_DIR", home)
    monkeypatch.setattr("dependviz_cli.config.CONFIG_FILE", home / "config.toml")
    return home


@pytest.fixture
def sample_graph_path() -> Path:
    """Get path to the sample Java dependency graph."""
    return Path(__file__).parent / "fixtures" / "sample_graph.json"


@pytest.fixture
def sample_graph(sample_graph_path: Path) -> GraphData:
    return load_graph(sample_graph_path)


def make_graph(node_specs: List[tuple], link_specs: List[tuple]) -> GraphData:
    """Build a snapshot from ``(id, type, name)`` and ``(src, dst, type)`` tuples."""
    nodes = [Node(node_id=i, node_type=t, name=n) for i, t, n in node_specs]
    links = [Link(source=s, target=d, link_type=t) for s, d, t in link_specs]
    return GraphData(nodes=build_neighbors(nodes, links), links=links)


@pytest.fixture
def cyclic_graph() -> GraphData:
    """a -> b -> c -> a, plus d -> a feeding into the cycle."""
    return make_graph(
        [("a", "Class", "A"), ("b", "Class", "B"), ("c", "Class", "C"), ("d", "Class", "D")],
        [("a", "b", "MethodCall"), ("b", "c", "MethodCall"), ("c", "a", "MethodCall"), ("d", "a", "TypeUse")],
    )


@pytest.fixture
def graph_factory():
    return make_graph
