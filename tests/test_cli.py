"""Integration tests for CLI commands."""

import json
from pathlib import Path

from typer.testing import CliRunner

from dependviz_cli.cli import app


runner = CliRunner()


class TestFilterCommand:
    """Tests for 'dviz filter'."""

    def test_filter_all(self, sample_graph_path: Path):
        result = runner.invoke(app, ["filter", str(sample_graph_path)])

        assert result.exit_code == 0
        assert "Nodes: 7/7 | Links: 6/6" in result.stdout

    def test_filter_query_json(self, sample_graph_path: Path):
        result = runner.invoke(
            app, ["filter", str(sample_graph_path), "--query", "type:Interface", "--json"]
        )

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert [n["id"] for n in payload["nodes"]] == ["com.example.Service"]
        assert payload["links"] == []

    def test_filter_bad_query_is_no_op(self, sample_graph_path: Path):
        result = runner.invoke(app, ["filter", str(sample_graph_path), "-q", "((unterminated"])

        assert result.exit_code == 0
        assert "Nodes: 7/7" in result.stdout

    def test_filter_slice_and_types(self, sample_graph_path: Path):
        result = runner.invoke(
            app,
            [
                "filter", str(sample_graph_path),
                "--focus", "com.example.App",
                "--no-backward",
                "--depth", "1",
                "--hide-type", "Interface",
            ],
        )

        assert result.exit_code == 0
        assert "Nodes: 2/7 | Links: 1/6" in result.stdout

    def test_filter_focus_path(self, sample_graph_path: Path):
        result = runner.invoke(
            app,
            [
                "filter", str(sample_graph_path),
                "--focus-path", "/ws/src/main/java/com/example/BaseRepo.java",
                "--depth", "1",
                "--json",
            ],
        )

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["slice"]["nodes"] == ["com.example.BaseRepo", "com.example.UserRepo"]

    def test_filter_hide_isolated(self, sample_graph_path: Path):
        result = runner.invoke(app, ["filter", str(sample_graph_path), "--hide-isolated"])

        assert result.exit_code == 0
        assert "Nodes: 6/7" in result.stdout

    def test_filter_invalid_graph(self, temp_dir: Path):
        bad = temp_dir / "bad.json"
        bad.write_text(json.dumps({"nodes": []}), encoding="utf-8")

        result = runner.invoke(app, ["filter", str(bad)])

        assert result.exit_code == 1
        assert "Invalid graph file" in result.stdout

    def test_filter_skips_node_with_bad_line_count(self, temp_dir: Path):
        graph = temp_dir / "loc.json"
        graph.write_text(json.dumps({
            "nodes": [{"id": "a", "linesOfCode": "n/a"}, {"id": "b", "name": 5}],
            "links": [],
        }), encoding="utf-8")

        result = runner.invoke(app, ["filter", str(graph), "-q", "5"])

        assert result.exit_code == 0
        assert "Nodes: 1/1" in result.stdout

    def test_filter_non_utf8_graph(self, temp_dir: Path):
        bad = temp_dir / "latin1.json"
        bad.write_bytes(b'{"nodes": [{"id": "caf\xe9"}], "links": []}')

        result = runner.invoke(app, ["filter", str(bad)])

        assert result.exit_code == 1
        assert "Invalid graph file" in result.stdout

    def test_filter_survives_bad_config_value(self, sample_graph_path: Path, temp_config_home: Path):
        temp_config_home.mkdir(parents=True, exist_ok=True)
        (temp_config_home / "config.toml").write_text("[controls]\nsliceDepth = -2\n", encoding="utf-8")

        result = runner.invoke(app, ["filter", str(sample_graph_path)])

        assert result.exit_code == 0
        assert "Nodes: 7/7" in result.stdout

    def test_filter_missing_file(self):
        result = runner.invoke(app, ["filter", "/nonexistent/graph.json"])

        assert result.exit_code != 0


class TestSliceCommand:
    """Tests for 'dviz slice'."""

    def test_forward_slice(self, sample_graph_path: Path):
        result = runner.invoke(
            app, ["slice", str(sample_graph_path), "com.example.ServiceImpl", "--no-backward", "-d", "2"]
        )

        assert result.exit_code == 0
        assert "- com.example.BaseRepo" in result.stdout
        assert "- com.example.App" not in result.stdout
        assert "com.example.UserRepo --Extends--> com.example.BaseRepo" in result.stdout

    def test_zero_depth(self, sample_graph_path: Path):
        result = runner.invoke(app, ["slice", str(sample_graph_path), "com.example.App", "--depth", "0"])

        assert result.exit_code == 0
        assert "none" in result.stdout

    def test_depth_defaults_to_configured_value(self, sample_graph_path: Path):
        runner.invoke(app, ["config", "set", "sliceDepth", "1"])

        result = runner.invoke(
            app, ["slice", str(sample_graph_path), "com.example.ServiceImpl", "--no-backward"]
        )

        assert result.exit_code == 0
        assert "- com.example.UserRepo" in result.stdout
        assert "- com.example.BaseRepo" not in result.stdout

    def test_unknown_focus(self, sample_graph_path: Path):
        result = runner.invoke(app, ["slice", str(sample_graph_path), "com.example.Missing"])

        assert result.exit_code != 0


class TestQueryCommands:
    """Tests for 'dviz query'."""

    def test_parse(self):
        result = runner.invoke(app, ["query", "parse", "type:Class and not name:Impl"])

        assert result.exit_code == 0
        assert "AND(type:'Class', NOT(name:'Impl'))" in result.stdout

    def test_parse_error(self):
        result = runner.invoke(app, ["query", "parse", "(a OR b"])

        assert result.exit_code == 1
        assert "Parse error" in result.stdout

    def test_tokens(self):
        result = runner.invoke(app, ["query", "tokens", "name:/Te.t/"])

        assert result.exit_code == 0
        lines = result.stdout.strip().splitlines()
        assert lines[0].split() == ["STRING", "name"]
        assert lines[2].split() == ["REGEX", "Te.t"]


class TestMergeAndExport:
    """Tests for 'dviz merge' and 'dviz export'."""

    def test_merge(self, sample_graph_path: Path, temp_dir: Path):
        extra = temp_dir / "extra.json"
        extra.write_text(json.dumps({
            "nodes": [{"id": "com.example.Orphan", "type": "Class", "linesOfCode": 8}, {"id": "com.example.New"}],
            "links": [{"source": "com.example.New", "target": "com.example.Orphan", "type": "TypeUse"}],
        }), encoding="utf-8")
        output = temp_dir / "merged.json"

        result = runner.invoke(app, ["merge", str(sample_graph_path), str(extra), "-o", str(output)])

        assert result.exit_code == 0
        assert "Nodes: 8 | Links: 7" in result.stdout
        merged = json.loads(output.read_text(encoding="utf-8"))
        orphan = next(n for n in merged["nodes"] if n["id"] == "com.example.Orphan")
        assert orphan["linesOfCode"] == 8

    def test_export_dot(self, sample_graph_path: Path, temp_dir: Path):
        output = temp_dir / "view.dot"
        result = runner.invoke(
            app, ["export", str(sample_graph_path), "-f", "dot", "-o", str(output), "-q", "Repo"]
        )

        assert result.exit_code == 0
        assert output.exists()
        assert "com.example.BaseRepo" in output.read_text(encoding="utf-8")

    def test_export_bad_format(self, sample_graph_path: Path):
        result = runner.invoke(app, ["export", str(sample_graph_path), "-f", "svg"])

        assert result.exit_code != 0


class TestConfigCommands:
    """Tests for 'dviz config'."""

    def test_set_then_filter_uses_default(self, sample_graph_path: Path):
        result = runner.invoke(app, ["config", "set", "hideIsolatedNodes", "true"])
        assert result.exit_code == 0
        assert "Set hideIsolatedNodes = True" in result.stdout

        result = runner.invoke(app, ["filter", str(sample_graph_path)])
        assert "Nodes: 6/7" in result.stdout

    def test_set_unknown_key(self):
        result = runner.invoke(app, ["config", "set", "colorClass", "#fff"])

        assert result.exit_code != 0

    def test_set_invalid_value(self):
        result = runner.invoke(app, ["config", "set", "sliceDepth", "-3"])

        assert result.exit_code != 0

    def test_reset(self):
        runner.invoke(app, ["config", "set", "sliceDepth", "9"])
        result = runner.invoke(app, ["config", "reset"])

        assert result.exit_code == 0
        assert "reset" in result.stdout

    def test_show(self):
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "sliceDepth" in result.stdout


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "DependViz CLI v" in result.stdout
