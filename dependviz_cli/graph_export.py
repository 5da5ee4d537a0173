"""Graph export helpers for DOT, JSON, and simple standalone HTML outputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .models import GraphView


def view_payload(view: GraphView) -> Dict[str, Any]:
    """JSON-ready filtered view; slice membership is flagged per node."""
    in_slice = view.slice.slice_nodes if view.slice is not None else None
    nodes = []
    for node in view.nodes:
        item = node.to_dict()
        if in_slice is not None:
            item["inSlice"] = node.node_id in in_slice
        nodes.append(item)
    payload: Dict[str, Any] = {"nodes": nodes, "links": [link.to_dict() for link in view.links]}
    if view.slice is not None:
        payload["slice"] = {
            "nodes": sorted(view.slice.slice_nodes),
            "links": sorted(
                (link.to_dict() for link in view.slice.slice_links),
                key=lambda item: (item["source"], item["type"], item["target"]),
            ),
        }
    return payload


def render_dot(view: GraphView) -> str:
    in_slice = view.slice.slice_nodes if view.slice is not None else set()

    lines = ["digraph DependViz {"]
    lines.append("  rankdir=LR;")

    for node in view.nodes:
        label = f"{_esc(node.node_type)}\\n{_esc(node.name or node.node_id)}"
        attrs = f'label="{label}"'
        if node.node_id in in_slice:
            attrs += ", style=bold"
        lines.append(f'  "{_esc(node.node_id)}" [{attrs}];')

    for link in view.links:
        lines.append(
            f'  "{_esc(link.source)}" -> "{_esc(link.target)}" [label="{_esc(link.link_type)}"];'
        )

    lines.append("}")
    return "\n".join(lines)


def _script_json(data: Any) -> str:
    # "</" would end the surrounding <script> element early.
    return json.dumps(data).replace("</", "<\\/")


def render_html(view: GraphView) -> str:
    """Standalone page listing the filtered view; slice members are highlighted."""
    payload = _script_json(view_payload(view))
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>DependViz view</title>
  <style>
    body {{ font-family: system-ui, sans-serif; margin: 0; color: #222; }}
    header {{ background: #263238; color: #eceff1; padding: 12px 20px; }}
    header small {{ color: #90a4ae; margin-left: 12px; }}
    main {{ display: flex; gap: 24px; padding: 16px 20px; }}
    section {{ flex: 1; }}
    table {{ border-collapse: collapse; width: 100%; font-size: 13px; }}
    th, td {{ text-align: left; padding: 3px 8px; border-bottom: 1px solid #eceff1; }}
    tr.in-slice td {{ background: #fff8e1; font-weight: 600; }}
  </style>
</head>
<body>
  <header>DependViz view<small id="summary"></small></header>
  <main>
    <section>
      <table>
        <thead><tr><th>Node</th><th>Type</th><th>Path</th></tr></thead>
        <tbody id="node-rows"></tbody>
      </table>
    </section>
    <section>
      <table>
        <thead><tr><th>Source</th><th>Link</th><th>Target</th></tr></thead>
        <tbody id="link-rows"></tbody>
      </table>
    </section>
  </main>
  <script type="application/json" id="view-data">{payload}</script>
  <script>
    const view = JSON.parse(document.getElementById('view-data').textContent);
    function addRow(tbodyId, cells, cls) {{
      const tr = document.createElement('tr');
      if (cls) tr.className = cls;
      cells.forEach(text => {{
        const td = document.createElement('td');
        td.textContent = text == null ? '' : String(text);
        tr.appendChild(td);
      }});
      document.getElementById(tbodyId).appendChild(tr);
    }}
    view.nodes.forEach(n => addRow('node-rows', [n.name || n.id, n.type, n.filePath || n.file], n.inSlice ? 'in-slice' : ''));
    view.links.forEach(l => addRow('link-rows', [l.source, l.type, l.target]));
    document.getElementById('summary').textContent =
      `${{view.nodes.length}} nodes, ${{view.links.length}} links` + (view.slice ? `, ${{view.slice.nodes.length}} in slice` : '');
  </script>
</body>
</html>
"""


def export_view(view: GraphView, output_file: Path, fmt: str) -> None:
    if fmt == "dot":
        text = render_dot(view)
    elif fmt == "html":
        text = render_html(view)
    elif fmt == "json":
        text = json.dumps(view_payload(view), indent=2)
    else:
        raise ValueError(f"Unsupported export format: {fmt}")
    output_file.write_text(text, encoding="utf-8")


def _esc(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
