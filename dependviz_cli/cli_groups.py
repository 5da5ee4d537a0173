"""Command hierarchy groups for organized CLI experience.

Provides logical grouping of commands under:
  dviz query   — Inspect how a search query tokenizes and parses
  dviz config  — Persisted control defaults
"""

from __future__ import annotations

import typer

# ── Query language group ─────────────────────────────────────
query_grp = typer.Typer(
    help="🔎 Query — tokenize and parse search queries.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Configuration group ──────────────────────────────────────
config_grp = typer.Typer(
    help="⚙️  Configuration — default filter and slice controls.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
