"""Markdown rendering helpers with deterministic formatting.

Tables are built with escaped pipe characters and stable column ordering to
ensure reproducible output suitable for parsing.
"""
from __future__ import annotations
from typing import Any


def md_escape(s: str) -> str:
    """Escape pipe characters for safe Markdown table rendering."""
    return s.replace("|", "\\|")


def md_cell(v: Any) -> str:
    """Table cell text: ``-`` for missing values, two decimals for floats."""
    if v is None:
        return "-"
    if isinstance(v, bool):
        return "yes" if v else "no"
    if isinstance(v, float):
        return f"{v:.2f}"
    return md_escape(str(v))


def md_table(headers: list[str], rows: list[list[Any]]) -> list[str]:
    """Render a Markdown table into a list of lines (header, separator, rows)."""
    lines: list[str] = []
    lines.append("| " + " | ".join(md_escape(str(h)) for h in headers) + " |")
    lines.append("| " + " | ".join(":---" for _ in headers) + " |")
    for r in rows:
        lines.append("| " + " | ".join(md_cell(c) for c in r) + " |")
    return lines
