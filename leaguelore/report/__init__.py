from .formatters import format_json, format_markdown
from .render import md_escape, md_table

__all__ = ["format_json", "format_markdown", "md_escape", "md_table"]
