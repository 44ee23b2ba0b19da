"""
Rendering functions for regindex output.

This module handles all pretty-printing and table formatting.
Core functions return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import Any, Dict, List, Optional

from .domain import IndexRecord

console = Console()


def render_records_table(records: List[IndexRecord], title: Optional[str] = None) -> None:
    """
    Render index records as a pretty table.

    Args:
        records: Records of one search page
        title: Optional table title
    """
    if not records:
        console.print("[yellow]No repositories found.[/yellow]")
        return

    table = Table(
        title=title or f"Repositories ({len(records)} results)",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Repository", style="cyan")
    table.add_column("Digest", style="green")
    table.add_column("URL", style="dim")
    table.add_column("Updated", style="yellow")

    for record in records:
        table.add_row(
            record.repository,
            _short_digest(record.digest),
            record.url,
            record.updated_at.strftime('%Y-%m-%d %H:%M:%S'),
        )

    console.print(table)


def render_info_table(info: Dict[str, Any], title: str = "Index Database") -> None:
    """Render a key/value mapping as a two-column table."""
    table = Table(title=title, box=box.ROUNDED, show_header=False)
    table.add_column("Key", style="bold")
    table.add_column("Value")

    for key, value in info.items():
        table.add_row(key.replace('_', ' '), str(value))

    console.print(table)


def _short_digest(digest: str) -> str:
    """sha256:0123456789abcdef... -> sha256:0123456789ab"""
    algo, sep, hex_part = digest.partition(':')
    if not sep:
        return digest[:12]
    return f"{algo}:{hex_part[:12]}"
