"""
Rendering functions for ecscicd output.

This module handles all pretty-printing and table formatting.
Core functions return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from rich.markup import escape
from typing import Any, Dict, List, Optional

from .domain.operation import PipelineState, RunOutcome

console = Console()

STATE_STYLES = {
    PipelineState.NO_BUILD: "green",
    PipelineState.PUBLISHED: "green",
    PipelineState.FAILED: "red",
}


def render_table(headers: List[str], rows: List[List[str]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    for header in headers:
        table.add_column(header)

    for row in rows:
        table.add_row(*["-" if val is None else escape(str(val)) for val in row])

    console.print(table)


def render_status_table(status: Dict[str, Any]) -> None:
    """Render working copy facts as a two-column table."""
    rows = [[key, value] for key, value in status.items()]
    render_table(["Field", "Value"], rows, title="Working copy")


def render_outcome(outcome: RunOutcome) -> None:
    """Render the stages of one invocation followed by its status line."""
    rows = []
    if outcome.sync:
        sync = outcome.sync
        rows.append(["sync", "cloned" if sync.cloned else "fetched",
                     f"remote {sync.remote_commit or '-'} / built {sync.stored_commit or '-'}"])
    if outcome.build:
        rows.append(["build", "built", f"{outcome.build.version_tag} ({outcome.build.commit})"])
    if outcome.publish:
        rows.append(["publish", "pushed", ", ".join(outcome.publish.pushed_tags)])
    if outcome.error:
        rows.append([outcome.failed_stage or "pipeline", "failed", outcome.error])

    render_table(["Stage", "Result", "Details"], rows, title=" -> ".join(s.value for s in outcome.history))

    style = STATE_STYLES.get(outcome.state, "yellow")
    console.print(f"[{style}]{escape(outcome.status_line)}[/{style}]", highlight=False)
