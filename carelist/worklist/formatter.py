"""
Rich formatter for the caregiver worklist.

Handles all Rich-based CLI formatting for the worklist display.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich import box

from carelist.core.errors import AggregationError
from carelist.core.models import ActivityKind, Task, TaskStatus, WorklistQuery
from carelist.worklist.day_boundary import TimeZoneLike, resolve_timezone
from carelist.worklist.stats import WorklistStats


# Status icons for tasks
STATUS_ICONS = {
    TaskStatus.PENDING: "[dim]○[/dim]",
    TaskStatus.COMPLETED: "[green]✓[/green]",
}

KIND_LABELS = {
    ActivityKind.VITAL_SIGNS: "[cyan]Vitals[/cyan]",
    ActivityKind.ASSESSMENT: "[magenta]Assessment[/magenta]",
}


class WorklistFormatter:
    """
    Rich-based formatter for the daily worklist.

    Creates terminal output using Rich panels, tables, and styling.
    """

    def __init__(self, tz: TimeZoneLike, console: Optional[Console] = None):
        """
        Initialize formatter.

        Args:
            tz: Facility timezone used to display times
            console: Rich Console instance (creates default if not provided)
        """
        self.tz = resolve_timezone(tz)
        self.console = console or Console()

    def _truncate(self, text: str, width: int) -> str:
        return text[:width] + "..." if len(text) > width else text

    def _format_status(self, task: Task, now: datetime) -> str:
        if task.is_completed:
            return "[green]Completed[/green]"
        if task.is_overdue(now):
            return "[red bold]Overdue[/red bold]"
        return "[yellow]Pending[/yellow]"

    def _format_due(self, task: Task) -> str:
        local = task.due_at.astimezone(self.tz)
        return f"[dim]{local.strftime('%H:%M')}[/dim]"

    def format_header(self, now: datetime, stats: WorklistStats) -> Panel:
        """
        Create header panel with date and resident count.

        Args:
            now: Reference instant of the build
            stats: Summary of the worklist

        Returns:
            Rich Panel with header content
        """
        local = now.astimezone(self.tz)
        content = Text()
        content.append(f"{stats.residents} resident{'s' if stats.residents != 1 else ''} assigned\n",
                       style="bold")
        content.append(local.strftime("%A, %d %B %Y"), style="dim")

        return Panel(
            content,
            title="[bold]Today's Worklist[/bold]",
            title_align="center",
            border_style="blue",
            padding=(0, 2),
        )

    def format_overdue_warning(self, tasks: Sequence[Task], now: datetime) -> Optional[Panel]:
        """
        Create red warning panel for overdue tasks.

        Returns:
            Rich Panel or None if no overdue tasks
        """
        overdue = [t for t in tasks if t.is_overdue(now)]
        if not overdue:
            return None

        table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
        table.add_column("Title", ratio=1)
        table.add_column("Location", width=18, justify="right")

        for task in overdue[:5]:  # Limit to 5
            table.add_row(self._truncate(task.title, 40), f"[dim]{task.location.label}[/dim]")

        if len(overdue) > 5:
            table.add_row(f"[dim]+ {len(overdue) - 5} more...[/dim]", "")

        return Panel(
            table,
            title=f"[red bold]⚠ Overdue ({len(overdue)})[/red bold]",
            border_style="red",
            padding=(0, 1),
        )

    def format_task_table(self, tasks: Sequence[Task], now: datetime,
                          verbose: bool = False) -> Panel:
        """
        Create the main task table.

        Args:
            tasks: Tasks already filtered and sorted for display
            now: Reference instant for overdue highlighting
            verbose: Include task descriptions and ids

        Returns:
            Rich Panel with the task table
        """
        if not tasks:
            return Panel(
                Text("No tasks match", style="dim", justify="center"),
                title="[bold]Tasks[/bold]",
                border_style="green",
                padding=(0, 1),
            )

        table = Table(box=box.SIMPLE, padding=(0, 1), expand=True)
        table.add_column("", width=1)
        table.add_column("Type", width=10)
        table.add_column("Resident", ratio=1, min_width=12, no_wrap=True, overflow="ellipsis")
        table.add_column("Location", width=16, no_wrap=True, overflow="ellipsis")
        table.add_column("Due", width=5, justify="right")
        table.add_column("Status", width=9, justify="right")
        if verbose:
            table.add_column("Details", ratio=2)

        for task in tasks:
            row = [
                STATUS_ICONS.get(task.status, "○"),
                KIND_LABELS.get(task.kind, task.kind.value),
                self._truncate(task.resident_name or task.resident_ref, 28),
                task.location.label if task.location.is_resolved else f"[dim]{task.location.label}[/dim]",
                self._format_due(task),
                self._format_status(task, now),
            ]
            if verbose:
                row.append(f"{task.description} [dim]({task.id})[/dim]")
            table.add_row(*row)

        return Panel(
            table,
            title=f"[bold]Tasks ({len(tasks)})[/bold]",
            border_style="green",
            padding=(0, 1),
        )

    def format_stats_bar(self, stats: WorklistStats) -> str:
        """Create single-line stats summary."""
        parts = [
            f"[green]✓ {stats.completed}[/green] done",
            f"[yellow]○ {stats.pending}[/yellow] pending",
        ]
        if stats.overdue:
            parts.append(f"[red]⚠ {stats.overdue}[/red] overdue")
        parts.append(f"{stats.completion_rate:.0f}% complete")
        return " │ ".join(parts)

    def format_query(self, query: WorklistQuery) -> str:
        search = f' "{query.search}"' if query.search.strip() else ""
        return f"[dim]filter: {query.status.value} • sort: {query.sort.value}{search}[/dim]"

    def render_error(self, error: AggregationError) -> None:
        self.console.print(Panel(
            f"{error.message}\n[dim]{error.detail}[/dim]" if error.detail else error.message,
            title="[red bold]Worklist unavailable[/red bold]",
            border_style="red",
            padding=(0, 1),
        ))

    def render_worklist(
        self,
        tasks: List[Task],
        all_tasks: Sequence[Task],
        stats: WorklistStats,
        now: datetime,
        query: Optional[WorklistQuery] = None,
        verbose: bool = False,
    ) -> None:
        """
        Render the complete worklist to console.

        Args:
            tasks: Filtered/sorted tasks to list
            all_tasks: Full snapshot, used for the overdue warning
            stats: Summary of the full snapshot
            now: Reference instant of the build
            query: Active query, shown under the table
            verbose: Show additional details if True
        """
        self.console.print(self.format_header(now, stats))
        self.console.print()

        overdue_panel = self.format_overdue_warning(all_tasks, now)
        if overdue_panel:
            self.console.print(overdue_panel)
            self.console.print()

        self.console.print(self.format_task_table(tasks, now, verbose=verbose))
        if query is not None:
            self.console.print(self.format_query(query), justify="right")

        self.console.print("─" * 60)
        self.console.print(self.format_stats_bar(stats), justify="center")
        self.console.print("─" * 60)
