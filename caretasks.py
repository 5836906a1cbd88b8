#!/usr/bin/env python3
"""
Care Worklist - Command Line Interface
Shows a caregiver's daily worklist in the terminal
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from carelist.core import Config, SortKey, StatusFilter, WorklistQuery, WorklistResult
from carelist.providers import create_provider
from carelist.worklist import WorklistAggregator, WorklistFormatter, WorklistView, summarize
from carelist.worklist.day_boundary import is_valid_timezone

# Initialize CLI app and console
app = typer.Typer(help="Care Worklist - today's vital-sign and assessment tasks")

console = Console()


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _load_config() -> Config:
    config = Config()
    if not is_valid_timezone(config.facility_timezone):
        console.print(f"[red]Unknown facility timezone: {config.facility_timezone}[/red]")
        raise typer.Exit(1)
    return config


async def _build(config: Config, fixture: Optional[Path]) -> WorklistResult:
    provider = create_provider(config, fixture)
    try:
        return await WorklistAggregator(provider, config).build_worklist()
    finally:
        await provider.aclose()


def _run_build(config: Config, fixture: Optional[Path], formatter: WorklistFormatter) -> WorklistResult:
    result = asyncio.run(_build(config, fixture))
    if not result.success:
        formatter.render_error(result.error)
        raise typer.Exit(1)
    return result


@app.command()
def today(
    search: str = typer.Option("", "--search", "-s", help="Match title, resident or room"),
    status: Optional[StatusFilter] = typer.Option(None, "--status", help="Status filter (default from preferences)"),
    sort: Optional[SortKey] = typer.Option(None, "--sort", help="Sort order (default from preferences)"),
    fixture: Optional[Path] = typer.Option(None, "--fixture", "-f", help="Read data from a JSON fixture"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show descriptions and log lookups"),
):
    """
    Show today's worklist

    Examples:
      caretasks today
      caretasks today --status pending --sort resident_name
      caretasks today -s "Room 101" --fixture demo.json
    """
    _setup_logging(verbose)
    config = _load_config()
    formatter = WorklistFormatter(config.facility_timezone, console)

    result = _run_build(config, fixture, formatter)
    now = result.generated_at

    query = WorklistQuery(
        search=search,
        status=status or config.get_default_status_filter(),
        sort=sort or config.get_default_sort(),
    )
    tasks = WorklistView(config.get_kind_priority()).apply(result.tasks, query, now)

    formatter.render_worklist(
        tasks,
        result.tasks,
        summarize(result.tasks, now),
        now,
        query=query,
        verbose=verbose,
    )


@app.command()
def stats(
    fixture: Optional[Path] = typer.Option(None, "--fixture", "-f", help="Read data from a JSON fixture"),
):
    """
    Show today's completion summary

    Example:
      caretasks stats
    """
    config = _load_config()
    formatter = WorklistFormatter(config.facility_timezone, console)

    result = _run_build(config, fixture, formatter)
    console.print(formatter.format_stats_bar(summarize(result.tasks, result.generated_at)))


if __name__ == "__main__":
    app()
