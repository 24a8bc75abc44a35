"""CLI command: trend."""

from __future__ import annotations

import click
from rich.table import Table

from fortress.cli import cli, emit_json, load_or_exit, output_options
from fortress.cli.render import score_style
from fortress.config import DEFAULT_TREND_LIMIT
from fortress.trend import format_date, get_trend, load_reports, sparkline

TREND_LABELS = {
    "improving": "[green]↑ Improving[/]",
    "declining": "[red]↓ Declining[/]",
    "stable": "[yellow]→ Stable[/]",
    "insufficient": "[dim]? Not enough data[/]",
}


@cli.command("trend")
@output_options
@click.option(
    "--limit",
    "-n",
    type=click.IntRange(min=1),
    default=DEFAULT_TREND_LIMIT,
    show_default=True,
    help="Number of most recent reports",
)
def trend(root, as_json, console, limit):
    """Score history across saved reports."""
    config = load_or_exit(root, console, as_json)
    reports = load_reports(config.report_dir(), limit)

    if not reports:
        if as_json:
            emit_json({"reports": [], "trend": "insufficient", "sparkline": ""})
        else:
            console.print("\n[bold blue]Fortress Trend[/]")
            console.print("\n  [yellow]No reports found.[/]")
            console.print("  [dim]Run[/] [bold]fortress report[/] [dim]to generate your first report.[/]\n")
        return

    direction = get_trend(reports)
    spark = sparkline(reports)

    if as_json:
        emit_json(
            {
                "reports": [
                    {
                        "timestamp": r["timestamp"],
                        "score": r["score"],
                        "deployReady": r["deployReady"],
                        "duration": r["duration"],
                    }
                    for r in reports
                ],
                "trend": direction,
                "sparkline": spark,
            }
        )
        return

    plural = "" if len(reports) == 1 else "s"
    console.print("\n[bold blue]Fortress Trend[/]")
    console.print(f"[dim]Score history across {len(reports)} report{plural}[/]\n")
    console.print(f"  [bold]Sparkline:[/] {spark}\n")

    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Date", style="bold", width=18)
    table.add_column("Score", width=7)
    table.add_column("Status", width=12)
    for r in reports:
        status = "[green]deploy ready[/]" if r["deployReady"] else "[red]not ready[/]"
        table.add_row(format_date(r["timestamp"]), f"[{score_style(r['score'])}]{r['score']}[/]", status)
    console.print(table)

    console.print(f"\n  [bold]Trend:[/] {TREND_LABELS[direction]}\n")
