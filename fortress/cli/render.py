"""Console rendering shared by validate, quick and report."""

from __future__ import annotations

import re
from typing import List, Tuple

from rich.console import Console
from rich.markup import escape

from fortress.checks.base import CheckResult
from fortress.models import FortressConfig
from fortress.scorer import ScoreResult

MAX_ERRORS_SHOWN = 5
RULE = "─" * 50

# Failures in these checks usually mean the tool is not installed yet.
SETUP_CHECKS = frozenset({"typescript", "lint"})
_SETUP_ERROR_RE = re.compile(
    r"not found|ENOENT|could not determine executable|compilation failed|check failed",
    re.IGNORECASE,
)


def score_style(score: float) -> str:
    if score >= 95:
        return "bold green"
    if score >= 80:
        return "bold yellow"
    return "bold red"


def print_header(console: Console, title: str, subtitle: str) -> None:
    console.print(f"\n[bold blue]{title}[/]")
    console.print(f"[dim]{subtitle}[/]\n")


def render_check_results(
    console: Console,
    results: List[CheckResult],
    config: FortressConfig,
    show_score: bool = False,
) -> Tuple[bool, int]:
    """Print one block per check. Returns (all enabled passed, enabled count)."""
    all_passed = True
    enabled = 0

    for result in results:
        name = escape(result.name)
        if not config.is_enabled(result.key):
            console.print(f"  [dim]\\[SKIP][/] {name} [dim](disabled)[/]")
            continue

        enabled += 1
        icon = "[green]\\[PASS][/]" if result.passed else "[red]\\[FAIL][/]"
        duration = f" [dim]({result.duration / 1000:.1f}s)[/]" if result.duration > 0 else ""
        points = f" [dim]({result.score:g}/{config.weight_of(result.key)} pts)[/]" if show_score else ""
        console.print(f"  {icon} {name}{points}{duration}")

        if not result.passed:
            all_passed = False
            for error in result.errors[:MAX_ERRORS_SHOWN]:
                console.print(f"         [red]{escape(error)}[/]")
            if len(result.errors) > MAX_ERRORS_SHOWN:
                console.print(f"         [dim]... and {len(result.errors) - MAX_ERRORS_SHOWN} more[/]")

        for warning in result.warnings:
            console.print(f"         [yellow]{escape(warning)}[/]")

    return all_passed, enabled


def render_no_checks(console: Console) -> None:
    console.print("[bold]  Score: [yellow]N/A[/][/]  [dim](no checks enabled)[/]")
    console.print("  [bold yellow]No checks are enabled.[/]")
    console.print("  [dim]Fortress doesn't have anything to validate yet.[/]\n")
    console.print("  [bold]What to do next:[/]")
    console.print("  [dim]•[/] Edit [bold]fortress.config.yaml[/] and set [bold]enabled: true[/] on the checks you want\n")


def render_score_line(console: Console, score_result: ScoreResult, duration_ms: int) -> None:
    style = score_style(score_result.score)
    console.print(f"[bold]  Score: [{style}]{score_result.score}/100[/][/]  [dim]({duration_ms / 1000:.1f}s)[/]")


def looks_like_setup_issue(results: List[CheckResult], config: FortressConfig) -> bool:
    """True when every failure is a missing-tool failure in a setup-sensitive check."""
    failed = [r for r in results if config.is_enabled(r.key) and not r.passed]
    return bool(failed) and all(
        r.key in SETUP_CHECKS and any(_SETUP_ERROR_RE.search(e) for e in r.errors) for r in failed
    )


def render_setup_guidance(console: Console) -> None:
    console.print("  [bold yellow]Some checks failed, but that's expected.[/]")
    console.print("  [dim]You selected tools that aren't set up in this project yet.[/]\n")
    console.print("  [bold]What to do next:[/]")
    console.print("  [dim]•[/] Install the missing tools (see the hints above)")
    console.print("  [dim]•[/] Or edit [bold]fortress.config.yaml[/] to disable checks you're not ready for\n")
