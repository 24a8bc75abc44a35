"""CLI commands: validate, quick, report, deploy, detect."""

from __future__ import annotations

import subprocess
import sys
import time
from dataclasses import asdict

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fortress.checks.base import elapsed_ms
from fortress.cli import cli, emit_json, load_or_exit, output_options
from fortress.cli.render import (
    RULE,
    looks_like_setup_issue,
    print_header,
    render_check_results,
    render_no_checks,
    render_score_line,
    render_setup_guidance,
)
from fortress.detector import detect
from fortress.exceptions import ReportError
from fortress.models import FortressConfig, with_checks_disabled
from fortress.reporter import generate_report, save_report
from fortress.runner import run_checks
from fortress.scorer import calculate_score

QUICK_SKIPPED = ("security", "build")


def _run_validation(config: FortressConfig, console: Console, as_json: bool, title: str, quick: bool) -> int:
    start = time.monotonic()
    if not as_json:
        print_header(console, title, "Running enabled checks..." if quick else "Running full validation pipeline...")

    results = run_checks(config)
    score_result = calculate_score(results, config)
    duration = elapsed_ms(start)

    if as_json:
        passed = all(r.passed for r in results if config.is_enabled(r.key))
        emit_json(
            {
                "passed": passed,
                "score": score_result.score,
                "duration": duration,
                "checks": [{"key": r.key, "passed": r.passed, "score": r.score} for r in results],
            }
        )
        return 0 if passed else 1

    all_passed, enabled = render_check_results(console, results, config)
    console.print("\n" + RULE)
    if enabled == 0:
        render_no_checks(console)
    else:
        render_score_line(console, score_result, duration)
        if all_passed:
            console.print("  [bold green]All checks passed.[/]\n")
        elif quick and looks_like_setup_issue(results, config):
            render_setup_guidance(console)
        elif quick:
            console.print("  [bold red]Some checks failed.[/]\n")
        else:
            console.print("  [bold red]Validation failed.[/]\n")
    return 0 if all_passed else 1


@cli.command("validate")
@output_options
def validate(root, as_json, console):
    """Run every enabled check; exit 1 if any fails."""
    config = load_or_exit(root, console, as_json)
    sys.exit(_run_validation(config, console, as_json, "Fortress Validate", quick=False))


@cli.command("quick")
@output_options
def quick(root, as_json, console):
    """Fast validation without the dependency audit and the build."""
    config = with_checks_disabled(load_or_exit(root, console, as_json), QUICK_SKIPPED)
    sys.exit(_run_validation(config, console, as_json, "Fortress Quick Validation", quick=True))


@cli.command("report")
@output_options
def report(root, as_json, console):
    """Score the project, print deploy readiness and save a JSON report."""
    config = load_or_exit(root, console, as_json)
    start = time.monotonic()
    if not as_json:
        print_header(console, "Fortress Report", "Running all enabled checks...")

    results = run_checks(config)
    score_result = calculate_score(results, config)
    snapshot = generate_report(results, score_result, config, elapsed_ms(start))

    if as_json:
        emit_json(snapshot)
        sys.exit(0 if score_result.deploy_ready else 1)

    all_passed, enabled = render_check_results(console, results, config, show_score=True)
    console.print("\n" + RULE)
    if enabled == 0:
        render_no_checks(console)
        sys.exit(1)

    render_score_line(console, score_result, snapshot["duration"])
    threshold = config.scoring.deploy_threshold
    if score_result.deploy_ready:
        console.print(f"  [bold green]Deploy ready[/] [dim](threshold: {threshold})[/]")
    else:
        console.print(f"  [bold red]Not deploy ready[/] [dim](need {threshold}, got {score_result.score})[/]")

    saved = True
    try:
        path = save_report(snapshot, config.report_dir())
        console.print(f"\n  [dim]Report saved: {escape(str(path))}[/]\n")
    except ReportError as e:
        saved = False
        console.print(f"\n  [bold red]Failed to save report:[/] {escape(str(e))}\n")

    sys.exit(0 if score_result.deploy_ready and all_passed and saved else 1)


@cli.command("deploy")
@output_options
def deploy(root, as_json, console):
    """Validate, then report: the deploy readiness gate."""
    passthrough = ["--root", root]
    if as_json:
        passthrough.append("--json")
    if console.no_color:
        passthrough.append("--ci")

    for step in ("validate", "report"):
        # With --json, stdout carries a single document: the report's.
        quiet = as_json and step == "validate"
        proc = subprocess.run(
            [sys.executable, "-m", "fortress", step, *passthrough],
            stdout=subprocess.DEVNULL if quiet else None,
        )
        if proc.returncode != 0:
            sys.exit(1)
    sys.exit(0)


@cli.command("detect")
@output_options
def detect_cmd(root, as_json, console):
    """Show the toolchain detected for the project."""
    detection = detect(root)
    fields = asdict(detection)
    fields["root"] = str(detection.root)

    if as_json:
        emit_json(fields)
        return

    table = Table(title="Fortress Detect")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for name, value in fields.items():
        table.add_row(name, escape(value) if value else "[dim]—[/]")
    console.print(table)
