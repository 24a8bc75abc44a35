"""CLI command: review (AI review agents)."""

from __future__ import annotations

import time
from typing import Any, Dict

from rich.markup import escape

from fortress.agents import (
    CODE_REVIEWER,
    REVIEW_PROMPT,
    SECURITY_AUDITOR,
    SECURITY_PROMPT,
    get_available_agents,
    invoke_agent,
    is_agent_cli_available,
    parse_code_review,
    parse_security_report,
)
from fortress.checks.base import elapsed_ms
from fortress.cli import cli, emit_json, load_or_exit, output_options
from fortress.cli.render import RULE
from fortress.config import AGENT_CLI, REVIEW_PREFIX
from fortress.exceptions import ReportError
from fortress.reporter import save_report, utc_timestamp

MAX_FINDINGS_SHOWN = 10
MAX_ITEMS_SHOWN = 5


@cli.command("review")
@output_options
def review(root, as_json, console):
    """Run the security-auditor and code-reviewer agents."""
    config = load_or_exit(root, console, as_json)

    if not is_agent_cli_available():
        if as_json:
            emit_json({"error": f"{AGENT_CLI} CLI not found", "available": False})
        else:
            console.print("\n[bold blue]Fortress Review[/]")
            console.print(f"\n  [yellow]{AGENT_CLI} CLI not found in PATH.[/]")
            console.print("  [dim]Install it to use agent-powered reviews.[/]\n")
        return

    agents = get_available_agents(config.root)
    has_auditor = SECURITY_AUDITOR in agents
    has_reviewer = CODE_REVIEWER in agents
    if not (has_auditor or has_reviewer):
        if as_json:
            emit_json({"error": "No agent templates found", "available": True, "agents": []})
        else:
            console.print("\n[bold blue]Fortress Review[/]")
            console.print("\n  [yellow]No agent templates found.[/]")
            console.print(
                f"  [dim]Add {SECURITY_AUDITOR}.md or {CODE_REVIEWER}.md under .claude/agents/ to enable reviews.[/]\n"
            )
        return

    start = time.monotonic()
    results: Dict[str, Any] = {}
    if not as_json:
        console.print("\n[bold blue]Fortress Review[/]")
        console.print("[dim]Running AI-powered code analysis...[/]\n")

    if has_auditor:
        out = invoke_agent(SECURITY_AUDITOR, config.root, prompt=SECURITY_PROMPT)
        parsed = parse_security_report(out.output)
        results["security"] = {
            "success": out.success,
            "error": out.error,
            **parsed.to_dict(),
            "raw": out.output,
        }
        if not as_json:
            if out.success:
                bad = parsed.severities["critical"] or parsed.severities["high"]
                icon = "[red]\\[DONE][/]" if bad else "[green]\\[DONE][/]"
                plural = "" if parsed.total == 1 else "s"
                console.print(f"  {icon} Security Auditor — {parsed.total} finding{plural}")
            else:
                console.print(f"  [red]\\[ERROR][/] Security Auditor — {escape(out.error or '')}")

    if has_reviewer:
        out = invoke_agent(CODE_REVIEWER, config.root, prompt=REVIEW_PROMPT)
        parsed_review = parse_code_review(out.output)
        results["codeReview"] = {
            "success": out.success,
            "error": out.error,
            **parsed_review.to_dict(),
            "raw": out.output,
        }
        if not as_json:
            if out.success:
                color = "green" if parsed_review.verdict == "approve" else "red"
                console.print(
                    f"  [green]\\[DONE][/] Code Reviewer — verdict: [{color}]{parsed_review.verdict.upper()}[/]"
                )
            else:
                console.print(f"  [red]\\[ERROR][/] Code Reviewer — {escape(out.error or '')}")

    duration = elapsed_ms(start)
    document = {"timestamp": utc_timestamp(), "duration": duration, **results}

    if as_json:
        emit_json(document)
        return

    console.print("\n" + RULE)
    _render_security(console, results.get("security"))
    _render_code_review(console, results.get("codeReview"))
    console.print(f"\n  [dim]Duration: {duration / 1000:.1f}s[/]")

    try:
        path = save_report(document, config.report_dir(), prefix=REVIEW_PREFIX)
        console.print(f"\n  [dim]Review saved: {escape(str(path))}[/]\n")
    except ReportError as e:
        console.print(f"\n  [red]Failed to save review:[/] {escape(str(e))}\n")


def _render_security(console, security):
    if not security or not security["success"]:
        return
    sev = security["severities"]
    console.print("\n  [bold]Security Findings:[/]")
    for level, style in (("critical", "red"), ("high", "red"), ("medium", "yellow"), ("low", "dim")):
        if sev[level]:
            console.print(f"    [{style}]{level.upper()}: {sev[level]}[/]")
    if not any(sev.values()):
        console.print("    [green]No findings[/]")

    findings = security["findings"]
    for finding in findings[:MAX_FINDINGS_SHOWN]:
        console.print(f"    [dim]• {escape(finding)}[/]")
    if len(findings) > MAX_FINDINGS_SHOWN:
        console.print(f"    [dim]... and {len(findings) - MAX_FINDINGS_SHOWN} more[/]")


def _render_code_review(console, review):
    if not review or not review["success"]:
        return
    console.print("\n  [bold]Code Review:[/]")
    for label, key, style in (("MUST FIX", "mustFix", "red"), ("SHOULD FIX", "shouldFix", "yellow")):
        items = review[key]
        if items:
            console.print(f"    [{style}]{label} ({len(items)}):[/]")
            for item in items[:MAX_ITEMS_SHOWN]:
                console.print(f"      [{style}]• {escape(item)}[/]")
    if not review["mustFix"] and not review["shouldFix"]:
        console.print("    [green]No issues found[/]")
