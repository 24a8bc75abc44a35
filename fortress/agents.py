"""
Fortress — Review Agents.

Runs AI review agents through the agent CLI (``claude --print --agent``)
and extracts structured findings from their markdown answers. Agents are
opaque subprocesses; nothing here raises on agent failure.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from fortress.config import AGENT_CLI, AGENT_TIMEOUT, AGENTS_DIR

logger = logging.getLogger("fortress.agents")

SECURITY_AUDITOR = "security-auditor"
CODE_REVIEWER = "code-reviewer"

SECURITY_PROMPT = (
    "Perform a security audit of this project. Focus on exploitable vulnerabilities. "
    "Format findings under ## CRITICAL, ## HIGH, ## MEDIUM, ## LOW headings with bullet points."
)
REVIEW_PROMPT = (
    "Review this project for code quality. Categorize issues under ## MUST FIX and ## SHOULD FIX "
    "headings with bullet points. End with a verdict: APPROVE, REJECT, or NEEDS CHANGES."
)

_HEADING_RE = re.compile(r"^#{1,3}\s+")
_SEVERITY_HEADING_RE = re.compile(r"^#{1,3}\s*(CRITICAL|HIGH|MEDIUM|LOW)", re.IGNORECASE)
_BULLET_RE = re.compile(r"^[-*]\s+")
_VERDICT_RE = re.compile(
    r"(?:verdict|overall)[:\s]*\**(APPROVE|REJECT|NEEDS\s*CHANGES|REQUEST\s*CHANGES)\**",
    re.IGNORECASE,
)
_MUST_FIX_RE = re.compile(r"MUST\s*FIX", re.IGNORECASE)
_SHOULD_FIX_RE = re.compile(r"SHOULD\s*FIX", re.IGNORECASE)


@dataclass
class AgentOutput:
    output: str
    success: bool
    error: Optional[str] = None


@dataclass
class SecurityReport:
    severities: Dict[str, int] = field(default_factory=lambda: {"critical": 0, "high": 0, "medium": 0, "low": 0})
    findings: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.severities.values())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CodeReview:
    verdict: str = "unknown"
    must_fix: List[str] = field(default_factory=list)
    should_fix: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"verdict": self.verdict, "mustFix": self.must_fix, "shouldFix": self.should_fix}


def is_agent_cli_available() -> bool:
    return shutil.which(AGENT_CLI) is not None


def get_available_agents(project_root: str | Path) -> List[str]:
    """Agent names (``.md`` stems) installed under ``.claude/agents``."""
    agents_dir = Path(project_root) / AGENTS_DIR
    try:
        return sorted(p.stem for p in agents_dir.iterdir() if p.suffix == ".md" and p.is_file())
    except OSError:
        return []


def invoke_agent(
    agent_name: str,
    project_root: str | Path,
    prompt: str = "Review this project",
    timeout: int = AGENT_TIMEOUT,
) -> AgentOutput:
    """Run one agent and capture its answer."""
    cmd = [AGENT_CLI, "--print", "--agent", agent_name, "-p", prompt]
    logger.debug("Invoking agent %s", agent_name)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(project_root),
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Agent %s timed out after %ss", agent_name, timeout)
        return AgentOutput(output="", success=False, error=f'Agent "{agent_name}" timed out after {timeout}s')
    except OSError as e:
        logger.warning("Agent %s could not start: %s", agent_name, e)
        return AgentOutput(output="", success=False, error=str(e))

    output = (proc.stdout or "").strip()
    if proc.returncode != 0:
        detail = (proc.stderr or "").strip() or f"exit code {proc.returncode}"
        return AgentOutput(output=output, success=False, error=f'Agent "{agent_name}" failed: {detail}')
    return AgentOutput(output=output, success=True)


def _bullet_text(line: str) -> str:
    return _BULLET_RE.sub("", line).replace("**", "").strip()


def parse_security_report(output: str) -> SecurityReport:
    """Count bullets under ``## CRITICAL`` / ``HIGH`` / ``MEDIUM`` / ``LOW``."""
    report = SecurityReport()
    if not output:
        return report

    severity = None
    for raw in output.split("\n"):
        line = raw.strip()
        heading = _SEVERITY_HEADING_RE.match(line)
        if heading:
            severity = heading.group(1).lower()
            continue
        if _HEADING_RE.match(line):
            severity = None
            continue
        if severity and _BULLET_RE.match(line):
            title = _bullet_text(line)
            if title:
                report.severities[severity] += 1
                report.findings.append(f"[{severity.upper()}] {title}")
    return report


def parse_code_review(output: str) -> CodeReview:
    """Collect MUST FIX / SHOULD FIX bullets and the final verdict."""
    review = CodeReview()
    if not output:
        return review

    section = None
    for raw in output.split("\n"):
        line = raw.strip()

        verdict = _VERDICT_RE.search(line)
        if verdict:
            review.verdict = re.sub(r"\s+", "_", verdict.group(1).lower())

        if _HEADING_RE.match(line):
            if _MUST_FIX_RE.search(line):
                section = review.must_fix
            elif _SHOULD_FIX_RE.search(line):
                section = review.should_fix
            else:
                section = None
            continue

        if section is not None and _BULLET_RE.match(line):
            item = _bullet_text(line)
            if item:
                section.append(item)
    return review
