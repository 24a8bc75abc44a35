"""Dependency audit: penalty scoring on critical and high findings."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass

from fortress.checks.base import NOT_FOUND_RE, CheckResult, ProcessCheck, ProcessOutput
from fortress.config import FAST_TIMEOUT
from fortress.models import CheckConfig

SEVERITIES = ("critical", "high", "moderate", "low")
PENALTY_PER_FINDING = 5

_TEXT_COUNT_RE = {severity: re.compile(rf"(\d+)\s+{severity}", re.IGNORECASE) for severity in SEVERITIES}


@dataclass
class AuditCounts:
    critical: int = 0
    high: int = 0
    moderate: int = 0
    low: int = 0
    found: bool = False  # any count signal seen in the output


def parse_audit_output(output: str) -> AuditCounts:
    """Vulnerability counts by severity.

    Prefers ``npm audit --json`` (``metadata.vulnerabilities``), then falls
    back to "N critical" style text. Unparseable output counts as zero.
    """
    try:
        data = json.loads(output)
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("metadata"), dict):
        vulns = data["metadata"].get("vulnerabilities")
        if isinstance(vulns, dict):
            counts = AuditCounts(found=True)
            for severity in SEVERITIES:
                value = vulns.get(severity, 0)
                setattr(counts, severity, value if isinstance(value, int) else 0)
            return counts

    counts = AuditCounts()
    for severity, pattern in _TEXT_COUNT_RE.items():
        match = pattern.search(output)
        if match:
            setattr(counts, severity, int(match.group(1)))
            counts.found = True
    return counts


class SecurityCheck(ProcessCheck):
    key = "security"
    name = "Security"
    timeout = FAST_TIMEOUT

    def evaluate(self, proc: ProcessOutput, command: str, check_config: CheckConfig) -> CheckResult:
        # Audit tools exit non-zero when they find vulnerabilities; that is
        # scored below, not treated as a failure to run.
        counts = parse_audit_output(proc.output)
        if not proc.exited_clean and not counts.found and NOT_FOUND_RE.search(proc.output):
            return self.result(
                passed=False,
                errors=[
                    "Dependency audit could not run",
                    f"  Command: {command}",
                    "  Hint: check that the package manager is installed, or edit checks.security.command",
                ],
                score=0,
            )

        errors, warnings = [], []
        if counts.critical:
            errors.append(f"{counts.critical} critical vulnerability(ies)")
        if counts.high:
            errors.append(f"{counts.high} high vulnerability(ies)")
        if counts.moderate:
            warnings.append(f"{counts.moderate} moderate vulnerability(ies)")
        if counts.low:
            warnings.append(f"{counts.low} low vulnerability(ies)")
        if errors:
            errors.append("  Fix: run `npm audit fix` or upgrade the affected packages")

        penalty = PENALTY_PER_FINDING * (counts.critical + counts.high)
        return self.result(
            passed=counts.critical == 0 and counts.high == 0,
            errors=errors,
            warnings=warnings,
            score=max(0, check_config.weight - penalty),
        )
