"""Lint: error lines fail the check, summary warnings cost 5 points each."""

from __future__ import annotations

import re

from fortress.checks.base import CheckResult, ProcessCheck, ProcessOutput, cap_lines, generic_failure
from fortress.config import FAST_TIMEOUT
from fortress.models import CheckConfig

MAX_ERRORS = 20
WARNING_PENALTY = 5

_ERROR_RE = re.compile(r"error", re.IGNORECASE)
# Summary line markers (ESLint/Biome); the summary repeats counts already listed.
_SUMMARY_PREFIXES = ("✖", "×")
# ESLint: "✖ 3 problems (1 error, 2 warnings)". Only the parenthesized
# summary counts, never detail lines such as "1:7  warning  ...".
_WARNING_SUMMARY_RE = re.compile(r"(\d+)\s+warnings?\)")


def count_summary_warnings(output: str) -> int:
    match = _WARNING_SUMMARY_RE.search(output)
    return int(match.group(1)) if match else 0


def extract_error_lines(output: str) -> list[str]:
    lines = []
    for line in output.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(_SUMMARY_PREFIXES):
            continue
        if _ERROR_RE.search(stripped):
            lines.append(stripped)
    return lines


class LintCheck(ProcessCheck):
    key = "lint"
    name = "Lint"
    timeout = FAST_TIMEOUT

    def evaluate(self, proc: ProcessOutput, command: str, check_config: CheckConfig) -> CheckResult:
        errors: list[str] = []
        warnings: list[str] = []

        if not proc.exited_clean:
            errors = cap_lines(extract_error_lines(proc.output), MAX_ERRORS)
            if not errors:
                errors = generic_failure(
                    "Lint check failed",
                    command,
                    proc,
                    "The lint tool may not be installed. Try: npm install --save-dev eslint",
                )

        warning_count = count_summary_warnings(proc.output)
        if warning_count:
            warnings.append(f"{warning_count} lint warning(s)")

        passed = not errors
        weight = check_config.weight
        score = weight - min(warning_count * WARNING_PENALTY, weight) if passed else 0
        return self.result(passed=passed, errors=errors, warnings=warnings, score=max(0, score))
