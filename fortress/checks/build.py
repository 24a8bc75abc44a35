"""Build: clean exit or nothing."""

from __future__ import annotations

import re

from fortress.checks.base import CheckResult, ProcessCheck, ProcessOutput, cap_lines, generic_failure
from fortress.config import SLOW_TIMEOUT
from fortress.models import CheckConfig

MAX_ERRORS = 10

_FAILURE_RE = re.compile(r"error|failed|Error:|FATAL", re.IGNORECASE)
_WARNING_RE = re.compile(r"warn", re.IGNORECASE)


class BuildCheck(ProcessCheck):
    key = "build"
    name = "Build"
    timeout = SLOW_TIMEOUT

    def evaluate(self, proc: ProcessOutput, command: str, check_config: CheckConfig) -> CheckResult:
        errors: list[str] = []
        if not proc.exited_clean:
            failure_lines = [
                line
                for line in proc.output.splitlines()
                if line.strip() and _FAILURE_RE.search(line) and not _WARNING_RE.search(line)
            ]
            errors = cap_lines(failure_lines, MAX_ERRORS)
            if not errors:
                errors = generic_failure(
                    "Build failed",
                    command,
                    proc,
                    "The build tool may not be installed. Try: npm install",
                )

        passed = not errors
        return self.result(
            passed=passed,
            errors=errors,
            score=check_config.weight if passed else 0,
        )
