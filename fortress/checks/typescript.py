"""Type-check: tsc diagnostics, all-or-nothing score."""

from __future__ import annotations

from fortress.checks.base import CheckResult, ProcessCheck, ProcessOutput, cap_lines, generic_failure
from fortress.config import FAST_TIMEOUT
from fortress.models import CheckConfig

MAX_ERRORS = 20

# tsc format: src/app.ts(12,5): error TS2322: Type 'string' is not ...
DIAGNOSTIC_MARKER = "error TS"


class TypeScriptCheck(ProcessCheck):
    key = "typescript"
    name = "TypeScript"
    timeout = FAST_TIMEOUT

    def evaluate(self, proc: ProcessOutput, command: str, check_config: CheckConfig) -> CheckResult:
        errors: list[str] = []
        if not proc.exited_clean:
            diagnostics = [line for line in proc.output.splitlines() if DIAGNOSTIC_MARKER in line]
            errors = cap_lines(diagnostics, MAX_ERRORS)
            if not errors:
                errors = generic_failure(
                    "TypeScript compilation failed",
                    command,
                    proc,
                    "TypeScript may not be installed. Try: npm install --save-dev typescript",
                )

        passed = not errors
        return self.result(
            passed=passed,
            errors=errors,
            score=check_config.weight if passed else 0,
        )
