"""Test runner check with proportional scoring.

Counts come from the first summary convention that matches, in order:

    Jest     Tests:       1 failed, 4 passed, 5 total
    Vitest   Tests  4 passed (5)   /   Tests  1 failed | 4 passed (5)
    node     # pass 4 / # fail 1
    Mocha    4 passing / 1 failing

Output that matches none of them carries no count information; the exit
code alone then decides between full weight and zero.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from fortress.checks.base import (
    CheckResult,
    ProcessCheck,
    ProcessOutput,
    generic_failure,
    round_half_up,
)
from fortress.config import SLOW_TIMEOUT
from fortress.models import CheckConfig

MAX_FAILED_NAMES = 5


@dataclass
class TestCounts:
    passed: int = 0
    failed: int = 0
    total: int = 0


# ─── Summary parsers ──────────────────────────────────────────────────

_JEST_LINE_RE = re.compile(r"^\s*Tests:\s+(.*)$", re.MULTILINE)
_VITEST_RE = re.compile(r"Tests\s+(?:(\d+)\s+failed\s*\|\s*)?(\d+)\s+passed\s+\((\d+)\)")
_NODE_PASS_RE = re.compile(r"# pass\s+(\d+)")
_NODE_FAIL_RE = re.compile(r"# fail\s+(\d+)")
_MOCHA_PASS_RE = re.compile(r"(\d+)\s+passing")
_MOCHA_FAIL_RE = re.compile(r"(\d+)\s+failing")


def _count(pattern: str | re.Pattern, text: str) -> Optional[int]:
    match = re.search(pattern, text)
    return int(match.group(1)) if match else None


def _parse_jest(output: str) -> Optional[TestCounts]:
    match = _JEST_LINE_RE.search(output)
    if not match:
        return None
    line = match.group(1)
    passed = _count(r"(\d+)\s+passed", line)
    total = _count(r"(\d+)\s+total", line)
    if passed is None and total is None:
        return None
    failed = _count(r"(\d+)\s+failed", line) or 0
    passed = passed or 0
    return TestCounts(passed=passed, failed=failed, total=total if total is not None else passed + failed)


def _parse_vitest(output: str) -> Optional[TestCounts]:
    match = _VITEST_RE.search(output)
    if not match:
        return None
    passed, total = int(match.group(2)), int(match.group(3))
    return TestCounts(passed=passed, failed=max(0, total - passed), total=total)


def _parse_node(output: str) -> Optional[TestCounts]:
    passed = _count(_NODE_PASS_RE, output)
    if passed is None:
        return None
    failed = _count(_NODE_FAIL_RE, output) or 0
    return TestCounts(passed=passed, failed=failed, total=passed + failed)


def _parse_mocha(output: str) -> Optional[TestCounts]:
    passed = _count(_MOCHA_PASS_RE, output)
    if passed is None:
        return None
    failed = _count(_MOCHA_FAIL_RE, output) or 0
    return TestCounts(passed=passed, failed=failed, total=passed + failed)


_PARSERS: List[Callable[[str], Optional[TestCounts]]] = [
    _parse_jest,
    _parse_vitest,
    _parse_node,
    _parse_mocha,
]


def parse_test_output(output: str) -> TestCounts:
    for parser in _PARSERS:
        counts = parser(output)
        if counts is not None:
            return counts
    return TestCounts()


# ─── Failing test names ───────────────────────────────────────────────

_FAILED_NAME_PATTERNS = [
    re.compile(r"^\s*●\s+(.+?)\s*$"),  # jest
    re.compile(r"^\s*[×✕✗]\s+(.+?)(?:\s+\(?\d+\s*ms\)?)?\s*$"),  # jest/vitest inline
    re.compile(r"^\s*FAIL\s+\S+\s+>\s+(.+?)\s*$"),  # vitest summary
    re.compile(r"^\s*not ok\s+\d+\s+-\s+(.+?)\s*$"),  # TAP / node:test
    re.compile(r"^\s*\d+\)\s+(.+?)\s*$"),  # mocha
]

# Suite-level markers, not individual tests
_SUITE_MARKERS = ("Test suite failed to run",)


def extract_failed_names(output: str, limit: int = MAX_FAILED_NAMES) -> List[str]:
    names: List[str] = []
    for line in output.splitlines():
        for pattern in _FAILED_NAME_PATTERNS:
            match = pattern.match(line)
            if not match:
                continue
            name = match.group(1)
            if any(marker in name for marker in _SUITE_MARKERS) or name in names:
                break
            names.append(name)
            break
        if len(names) >= limit:
            break
    return names


class TestCheck(ProcessCheck):
    __test__ = False  # not a pytest class

    key = "test"
    name = "Tests"
    timeout = SLOW_TIMEOUT

    def evaluate(self, proc: ProcessOutput, command: str, check_config: CheckConfig) -> CheckResult:
        counts = parse_test_output(proc.output)
        errors: List[str] = []
        warnings: List[str] = []

        if not proc.exited_clean and counts.total == 0:
            errors = generic_failure(
                "Test suite failed to run",
                command,
                proc,
                "The test runner may not be installed. Try: npm install",
            )
        elif counts.failed > 0:
            errors.append(f"{counts.failed} test(s) failed")
            errors.extend(f"  ✗ {name}" for name in extract_failed_names(proc.output))

        if counts.total > 0:
            warnings.append(f"{counts.passed}/{counts.total} tests passed")
            pass_rate = counts.passed / counts.total
        else:
            pass_rate = 1.0 if proc.exited_clean else 0.0

        weight = check_config.weight
        score = min(weight, max(0, round_half_up(weight * pass_rate)))
        return self.result(passed=not errors, errors=errors, warnings=warnings, score=score)
