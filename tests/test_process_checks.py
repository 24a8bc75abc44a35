"""Tests for the process-spawning checks and their output parsers."""

import sys
from unittest.mock import patch

import pytest

from fortress.checks.base import ProcessOutput, cap_lines, round_half_up, run_command, safe_env
from fortress.checks.build import BuildCheck
from fortress.checks.lint import LintCheck, count_summary_warnings
from fortress.checks.security import SecurityCheck, parse_audit_output
from fortress.checks.testing import TestCheck, extract_failed_names, parse_test_output
from fortress.checks.typescript import TypeScriptCheck
from fortress.models import CheckConfig, FortressConfig


def timed_out(seconds):
    detail = f"Command timed out after {seconds}s"
    return ProcessOutput(-1, f"partial output\n{detail}", timed_out=True, detail=detail)


def cfg(weight, command="npx tool"):
    return CheckConfig(enabled=True, command=command, weight=weight)


# ─── Helpers ─────────────────────────────────────────────────────────


class TestHelpers:
    @pytest.mark.parametrize(("value", "expected"), [(12.5, 13), (12.4, 12), (0.5, 1), (80.0, 80), (0, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_cap_lines(self):
        lines = [f"line {i}" for i in range(23)]
        capped = cap_lines(lines, 20)
        assert len(capped) == 21
        assert capped[-1] == "... and 3 more errors"

    def test_safe_env_drops_secrets(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-should-not-leak")
        monkeypatch.setenv("NODE_PATH", "/opt/node")
        env = safe_env()
        assert "OPENAI_API_KEY" not in env
        assert env["NODE_PATH"] == "/opt/node"
        assert env["FORCE_COLOR"] == "0"
        assert "PATH" in env


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell commands")
class TestRunCommand:
    def test_captures_output_and_exit_code(self, tmp_path):
        proc = run_command("echo hello", tmp_path, timeout=10)
        assert proc.returncode == 0
        assert proc.exited_clean
        assert "hello" in proc.output

    def test_non_zero_exit(self, tmp_path):
        proc = run_command("echo oops 1>&2; exit 3", tmp_path, timeout=10)
        assert proc.returncode == 3
        assert not proc.exited_clean
        assert "oops" in proc.output

    def test_runs_in_project_root(self, tmp_path):
        (tmp_path / "marker.txt").write_text("")
        assert "marker.txt" in run_command("ls", tmp_path, timeout=10).output

    def test_timeout(self, tmp_path):
        proc = run_command("sleep 3", tmp_path, timeout=1)
        assert proc.timed_out
        assert not proc.exited_clean
        assert "timed out after 1s" in proc.output
        assert proc.detail == "Command timed out after 1s"


# ─── TypeScript ──────────────────────────────────────────────────────


class TestTypeScript:
    def test_clean_exit(self):
        result = TypeScriptCheck().evaluate(ProcessOutput(0, ""), "npx tsc --noEmit", cfg(20))
        assert result.passed
        assert result.score == 20
        assert result.key == "typescript"

    def test_diagnostics_capped(self):
        output = "\n".join(f"src/a.ts({i},1): error TS2322: bad type" for i in range(25))
        result = TypeScriptCheck().evaluate(ProcessOutput(2, output), "npx tsc --noEmit", cfg(20))
        assert not result.passed
        assert result.score == 0
        assert len(result.errors) == 21
        assert result.errors[0] == "src/a.ts(0,1): error TS2322: bad type"
        assert result.errors[-1] == "... and 5 more errors"

    def test_tool_missing_gets_hint(self):
        result = TypeScriptCheck().evaluate(
            ProcessOutput(127, "sh: 1: tsc: not found"), "npx tsc --noEmit", cfg(20)
        )
        assert result.errors[0] == "TypeScript compilation failed"
        assert result.errors[1] == "  Command: npx tsc --noEmit"
        assert result.errors[2].startswith("  Hint:")

    def test_generic_failure_without_hint(self):
        result = TypeScriptCheck().evaluate(ProcessOutput(1, "something odd"), "npx tsc", cfg(20))
        assert result.errors == ["TypeScript compilation failed", "  Command: npx tsc"]

    def test_timeout_is_reported(self):
        result = TypeScriptCheck().evaluate(timed_out(120), "npx tsc", cfg(20))
        assert result.errors == [
            "TypeScript compilation failed",
            "  Command: npx tsc",
            "  Command timed out after 120s",
        ]

    def test_run_uses_configured_command(self, tmp_path):
        check_config = cfg(20, command="npx tsc --noEmit")
        config = FortressConfig(root=tmp_path, checks={"typescript": check_config})
        with patch("fortress.checks.base.run_command", return_value=ProcessOutput(0, "")) as run:
            result = TypeScriptCheck().run(config, check_config)
        run.assert_called_once_with("npx tsc --noEmit", cwd=tmp_path, timeout=TypeScriptCheck.timeout)
        assert result.passed
        assert result.duration >= 0


# ─── Lint ────────────────────────────────────────────────────────────


ESLINT_WARNINGS = """
/src/app.ts
  1:7  warning  'x' is assigned a value but never used  no-unused-vars
  2:7  warning  'y' is assigned a value but never used  no-unused-vars

✖ 2 problems (0 errors, 2 warnings)
"""

ESLINT_ERRORS = """
/src/app.ts
  1:1  error  Unexpected var, use let or const instead  no-var
  3:1  warning  Unexpected console statement  no-console

✖ 2 problems (1 error, 1 warning)
"""


class TestLint:
    def test_summary_warning_count(self):
        assert count_summary_warnings(ESLINT_WARNINGS) == 2
        assert count_summary_warnings(ESLINT_ERRORS) == 1
        assert count_summary_warnings("  1:7  warning  something\n") == 0

    def test_warnings_cost_five_points_each(self):
        result = LintCheck().evaluate(ProcessOutput(0, ESLINT_WARNINGS), "npx eslint .", cfg(15))
        assert result.passed
        assert result.score == 5
        assert result.warnings == ["2 lint warning(s)"]

    def test_penalty_never_goes_negative(self):
        output = "✖ 10 problems (0 errors, 10 warnings)"
        result = LintCheck().evaluate(ProcessOutput(0, output), "npx eslint .", cfg(15))
        assert result.passed
        assert result.score == 0

    def test_error_lines_fail(self):
        result = LintCheck().evaluate(ProcessOutput(1, ESLINT_ERRORS), "npx eslint .", cfg(15))
        assert not result.passed
        assert result.score == 0
        assert result.errors == ["1:1  error  Unexpected var, use let or const instead  no-var"]

    def test_missing_tool_gets_hint(self):
        result = LintCheck().evaluate(
            ProcessOutput(1, "npm ERR! could not determine executable to run"), "npx eslint .", cfg(15)
        )
        assert result.errors[:2] == ["Lint check failed", "  Command: npx eslint ."]
        assert result.errors[2].startswith("  Hint:")

    def test_silent_failure_gets_generic_message(self):
        result = LintCheck().evaluate(ProcessOutput(2, ""), "npx eslint .", cfg(15))
        assert result.errors == ["Lint check failed", "  Command: npx eslint ."]

    def test_timeout_is_reported(self):
        result = LintCheck().evaluate(timed_out(120), "npx eslint .", cfg(15))
        assert result.errors[-1] == "  Command timed out after 120s"


# ─── Tests ───────────────────────────────────────────────────────────


class TestTestOutputParsing:
    def test_jest(self):
        counts = parse_test_output("Tests:       1 failed, 4 passed, 5 total\nTime: 1s")
        assert (counts.passed, counts.failed, counts.total) == (4, 1, 5)

    def test_jest_with_skipped(self):
        counts = parse_test_output("Tests:       2 skipped, 6 passed, 8 total")
        assert (counts.passed, counts.failed, counts.total) == (6, 0, 8)

    def test_vitest(self):
        counts = parse_test_output(" Test Files  1 passed (1)\n      Tests  4 passed (5)\n")
        assert (counts.passed, counts.failed, counts.total) == (4, 1, 5)

    def test_vitest_with_failures(self):
        counts = parse_test_output("      Tests  1 failed | 4 passed (5)\n")
        assert (counts.passed, counts.failed, counts.total) == (4, 1, 5)

    def test_node_test_runner(self):
        counts = parse_test_output("# tests 4\n# pass 3\n# fail 1\n")
        assert (counts.passed, counts.failed, counts.total) == (3, 1, 4)

    def test_mocha(self):
        counts = parse_test_output("  3 passing (20ms)\n  1 failing\n")
        assert (counts.passed, counts.failed, counts.total) == (3, 1, 4)

    def test_unrecognized(self):
        counts = parse_test_output("all good, probably")
        assert (counts.passed, counts.failed, counts.total) == (0, 0, 0)


class TestFailedNames:
    def test_jest_bullets_skip_suite_markers(self):
        output = "  ● Math › adds numbers\n\n  ● Test suite failed to run\n  ● Math › divides\n"
        assert extract_failed_names(output) == ["Math › adds numbers", "Math › divides"]

    def test_inline_markers_strip_timing(self):
        output = "  ✓ works (2 ms)\n  ✕ breaks (3 ms)\n  × explodes 5ms\n"
        assert extract_failed_names(output) == ["breaks", "explodes"]

    def test_tap_limited_to_five(self):
        output = "\n".join(f"not ok {i} - case {i}" for i in range(1, 8))
        assert extract_failed_names(output) == [f"case {i}" for i in range(1, 6)]

    def test_mocha_numbered(self):
        output = "  1) Array\n       #indexOf():\n  2) String length\n"
        assert extract_failed_names(output) == ["Array", "String length"]


class TestTestCheck:
    def test_partial_failure_scores_proportionally(self):
        output = "  ● Math › adds\nTests:       1 failed, 4 passed, 5 total"
        result = TestCheck().evaluate(ProcessOutput(1, output), "npx jest", cfg(25))
        assert not result.passed
        assert result.score == 20
        assert result.errors == ["1 test(s) failed", "  ✗ Math › adds"]
        assert result.warnings == ["4/5 tests passed"]

    def test_rounds_half_up(self):
        output = "Tests:       1 failed, 1 passed, 2 total"
        assert TestCheck().evaluate(ProcessOutput(1, output), "npx jest", cfg(25)).score == 13

    def test_all_passed(self):
        output = "Tests:       5 passed, 5 total"
        result = TestCheck().evaluate(ProcessOutput(0, output), "npx jest", cfg(25))
        assert result.passed
        assert result.score == 25

    def test_clean_exit_without_counts_is_full_weight(self):
        result = TestCheck().evaluate(ProcessOutput(0, "No tests found"), "npx jest", cfg(25))
        assert result.passed
        assert result.score == 25
        assert result.warnings == []

    def test_suite_failed_to_run(self):
        result = TestCheck().evaluate(ProcessOutput(1, "sh: jest: not found"), "npx jest", cfg(25))
        assert not result.passed
        assert result.score == 0
        assert result.errors[0] == "Test suite failed to run"
        assert result.errors[1] == "  Command: npx jest"
        assert result.errors[2].startswith("  Hint:")

    def test_score_increases_with_pass_ratio(self):
        scores = []
        for passed in range(0, 11):
            output = f"  {passed} passing\n  {10 - passed} failing\n"
            scores.append(TestCheck().evaluate(ProcessOutput(1, output), "npx mocha", cfg(100)).score)
        assert scores == sorted(scores)
        assert len(set(scores)) == len(scores)
        assert scores[0] == 0 and scores[-1] == 100


# ─── Build ───────────────────────────────────────────────────────────


class TestBuild:
    def test_clean_exit(self):
        result = BuildCheck().evaluate(ProcessOutput(0, "warning: big chunk"), "npm run build", cfg(10))
        assert result.passed
        assert result.score == 10

    def test_error_lines_capped_and_warnings_excluded(self):
        lines = [f"Error: module {i} not resolvable" for i in range(12)]
        lines.append("warning: this error is only a warning")
        result = BuildCheck().evaluate(ProcessOutput(1, "\n".join(lines)), "npm run build", cfg(10))
        assert not result.passed
        assert result.score == 0
        assert len(result.errors) == 11
        assert result.errors[-1] == "... and 2 more errors"
        assert not any("warning" in e for e in result.errors)

    def test_generic_failure(self):
        result = BuildCheck().evaluate(ProcessOutput(1, "killed"), "npm run build", cfg(10))
        assert result.errors == ["Build failed", "  Command: npm run build"]

    def test_timeout_is_reported(self):
        result = BuildCheck().evaluate(timed_out(300), "npm run build", cfg(10))
        assert result.errors == ["Build failed", "  Command: npm run build", "  Command timed out after 300s"]


# ─── Security ────────────────────────────────────────────────────────


NPM_AUDIT_JSON = '{"metadata": {"vulnerabilities": {"info": 0, "low": 2, "moderate": 3, "high": 2, "critical": 1}}}'


class TestAuditParsing:
    def test_json(self):
        counts = parse_audit_output(NPM_AUDIT_JSON)
        assert (counts.critical, counts.high, counts.moderate, counts.low) == (1, 2, 3, 2)
        assert counts.found

    def test_text(self):
        counts = parse_audit_output("found 3 vulnerabilities (1 moderate, 2 high)")
        assert (counts.critical, counts.high, counts.moderate, counts.low) == (0, 2, 1, 0)
        assert counts.found

    def test_unparseable(self):
        counts = parse_audit_output("nothing to see")
        assert (counts.critical, counts.high, counts.moderate, counts.low) == (0, 0, 0, 0)
        assert not counts.found


class TestSecurity:
    def test_penalty_floored_at_zero(self):
        result = SecurityCheck().evaluate(ProcessOutput(1, NPM_AUDIT_JSON), "npm audit --json", cfg(10))
        assert not result.passed
        assert result.score == 0
        assert "1 critical vulnerability(ies)" in result.errors
        assert "2 high vulnerability(ies)" in result.errors
        assert result.warnings == ["3 moderate vulnerability(ies)", "2 low vulnerability(ies)"]

    def test_single_high_costs_five(self):
        result = SecurityCheck().evaluate(ProcessOutput(1, "1 high severity vulnerability"), "npm audit", cfg(10))
        assert not result.passed
        assert result.score == 5

    def test_moderate_only_passes(self):
        result = SecurityCheck().evaluate(ProcessOutput(1, "2 moderate severity vulnerabilities"), "npm audit", cfg(10))
        assert result.passed
        assert result.score == 10
        assert result.warnings == ["2 moderate vulnerability(ies)"]

    def test_clean_audit(self):
        result = SecurityCheck().evaluate(ProcessOutput(0, "found 0 vulnerabilities"), "npm audit", cfg(10))
        assert result.passed
        assert result.score == 10

    def test_missing_tool_fails(self):
        result = SecurityCheck().evaluate(ProcessOutput(127, "sh: 1: pnpm: not found"), "pnpm audit", cfg(10))
        assert not result.passed
        assert result.score == 0
        assert result.errors[0] == "Dependency audit could not run"
        assert result.errors[1] == "  Command: pnpm audit"
