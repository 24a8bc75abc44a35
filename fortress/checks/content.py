"""Forbidden-content scan over project source files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional

from fortress.checks.base import CheckResult, elapsed_ms
from fortress.checks.scanning import CompiledPattern, ScanCheck, Violation, compile_patterns, walk_files
from fortress.models import CheckConfig

DEFAULT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
DEFAULT_SKIP_DIRS = ("node_modules", ".next", ".git", "dist", "coverage")

NO_PATTERNS_WARNING = "No forbidden patterns configured - content check skipped"


class ContentCheck(ScanCheck):
    key = "content"
    name = "Content Guard"

    def patterns(self, check_config: CheckConfig, warnings: List[str]) -> List[CompiledPattern]:
        return compile_patterns(check_config.patterns, warnings)

    def skipped(self, check_config: CheckConfig, warnings: List[str], start: float) -> Optional[CheckResult]:
        # Nothing usable to scan for: pass at full weight, keep rejection warnings.
        return self.result(
            passed=True,
            warnings=[*warnings, NO_PATTERNS_WARNING],
            duration=elapsed_ms(start),
            score=check_config.weight,
        )

    def files(self, root: Path, check_config: CheckConfig) -> Iterator[Path]:
        return walk_files(
            root,
            check_config.extensions if check_config.extensions is not None else DEFAULT_EXTENSIONS,
            check_config.skip_dirs if check_config.skip_dirs is not None else DEFAULT_SKIP_DIRS,
        )

    def format_violation(self, violation: Violation) -> str:
        return (
            f'{violation.path}:{violation.line}:{violation.column} - "{violation.label}" '
            f'(matched: "{violation.text}")'
        )
