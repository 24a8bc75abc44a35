"""Shared machinery for the in-process text scans (content and secrets).

Patterns may come from a project-editable config file, so each one goes
through a length ceiling and a set of catastrophic-backtracking
heuristics before it is compiled. The tree walk never follows symlinks.
"""

from __future__ import annotations

import logging
import os
import re
import time
from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from fortress.checks.base import Check, CheckResult, elapsed_ms
from fortress.models import CheckConfig, FortressConfig, PatternSpec

logger = logging.getLogger("fortress.checks.scanning")

MAX_PATTERN_LENGTH = 200
MAX_REPORTED = 30

# ─── ReDoS heuristics ─────────────────────────────────────────────────
_REDOS_HEURISTICS = [
    re.compile(r"(\([^)]*[+*][^)]*\))[+*{]"),  # nested quantifiers: (a+)+
    re.compile(r"\([^)]*[+*}][^)]*\)(?:\s*\))+[+*{]"),  # same, behind extra groups: ((a+))+
    re.compile(r"\([^)]*\|[^)]*\)[+*{]"),  # quantified alternation: (a|b)+
    re.compile(r"\([^)]*[+*}][^)]*\)[+*{]"),  # quantified group of quantifier: (\w{2,})+
    re.compile(r"\\[1-9][+*{]"),  # quantified backreference: \1+
    re.compile(r"\([^)]*\.\s*[+*][^)]*\)[+*{]"),  # quantified dot-wildcard: (.*)+
    re.compile(r"\(\?[=!<][^)]*[+*][^)]*\)[+*{]"),  # quantified lookaround: (?=a+)+
]


def is_redos_risk(source: str) -> bool:
    return any(h.search(source) for h in _REDOS_HEURISTICS)


@dataclass
class CompiledPattern:
    regex: re.Pattern
    label: str


def compile_patterns(
    patterns: Iterable[PatternSpec],
    warnings: List[str],
    flags: int = re.IGNORECASE,
) -> List[CompiledPattern]:
    """Compile configured patterns, appending a warning for each rejection."""
    compiled: List[CompiledPattern] = []
    for spec in patterns:
        if len(spec.regex) > MAX_PATTERN_LENGTH:
            warnings.append(f'Pattern "{spec.label}" exceeds {MAX_PATTERN_LENGTH} chars - skipped for safety')
            logger.debug("Rejected over-long pattern %r", spec.label)
            continue
        if is_redos_risk(spec.regex):
            warnings.append(f'Pattern "{spec.label}" has ReDoS risk (dangerous backtracking) - skipped')
            logger.debug("Rejected backtracking-prone pattern %r", spec.regex)
            continue
        try:
            compiled.append(CompiledPattern(re.compile(spec.regex, flags), spec.label))
        except re.error as e:
            warnings.append(f'Invalid pattern "{spec.label}": {e}')
            logger.debug("Rejected invalid pattern %r: %s", spec.regex, e)
    return compiled


Allowlist = Dict[str, Union[str, List[str]]]


def is_allowlisted(relative: str, label: str, allowlist: Allowlist) -> bool:
    """True when a path-substring key covers ``label`` (``'*'`` covers all)."""
    lowered = label.lower()
    for fragment, allowed in allowlist.items():
        if fragment not in relative:
            continue
        if allowed == "*":
            return True
        if isinstance(allowed, list) and any(a.lower() in lowered for a in allowed):
            return True
    return False


# ─── Tree walk ────────────────────────────────────────────────────────


def walk_files(
    root: Path,
    extensions: Iterable[str],
    skip_dirs: Iterable[str],
    skip_hidden_dirs: bool = False,
    extra_names: Iterable[str] = (),
    skip_names: Iterable[str] = (),
) -> Iterator[Path]:
    """Depth-first walk yielding files by suffix or exact name.

    Symlinks are never followed and unreadable directories are skipped.
    """
    exts = frozenset(extensions)
    skip = frozenset(skip_dirs)
    extra = frozenset(extra_names)
    excluded = frozenset(skip_names)

    stack = [root]
    while stack:
        directory = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name, reverse=True)
        except OSError as e:
            logger.debug("Cannot list %s: %s", directory, e)
            continue

        for entry in entries:
            if entry.name in skip or entry.is_symlink():
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                continue
            if is_dir:
                if not (skip_hidden_dirs and entry.name.startswith(".")):
                    stack.append(Path(entry.path))
                continue
            if entry.name in excluded:
                continue
            if os.path.splitext(entry.name)[1] in exts or entry.name in extra:
                yield Path(entry.path)


# ─── Line scan ────────────────────────────────────────────────────────


@dataclass
class Violation:
    path: str
    line: int
    column: int
    label: str
    text: str


def scan_file(
    path: Path,
    relative: str,
    patterns: Sequence[CompiledPattern],
    allowlist: Allowlist,
) -> List[Violation]:
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("Skipping unreadable file %s: %s", path, e)
        return []

    found: List[Violation] = []
    for lineno, line in enumerate(content.split("\n"), start=1):
        for pattern in patterns:
            for match in pattern.regex.finditer(line):
                if not match.group(0):
                    continue
                if is_allowlisted(relative, pattern.label, allowlist):
                    continue
                found.append(Violation(relative, lineno, match.start() + 1, pattern.label, match.group(0)))
    return found


def cap_violations(messages: List[str], noun: str) -> Tuple[List[str], Optional[str]]:
    """First MAX_REPORTED messages plus an overflow summary, if any."""
    if len(messages) <= MAX_REPORTED:
        return messages, None
    return messages[:MAX_REPORTED], f"... and {len(messages) - MAX_REPORTED} more {noun}"


class ScanCheck(Check):
    """Base for checks that grep the project tree instead of spawning tools."""

    requires_command = False
    overflow_noun = "violations"

    @abstractmethod
    def patterns(self, check_config: CheckConfig, warnings: List[str]) -> List[CompiledPattern]:
        """Compiled patterns to scan for; rejections go to ``warnings``."""

    @abstractmethod
    def files(self, root: Path, check_config: CheckConfig) -> Iterator[Path]:
        """Files to scan under ``root``."""

    @abstractmethod
    def format_violation(self, violation: Violation) -> str:
        """Error line for one match."""

    def skipped(self, check_config: CheckConfig, warnings: List[str], start: float) -> Optional[CheckResult]:
        """Short-circuit result when there is nothing to scan for."""
        return None

    def run(self, config: FortressConfig, check_config: CheckConfig) -> CheckResult:
        start = time.monotonic()
        warnings: List[str] = []
        patterns = self.patterns(check_config, warnings)

        if not patterns:
            early = self.skipped(check_config, warnings, start)
            if early is not None:
                return early

        root = Path(config.root)
        messages: List[str] = []
        scanned = 0
        for path in self.files(root, check_config):
            relative = path.relative_to(root).as_posix()
            scanned += 1
            messages.extend(
                self.format_violation(v) for v in scan_file(path, relative, patterns, check_config.allowlist)
            )
        logger.debug("%s scanned %d file(s), %d match(es)", self.key, scanned, len(messages))

        errors, overflow = cap_violations(messages, self.overflow_noun)
        if overflow:
            warnings.append(overflow)

        passed = not errors
        return self.result(
            passed=passed,
            errors=errors,
            warnings=warnings,
            duration=elapsed_ms(start),
            score=check_config.weight if passed else 0,
        )
