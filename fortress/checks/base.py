"""Check contract, result model and process helpers shared by all checks."""

from __future__ import annotations

import logging
import math
import os
import re
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from fortress.config import ENV_PASSTHROUGH

if TYPE_CHECKING:
    from fortress.models import CheckConfig, FortressConfig

logger = logging.getLogger("fortress.checks")

NOT_FOUND_RE = re.compile(r"not found|ENOENT|could not determine executable", re.IGNORECASE)


@dataclass
class CheckResult:
    """Canonical result every check produces, including synthesized skips."""

    name: str
    key: str
    passed: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    duration: int = 0  # milliseconds
    score: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProcessOutput:
    """Combined output of one external command."""

    returncode: int
    output: str
    timed_out: bool = False
    detail: str = ""  # why the command did not finish, if it didn't

    @property
    def exited_clean(self) -> bool:
        return self.returncode == 0 and not self.timed_out


class Check(ABC):
    """A single quality dimension.

    ``run`` must never raise: tool failures, timeouts and read errors all
    come back as a CheckResult.
    """

    key: str
    name: str
    requires_command: bool = True

    @abstractmethod
    def run(self, config: "FortressConfig", check_config: "CheckConfig") -> CheckResult:
        """Execute the check for ``config.root``."""

    def result(self, **kwargs: Any) -> CheckResult:
        return CheckResult(name=self.name, key=self.key, **kwargs)


class ProcessCheck(Check):
    """A check that shells out to ``check_config.command`` and parses its output."""

    timeout: int

    def run(self, config: "FortressConfig", check_config: "CheckConfig") -> CheckResult:
        start = time.monotonic()
        command = check_config.command or ""
        proc = run_command(command, cwd=config.root, timeout=self.timeout)
        result = self.evaluate(proc, command, check_config)
        result.duration = elapsed_ms(start)
        return result

    @abstractmethod
    def evaluate(self, proc: ProcessOutput, command: str, check_config: "CheckConfig") -> CheckResult:
        """Turn captured process output into a result."""


# ─── Helpers ──────────────────────────────────────────────────────────


def safe_env() -> Dict[str, str]:
    """Minimal environment for child processes.

    Only what tools need to resolve binaries and modules; API keys and
    tokens in the parent environment are not passed on.
    """
    env = {
        "PATH": os.environ.get("PATH", os.defpath),
        "HOME": os.environ.get("HOME", ""),
        "FORCE_COLOR": "0",
    }
    for name in ENV_PASSTHROUGH:
        value = os.environ.get(name)
        if value:
            env[name] = value
    return env


def run_command(command: str, cwd: str | Path, timeout: int) -> ProcessOutput:
    """Run a shell command, capturing stdout+stderr whatever the exit code."""
    try:
        proc = subprocess.run(
            command,
            shell=True,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            env=safe_env(),
        )
        return ProcessOutput(returncode=proc.returncode, output=(proc.stdout or "") + (proc.stderr or ""))
    except subprocess.TimeoutExpired as e:
        logger.warning("Command %r timed out after %ss", command, timeout)
        partial = _decode(e.stdout) + _decode(e.stderr)
        detail = f"Command timed out after {timeout}s"
        return ProcessOutput(
            returncode=-1,
            output=f"{partial}\n{detail}",
            timed_out=True,
            detail=detail,
        )
    except OSError as e:
        logger.warning("Failed to execute %r in %s: %s", command, cwd, e)
        return ProcessOutput(returncode=-1, output=str(e))


def _decode(data: Optional[bytes | str]) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def cap_lines(lines: List[str], limit: int, noun: str = "errors") -> List[str]:
    """Keep the first ``limit`` lines and summarize the rest."""
    capped = [line.strip() for line in lines[:limit]]
    if len(lines) > limit:
        capped.append(f"... and {len(lines) - limit} more {noun}")
    return capped


def generic_failure(message: str, command: str, proc: ProcessOutput, install_hint: str) -> List[str]:
    """Fallback errors when no structured signal could be extracted."""
    errors = [message, f"  Command: {command}"]
    if proc.timed_out:
        errors.append(f"  {proc.detail}")
    elif NOT_FOUND_RE.search(proc.output):
        errors.append(f"  Hint: {install_hint}")
    return errors
