"""Check registry.

The set of check kinds is closed: each config key maps to exactly one
implementation, and unknown keys are reported by the runner.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from fortress.checks.base import Check, CheckResult
from fortress.checks.build import BuildCheck
from fortress.checks.content import ContentCheck
from fortress.checks.lint import LintCheck
from fortress.checks.secrets import SecretsCheck
from fortress.checks.security import SecurityCheck
from fortress.checks.testing import TestCheck
from fortress.checks.typescript import TypeScriptCheck


class CheckKind(str, Enum):
    TYPESCRIPT = "typescript"
    LINT = "lint"
    TEST = "test"
    CONTENT = "content"
    SECRETS = "secrets"
    SECURITY = "security"
    BUILD = "build"


CHECKS: Dict[CheckKind, Check] = {
    CheckKind.TYPESCRIPT: TypeScriptCheck(),
    CheckKind.LINT: LintCheck(),
    CheckKind.TEST: TestCheck(),
    CheckKind.CONTENT: ContentCheck(),
    CheckKind.SECRETS: SecretsCheck(),
    CheckKind.SECURITY: SecurityCheck(),
    CheckKind.BUILD: BuildCheck(),
}


def get_check(key: str) -> Optional[Check]:
    try:
        return CHECKS[CheckKind(key)]
    except ValueError:
        return None


__all__ = ["CHECKS", "Check", "CheckKind", "CheckResult", "get_check"]
