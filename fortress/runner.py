"""
Fortress — Check Orchestrator.

Runs every configured check in configuration order and always returns
one result per key. Disabled checks, missing commands, unknown keys and
rejected commands become synthesized results; a crashing check becomes a
failing result. Nothing raises out of ``run_checks``.
"""

from __future__ import annotations

import logging
import time
from typing import List

from fortress.checks import get_check
from fortress.checks.base import CheckResult, elapsed_ms
from fortress.models import CheckConfig, FortressConfig
from fortress.validator import validate_command

logger = logging.getLogger("fortress.runner")


def _synthesized(key: str, passed: bool, errors=None, warnings=None) -> CheckResult:
    check = get_check(key)
    return CheckResult(
        name=check.name if check else key,
        key=key,
        passed=passed,
        errors=list(errors or []),
        warnings=list(warnings or []),
        duration=0,
        score=0,
    )


def run_check(config: FortressConfig, key: str, check_config: CheckConfig) -> CheckResult:
    """Dispatch a single configured check."""
    if not check_config.enabled:
        return _synthesized(key, True, warnings=[f"{key} check is disabled"])

    check = get_check(key)
    needs_command = check.requires_command if check else True
    if needs_command and check_config.command is None:
        return _synthesized(key, True, warnings=[f"No {key} command detected - skipped"])

    if check is None:
        logger.warning("Unknown check %r in configuration", key)
        return _synthesized(key, False, errors=[f"Unknown check: {key}"])

    if check.requires_command:
        validation = validate_command(check_config.command)
        if not validation.valid:
            logger.warning("Refusing to run %s command %r: %s", key, check_config.command, validation.reason)
            return _synthesized(
                key,
                False,
                errors=[
                    f"Blocked unsafe command: {validation.reason}",
                    f"  Command: {check_config.command}",
                    f"  Fix: edit checks.{key}.command in fortress.config.yaml",
                ],
            )

    logger.debug("Running %s check", key)
    start = time.monotonic()
    try:
        return check.run(config, check_config)
    except Exception as e:
        logger.warning("%s check crashed: %s", key, e, exc_info=True)
        result = _synthesized(key, False, errors=[f"{check.name} check crashed: {e}"])
        result.duration = elapsed_ms(start)
        return result


def run_checks(config: FortressConfig) -> List[CheckResult]:
    """Run all configured checks sequentially, in configuration order."""
    return [run_check(config, key, check_config) for key, check_config in config.checks.items()]
