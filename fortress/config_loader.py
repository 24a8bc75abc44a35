"""Project config loading — detected defaults merged with the user's file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from fortress.config import CONFIG_FILENAMES, DEFAULT_DEPLOY_THRESHOLD, DEFAULT_REPORT_DIR
from fortress.detector import StackDetection, detect
from fortress.exceptions import ConfigError
from fortress.models import FortressConfig

logger = logging.getLogger("fortress.config_loader")

LINT_COMMANDS = {
    "next": "npx next lint",
    "biome": "npx biome check .",
    "eslint": "npx eslint .",
}

TEST_COMMANDS = {
    "vitest": "npx vitest run",
    "jest": "npx jest --passWithNoTests",
    "mocha": "npx mocha",
    "node:test": "node --test tests/",
}

AUDIT_COMMANDS = {
    "pnpm": "pnpm audit --production",
    "yarn": "yarn audit --production",
    "bun": "bun audit",
}


def find_config_file(project_root: Path) -> Optional[Path]:
    for name in CONFIG_FILENAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def read_user_config(path: Path) -> Dict[str, Any]:
    """Parse a config file. Non-mapping documents count as no overrides."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading {path.name}: {e}") from e

    if not isinstance(data, dict):
        if data is not None:
            logger.warning("%s is not a mapping, ignoring it", path.name)
        return {}
    return data


def default_settings(detected: StackDetection) -> Dict[str, Any]:
    """Default check settings for a detected stack, in execution order."""
    return {
        "checks": {
            "typescript": {
                "enabled": detected.language == "typescript",
                "command": "npx tsc --noEmit",
                "weight": 20,
            },
            "lint": {
                "enabled": detected.linter is not None,
                "command": LINT_COMMANDS.get(detected.linter or ""),
                "weight": 15,
            },
            "test": {
                "enabled": detected.test_framework is not None,
                "command": TEST_COMMANDS.get(detected.test_framework or ""),
                "weight": 25,
            },
            "content": {
                "enabled": False,
                "patterns": [],
                "extensions": [".ts", ".tsx", ".js", ".jsx"],
                "skipDirs": ["node_modules", ".next", ".git", "dist", "coverage", ".vercel"],
                "allowlist": {},
                "weight": 20,
            },
            "secrets": {
                "enabled": True,
                "patterns": [],
                "allowlist": {},
                "weight": 10,
            },
            "security": {
                "enabled": True,
                "command": AUDIT_COMMANDS.get(detected.package_manager or "", "npm audit --production"),
                "weight": 10,
            },
            "build": {
                "enabled": detected.build_command is not None,
                "command": detected.build_command,
                "weight": 10,
            },
        },
        "scoring": {"deployThreshold": DEFAULT_DEPLOY_THRESHOLD},
        "report": {"outputDir": DEFAULT_REPORT_DIR},
    }


def merge_settings(defaults: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow-merge each user check over its default; keep unknown checks."""
    merged = {
        "checks": {key: dict(value) for key, value in defaults["checks"].items()},
        "scoring": dict(defaults["scoring"]),
        "report": dict(defaults["report"]),
    }

    user_checks = user.get("checks")
    if isinstance(user_checks, dict):
        for name, check in user_checks.items():
            if not isinstance(check, dict):
                logger.warning("Ignoring non-mapping settings for check %r", name)
                continue
            merged["checks"][name] = {**merged["checks"].get(name, {}), **check}

    for section in ("scoring", "report"):
        if isinstance(user.get(section), dict):
            merged[section].update(user[section])

    return merged


def load_config(project_root: str | Path = ".") -> FortressConfig:
    """Load the merged configuration for ``project_root``.

    Raises:
        ConfigError: the config file exists but cannot be parsed or holds
            invalid values (e.g. a negative weight).
    """
    root = Path(project_root).resolve()
    detected = detect(root)

    path = find_config_file(root)
    user = read_user_config(path) if path else {}
    if path:
        logger.debug("Loaded user config from %s", path)

    merged = merge_settings(default_settings(detected), user)
    try:
        return FortressConfig.model_validate({"root": root, **merged})
    except ValidationError as e:
        name = path.name if path else "configuration"
        raise ConfigError(f"Invalid {name}: {e}") from e
