"""Stack detection — framework, package manager and tools from package.json."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger("fortress.detector")

# Checked in priority order; the first dependency present wins.
FRAMEWORK_MARKERS = [
    ("next", ("next",)),
    ("nuxt", ("nuxt",)),
    ("gatsby", ("gatsby",)),
    ("angular", ("@angular/core",)),
    ("svelte", ("svelte", "@sveltejs/kit")),
    ("react", ("react",)),
    ("vue", ("vue",)),
    ("node", ("express", "fastify", "koa")),
]

LOCKFILE_MANAGERS = [
    ("bun.lockb", "bun"),
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
]


@dataclass
class StackDetection:
    root: Path
    framework: Optional[str] = None
    language: Optional[str] = None
    package_manager: Optional[str] = None
    test_framework: Optional[str] = None
    linter: Optional[str] = None
    build_command: Optional[str] = None


def detect(project_root: str | Path) -> StackDetection:
    """Best-effort guess of a JS/TS project's toolchain from package.json."""
    root = Path(project_root).resolve()
    result = StackDetection(root=root)

    pkg = _read_json(root / "package.json")
    if not isinstance(pkg, dict):
        return result

    deps: dict[str, Any] = {}
    for section in ("dependencies", "devDependencies"):
        if isinstance(pkg.get(section), dict):
            deps.update(pkg[section])
    scripts = pkg.get("scripts") if isinstance(pkg.get("scripts"), dict) else {}

    if "typescript" in deps or (root / "tsconfig.json").exists():
        result.language = "typescript"
    else:
        result.language = "javascript"

    for framework, markers in FRAMEWORK_MARKERS:
        if any(m in deps for m in markers):
            result.framework = framework
            break

    result.package_manager = "npm"
    for lockfile, manager in LOCKFILE_MANAGERS:
        if (root / lockfile).exists():
            result.package_manager = manager
            break

    if "vitest" in deps:
        result.test_framework = "vitest"
    elif "jest" in deps or "@jest/core" in deps:
        result.test_framework = "jest"
    elif "mocha" in deps:
        result.test_framework = "mocha"
    elif "node --test" in str(scripts.get("test", "")):
        result.test_framework = "node:test"

    if "biome" in deps or "@biomejs/biome" in deps:
        result.linter = "biome"
    elif "eslint" in deps:
        # next lint wraps eslint
        result.linter = "next" if result.framework == "next" else "eslint"

    if scripts.get("build"):
        result.build_command = f"{result.package_manager} run build"

    logger.debug("Detected stack for %s: %s", root, result)
    return result


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None
