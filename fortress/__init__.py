"""
Fortress — project quality gate.

Detects a JavaScript/TypeScript toolchain, runs type-check, lint, test,
build, dependency-audit, content and secret checks, and turns the results
into an adaptive 0-100 deploy-readiness score.
"""

__version__ = "1.0.0"

from fortress.config_loader import load_config
from fortress.detector import detect
from fortress.reporter import generate_report, save_report
from fortress.runner import run_checks
from fortress.scorer import calculate_score

__all__ = [
    "__version__",
    "calculate_score",
    "detect",
    "generate_report",
    "load_config",
    "run_checks",
    "save_report",
]
