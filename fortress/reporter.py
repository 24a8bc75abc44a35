"""Report snapshots: build the JSON document and persist it."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from fortress.checks.base import CheckResult
from fortress.config import REPORT_PREFIX
from fortress.exceptions import ReportError
from fortress.models import FortressConfig
from fortress.scorer import ScoreResult

logger = logging.getLogger("fortress.reporter")


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def timestamp_slug(timestamp: str) -> str:
    """2026-03-01T12:30:45.123Z -> 2026-03-01_12-30-45-123"""
    return timestamp.replace(":", "-").replace(".", "-").replace("T", "_").replace("Z", "")


def generate_report(
    results: List[CheckResult],
    score_result: ScoreResult,
    config: FortressConfig,
    total_duration: int,
) -> Dict[str, Any]:
    return {
        "timestamp": utc_timestamp(),
        "score": score_result.score,
        "maxScore": score_result.max_score,
        "deployReady": score_result.deploy_ready,
        "deployThreshold": config.scoring.deploy_threshold,
        "duration": total_duration,
        "checks": [
            {
                "name": r.name,
                "key": r.key,
                "passed": r.passed,
                "score": r.score,
                "maxScore": config.weight_of(r.key),
                "enabled": config.is_enabled(r.key),
                "duration": r.duration,
                "errors": r.errors,
                "warnings": r.warnings,
            }
            for r in results
        ],
    }


def save_report(report: Dict[str, Any], output_dir: str | Path, prefix: str = REPORT_PREFIX) -> Path:
    """Write ``report`` as ``<prefix><timestamp>.json`` and return its path.

    Raises:
        ReportError: the directory cannot be created or the file written.
    """
    directory = Path(output_dir).resolve()
    timestamp = report.get("timestamp") or utc_timestamp()
    path = directory / f"{prefix}{timestamp_slug(timestamp)}.json"
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        raise ReportError(f"Could not save report to {directory}: {e}") from e
    logger.debug("Saved report to %s", path)
    return path
