"""Score history: load saved reports and summarize their direction."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence

from fortress.config import DEFAULT_TREND_LIMIT, REPORT_PREFIX

logger = logging.getLogger("fortress.trend")

SPARKLINE_CHARS = "▁▂▃▄▅▆▇█"
TREND_WINDOW = 3
TREND_THRESHOLD = 2

IMPROVING = "improving"
DECLINING = "declining"
STABLE = "stable"
INSUFFICIENT = "insufficient"


def load_reports(report_dir: str | Path, limit: int = DEFAULT_TREND_LIMIT) -> List[Dict[str, Any]]:
    """The last ``limit`` saved reports, oldest first.

    Report file names embed a fixed-width timestamp, so lexicographic order
    is chronological. Malformed files are skipped.
    """
    directory = Path(report_dir).resolve()
    if not directory.is_dir():
        return []
    try:
        names = sorted(
            p.name for p in directory.iterdir() if p.name.startswith(REPORT_PREFIX) and p.name.endswith(".json")
        )
    except OSError:
        return []

    selected = names[-limit:] if limit > 0 else []
    reports = []
    for name in selected:
        try:
            data = json.loads((directory / name).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug("Skipping unreadable report %s: %s", name, e)
            continue
        if not isinstance(data, dict):
            continue
        score = data.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not data.get("timestamp"):
            continue
        reports.append(
            {
                "timestamp": data["timestamp"],
                "score": score,
                "deployReady": bool(data.get("deployReady")),
                "duration": data.get("duration") or 0,
                "checks": data.get("checks") or [],
                "file": name,
            }
        )
    return reports


def get_trend(reports: Sequence[Dict[str, Any]]) -> str:
    """Direction over the last three scores."""
    if len(reports) < 2:
        return INSUFFICIENT
    recent = reports[-TREND_WINDOW:]
    diff = recent[-1]["score"] - recent[0]["score"]
    if diff > TREND_THRESHOLD:
        return IMPROVING
    if diff < -TREND_THRESHOLD:
        return DECLINING
    return STABLE


def sparkline(reports: Sequence[Dict[str, Any]]) -> str:
    if not reports:
        return ""
    scores = [r["score"] for r in reports]
    low, high = min(scores), max(scores)
    span = high - low
    if span == 0:
        return SPARKLINE_CHARS[-1] * len(scores)
    top = len(SPARKLINE_CHARS) - 1
    return "".join(SPARKLINE_CHARS[int((s - low) / span * top + 0.5)] for s in scores)


def format_date(timestamp: str) -> str:
    """YYYY-MM-DD HH:MM in UTC; unparseable input comes back unchanged."""
    try:
        parsed = datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%d %H:%M")
