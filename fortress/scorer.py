"""Adaptive scoring.

Points earned are normalized against the weight of *enabled* checks only,
so disabling a check never caps the achievable score below 100.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from fortress.checks.base import CheckResult, round_half_up
from fortress.models import FortressConfig

MAX_SCORE = 100


@dataclass
class ScoreResult:
    score: int
    max_score: int = MAX_SCORE
    raw_score: float = 0
    total_weight: int = 0
    deploy_ready: bool = False
    checks: List[CheckResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "maxScore": self.max_score,
            "rawScore": self.raw_score,
            "totalWeight": self.total_weight,
            "deployReady": self.deploy_ready,
            "checks": [c.to_dict() for c in self.checks],
        }


def calculate_score(results: List[CheckResult], config: FortressConfig) -> ScoreResult:
    """Weighted 0-100 score and deploy readiness for a run."""
    total_weight = sum(c.weight for c in config.checks.values() if c.enabled)
    if total_weight == 0:
        # Nothing enabled: vacuous pass.
        return ScoreResult(score=MAX_SCORE, deploy_ready=True, checks=results)

    raw_score = sum(r.score for r in results if config.is_enabled(r.key))
    score = round_half_up(raw_score / total_weight * MAX_SCORE)
    score = max(0, min(MAX_SCORE, score))

    return ScoreResult(
        score=score,
        raw_score=raw_score,
        total_weight=total_weight,
        deploy_ready=score >= config.scoring.deploy_threshold,
        checks=results,
    )
