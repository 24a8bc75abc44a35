"""
Fortress — Configuration Models.
Pydantic models for the merged project configuration.

Config files use camelCase keys (skipDirs, deployThreshold, outputDir);
code reads snake_case attributes. Both spellings are accepted on input.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fortress.config import DEFAULT_DEPLOY_THRESHOLD, DEFAULT_REPORT_DIR

logger = logging.getLogger("fortress.models")


class PatternSpec(BaseModel):
    """A forbidden or secret pattern with a human-readable label."""

    regex: str
    label: str


class CheckConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    enabled: bool = False
    command: Optional[str] = None
    weight: int = Field(0, ge=0)
    patterns: list[PatternSpec] = Field(default_factory=list)
    extensions: Optional[list[str]] = None
    skip_dirs: Optional[list[str]] = Field(None, alias="skipDirs")
    allowlist: dict[str, Union[Literal["*"], list[str]]] = Field(default_factory=dict)

    @field_validator("patterns", mode="before")
    @classmethod
    def normalize_patterns(cls, value: Any) -> list:
        """Expand bare-string shorthand and drop malformed entries."""
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            logger.warning("Ignoring non-list patterns value: %r", value)
            return []
        normalized = []
        for entry in value:
            if isinstance(entry, str):
                normalized.append({"regex": entry, "label": entry})
            elif isinstance(entry, PatternSpec):
                normalized.append(entry)
            elif isinstance(entry, dict) and entry.get("regex") and entry.get("label"):
                normalized.append({"regex": str(entry["regex"]), "label": str(entry["label"])})
            else:
                logger.warning("Ignoring malformed pattern entry: %r", entry)
        return normalized


class ScoringConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    deploy_threshold: int = Field(DEFAULT_DEPLOY_THRESHOLD, ge=0, le=100, alias="deployThreshold")


class ReportConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    output_dir: str = Field(DEFAULT_REPORT_DIR, alias="outputDir")


class FortressConfig(BaseModel):
    """Merged configuration for one invocation.

    Built once by the config loader and treated as read-only for the rest
    of the run. Use ``with_checks_disabled`` to derive a variant.
    """

    model_config = ConfigDict(populate_by_name=True)

    root: Path
    checks: dict[str, CheckConfig] = Field(default_factory=dict)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    def is_enabled(self, key: str) -> bool:
        check = self.checks.get(key)
        return check is not None and check.enabled

    def weight_of(self, key: str) -> int:
        check = self.checks.get(key)
        return check.weight if check is not None else 0

    def report_dir(self) -> Path:
        """Report directory resolved against the project root."""
        return (self.root / self.report.output_dir).resolve()


def with_checks_disabled(config: FortressConfig, keys: Iterable[str]) -> FortressConfig:
    """Return a deep clone of ``config`` with ``keys`` disabled.

    The original is left untouched, so sibling invocations sharing a loaded
    config never observe each other's changes.
    """
    clone = config.model_copy(deep=True)
    for key in keys:
        if key in clone.checks:
            clone.checks[key].enabled = False
    return clone
