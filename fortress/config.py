"""
Fortress — Configuration.
Shared settings and defaults for the entire codebase.
"""

import os

# Project config files, first match wins
CONFIG_FILENAMES = (
    "fortress.config.yaml",
    "fortress.config.yml",
    "fortress.config.json",
)

# Scoring
DEFAULT_DEPLOY_THRESHOLD = 95

# Reports
DEFAULT_REPORT_DIR = os.environ.get("FORTRESS_REPORT_DIR", "./fortress-reports/")
REPORT_PREFIX = "fortress-report-"
REVIEW_PREFIX = "fortress-review-"
DEFAULT_TREND_LIMIT = 10

# ─── Process Execution ───────────────────────────────────────────────
# Lint, type-check and audit get the fast budget; tests and builds the slow one.
FAST_TIMEOUT = int(os.environ.get("FORTRESS_FAST_TIMEOUT", "120"))
SLOW_TIMEOUT = int(os.environ.get("FORTRESS_SLOW_TIMEOUT", "300"))
AGENT_TIMEOUT = int(os.environ.get("FORTRESS_AGENT_TIMEOUT", "120"))

# Variables copied into the child environment when present.
# Anything else (API keys, tokens) never reaches configured commands.
ENV_PASSTHROUGH = (
    "NODE_PATH",
    "NODE_OPTIONS",
    "npm_config_registry",
    "npm_config_cache",
    "APPDATA",
    "USERPROFILE",
    "SYSTEMROOT",
    "CI",
) + tuple(
    name.strip()
    for name in os.environ.get("FORTRESS_ENV_PASSTHROUGH", "").split(",")
    if name.strip()
)

# ─── Agents ──────────────────────────────────────────────────────────
AGENT_CLI = os.environ.get("FORTRESS_AGENT_CLI", "claude")
AGENTS_DIR = os.path.join(".claude", "agents")
