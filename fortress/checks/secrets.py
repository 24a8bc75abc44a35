"""Hardcoded secret detection.

Built-in patterns cover common cloud and SaaS credentials. Matches are
masked before they reach any output. Dotfiles such as ``.env`` are scanned
even though hidden directories are not.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, List

from fortress.checks.scanning import CompiledPattern, ScanCheck, Violation, compile_patterns, walk_files
from fortress.models import CheckConfig, PatternSpec

BUILT_IN_PATTERNS = [
    # AWS
    PatternSpec(regex=r"(?:AKIA|ABIA|ACCA|ASIA)[0-9A-Z]{16}", label="AWS Access Key ID"),
    PatternSpec(regex=r"aws_secret_access_key\s*=\s*[A-Za-z0-9/+=]{40}", label="AWS Secret Access Key"),
    # GitHub
    PatternSpec(regex=r"ghp_[A-Za-z0-9]{36}", label="GitHub Personal Access Token"),
    PatternSpec(regex=r"github_pat_[A-Za-z0-9_]{82}", label="GitHub Fine-grained PAT"),
    PatternSpec(regex=r"gho_[A-Za-z0-9]{36}", label="GitHub OAuth Token"),
    PatternSpec(regex=r"ghs_[A-Za-z0-9]{36}", label="GitHub Server Token"),
    # Stripe
    PatternSpec(regex=r"sk_live_[A-Za-z0-9]{24,}", label="Stripe Secret Key"),
    PatternSpec(regex=r"rk_live_[A-Za-z0-9]{24,}", label="Stripe Restricted Key"),
    # OpenAI
    PatternSpec(regex=r"sk-[A-Za-z0-9]{20}T3BlbkFJ[A-Za-z0-9]{20}", label="OpenAI API Key (legacy)"),
    PatternSpec(regex=r"sk-proj-[A-Za-z0-9_-]{20,}", label="OpenAI Project API Key"),
    # Slack
    PatternSpec(regex=r"xoxb-[0-9]{10,}-[0-9]{10,}-[A-Za-z0-9]{24}", label="Slack Bot Token"),
    PatternSpec(regex=r"xoxp-[0-9]{10,}-[0-9]{10,}-[0-9]{10,}-[a-f0-9]{32}", label="Slack User Token"),
    PatternSpec(regex=r"xoxs-[0-9]{10,}-[0-9]{10,}-[0-9]{10,}-[a-f0-9]{32}", label="Slack Session Token"),
    # JWT
    PatternSpec(
        regex=r"eyJ[A-Za-z0-9_-]{10,}\.eyJ[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}",
        label="JSON Web Token",
    ),
    PatternSpec(regex=r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", label="Private Key"),
    # Generic assignments
    PatternSpec(
        regex=r"""(?:password|passwd|pwd)\s*[:=]\s*["'][^"'\s]{8,}["']""",
        label="Hardcoded Password",
    ),
    PatternSpec(
        regex=r"""(?:api_key|apikey|api_secret)\s*[:=]\s*["'][A-Za-z0-9_\-]{16,}["']""",
        label="Hardcoded API Key",
    ),
    PatternSpec(
        regex=r"""(?:secret|token)\s*[:=]\s*["'][A-Za-z0-9_\-/+=]{20,}["']""",
        label="Hardcoded Secret/Token",
    ),
    PatternSpec(
        regex=r"(?:mongodb|postgres|mysql|redis)://[^\s:]+:[^\s@]+@[^\s]+",
        label="Database Connection String with Credentials",
    ),
]

DEFAULT_EXTENSIONS = frozenset(
    {
        ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
        ".json", ".yaml", ".yml", ".sh", ".py",
        ".rb", ".go", ".java", ".kt", ".swift", ".rs",
        ".toml", ".ini", ".cfg", ".conf", ".properties",
    }
)  # fmt: skip

# Matched by full name; most have no suffix
DEFAULT_DOTFILES = frozenset(
    {
        ".env", ".env.local", ".env.production", ".env.staging",
        ".env.development", ".env.test",
        ".npmrc", ".pypirc",
    }
)  # fmt: skip

DEFAULT_SKIP_DIRS = frozenset(
    {"node_modules", ".next", ".git", "dist", "coverage", ".vercel", "build", ".nuxt", ".output", "vendor"}
)

LOCK_FILES = frozenset(
    {
        "package-lock.json", "yarn.lock", "pnpm-lock.yaml",
        "bun.lockb", "composer.lock", "Gemfile.lock",
        "Cargo.lock", "poetry.lock", "go.sum",
    }
)  # fmt: skip

_QUOTES_RE = re.compile(r"""^["']+|["']+$""")


def mask_secret(value: str) -> str:
    """Show only the first 4 and last 2 characters of a secret."""
    cleaned = _QUOTES_RE.sub("", value)
    if len(cleaned) <= 8:
        return "***"
    return f"{cleaned[:4]}***{cleaned[-2:]}"


class SecretsCheck(ScanCheck):
    key = "secrets"
    name = "Secrets Detection"
    overflow_noun = "secrets found"

    def patterns(self, check_config: CheckConfig, warnings: List[str]) -> List[CompiledPattern]:
        # Built-ins are trusted and case-sensitive; custom ones go through the guard.
        built_in = [CompiledPattern(re.compile(p.regex), p.label) for p in BUILT_IN_PATTERNS]
        return built_in + compile_patterns(check_config.patterns, warnings)

    def files(self, root: Path, check_config: CheckConfig) -> Iterator[Path]:
        return walk_files(
            root,
            check_config.extensions if check_config.extensions is not None else DEFAULT_EXTENSIONS,
            check_config.skip_dirs if check_config.skip_dirs is not None else DEFAULT_SKIP_DIRS,
            skip_hidden_dirs=True,
            extra_names=DEFAULT_DOTFILES,
            skip_names=LOCK_FILES,
        )

    def format_violation(self, violation: Violation) -> str:
        return f"{violation.path}:{violation.line} - {violation.label} (matched: {mask_secret(violation.text)})"
