"""
Fortress CLI — Package init.

Defines the main click group and the helpers shared by every command.
"""

from __future__ import annotations

import functools
import json
import logging
import os
import sys
from typing import Any, Callable

import click
from rich.console import Console
from rich.markup import escape

from fortress import __version__
from fortress.config_loader import load_config
from fortress.exceptions import ConfigError
from fortress.models import FortressConfig


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s [%(name)s] %(levelname)s — %(message)s",
        datefmt="%H:%M:%S",
    )


def is_ci(ci_flag: bool) -> bool:
    return ci_flag or os.environ.get("CI") == "true"


def make_console(plain: bool) -> Console:
    """Console for human output. ``plain`` turns colour and styling off."""
    return Console(no_color=plain, highlight=False, soft_wrap=True, emoji=False)


def output_options(func: Callable) -> Callable:
    """--root / --json / --ci / --verbose, shared by every command."""

    @click.option(
        "--root",
        type=click.Path(exists=True, file_okay=False),
        default=".",
        show_default=True,
        help="Project root",
    )
    @click.option("--json", "as_json", is_flag=True, help="Output JSON only (for CI piping)")
    @click.option("--ci", is_flag=True, help="Disable colours, non-interactive mode")
    @click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
    @functools.wraps(func)
    def wrapper(*args: Any, verbose: bool = False, ci: bool = False, **kwargs: Any) -> Any:
        setup_logging(verbose)
        kwargs["console"] = make_console(is_ci(ci) or kwargs.get("as_json", False))
        return func(*args, **kwargs)

    return wrapper


def emit_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def load_or_exit(root: str, console: Console, as_json: bool) -> FortressConfig:
    """Load the project config; a broken config file ends the command."""
    try:
        return load_config(root)
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"error": str(e)}), err=True)
        else:
            console.print(f"\n  [bold red]Config error:[/] {escape(str(e))}")
            console.print("  [dim]Fix the file or delete it to fall back to detected defaults.[/]\n")
        sys.exit(1)


# ─── Main Group ──────────────────────────────────────────────────


@click.group()
@click.version_option(__version__, prog_name="fortress")
def cli() -> None:
    """Fortress — quality gate for JavaScript/TypeScript projects."""
    pass


# ─── Register all sub-modules ───────────────────────────────────
from fortress.cli import check_cmds  # noqa: E402, F401
from fortress.cli import review_cmds  # noqa: E402, F401
from fortress.cli import trend_cmds  # noqa: E402, F401


if __name__ == "__main__":
    cli()
