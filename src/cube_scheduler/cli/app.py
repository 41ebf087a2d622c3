"""Shared Typer app object, shared option types, and config utility."""

import sys
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from loguru import logger

from ..core.engine.config_loader import load_user_config

# Shared --config option type used by commands that read user overrides
ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="YAML overrides file (default: ~/.cube-scheduler/config.yaml)"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="cube-scheduler",
    help="Three-lift strength program scheduler with just-in-time session prescriptions.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show diagnostic log output"),
    ] = False,
) -> None:
    """
    Cube-method strength programming: schedule, sessions, volume.
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    logger.enable("cube_scheduler")


def get_config(config_path: Path | None) -> dict[str, Any]:
    """Raw user overrides from an explicit path or the default location."""
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return load_user_config(config_path)
