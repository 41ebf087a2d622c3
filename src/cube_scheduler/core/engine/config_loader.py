"""
YAML → typed config loader.

Optionally merges user overrides from ~/.cube-scheduler/config.yaml over
the Python system defaults.  Recognised top-level sections:

    formula:          recursive partial of FormulaConfig
    mrv_mev:          {muscle: {mev: int, mrv: int}}, per-muscle partial
    auxiliary_pools:  {lift: [exercise, ...]}
    warmup:           {preset: name} or {steps: [{pct: float, reps: int}, ...]}

Usage:
    from cube_scheduler.core.engine.config_loader import load_formula_config
    cfg = load_formula_config()

A missing file means "no overrides".  If the file exists but cannot be read
or parsed, a warning is logged and the file is ignored.  Sections that
parse but hold invalid values raise InvalidInputError.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..auxiliary import DEFAULT_AUXILIARY_POOLS, AuxiliaryPool
from ..blocks import DEFAULT_FORMULA_CONFIG, FormulaConfig, merge_formula_config
from ..errors import InvalidInputError
from ..models import Lift, MrvMevConfig, MuscleGroup, MuscleVolumeLimits, WarmupProtocol, WarmupStep
from ..volume import DEFAULT_MRV_MEV_CONFIG

USER_CONFIG_DIR = ".cube-scheduler"
USER_CONFIG_FILE = "config.yaml"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; return {} (with a warning) on read or parse errors."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring config file {}: {}", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file {}: top level is not a mapping", path)
        return {}
    return data


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidInputError(f"config section '{name}' must be a mapping")
    return value


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_user_yaml_path() -> Path | None:
    """Return ~/.cube-scheduler/config.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / USER_CONFIG_DIR / USER_CONFIG_FILE
    return p if p.exists() else None


def load_user_config(path: Path | None = None) -> dict[str, Any]:
    """
    Raw user override mapping.

    Args:
        path: Explicit YAML file; defaults to the user config when present

    Returns:
        Parsed mapping, or {} when there is nothing usable
    """
    if path is None:
        path = get_user_yaml_path()
    if path is None or not path.exists():
        return {}
    return _load_yaml_file(path)


def load_formula_config(path: Path | None = None, config: dict[str, Any] | None = None) -> FormulaConfig:
    """System formula defaults merged with the user's `formula` section."""
    raw = config if config is not None else load_user_config(path)
    section = _section(raw, "formula")
    if not section:
        return DEFAULT_FORMULA_CONFIG
    return merge_formula_config(DEFAULT_FORMULA_CONFIG, section)


def load_mrv_mev_config(path: Path | None = None, config: dict[str, Any] | None = None) -> MrvMevConfig:
    """Full MRV/MEV table; each muscle may override mev, mrv or both."""
    raw = config if config is not None else load_user_config(path)
    section = _section(raw, "mrv_mev")
    result = dict(DEFAULT_MRV_MEV_CONFIG)
    for key, values in section.items():
        try:
            muscle = MuscleGroup(key)
        except ValueError as e:
            raise InvalidInputError(f"Unknown muscle group in mrv_mev: {key!r}") from e
        if not isinstance(values, dict) or set(values) - {"mev", "mrv"}:
            raise InvalidInputError(f"mrv_mev.{key} must be a mapping with mev and/or mrv")
        base = result[muscle]
        result[muscle] = MuscleVolumeLimits(mev=values.get("mev", base.mev), mrv=values.get("mrv", base.mrv))
    return result


def load_auxiliary_pools(path: Path | None = None, config: dict[str, Any] | None = None) -> AuxiliaryPool:
    """Default pools with any lift's pool replaced by the user's list."""
    raw = config if config is not None else load_user_config(path)
    section = _section(raw, "auxiliary_pools")
    pools = {lift: list(exercises) for lift, exercises in DEFAULT_AUXILIARY_POOLS.items()}
    for key, exercises in section.items():
        try:
            lift = Lift(key)
        except ValueError as e:
            raise InvalidInputError(f"Unknown lift in auxiliary_pools: {key!r}") from e
        if not isinstance(exercises, list) or not all(isinstance(x, str) and x.strip() for x in exercises):
            raise InvalidInputError(f"auxiliary_pools.{key} must be a list of exercise names")
        pools[lift] = list(exercises)
    return pools


def load_warmup_protocol(path: Path | None = None, config: dict[str, Any] | None = None) -> WarmupProtocol:
    """User warmup protocol, or the standard preset."""
    raw = config if config is not None else load_user_config(path)
    section = _section(raw, "warmup")
    if not section:
        return WarmupProtocol()
    if "steps" in section:
        steps = section["steps"]
        if not isinstance(steps, list):
            raise InvalidInputError("warmup.steps must be a list")
        try:
            return WarmupProtocol.custom([WarmupStep(pct=float(s["pct"]), reps=int(s["reps"])) for s in steps])
        except (KeyError, TypeError) as e:
            raise InvalidInputError("each warmup step needs pct and reps") from e
    preset = section.get("preset")
    if not isinstance(preset, str):
        raise InvalidInputError("warmup needs either preset or steps")
    return WarmupProtocol.named(preset)
