"""
Formula configuration: per-block prescriptions, system defaults and overrides.

FormulaConfig is a tree of frozen dataclasses.  User or system overrides are
a parallel tree of "overrides" dataclasses whose fields are all optional;
merge_formula_config() walks both trees field by field so only the leaves
present in the override replace the defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, TypeVar

from .config import DEFAULT_ROUNDING_INCREMENT_KG
from .errors import InvalidInputError

# =============================================================================
# Typed configuration
# =============================================================================


@dataclass(frozen=True)
class BlockIntensityConfig:
    """Heavy or explosive prescription: fixed sets × reps at a percentage of 1RM."""

    pct: float
    sets: int
    reps: int
    rpe_target: float
    reps_max: int | None = None  # When above reps, each set carries a rep range


@dataclass(frozen=True)
class RepIntensityConfig:
    """Rep-day prescription: a set range and a rep range at one percentage."""

    pct: float
    sets_min: int
    sets_max: int
    reps_min: int
    reps_max: int
    rpe_target: float


@dataclass(frozen=True)
class BlockConfig:
    heavy: BlockIntensityConfig
    explosive: BlockIntensityConfig
    rep: RepIntensityConfig


@dataclass(frozen=True)
class DeloadConfig:
    pct: float
    sets: int
    reps: int
    rpe_target: float


@dataclass(frozen=True)
class ProgressiveOverloadConfig:
    heavy_pct_increment_per_block: float


@dataclass(frozen=True)
class TrainingMaxIncreaseConfig:
    """Per-lift bounds (kg) for raising the training max between programs."""

    bench_min: float
    bench_max: float
    squat_min: float
    squat_max: float
    deadlift_min: float
    deadlift_max: float

    def bounds_for(self, lift: str) -> tuple[float, float]:
        """Return (min, max) increase for a lift name ("squat", "bench", "deadlift")."""
        key = str(getattr(lift, "value", lift))
        if key == "squat":
            return (self.squat_min, self.squat_max)
        if key == "bench":
            return (self.bench_min, self.bench_max)
        if key == "deadlift":
            return (self.deadlift_min, self.deadlift_max)
        raise InvalidInputError(f"Unknown lift: {lift!r}")


@dataclass(frozen=True)
class BlockRestConfig:
    """Main-lift rest in seconds for each intensity type within one block."""

    heavy: int
    explosive: int
    rep: int


@dataclass(frozen=True)
class RestSecondsConfig:
    block1: BlockRestConfig
    block2: BlockRestConfig
    block3: BlockRestConfig
    deload: int
    auxiliary: int


@dataclass(frozen=True)
class FormulaConfig:
    """
    Complete formula configuration.

    Invariants (checked by validate_formula_config):
    every percentage is in (0, 1], every set/rep count is >= 1, every
    min <= max, and rounding_increment_kg > 0.
    """

    block1: BlockConfig
    block2: BlockConfig
    block3: BlockConfig
    deload: DeloadConfig
    progressive_overload: ProgressiveOverloadConfig
    training_max_increase: TrainingMaxIncreaseConfig
    rest_seconds: RestSecondsConfig
    rounding_increment_kg: float = DEFAULT_ROUNDING_INCREMENT_KG

    def block(self, block_number: int) -> BlockConfig:
        """Return the BlockConfig for block 1, 2 or 3."""
        if block_number == 1:
            return self.block1
        if block_number == 2:
            return self.block2
        if block_number == 3:
            return self.block3
        raise InvalidInputError(f"block_number must be 1, 2 or 3, got {block_number}")

    def block_rest(self, block_number: int) -> BlockRestConfig:
        """Return the main-lift rest table for block 1, 2 or 3."""
        if block_number == 1:
            return self.rest_seconds.block1
        if block_number == 2:
            return self.rest_seconds.block2
        if block_number == 3:
            return self.rest_seconds.block3
        raise InvalidInputError(f"block_number must be 1, 2 or 3, got {block_number}")


# =============================================================================
# System defaults
# =============================================================================

DEFAULT_FORMULA_CONFIG: FormulaConfig = FormulaConfig(
    block1=BlockConfig(
        heavy=BlockIntensityConfig(pct=0.80, sets=2, reps=5, rpe_target=8.5),
        explosive=BlockIntensityConfig(pct=0.65, sets=3, reps=8, rpe_target=7.0),
        rep=RepIntensityConfig(pct=0.70, sets_min=2, sets_max=3, reps_min=8, reps_max=12, rpe_target=8.0),
    ),
    block2=BlockConfig(
        heavy=BlockIntensityConfig(pct=0.85, sets=2, reps=3, rpe_target=9.0),
        explosive=BlockIntensityConfig(pct=0.70, sets=2, reps=6, rpe_target=7.5),
        rep=RepIntensityConfig(pct=0.80, sets_min=2, sets_max=3, reps_min=4, reps_max=8, rpe_target=8.0),
    ),
    block3=BlockConfig(
        heavy=BlockIntensityConfig(pct=0.90, sets=4, reps=1, rpe_target=9.5, reps_max=2),
        explosive=BlockIntensityConfig(pct=0.75, sets=2, reps=2, rpe_target=8.0),
        rep=RepIntensityConfig(pct=0.85, sets_min=2, sets_max=3, reps_min=3, reps_max=5, rpe_target=8.5),
    ),
    deload=DeloadConfig(pct=0.40, sets=3, reps=5, rpe_target=5.0),
    progressive_overload=ProgressiveOverloadConfig(heavy_pct_increment_per_block=0.05),
    training_max_increase=TrainingMaxIncreaseConfig(
        bench_min=2.5,
        bench_max=5.0,
        squat_min=5.0,
        squat_max=10.0,
        deadlift_min=5.0,
        deadlift_max=10.0,
    ),
    rest_seconds=RestSecondsConfig(
        block1=BlockRestConfig(heavy=210, explosive=150, rep=120),
        block2=BlockRestConfig(heavy=240, explosive=180, rep=150),
        block3=BlockRestConfig(heavy=300, explosive=180, rep=180),
        deload=90,
        auxiliary=90,
    ),
    rounding_increment_kg=DEFAULT_ROUNDING_INCREMENT_KG,
)


# =============================================================================
# Overrides (recursive partial of FormulaConfig)
# =============================================================================

_T = TypeVar("_T")


def _leaf_overrides(cls: type[_T], raw: Mapping[str, Any] | None, section: str) -> _T | None:
    """Build a flat overrides dataclass from a mapping, rejecting unknown keys."""
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise InvalidInputError(f"{section} overrides must be a mapping, got {type(raw).__name__}")
    allowed = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = set(raw) - allowed
    if unknown:
        raise InvalidInputError(f"Unknown {section} override fields: {sorted(unknown)}")
    return cls(**dict(raw))


def _check_keys(raw: Mapping[str, Any], allowed: set[str], section: str) -> None:
    if not isinstance(raw, Mapping):
        raise InvalidInputError(f"{section} overrides must be a mapping, got {type(raw).__name__}")
    unknown = set(raw) - allowed
    if unknown:
        raise InvalidInputError(f"Unknown {section} override fields: {sorted(unknown)}")


@dataclass(frozen=True)
class BlockIntensityOverrides:
    pct: float | None = None
    sets: int | None = None
    reps: int | None = None
    rpe_target: float | None = None
    reps_max: int | None = None


@dataclass(frozen=True)
class RepIntensityOverrides:
    pct: float | None = None
    sets_min: int | None = None
    sets_max: int | None = None
    reps_min: int | None = None
    reps_max: int | None = None
    rpe_target: float | None = None


@dataclass(frozen=True)
class BlockOverrides:
    heavy: BlockIntensityOverrides | None = None
    explosive: BlockIntensityOverrides | None = None
    rep: RepIntensityOverrides | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None, section: str) -> "BlockOverrides | None":
        if raw is None:
            return None
        _check_keys(raw, {"heavy", "explosive", "rep"}, section)
        return cls(
            heavy=_leaf_overrides(BlockIntensityOverrides, raw.get("heavy"), f"{section}.heavy"),
            explosive=_leaf_overrides(BlockIntensityOverrides, raw.get("explosive"), f"{section}.explosive"),
            rep=_leaf_overrides(RepIntensityOverrides, raw.get("rep"), f"{section}.rep"),
        )


@dataclass(frozen=True)
class DeloadOverrides:
    pct: float | None = None
    sets: int | None = None
    reps: int | None = None
    rpe_target: float | None = None


@dataclass(frozen=True)
class ProgressiveOverloadOverrides:
    heavy_pct_increment_per_block: float | None = None


@dataclass(frozen=True)
class TrainingMaxIncreaseOverrides:
    bench_min: float | None = None
    bench_max: float | None = None
    squat_min: float | None = None
    squat_max: float | None = None
    deadlift_min: float | None = None
    deadlift_max: float | None = None


@dataclass(frozen=True)
class BlockRestOverrides:
    heavy: int | None = None
    explosive: int | None = None
    rep: int | None = None


@dataclass(frozen=True)
class RestSecondsOverrides:
    block1: BlockRestOverrides | None = None
    block2: BlockRestOverrides | None = None
    block3: BlockRestOverrides | None = None
    deload: int | None = None
    auxiliary: int | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "RestSecondsOverrides | None":
        if raw is None:
            return None
        _check_keys(raw, {"block1", "block2", "block3", "deload", "auxiliary"}, "rest_seconds")
        return cls(
            block1=_leaf_overrides(BlockRestOverrides, raw.get("block1"), "rest_seconds.block1"),
            block2=_leaf_overrides(BlockRestOverrides, raw.get("block2"), "rest_seconds.block2"),
            block3=_leaf_overrides(BlockRestOverrides, raw.get("block3"), "rest_seconds.block3"),
            deload=raw.get("deload"),
            auxiliary=raw.get("auxiliary"),
        )


_TOP_LEVEL_KEYS: frozenset[str] = frozenset(
    {
        "block1",
        "block2",
        "block3",
        "deload",
        "progressive_overload",
        "training_max_increase",
        "rest_seconds",
        "rounding_increment_kg",
    }
)


@dataclass(frozen=True)
class FormulaConfigOverrides:
    """Recursive partial of FormulaConfig; None means "keep the default"."""

    block1: BlockOverrides | None = None
    block2: BlockOverrides | None = None
    block3: BlockOverrides | None = None
    deload: DeloadOverrides | None = None
    progressive_overload: ProgressiveOverloadOverrides | None = None
    training_max_increase: TrainingMaxIncreaseOverrides | None = None
    rest_seconds: RestSecondsOverrides | None = None
    rounding_increment_kg: float | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "FormulaConfigOverrides":
        """
        Parse a nested mapping (e.g. from YAML or a stored JSON blob).

        Raises:
            InvalidInputError: On unknown keys or non-mapping sections
        """
        if not raw:
            return cls()
        _check_keys(raw, set(_TOP_LEVEL_KEYS), "formula")
        return cls(
            block1=BlockOverrides.from_dict(raw.get("block1"), "block1"),
            block2=BlockOverrides.from_dict(raw.get("block2"), "block2"),
            block3=BlockOverrides.from_dict(raw.get("block3"), "block3"),
            deload=_leaf_overrides(DeloadOverrides, raw.get("deload"), "deload"),
            progressive_overload=_leaf_overrides(
                ProgressiveOverloadOverrides, raw.get("progressive_overload"), "progressive_overload"
            ),
            training_max_increase=_leaf_overrides(
                TrainingMaxIncreaseOverrides, raw.get("training_max_increase"), "training_max_increase"
            ),
            rest_seconds=RestSecondsOverrides.from_dict(raw.get("rest_seconds")),
            rounding_increment_kg=raw.get("rounding_increment_kg"),
        )


# =============================================================================
# Field-by-field merge
# =============================================================================


def _pick(override: Any, default: Any) -> Any:
    return default if override is None else override


def _merge_intensity(base: BlockIntensityConfig, ov: BlockIntensityOverrides | None) -> BlockIntensityConfig:
    if ov is None:
        return base
    return BlockIntensityConfig(
        pct=_pick(ov.pct, base.pct),
        sets=_pick(ov.sets, base.sets),
        reps=_pick(ov.reps, base.reps),
        rpe_target=_pick(ov.rpe_target, base.rpe_target),
        reps_max=_pick(ov.reps_max, base.reps_max),
    )


def _merge_rep(base: RepIntensityConfig, ov: RepIntensityOverrides | None) -> RepIntensityConfig:
    if ov is None:
        return base
    return RepIntensityConfig(
        pct=_pick(ov.pct, base.pct),
        sets_min=_pick(ov.sets_min, base.sets_min),
        sets_max=_pick(ov.sets_max, base.sets_max),
        reps_min=_pick(ov.reps_min, base.reps_min),
        reps_max=_pick(ov.reps_max, base.reps_max),
        rpe_target=_pick(ov.rpe_target, base.rpe_target),
    )


def _merge_block(base: BlockConfig, ov: BlockOverrides | None) -> BlockConfig:
    if ov is None:
        return base
    return BlockConfig(
        heavy=_merge_intensity(base.heavy, ov.heavy),
        explosive=_merge_intensity(base.explosive, ov.explosive),
        rep=_merge_rep(base.rep, ov.rep),
    )


def _merge_deload(base: DeloadConfig, ov: DeloadOverrides | None) -> DeloadConfig:
    if ov is None:
        return base
    return DeloadConfig(
        pct=_pick(ov.pct, base.pct),
        sets=_pick(ov.sets, base.sets),
        reps=_pick(ov.reps, base.reps),
        rpe_target=_pick(ov.rpe_target, base.rpe_target),
    )


def _merge_overload(
    base: ProgressiveOverloadConfig, ov: ProgressiveOverloadOverrides | None
) -> ProgressiveOverloadConfig:
    if ov is None:
        return base
    return ProgressiveOverloadConfig(
        heavy_pct_increment_per_block=_pick(ov.heavy_pct_increment_per_block, base.heavy_pct_increment_per_block),
    )


def _merge_tm_increase(
    base: TrainingMaxIncreaseConfig, ov: TrainingMaxIncreaseOverrides | None
) -> TrainingMaxIncreaseConfig:
    if ov is None:
        return base
    return TrainingMaxIncreaseConfig(
        bench_min=_pick(ov.bench_min, base.bench_min),
        bench_max=_pick(ov.bench_max, base.bench_max),
        squat_min=_pick(ov.squat_min, base.squat_min),
        squat_max=_pick(ov.squat_max, base.squat_max),
        deadlift_min=_pick(ov.deadlift_min, base.deadlift_min),
        deadlift_max=_pick(ov.deadlift_max, base.deadlift_max),
    )


def _merge_block_rest(base: BlockRestConfig, ov: BlockRestOverrides | None) -> BlockRestConfig:
    if ov is None:
        return base
    return BlockRestConfig(
        heavy=_pick(ov.heavy, base.heavy),
        explosive=_pick(ov.explosive, base.explosive),
        rep=_pick(ov.rep, base.rep),
    )


def _merge_rest(base: RestSecondsConfig, ov: RestSecondsOverrides | None) -> RestSecondsConfig:
    if ov is None:
        return base
    return RestSecondsConfig(
        block1=_merge_block_rest(base.block1, ov.block1),
        block2=_merge_block_rest(base.block2, ov.block2),
        block3=_merge_block_rest(base.block3, ov.block3),
        deload=_pick(ov.deload, base.deload),
        auxiliary=_pick(ov.auxiliary, base.auxiliary),
    )


def merge_formula_config(
    system_defaults: FormulaConfig,
    overrides: FormulaConfigOverrides | Mapping[str, Any] | None,
) -> FormulaConfig:
    """
    Deep-merge overrides over system defaults.

    Only leaf fields present in the override replace defaults; sibling
    fields and untouched blocks are carried over unchanged (the same
    objects, since every node is frozen).

    Args:
        system_defaults: Base configuration
        overrides: Typed overrides, or a raw nested mapping

    Returns:
        A validated FormulaConfig

    Raises:
        InvalidInputError: If the override is malformed or the merged
            config breaks an invariant
    """
    if overrides is None:
        return system_defaults
    if not isinstance(overrides, FormulaConfigOverrides):
        overrides = FormulaConfigOverrides.from_dict(overrides)

    merged = FormulaConfig(
        block1=_merge_block(system_defaults.block1, overrides.block1),
        block2=_merge_block(system_defaults.block2, overrides.block2),
        block3=_merge_block(system_defaults.block3, overrides.block3),
        deload=_merge_deload(system_defaults.deload, overrides.deload),
        progressive_overload=_merge_overload(system_defaults.progressive_overload, overrides.progressive_overload),
        training_max_increase=_merge_tm_increase(
            system_defaults.training_max_increase, overrides.training_max_increase
        ),
        rest_seconds=_merge_rest(system_defaults.rest_seconds, overrides.rest_seconds),
        rounding_increment_kg=_pick(overrides.rounding_increment_kg, system_defaults.rounding_increment_kg),
    )
    try:
        validate_formula_config(merged)
    except TypeError as e:
        raise InvalidInputError(f"Formula override has a value of the wrong type: {e}") from e
    return merged


# =============================================================================
# Validation
# =============================================================================


def _check_pct(value: float, name: str) -> None:
    if not 0 < value <= 1:
        raise InvalidInputError(f"{name} must be in (0, 1], got {value}")


def _check_count(value: int, name: str) -> None:
    if value < 1:
        raise InvalidInputError(f"{name} must be >= 1, got {value}")


def validate_formula_config(config: FormulaConfig) -> FormulaConfig:
    """
    Check the FormulaConfig invariants.

    Returns:
        The config unchanged

    Raises:
        InvalidInputError: On the first broken invariant
    """
    for n in (1, 2, 3):
        block = config.block(n)
        for label, cfg in (("heavy", block.heavy), ("explosive", block.explosive)):
            prefix = f"block{n}.{label}"
            _check_pct(cfg.pct, f"{prefix}.pct")
            _check_count(cfg.sets, f"{prefix}.sets")
            _check_count(cfg.reps, f"{prefix}.reps")
            if cfg.reps_max is not None and cfg.reps_max < cfg.reps:
                raise InvalidInputError(f"{prefix}.reps_max must be >= reps")
        rep = block.rep
        prefix = f"block{n}.rep"
        _check_pct(rep.pct, f"{prefix}.pct")
        _check_count(rep.sets_min, f"{prefix}.sets_min")
        _check_count(rep.reps_min, f"{prefix}.reps_min")
        if rep.sets_min > rep.sets_max:
            raise InvalidInputError(f"{prefix}.sets_min must be <= sets_max")
        if rep.reps_min > rep.reps_max:
            raise InvalidInputError(f"{prefix}.reps_min must be <= reps_max")

    _check_pct(config.deload.pct, "deload.pct")
    _check_count(config.deload.sets, "deload.sets")
    _check_count(config.deload.reps, "deload.reps")

    if config.rounding_increment_kg <= 0:
        raise InvalidInputError(
            f"rounding_increment_kg must be positive, got {config.rounding_increment_kg}"
        )
    return config
