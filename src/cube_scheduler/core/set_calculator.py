"""
Formula engine: one lift + intensity type + block + 1RM → planned sets.
"""

import math

from .blocks import FormulaConfig
from .errors import InvalidInputError
from .formulas import round_to_nearest
from .models import IntensityType, Lift, PlannedSet


def calculate_sets(
    lift: Lift,
    intensity_type: IntensityType,
    block_number: int,
    one_rm_kg: float,
    formula_config: FormulaConfig,
) -> list[PlannedSet]:
    """
    Compute the formula baseline for one session.

    Heavy / explosive: pct × 1RM for a fixed sets × reps; a reps_max above
    reps adds a rep range to each set.  Rep: set count is the half-up
    midpoint of the set range, each set carries the rep range.  Deload uses
    the single deload record regardless of block.

    Args:
        lift: Main lift (does not change the numbers today)
        intensity_type: heavy / explosive / rep / deload
        block_number: 1-3 (ignored for deload)
        one_rm_kg: Resolved one-rep max
        formula_config: Fully merged configuration

    Returns:
        Sets numbered 1..n

    Raises:
        InvalidInputError: Unknown intensity type, bad block, non-positive 1RM
    """
    if one_rm_kg <= 0:
        raise InvalidInputError(f"one_rm_kg must be positive, got {one_rm_kg}")
    increment = formula_config.rounding_increment_kg

    match intensity_type:
        case IntensityType.DELOAD:
            deload = formula_config.deload
            weight = round_to_nearest(deload.pct * one_rm_kg, increment)
            return [
                PlannedSet(set_number=i + 1, weight_kg=weight, reps=deload.reps, rpe_target=deload.rpe_target)
                for i in range(deload.sets)
            ]

        case IntensityType.HEAVY | IntensityType.EXPLOSIVE:
            block = formula_config.block(block_number)
            cfg = block.heavy if intensity_type == IntensityType.HEAVY else block.explosive
            weight = round_to_nearest(cfg.pct * one_rm_kg, increment)
            reps_range = (cfg.reps, cfg.reps_max) if cfg.reps_max is not None and cfg.reps_max > cfg.reps else None
            return [
                PlannedSet(
                    set_number=i + 1,
                    weight_kg=weight,
                    reps=cfg.reps,
                    rpe_target=cfg.rpe_target,
                    reps_range=reps_range,
                )
                for i in range(cfg.sets)
            ]

        case IntensityType.REP:
            rep = formula_config.block(block_number).rep
            weight = round_to_nearest(rep.pct * one_rm_kg, increment)
            sets = math.floor((rep.sets_min + rep.sets_max) / 2 + 0.5)
            return [
                PlannedSet(
                    set_number=i + 1,
                    weight_kg=weight,
                    reps=rep.reps_min,
                    rpe_target=rep.rpe_target,
                    reps_range=(rep.reps_min, rep.reps_max),
                )
                for i in range(sets)
            ]

    raise InvalidInputError(f"Unknown intensity type: {intensity_type!r}")


def renumber(sets: list[PlannedSet], weight_kg: float | None = None) -> list[PlannedSet]:
    """Return copies numbered 1..n, optionally with a new shared weight."""
    return [
        PlannedSet(
            set_number=i + 1,
            weight_kg=s.weight_kg if weight_kg is None else weight_kg,
            reps=s.reps,
            rpe_target=s.rpe_target,
            reps_range=s.reps_range,
        )
        for i, s in enumerate(sets)
    ]
