"""
Weight and rep math: rounding, one-rep-max estimation, unit conversion.

Rounding is half-up to the nearest increment, so 101.25 kg on a 2.5 kg
increment becomes 102.5 kg rather than banker's-rounding down.
"""

import math
from typing import Literal

from .config import (
    DEFAULT_ROUNDING_INCREMENT_KG,
    KG_PER_LB,
    ONE_RM_MAX_REPS,
    ONE_RM_MIN_REPS,
)
from .errors import InvalidInputError

OneRepMaxFormula = Literal["epley", "brzycki"]


def round_to_nearest(weight_kg: float, increment_kg: float = DEFAULT_ROUNDING_INCREMENT_KG) -> float:
    """
    Round a weight to the nearest increment, halves rounding up.

    Idempotent: round_to_nearest(round_to_nearest(x)) == round_to_nearest(x).

    Args:
        weight_kg: Raw weight
        increment_kg: Plate increment (must be positive)

    Returns:
        Rounded weight in kg
    """
    if increment_kg <= 0:
        raise InvalidInputError(f"increment_kg must be positive, got {increment_kg}")
    # round(..., 9) strips float noise such as 112.49999999 before the half-up step
    steps = math.floor(round(weight_kg / increment_kg, 9) + 0.5)
    return round(steps * increment_kg, 6)


# ---------------------------------------------------------------------------
# One-rep-max estimation
# ---------------------------------------------------------------------------


def _validate_one_rm_inputs(weight_kg: float, reps: int) -> None:
    if weight_kg <= 0 or not ONE_RM_MIN_REPS <= reps <= ONE_RM_MAX_REPS:
        raise InvalidInputError(
            f"Invalid inputs: weight_kg={weight_kg}, reps={reps}. "
            f"weight_kg must be > 0, reps must be between {ONE_RM_MIN_REPS} and {ONE_RM_MAX_REPS}."
        )


def estimate_one_rep_max_epley(weight_kg: float, reps: int) -> float:
    """Epley: 1RM = w × (1 + reps / 30).  A single is returned unchanged."""
    _validate_one_rm_inputs(weight_kg, reps)
    if reps == 1:
        return weight_kg
    return weight_kg * (1 + reps / 30)


def estimate_one_rep_max_brzycki(weight_kg: float, reps: int) -> float:
    """Brzycki: 1RM = w / (1.0278 − 0.0278 × reps).  A single is returned unchanged."""
    _validate_one_rm_inputs(weight_kg, reps)
    if reps == 1:
        return weight_kg
    return weight_kg / (1.0278 - 0.0278 * reps)


def estimate_one_rep_max(weight_kg: float, reps: int, formula: OneRepMaxFormula = "epley") -> float:
    """
    Estimate a one-rep max from a sub-maximal set.

    Args:
        weight_kg: Load lifted (> 0)
        reps: Reps completed (1-20)
        formula: "epley" (default) or "brzycki"

    Returns:
        Estimated 1RM in kg (unrounded)

    Raises:
        InvalidInputError: If inputs are out of range or the formula is unknown
    """
    if formula == "epley":
        return estimate_one_rep_max_epley(weight_kg, reps)
    if formula == "brzycki":
        return estimate_one_rep_max_brzycki(weight_kg, reps)
    raise InvalidInputError(f"Unknown 1RM formula: {formula!r}")


# ---------------------------------------------------------------------------
# Unit conversion
# ---------------------------------------------------------------------------


def grams_to_kg(grams: float) -> float:
    return grams / 1000


def kg_to_grams(kg: float) -> int:
    return int(math.floor(kg * 1000 + 0.5))


def kg_to_lb(kg: float) -> float:
    return kg / KG_PER_LB


def lb_to_kg(lb: float) -> float:
    return lb * KG_PER_LB
