"""
Soreness adjuster.

Maps the worst soreness rating across a lift's primary muscles to a
SorenessModifier.  Levels 1-3 and 5 are identical for both sexes; level 4
removes two sets for male / unspecified athletes and one set for female
athletes, both with a 5 % intensity cut.
"""

from ..config import (
    BAR_WEIGHT_KG,
    DEFAULT_ROUNDING_INCREMENT_KG,
    MIN_WORKING_SETS,
    RECOVERY_MODE_PCT,
    RECOVERY_MODE_REPS,
    RECOVERY_MODE_RPE,
    RECOVERY_MODE_SETS,
)
from ..errors import InvalidInputError
from ..formulas import round_to_nearest
from ..models import MuscleGroup, PlannedSet, Sex, SorenessLevel, SorenessModifier

_NO_CHANGE = SorenessModifier(set_reduction=0, intensity_multiplier=1.0, recovery_mode=False, warning=None)
_MODERATE = SorenessModifier(
    set_reduction=1,
    intensity_multiplier=1.0,
    recovery_mode=False,
    warning="Moderate soreness — reduced 1 set",
)
_HIGH_MALE = SorenessModifier(
    set_reduction=2,
    intensity_multiplier=0.95,
    recovery_mode=False,
    warning="High soreness — reduced volume and intensity 5%",
)
_HIGH_FEMALE = SorenessModifier(
    set_reduction=1,
    intensity_multiplier=0.95,
    recovery_mode=False,
    warning="High soreness — reduced volume and intensity 5%",
)
_SEVERE = SorenessModifier(
    set_reduction=0,
    intensity_multiplier=0.0,
    recovery_mode=True,
    warning="Severe soreness — recovery session only (40% × 3×5)",
)


def get_soreness_modifier(level: SorenessLevel | int, biological_sex: Sex | None = None) -> SorenessModifier:
    """
    Look up the modifier for a soreness level (1-5).

    Raises:
        InvalidInputError: If level is outside 1-5
    """
    match int(level):
        case 1 | 2:
            return _NO_CHANGE
        case 3:
            return _MODERATE
        case 4:
            return _HIGH_FEMALE if biological_sex == "female" else _HIGH_MALE
        case 5:
            return _SEVERE
    raise InvalidInputError(f"Soreness level must be 1-5, got {level}")


def get_worst_soreness(
    muscles: list[MuscleGroup],
    ratings: dict[MuscleGroup, SorenessLevel],
) -> SorenessLevel:
    """Maximum rating across muscles; unrated muscles count as fresh (1)."""
    worst = SorenessLevel.FRESH
    for muscle in muscles:
        level = SorenessLevel(int(ratings.get(muscle, SorenessLevel.FRESH)))
        if level > worst:
            worst = level
    return worst


def recovery_weight(base_weight_kg: float, increment_kg: float = DEFAULT_ROUNDING_INCREMENT_KG) -> float:
    """Recovery-mode load: max(bar, round(base × RECOVERY_MODE_PCT))."""
    return max(BAR_WEIGHT_KG, round_to_nearest(base_weight_kg * RECOVERY_MODE_PCT, increment_kg))


def recovery_sets(base_weight_kg: float, increment_kg: float = DEFAULT_ROUNDING_INCREMENT_KG) -> list[PlannedSet]:
    weight = recovery_weight(base_weight_kg, increment_kg)
    return [
        PlannedSet(set_number=i + 1, weight_kg=weight, reps=RECOVERY_MODE_REPS, rpe_target=RECOVERY_MODE_RPE)
        for i in range(RECOVERY_MODE_SETS)
    ]


def apply_soreness_to_sets(
    planned_sets: list[PlannedSet],
    modifier: SorenessModifier,
    min_sets: int = MIN_WORKING_SETS,
    increment_kg: float = DEFAULT_ROUNDING_INCREMENT_KG,
) -> list[PlannedSet]:
    """
    Apply a soreness modifier to a standalone list of sets.

    Recovery mode replaces the sets with the 3×5 recovery prescription;
    otherwise sets are trimmed (never below min_sets) and reweighted.
    """
    if not planned_sets:
        return planned_sets
    if modifier.recovery_mode:
        return recovery_sets(planned_sets[0].weight_kg, increment_kg)

    kept = planned_sets[: max(min_sets, len(planned_sets) - modifier.set_reduction)]
    if modifier.intensity_multiplier == 1.0:
        return kept
    return [
        PlannedSet(
            set_number=s.set_number,
            weight_kg=round_to_nearest(s.weight_kg * modifier.intensity_multiplier, increment_kg),
            reps=s.reps,
            rpe_target=s.rpe_target,
            reps_range=s.reps_range,
        )
        for s in kept
    ]
