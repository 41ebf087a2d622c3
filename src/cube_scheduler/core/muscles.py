"""
Muscle mapper: which muscles each main lift trains and by how much.

Contribution is 1.0 for a primary mover and 0.5 for a secondary one.
"""

from .models import Lift, MuscleContribution, MuscleGroup

LIFT_MUSCLES: dict[Lift, tuple[MuscleContribution, ...]] = {
    Lift.SQUAT: (
        MuscleContribution(MuscleGroup.QUADS, 1.0),
        MuscleContribution(MuscleGroup.GLUTES, 1.0),
        MuscleContribution(MuscleGroup.HAMSTRINGS, 0.5),
        MuscleContribution(MuscleGroup.LOWER_BACK, 0.5),
    ),
    Lift.BENCH: (
        MuscleContribution(MuscleGroup.CHEST, 1.0),
        MuscleContribution(MuscleGroup.TRICEPS, 0.5),
        MuscleContribution(MuscleGroup.SHOULDERS, 0.5),
    ),
    Lift.DEADLIFT: (
        MuscleContribution(MuscleGroup.HAMSTRINGS, 1.0),
        MuscleContribution(MuscleGroup.GLUTES, 1.0),
        MuscleContribution(MuscleGroup.LOWER_BACK, 1.0),
        MuscleContribution(MuscleGroup.UPPER_BACK, 0.5),
    ),
}

# Muscles whose soreness and capacity gate a session of this lift
PRIMARY_MUSCLES: dict[Lift, tuple[MuscleGroup, ...]] = {
    Lift.SQUAT: (MuscleGroup.QUADS, MuscleGroup.GLUTES, MuscleGroup.LOWER_BACK),
    Lift.BENCH: (MuscleGroup.CHEST, MuscleGroup.TRICEPS, MuscleGroup.SHOULDERS),
    Lift.DEADLIFT: (MuscleGroup.HAMSTRINGS, MuscleGroup.GLUTES, MuscleGroup.LOWER_BACK, MuscleGroup.UPPER_BACK),
}


def get_muscles_for_lift(lift: Lift, exercise: str | None = None) -> list[MuscleContribution]:
    """
    Muscle contributions for a lift.

    exercise is accepted so auxiliary logs can share the mapper signature;
    auxiliaries are credited to their parent lift's muscles.
    """
    return list(LIFT_MUSCLES.get(Lift(lift), ()))


def get_primary_muscles(lift: Lift) -> list[MuscleGroup]:
    return list(PRIMARY_MUSCLES[Lift(lift)])


def primary_contributions(lift: Lift) -> list[MuscleContribution]:
    """Contributions of the lift's session-gating muscles, in mapper order."""
    primary = PRIMARY_MUSCLES[Lift(lift)]
    return [mc for mc in LIFT_MUSCLES[Lift(lift)] if mc.muscle in primary]
