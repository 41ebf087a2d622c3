"""
Just-in-time session generation (the adjustment pipeline).

generate_jit_session() recomputes a session's prescription at start time:

    1. Baseline        formula sets and base working weight
    2. Trend           ±2.5 % when the last two rated sessions agree
    3. Soreness        set / intensity cut, or recovery mode at level 5
    4. Capacity        skip or cap sets against remaining weekly MRV
    5. Disruption      reset 2-4 and apply the worst relevant disruption
    6. Auxiliaries     3 sets at 67.5 % 1RM, cut by soreness / capacity
    7. Warmup          from the final working weight
    8. Rest            formula rest with user overrides

The result is a candidate; strategies pass it through enforce_hard_constraints()
before returning it.
"""

import math
from datetime import datetime

from .adjustments.disruption import DEFAULT_DISRUPTION_DESCRIPTION, relevant_disruptions, worst_disruption
from .adjustments.performance import detect_rpe_trend, trend_multiplier
from .adjustments.soreness import get_soreness_modifier, get_worst_soreness, recovery_sets
from .blocks import FormulaConfig
from .config import (
    AUX_BASE_SETS,
    AUX_HIGH_SORENESS_INTENSITY,
    AUX_PCT_OF_1RM,
    AUX_REPS_FEMALE,
    AUX_REPS_MALE,
    AUX_RPE_TARGET,
    MIN_WORKING_SETS,
    MODERATE_DISRUPTION_INTENSITY,
    RECOVERY_MODE_PCT,
)
from .formulas import round_to_nearest
from .models import (
    AuxiliaryWork,
    IntensityType,
    JITInput,
    JITOutput,
    Lift,
    MrvMevConfig,
    MuscleGroup,
    PlannedSet,
    RestOverride,
    RestRecommendations,
    Severity,
    Sex,
    SorenessLevel,
)
from .muscles import get_primary_muscles, primary_contributions
from .set_calculator import calculate_sets, renumber
from .volume import remaining_capacity
from .warmup import effective_protocol, generate_warmup_sets

# =============================================================================
# Rest
# =============================================================================


def resolve_main_lift_rest(config: FormulaConfig, block_number: int, intensity_type: IntensityType) -> int:
    """Formula rest after a main working set; deload uses its flat value."""
    match IntensityType(intensity_type):
        case IntensityType.DELOAD:
            return config.rest_seconds.deload
        case IntensityType.HEAVY:
            return config.block_rest(block_number).heavy
        case IntensityType.EXPLOSIVE:
            return config.block_rest(block_number).explosive
        case IntensityType.REP:
            return config.block_rest(block_number).rep
    raise AssertionError(f"unhandled intensity type {intensity_type!r}")


def apply_rest_override(
    overrides: list[RestOverride],
    lift: Lift,
    intensity_type: IntensityType,
    formula_rest: int,
) -> int:
    """
    First matching user override by specificity, else the formula value.

    lift + intensity > intensity only > lift only > catch-all
    """
    tiers = (
        lambda o: o.lift == lift and o.intensity_type == intensity_type,
        lambda o: o.lift is None and o.intensity_type == intensity_type,
        lambda o: o.lift == lift and o.intensity_type is None,
        lambda o: o.lift is None and o.intensity_type is None,
    )
    for matches in tiers:
        for override in overrides:
            if matches(override):
                return override.rest_seconds
    return formula_rest


def resolve_rest(inp: JITInput) -> int:
    formula_rest = resolve_main_lift_rest(inp.formula_config, inp.block_number, inp.intensity_type)
    if not inp.user_rest_overrides:
        return formula_rest
    return apply_rest_override(inp.user_rest_overrides, inp.lift, inp.intensity_type, formula_rest)


# =============================================================================
# Auxiliary work
# =============================================================================


def auxiliary_reps(biological_sex: Sex | None) -> int:
    return AUX_REPS_FEMALE if biological_sex == "female" else AUX_REPS_MALE


def auxiliary_base_weight(one_rm_kg: float, increment_kg: float) -> float:
    return round_to_nearest(one_rm_kg * AUX_PCT_OF_1RM, increment_kg)


def auxiliary_sets(count: int, weight_kg: float, reps: int) -> list[PlannedSet]:
    return [
        PlannedSet(set_number=i + 1, weight_kg=weight_kg, reps=reps, rpe_target=AUX_RPE_TARGET)
        for i in range(count)
    ]


def build_auxiliary_work(
    exercises: tuple[str, ...],
    one_rm_kg: float,
    main_lift_set_count: int,
    weekly_volume: dict[MuscleGroup, float],
    mrv_mev_config: MrvMevConfig,
    primary_muscles: list[MuscleGroup],
    worst_soreness: SorenessLevel,
    warnings: list[str],
    biological_sex: Sex | None = None,
    increment_kg: float = 2.5,
) -> list[AuxiliaryWork]:
    """
    Prescribe each assigned auxiliary exercise.

    Severe soreness skips it; so does remaining capacity below one set after
    the main lift's sets (with a warning appended to warnings).  Otherwise
    3 sets at 67.5 % 1RM, one fewer at soreness 3, one fewer and 5 % lighter
    at soreness 4.
    """
    work = []
    for exercise in exercises:
        if not exercise:
            continue
        if worst_soreness >= SorenessLevel.SEVERE:
            work.append(
                AuxiliaryWork(
                    exercise=exercise,
                    sets=[],
                    skipped=True,
                    skip_reason="Severe soreness — auxiliary exercise skipped",
                )
            )
            continue

        exhausted = None
        for muscle in primary_muscles:
            remaining = remaining_capacity(muscle, weekly_volume, mrv_mev_config) - main_lift_set_count
            if remaining < 1:
                exhausted = muscle
                break
        if exhausted is not None:
            warnings.append(f"Approaching MRV for {exhausted.value} — {exercise} skipped")
            work.append(
                AuxiliaryWork(
                    exercise=exercise,
                    sets=[],
                    skipped=True,
                    skip_reason=f"MRV approaching for {exhausted.value}",
                )
            )
            continue

        count = AUX_BASE_SETS
        multiplier = 1.0
        if worst_soreness == SorenessLevel.HIGH:
            count = max(1, count - 1)
            multiplier = AUX_HIGH_SORENESS_INTENSITY
        elif worst_soreness == SorenessLevel.MODERATE:
            count = max(1, count - 1)

        weight = round_to_nearest(auxiliary_base_weight(one_rm_kg, increment_kg) * multiplier, increment_kg)
        work.append(
            AuxiliaryWork(
                exercise=exercise,
                sets=auxiliary_sets(count, weight, auxiliary_reps(biological_sex)),
                skipped=False,
            )
        )
    return work


# =============================================================================
# Pipeline
# =============================================================================


def generate_jit_session(inp: JITInput) -> JITOutput:
    """
    Run the adjustment pipeline for one session.

    Args:
        inp: Fully resolved JIT request

    Returns:
        Candidate JITOutput (not yet passed through the constraint enforcer)

    Raises:
        InvalidInputError: Malformed input (unknown intensity type, bad block)
    """
    cfg = inp.formula_config
    increment = cfg.rounding_increment_kg
    rationale: list[str] = []
    warnings: list[str] = []

    # Step 1: formula baseline
    base_sets = calculate_sets(inp.lift, inp.intensity_type, inp.block_number, inp.one_rm_kg, cfg)
    base_weight = base_sets[0].weight_kg if base_sets else 0.0

    intensity = 1.0
    planned_count = len(base_sets)
    recovery_mode = False
    skipped = False

    # Step 2: RPE trend
    trend = detect_rpe_trend(inp.recent_logs)
    if trend == "high":
        intensity *= trend_multiplier(trend)
        rationale.append("Recent RPE above target — reduced intensity 2.5%")
    elif trend == "low":
        intensity *= trend_multiplier(trend)
        rationale.append("Recent RPE below target — increased intensity 2.5%")

    # Step 3: soreness
    primary = get_primary_muscles(inp.lift)
    worst = get_worst_soreness(primary, inp.soreness_ratings)
    modifier = get_soreness_modifier(worst, inp.biological_sex)
    if modifier.recovery_mode:
        recovery_mode = True
        rationale.append("Severe soreness — recovery session")
    else:
        planned_count = max(MIN_WORKING_SETS, planned_count - modifier.set_reduction)
        intensity *= modifier.intensity_multiplier
        if modifier.warning:
            rationale.append(modifier.warning)

    # Step 4: weekly capacity (not in recovery mode)
    if not recovery_mode:
        for mc in primary_contributions(inp.lift):
            remaining = remaining_capacity(mc.muscle, inp.weekly_volume_to_date, inp.mrv_mev_config)
            remaining_sets = math.floor(remaining / mc.contribution) if remaining > 0 else 0
            if remaining_sets <= 0:
                skipped = True
                planned_count = 0
                warnings.append(f"MRV exceeded for {mc.muscle.value} — main lift skipped")
                break
            if planned_count > remaining_sets:
                warnings.append(f"Approaching MRV for {mc.muscle.value} — sets capped at {remaining_sets}")
                planned_count = remaining_sets

    # Step 5: disruption override (recovery mode cannot be overridden)
    disruption = worst_disruption(relevant_disruptions(inp.active_disruptions, inp.lift, inp.session_date))
    if disruption is not None and not recovery_mode:
        intensity = 1.0
        planned_count = len(base_sets)
        skipped = False
        desc = disruption.description or DEFAULT_DISRUPTION_DESCRIPTION
        match Severity(disruption.severity):
            case Severity.MAJOR:
                skipped = True
                planned_count = 0
                rationale.append(f"{desc} — main lift skipped")
            case Severity.MODERATE:
                planned_count = max(1, math.ceil(len(base_sets) / 2))
                intensity = MODERATE_DISRUPTION_INTENSITY
                rationale.append(f"{desc} — volume and intensity reduced")
            case Severity.MINOR:
                rationale.append(desc)

    # Final main-lift sets
    if recovery_mode:
        main_sets = recovery_sets(base_weight, increment)
    elif skipped or planned_count == 0:
        skipped = True
        main_sets = []
    else:
        main_sets = renumber(base_sets[:planned_count], round_to_nearest(base_weight * intensity, increment))

    volume_modifier = len(main_sets) / len(base_sets) if base_sets else 1.0
    intensity_modifier = RECOVERY_MODE_PCT if recovery_mode else intensity

    # Step 6: auxiliaries
    auxiliary_work = build_auxiliary_work(
        inp.active_auxiliaries,
        inp.one_rm_kg,
        len(main_sets),
        inp.weekly_volume_to_date,
        inp.mrv_mev_config,
        primary,
        worst,
        warnings,
        inp.biological_sex,
        increment,
    )

    # Step 7: warmup from the final working weight
    warmup_sets = []
    if main_sets and not skipped:
        working = main_sets[0].weight_kg
        warmup_sets = generate_warmup_sets(
            working, effective_protocol(working, inp.warmup_config, recovery_mode), increment
        )

    # Step 8: rest
    main_rest = resolve_rest(inp)
    rest = RestRecommendations(
        main_lift=[main_rest for _ in main_sets],
        auxiliary=[cfg.rest_seconds.auxiliary for _ in auxiliary_work],
    )

    return JITOutput(
        session_id=inp.session_id,
        generated_at=datetime.now(),
        main_lift_sets=main_sets,
        warmup_sets=warmup_sets,
        auxiliary_work=auxiliary_work,
        volume_modifier=volume_modifier,
        intensity_modifier=intensity_modifier,
        rationale=rationale,
        warnings=warnings,
        skipped_main_lift=skipped,
        rest_recommendations=rest,
        recovery_mode=recovery_mode,
    )
