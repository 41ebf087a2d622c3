"""
Hard constraint enforcer.

The last pass over any strategy's candidate output.  Violations are never
raised; they are corrected and recorded as "[constraint] ..." warnings.
"""

from dataclasses import replace

from loguru import logger

from .config import CONSTRAINT_WEIGHT_FLOOR_PCT
from .formulas import round_to_nearest
from .jit import resolve_rest
from .models import JITInput, JITOutput, Lift, PlannedSet
from .muscles import get_primary_muscles
from .set_calculator import calculate_sets, renumber
from .volume import remaining_capacity
from .warmup import effective_protocol, generate_warmup_sets


def _with_weight(s: PlannedSet, weight_kg: float) -> PlannedSet:
    return replace(s, weight_kg=weight_kg)


def enforce_hard_constraints(output: JITOutput, inp: JITInput) -> JITOutput:
    """
    Apply the non-negotiable safety rules to a candidate output.

    1. Capacity: volume-to-date >= MRV on any primary muscle forces a skip.
    2. Weight floor: no set below CONSTRAINT_WEIGHT_FLOOR_PCT of the formula
       baseline weight.
    3. Minimum sets: an un-skipped output with no sets gets one base set back.
    4. Every weight is rounded again and warmup is rebuilt from the final
       working weight; candidate warmup sets are discarded.

    Args:
        output: Candidate produced by any strategy
        inp: The request it answers

    Returns:
        A new JITOutput; the candidate is left untouched
    """
    cfg = inp.formula_config
    increment = cfg.rounding_increment_kg
    main_sets = list(output.main_lift_sets)
    skipped = output.skipped_main_lift
    warnings = list(output.warnings)

    if not skipped:
        for muscle in get_primary_muscles(inp.lift):
            if remaining_capacity(muscle, inp.weekly_volume_to_date, inp.mrv_mev_config) <= 0:
                skipped = True
                main_sets = []
                warnings.append(f"[constraint] MRV exceeded for {muscle.value} — main lift forced skip")
                logger.debug("Constraint forced skip of {}: {} at MRV", Lift(inp.lift).value, muscle.value)
                break

    base_sets: list[PlannedSet] | None = None
    if not skipped and main_sets:
        base_sets = calculate_sets(inp.lift, inp.intensity_type, inp.block_number, inp.one_rm_kg, cfg)
        base_weight = base_sets[0].weight_kg if base_sets else 0.0
        floor = round_to_nearest(base_weight * CONSTRAINT_WEIGHT_FLOOR_PCT, increment)
        if any(s.weight_kg < floor for s in main_sets):
            logger.debug("Constraint raised main-lift weight to floor {} kg", floor)
        main_sets = [_with_weight(s, max(s.weight_kg, floor)) for s in main_sets]

    if not skipped and not main_sets:
        if base_sets is None:
            base_sets = calculate_sets(inp.lift, inp.intensity_type, inp.block_number, inp.one_rm_kg, cfg)
        if base_sets:
            main_sets = renumber(base_sets[:1])
            warnings.append("[constraint] Minimum 1 working set enforced")
            logger.debug("Constraint reinstated one working set for {}", Lift(inp.lift).value)

    main_sets = [_with_weight(s, round_to_nearest(s.weight_kg, increment)) for s in main_sets]

    warmup_sets = []
    if main_sets and not skipped:
        working = main_sets[0].weight_kg
        warmup_sets = generate_warmup_sets(
            working,
            effective_protocol(working, inp.warmup_config, output.recovery_mode),
            increment,
        )

    rest = output.rest_recommendations
    if len(rest.main_lift) != len(main_sets):
        per_set = rest.main_lift[0] if rest.main_lift else resolve_rest(inp)
        rest = replace(rest, main_lift=[per_set for _ in main_sets])

    return replace(
        output,
        main_lift_sets=main_sets,
        warmup_sets=warmup_sets,
        skipped_main_lift=skipped,
        warnings=warnings,
        rest_recommendations=rest,
    )
