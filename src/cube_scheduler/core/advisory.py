"""
Advisory capability contract.

The advisory generator is an external service.  This module owns the two
sides of its boundary:

* build_advisory_request() — the exact JSON-compatible request body.  The
  warmup configuration is never sent; warmup is always formula-generated.
* AdvisoryAdjustment — the bounded response.  Anything outside the bounds,
  an unknown field or a wrong type is a validation error, which the
  strategy layer treats as a hard failure of that call.

apply_adjustment() turns a validated response into a candidate JITOutput.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Annotated, Any, Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StringConstraints

from .config import (
    ADVISORY_INTENSITY_MAX,
    ADVISORY_INTENSITY_MIN,
    ADVISORY_RATIONALE_MAX_CHARS,
    ADVISORY_RATIONALE_MAX_ITEMS,
    ADVISORY_REST_DELTA_MAX_SECONDS,
    ADVISORY_SET_DELTA_MAX,
    ADVISORY_SET_DELTA_MIN,
    AUX_ADVISORY_REDUCE_INTENSITY,
    AUX_ADVISORY_REDUCE_SETS,
    AUX_BASE_SETS,
)
from .formulas import round_to_nearest
from .jit import (
    auxiliary_base_weight,
    auxiliary_reps,
    auxiliary_sets,
    resolve_main_lift_rest,
)
from .models import (
    AdvisoryRestSuggestion,
    AuxiliaryWork,
    JITInput,
    JITOutput,
    MuscleGroup,
    RestRecommendations,
)
from .set_calculator import calculate_sets, renumber
from .volume import merge_mrv_mev_config
from .warmup import generate_warmup_sets

AuxOverride = Literal["skip", "reduce", "normal"]
RationaleLine = Annotated[str, StringConstraints(max_length=ADVISORY_RATIONALE_MAX_CHARS)]


# =============================================================================
# Response contract
# =============================================================================


class AdvisoryRestAdjustments(BaseModel):
    """Rest deltas in seconds relative to the formula rest."""

    model_config = ConfigDict(extra="forbid")

    main_lift: float | None = None


class AdvisoryAdjustment(BaseModel):
    """Bounded adjustment descriptor returned by the advisory service."""

    model_config = ConfigDict(extra="forbid")

    intensity_modifier: float = Field(ge=ADVISORY_INTENSITY_MIN, le=ADVISORY_INTENSITY_MAX)
    set_modifier: StrictInt = Field(ge=ADVISORY_SET_DELTA_MIN, le=ADVISORY_SET_DELTA_MAX)
    skip_main_lift: StrictBool
    aux_overrides: dict[str, AuxOverride] = Field(default_factory=dict)
    rationale: list[RationaleLine] = Field(default_factory=list, max_length=ADVISORY_RATIONALE_MAX_ITEMS)
    confidence: Literal["high", "medium", "low"]
    rest_adjustments: AdvisoryRestAdjustments | None = None


# =============================================================================
# Request
# =============================================================================


def _muscle_map(values: dict[MuscleGroup, Any]) -> dict[str, Any]:
    return {MuscleGroup(m).value: (int(v) if hasattr(v, "__index__") else v) for m, v in values.items()}


def formula_rest_seconds(inp: JITInput) -> int:
    return resolve_main_lift_rest(inp.formula_config, inp.block_number, inp.intensity_type)


def last_set_rpe(inp: JITInput) -> float | None:
    """Most recent actual RPE in the history (logs are most recent first)."""
    for log in inp.recent_logs:
        if log.actual_rpe is not None:
            return log.actual_rpe
    return None


def build_advisory_request(inp: JITInput) -> dict[str, Any]:
    """
    JSON-compatible request body for the advisory service.

    Mirrors JITInput minus warmup_config, plus formula_rest_seconds and
    (when any rated history exists) last_set_rpe.
    """
    request: dict[str, Any] = {
        "session_id": inp.session_id,
        "week_number": inp.week_number,
        "block_number": inp.block_number,
        "lift": inp.lift.value,
        "intensity_type": inp.intensity_type.value,
        "one_rm_kg": inp.one_rm_kg,
        "formula_config": asdict(inp.formula_config),
        "soreness_ratings": _muscle_map(inp.soreness_ratings),
        "weekly_volume_to_date": _muscle_map(inp.weekly_volume_to_date),
        "mrv_mev_config": {
            m.value: {"mev": limits.mev, "mrv": limits.mrv}
            for m, limits in merge_mrv_mev_config(inp.mrv_mev_config).items()
        },
        "active_auxiliaries": [a for a in inp.active_auxiliaries if a],
        "recent_logs": [{"actual_rpe": log.actual_rpe, "target_rpe": log.target_rpe} for log in inp.recent_logs],
        "active_disruptions": [
            {
                "disruption_type": d.disruption_type.value,
                "severity": d.severity.value,
                "affected_lifts": None if d.affected_lifts is None else [lift.value for lift in d.affected_lifts],
                "description": d.description,
                "affected_date_start": d.affected_date_start.isoformat() if d.affected_date_start else None,
                "affected_date_end": d.affected_date_end.isoformat() if d.affected_date_end else None,
                "status": d.status.value,
            }
            for d in inp.active_disruptions
        ],
        "days_since_last_session": inp.days_since_last_session,
        "biological_sex": inp.biological_sex,
        "user_age": inp.user_age,
        "user_rest_overrides": [
            {
                "lift": o.lift.value if o.lift else None,
                "intensity_type": o.intensity_type.value if o.intensity_type else None,
                "rest_seconds": o.rest_seconds,
            }
            for o in inp.user_rest_overrides
        ],
        "session_date": inp.session_date.isoformat() if inp.session_date else None,
        "formula_rest_seconds": formula_rest_seconds(inp),
    }
    rpe = last_set_rpe(inp)
    if rpe is not None:
        request["last_set_rpe"] = rpe
    return request


# =============================================================================
# Applying a response
# =============================================================================


def clamp_rest_delta(raw: float) -> int:
    limit = ADVISORY_REST_DELTA_MAX_SECONDS
    clamped = int(round(max(-limit, min(limit, raw))))
    if not -limit <= raw <= limit:
        logger.warning(
            "Advisory rest_adjustments.main_lift {}s outside [-{}, {}], clamped to {}s",
            raw,
            limit,
            limit,
            clamped,
        )
    return clamped


def apply_adjustment(adj: AdvisoryAdjustment, inp: JITInput) -> JITOutput:
    """
    Build a candidate output from a validated advisory response.

    Main lift: base sets trimmed or extended by set_modifier (never below 0;
    zero sets becomes a skip) at base weight × intensity_modifier.
    Auxiliaries: skip / reduce (2 sets at 90 %) / normal (3 sets).
    Rest: formula rest + clamped delta.
    """
    cfg = inp.formula_config
    increment = cfg.rounding_increment_kg
    base_sets = calculate_sets(inp.lift, inp.intensity_type, inp.block_number, inp.one_rm_kg, cfg)
    base_weight = base_sets[0].weight_kg if base_sets else 0.0

    skipped = adj.skip_main_lift
    main_sets = []
    if not skipped:
        target = max(0, len(base_sets) + adj.set_modifier)
        weight = round_to_nearest(base_weight * adj.intensity_modifier, increment)
        template = base_sets[-1] if base_sets else None
        extended = list(base_sets[:target])
        while template is not None and len(extended) < target:
            extended.append(template)
        main_sets = renumber(extended, weight)
        if not main_sets:
            skipped = True

    reps = auxiliary_reps(inp.biological_sex)
    base_aux = auxiliary_base_weight(inp.one_rm_kg, increment)
    auxiliary_work = []
    for exercise in inp.active_auxiliaries:
        if not exercise:
            continue
        override = adj.aux_overrides.get(exercise)
        if override == "skip":
            auxiliary_work.append(
                AuxiliaryWork(exercise=exercise, sets=[], skipped=True, skip_reason="Advisory: skip override")
            )
        elif override == "reduce":
            weight = round_to_nearest(base_aux * AUX_ADVISORY_REDUCE_INTENSITY, increment)
            auxiliary_work.append(
                AuxiliaryWork(exercise=exercise, sets=auxiliary_sets(AUX_ADVISORY_REDUCE_SETS, weight, reps), skipped=False)
            )
        else:
            auxiliary_work.append(
                AuxiliaryWork(exercise=exercise, sets=auxiliary_sets(AUX_BASE_SETS, base_aux, reps), skipped=False)
            )

    warmup_sets = []
    if main_sets and not skipped:
        warmup_sets = generate_warmup_sets(main_sets[0].weight_kg, inp.warmup_config, increment)

    formula_base = formula_rest_seconds(inp)
    suggestion = None
    delta = 0
    if adj.rest_adjustments is not None and adj.rest_adjustments.main_lift is not None:
        delta = clamp_rest_delta(adj.rest_adjustments.main_lift)
    if adj.rest_adjustments is not None:
        suggestion = AdvisoryRestSuggestion(delta_seconds=delta, formula_base_seconds=formula_base)

    return JITOutput(
        session_id=inp.session_id,
        generated_at=datetime.now(),
        main_lift_sets=main_sets,
        warmup_sets=warmup_sets,
        auxiliary_work=auxiliary_work,
        volume_modifier=len(main_sets) / len(base_sets) if base_sets else 1.0,
        intensity_modifier=0.0 if skipped else adj.intensity_modifier,
        rationale=list(adj.rationale),
        warnings=[],
        skipped_main_lift=skipped,
        rest_recommendations=RestRecommendations(
            main_lift=[formula_base + delta for _ in main_sets],
            auxiliary=[cfg.rest_seconds.auxiliary for _ in auxiliary_work],
        ),
        advisory_rest_suggestion=suggestion,
    )
