"""
JSON serialization and CLI string parsing for cube-scheduler models.

Handles conversion of outputs to JSON-compatible dicts and parsing of the
compact key=value strings accepted on the command line.
"""

import re
from datetime import date, datetime
from typing import Any

from ..core.models import (
    AuxiliaryAssignment,
    AuxiliaryWork,
    ComparisonData,
    CompletedSetLog,
    DisruptionType,
    JITOutput,
    Lift,
    MuscleGroup,
    PlannedSet,
    RecentSessionSummary,
    SessionScaffold,
    Severity,
    SorenessLevel,
    TrainingDisruption,
    WarmupSet,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> date:
    """
    Validate a date string and parse it.

    Args:
        date_str: Date string to validate

    Returns:
        Parsed date

    Raises:
        ValidationError: If date format is invalid
    """
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e


def validate_lift(value: str) -> Lift:
    try:
        return Lift(value.strip().lower())
    except ValueError as e:
        valid = ", ".join(l.value for l in Lift)
        raise ValidationError(f"Unknown lift: {value!r}. Valid lifts: {valid}") from e


def validate_muscle(value: str) -> MuscleGroup:
    try:
        return MuscleGroup(value.strip().lower())
    except ValueError as e:
        valid = ", ".join(m.value for m in MuscleGroup)
        raise ValidationError(f"Unknown muscle group: {value!r}. Valid muscles: {valid}") from e


def _split_pair(text: str, sep: str, example: str) -> tuple[str, str]:
    key, found, value = text.partition(sep)
    if not found or not key.strip() or not value.strip():
        raise ValidationError(f"Invalid value: {text!r}. Expected e.g. {example}")
    return key.strip(), value.strip()


# =============================================================================
# CLI string parsing
# =============================================================================


def parse_soreness(entries: list[str]) -> dict[MuscleGroup, SorenessLevel]:
    """
    Parse soreness ratings.

    Args:
        entries: Strings like "quads=3"

    Returns:
        Mapping muscle -> level

    Raises:
        ValidationError: Unknown muscle or a level outside 1-5
    """
    ratings: dict[MuscleGroup, SorenessLevel] = {}
    for entry in entries:
        key, value = _split_pair(entry, "=", "quads=3")
        muscle = validate_muscle(key)
        if not value.isdigit() or int(value) not in range(1, 6):
            raise ValidationError(f"Soreness level for {muscle.value} must be 1-5, got {value!r}")
        ratings[muscle] = SorenessLevel(int(value))
    return ratings


def parse_weekly_volume(entries: list[str]) -> dict[MuscleGroup, float]:
    """Parse "muscle=sets" strings into a weekly volume mapping."""
    volume: dict[MuscleGroup, float] = {}
    for entry in entries:
        key, value = _split_pair(entry, "=", "quads=12")
        muscle = validate_muscle(key)
        try:
            sets = float(value)
        except ValueError as e:
            raise ValidationError(f"Volume for {muscle.value} must be a number, got {value!r}") from e
        if sets < 0:
            raise ValidationError(f"Volume for {muscle.value} must be non-negative")
        volume[muscle] = sets
    return volume


def parse_disruption(text: str) -> TrainingDisruption:
    """
    Parse a disruption.

    Format:
        severity[:lift,lift...][:description]

        "major"                      -> affects every lift
        "moderate:squat,deadlift"    -> affects squat and deadlift
        "minor::sore knee"           -> every lift, with a description

    Raises:
        ValidationError: Unknown severity or lift
    """
    parts = text.split(":", 2)
    try:
        severity = Severity(parts[0].strip().lower())
    except ValueError as e:
        raise ValidationError(f"Unknown severity: {parts[0]!r}. Use minor, moderate or major") from e

    lifts: tuple[Lift, ...] | None = None
    if len(parts) > 1 and parts[1].strip():
        lifts = tuple(validate_lift(p) for p in parts[1].split(",") if p.strip())

    description = parts[2].strip() if len(parts) > 2 and parts[2].strip() else None
    return TrainingDisruption(
        disruption_type=DisruptionType.OTHER,
        severity=severity,
        affected_lifts=lifts,
        description=description,
    )


def parse_rpe_log(text: str) -> RecentSessionSummary:
    """
    Parse "actual/target" RPE (e.g. "9.5/8").  "-/8" records an unrated session.

    Raises:
        ValidationError: If either side is not a number
    """
    actual_str, target_str = _split_pair(text, "/", "9.5/8")
    try:
        target = float(target_str)
        actual = None if actual_str == "-" else float(actual_str)
    except ValueError as e:
        raise ValidationError(f"Invalid RPE log: {text!r}. Expected actual/target, e.g. 9.5/8") from e
    return RecentSessionSummary(actual_rpe=actual, target_rpe=target)


def parse_set_log(text: str) -> CompletedSetLog:
    """Parse "lift=sets" (e.g. "squat=5") into a completed-set log."""
    key, value = _split_pair(text, "=", "squat=5")
    lift = validate_lift(key)
    if not value.isdigit():
        raise ValidationError(f"Completed sets for {lift.value} must be a non-negative integer, got {value!r}")
    return CompletedSetLog(lift=lift, completed_sets=int(value))


# =============================================================================
# Output conversion
# =============================================================================


def planned_set_to_dict(planned_set: PlannedSet) -> dict[str, Any]:
    """
    Convert PlannedSet to JSON-compatible dict.

    Args:
        planned_set: PlannedSet to convert

    Returns:
        Dict representation
    """
    d: dict[str, Any] = {
        "set_number": planned_set.set_number,
        "weight_kg": planned_set.weight_kg,
        "reps": planned_set.reps,
        "rpe_target": planned_set.rpe_target,
    }
    if planned_set.reps_range is not None:
        d["reps_range"] = list(planned_set.reps_range)
    return d


def warmup_set_to_dict(warmup_set: WarmupSet) -> dict[str, Any]:
    return {
        "set_number": warmup_set.set_number,
        "weight_kg": warmup_set.weight_kg,
        "display_weight": warmup_set.display_weight,
        "reps": warmup_set.reps,
        "is_warmup": warmup_set.is_warmup,
    }


def auxiliary_work_to_dict(work: AuxiliaryWork) -> dict[str, Any]:
    d: dict[str, Any] = {
        "exercise": work.exercise,
        "sets": [planned_set_to_dict(s) for s in work.sets],
        "skipped": work.skipped,
    }
    if work.skip_reason is not None:
        d["skip_reason"] = work.skip_reason
    return d


def _comparison_to_dict(comparison: ComparisonData) -> dict[str, Any]:
    div = comparison.divergence
    return {
        "divergence": {
            "weight_pct": round(div.weight_pct, 4),
            "set_delta": div.set_delta,
            "rpe_context_summary": div.rpe_context_summary,
        },
        "formula_output": jit_output_to_dict(comparison.formula_output),
        "should_surface_to_user": comparison.should_surface_to_user,
    }


def jit_output_to_dict(output: JITOutput) -> dict[str, Any]:
    """
    Convert a JIT session to a JSON-compatible dict.

    Optional sections (advisory rest suggestion, comparison) are only
    emitted when present.
    """
    d: dict[str, Any] = {
        "session_id": output.session_id,
        "generated_at": output.generated_at.isoformat(),
        "strategy": output.strategy.value if output.strategy is not None else None,
        "main_lift_sets": [planned_set_to_dict(s) for s in output.main_lift_sets],
        "warmup_sets": [warmup_set_to_dict(s) for s in output.warmup_sets],
        "auxiliary_work": [auxiliary_work_to_dict(w) for w in output.auxiliary_work],
        "volume_modifier": output.volume_modifier,
        "intensity_modifier": output.intensity_modifier,
        "skipped_main_lift": output.skipped_main_lift,
        "recovery_mode": output.recovery_mode,
        "rest_recommendations": {
            "main_lift": list(output.rest_recommendations.main_lift),
            "auxiliary": list(output.rest_recommendations.auxiliary),
        },
        "rationale": list(output.rationale),
        "warnings": list(output.warnings),
    }
    if output.advisory_rest_suggestion is not None:
        d["advisory_rest_suggestion"] = {
            "delta_seconds": output.advisory_rest_suggestion.delta_seconds,
            "formula_base_seconds": output.advisory_rest_suggestion.formula_base_seconds,
        }
    if output.comparison is not None:
        d["comparison"] = _comparison_to_dict(output.comparison)
    return d


def scaffold_to_dict(scaffold: SessionScaffold) -> dict[str, Any]:
    return {
        "week_number": scaffold.week_number,
        "day_number": scaffold.day_number,
        "lift": scaffold.lift.value,
        "intensity_type": scaffold.intensity_type.value,
        "block_number": scaffold.block_number,
        "is_deload": scaffold.is_deload,
        "planned_date": scaffold.planned_date.isoformat(),
        "planned_sets": None,
        "jit_generated_at": None,
    }


def assignment_to_dict(assignment: AuxiliaryAssignment) -> dict[str, Any]:
    return {
        "block_number": assignment.block_number,
        "lift": assignment.lift.value,
        "exercise_1": assignment.exercise1,
        "exercise_2": assignment.exercise2,
    }
