"""
Disruption adjuster.

Selects the disruption that governs a session and proposes program-level
adjustments for planned sessions affected by a newly reported disruption.
"""

from datetime import date

from ..models import (
    DisruptionAdjustmentSuggestion,
    DisruptionType,
    Lift,
    PlannedSessionRef,
    Severity,
    TrainingDisruption,
)

DEFAULT_DISRUPTION_DESCRIPTION = "Training disruption adjustment"


def relevant_disruptions(
    disruptions: list[TrainingDisruption],
    lift: Lift,
    session_date: date | None = None,
) -> list[TrainingDisruption]:
    """
    Disruptions that apply to one session.

    A disruption applies when it is not resolved, its affected_lifts is unset
    or contains the lift (an empty tuple matches no lift), and (when
    session_date is given) its date range covers that date.
    """
    result = []
    for d in disruptions:
        if not d.is_active:
            continue
        if d.affected_lifts is not None and lift not in d.affected_lifts:
            continue
        if session_date is not None and not d.covers(session_date):
            continue
        result.append(d)
    return result


def worst_disruption(disruptions: list[TrainingDisruption]) -> TrainingDisruption | None:
    """Most severe disruption; the earliest listed wins ties."""
    worst: TrainingDisruption | None = None
    for d in disruptions:
        if worst is None or Severity(d.severity).rank > Severity(worst.severity).rank:
            worst = d
    return worst


# ---------------------------------------------------------------------------
# Program-level suggestions
# ---------------------------------------------------------------------------


def _suggestions_for(
    disruption_type: DisruptionType,
    severity: Severity,
    session_id: str,
) -> list[DisruptionAdjustmentSuggestion]:
    def weight(pct: int, rationale: str, note: str | None = None) -> DisruptionAdjustmentSuggestion:
        return DisruptionAdjustmentSuggestion(
            session_id=session_id,
            action="weight_reduced",
            reduction_pct=pct,
            rationale=rationale,
            substitution_note=note,
        )

    def reps(count: int, rationale: str) -> DisruptionAdjustmentSuggestion:
        return DisruptionAdjustmentSuggestion(
            session_id=session_id, action="reps_reduced", reps_reduction=count, rationale=rationale
        )

    def skip(rationale: str) -> DisruptionAdjustmentSuggestion:
        return DisruptionAdjustmentSuggestion(session_id=session_id, action="session_skipped", rationale=rationale)

    match (DisruptionType(disruption_type), Severity(severity)):
        case (DisruptionType.INJURY, Severity.MAJOR):
            return [skip("Major injury — session skipped")]
        case (DisruptionType.INJURY, Severity.MODERATE):
            return [weight(40, "Moderate injury — reduce intensity 40% to protect injured area")]
        case (DisruptionType.INJURY, Severity.MINOR):
            return [weight(20, "Minor injury — reduce intensity 20% to maintain movement pattern safely")]

        case (DisruptionType.ILLNESS, Severity.MAJOR):
            return [skip("Major illness — session skipped for recovery")]
        case (DisruptionType.ILLNESS, Severity.MODERATE):
            return [
                weight(25, "Moderate illness — reduce weight 25%"),
                reps(2, "Moderate illness — reduce reps by 2 per set"),
            ]
        case (DisruptionType.ILLNESS, Severity.MINOR):
            return [reps(2, "Minor illness — reduce reps by 2 per set")]

        case (DisruptionType.TRAVEL, _):
            return [
                weight(
                    30,
                    "Travel — reduce weight 30% due to equipment limitations",
                    "Consider bodyweight or hotel gym substitutions",
                )
            ]

        case (DisruptionType.FATIGUE, Severity.MAJOR):
            return [skip("Major fatigue — session skipped")]
        case (DisruptionType.FATIGUE, Severity.MODERATE):
            return [weight(20, "Moderate fatigue — reduce intensity 20%")]
        case (DisruptionType.FATIGUE, Severity.MINOR):
            return [weight(10, "Minor fatigue — reduce intensity 10%")]

        case (DisruptionType.EQUIPMENT_UNAVAILABLE, _):
            return [
                DisruptionAdjustmentSuggestion(
                    session_id=session_id,
                    action="exercise_substituted",
                    rationale="Equipment unavailable — substitute with available alternatives",
                    substitution_note="Use bodyweight or alternative equipment",
                )
            ]

        case (DisruptionType.UNPROGRAMMED_EVENT | DisruptionType.OTHER, _):
            return []

    return []


def suggest_disruption_adjustment(
    disruption: TrainingDisruption,
    sessions: list[PlannedSessionRef],
) -> list[DisruptionAdjustmentSuggestion]:
    """
    Propose adjustments for every planned session the disruption touches.

    An unset or empty affected_lifts list affects every session.

    Returns:
        Suggestions in session order; a session may receive two (moderate
        illness reduces both weight and reps)
    """
    suggestions: list[DisruptionAdjustmentSuggestion] = []
    for session in sessions:
        if disruption.affected_lifts and session.lift not in disruption.affected_lifts:
            continue
        suggestions.extend(_suggestions_for(disruption.disruption_type, disruption.severity, session.id))
    return suggestions
