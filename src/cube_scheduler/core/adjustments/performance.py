"""
Performance adjuster.

Two consumers of RPE history:

* detect_rpe_trend() — the JIT pipeline's per-session trend step, looking
  at the two most recent logs for one lift / intensity pairing.
* suggest_program_adjustments() — program-level suggestions across every
  lift / intensity pairing, plus incomplete-session flags.
"""

from dataclasses import dataclass
from typing import Literal

from ..config import (
    INCOMPLETE_SESSION_THRESHOLD_PCT,
    TREND_INTENSITY_STEP,
    TREND_RPE_DEVIATION_THRESHOLD,
    TREND_SESSIONS_REQUIRED,
)
from ..models import (
    IntensityType,
    Lift,
    PerformanceSuggestion,
    RecentSessionSummary,
    Sex,
    SessionLogSummary,
)

RpeTrend = Literal["high", "low"]


@dataclass(frozen=True)
class AdjustmentThresholds:
    rpe_deviation_threshold: float
    consecutive_sessions_required: int
    incomplete_session_threshold: float
    max_suggestions_per_lift: int


DEFAULT_THRESHOLDS_MALE = AdjustmentThresholds(
    rpe_deviation_threshold=1.0,
    consecutive_sessions_required=2,
    incomplete_session_threshold=INCOMPLETE_SESSION_THRESHOLD_PCT,
    max_suggestions_per_lift=1,
)

DEFAULT_THRESHOLDS_FEMALE = AdjustmentThresholds(
    rpe_deviation_threshold=1.5,
    consecutive_sessions_required=3,
    incomplete_session_threshold=INCOMPLETE_SESSION_THRESHOLD_PCT,
    max_suggestions_per_lift=1,
)


def get_default_thresholds(biological_sex: Sex | None = None) -> AdjustmentThresholds:
    return DEFAULT_THRESHOLDS_FEMALE if biological_sex == "female" else DEFAULT_THRESHOLDS_MALE


def detect_rpe_trend(
    recent_logs: list[RecentSessionSummary],
    threshold: float = TREND_RPE_DEVIATION_THRESHOLD,
    required: int = TREND_SESSIONS_REQUIRED,
) -> RpeTrend | None:
    """
    Trend across the most recent logs that carry an actual RPE.

    Returns "high" when every one of the `required` most recent logs is
    more than `threshold` above target, "low" when every one is more than
    `threshold` below, otherwise None (including too little history).
    """
    rated = [log for log in recent_logs if log.actual_rpe is not None][:required]
    if len(rated) < required:
        return None
    deviations = [log.actual_rpe - log.target_rpe for log in rated]  # type: ignore[operator]
    if all(d > threshold for d in deviations):
        return "high"
    if all(d < -threshold for d in deviations):
        return "low"
    return None


def trend_multiplier(trend: RpeTrend | None) -> float:
    if trend == "high":
        return 1.0 - TREND_INTENSITY_STEP
    if trend == "low":
        return 1.0 + TREND_INTENSITY_STEP
    return 1.0


def suggest_program_adjustments(
    recent_logs: list[SessionLogSummary],
    thresholds: AdjustmentThresholds = DEFAULT_THRESHOLDS_MALE,
) -> list[PerformanceSuggestion]:
    """
    Program-level suggestions from recent logs (most recent first).

    Incomplete sessions are flagged individually.  Logs are then grouped by
    (lift, intensity type); a group whose required most-recent rated logs
    are all above (or all below) target by more than the threshold yields
    one reduce_pct (or increase_pct) suggestion, capped per lift.
    """
    suggestions: list[PerformanceSuggestion] = []

    for log in recent_logs:
        if log.completion_pct is not None and log.completion_pct < thresholds.incomplete_session_threshold:
            suggestions.append(
                PerformanceSuggestion(
                    type="flag_for_review",
                    affected_lift=log.lift,
                    affected_intensity_type=None,
                    pct_adjustment=None,
                    rationale=f"Session incomplete at {log.completion_pct:g}% completion",
                    session_id=log.session_id,
                    completion_pct=log.completion_pct,
                )
            )

    groups: dict[tuple[Lift, IntensityType], list[SessionLogSummary]] = {}
    for log in recent_logs:
        groups.setdefault((log.lift, log.intensity_type), []).append(log)

    per_lift: dict[Lift, int] = {}
    for (lift, intensity_type), logs in groups.items():
        if per_lift.get(lift, 0) >= thresholds.max_suggestions_per_lift:
            continue
        rated = [log for log in logs if log.actual_rpe is not None]
        if len(rated) < thresholds.consecutive_sessions_required:
            continue
        recent = rated[: thresholds.consecutive_sessions_required]
        deviations = [log.actual_rpe - log.target_rpe for log in recent]  # type: ignore[operator]

        if all(d > thresholds.rpe_deviation_threshold for d in deviations):
            avg = sum(deviations) / len(deviations)
            suggestions.append(
                PerformanceSuggestion(
                    type="reduce_pct",
                    affected_lift=lift,
                    affected_intensity_type=intensity_type,
                    pct_adjustment=-TREND_INTENSITY_STEP,
                    rationale=(
                        f"{Lift(lift).value} {IntensityType(intensity_type).value} RPE has averaged "
                        f"{avg:.1f} above target over last {len(recent)} sessions"
                    ),
                )
            )
            per_lift[lift] = per_lift.get(lift, 0) + 1
        elif all(-d > thresholds.rpe_deviation_threshold for d in deviations):
            suggestions.append(
                PerformanceSuggestion(
                    type="increase_pct",
                    affected_lift=lift,
                    affected_intensity_type=intensity_type,
                    pct_adjustment=TREND_INTENSITY_STEP,
                    rationale="Loading appears below intended stimulus",
                )
            )
            per_lift[lift] = per_lift.get(lift, 0) + 1

    return suggestions
