"""
Integration tests for the just-in-time session pipeline.

Scenarios run the deterministic strategy end to end (pipeline + constraint
enforcer) from a squat / block 1 / heavy / 1RM 140 baseline:

    base weight  0.80 × 140 = 112 → 112.5
    base sets    2 × 5 @ RPE 8.5
    auxiliaries  0.675 × 140 = 94.5 → 95, 3 × 10

Also covers the program-level helpers that sit beside the pipeline:
auxiliary rotation, makeup windows, disruption and performance suggestions.
"""

from dataclasses import replace
from datetime import date

import pytest
from loguru import logger

from cube_scheduler.core.adjustments.disruption import suggest_disruption_adjustment
from cube_scheduler.core.adjustments.performance import (
    DEFAULT_THRESHOLDS_FEMALE,
    detect_rpe_trend,
    suggest_program_adjustments,
)
from cube_scheduler.core.auxiliary import (
    DEFAULT_AUXILIARY_POOLS,
    compute_block_offset,
    generate_auxiliary_assignments,
    get_auxiliaries_for_block,
)
from cube_scheduler.core.constraints import enforce_hard_constraints
from cube_scheduler.core.errors import InvalidInputError
from cube_scheduler.core.jit import generate_jit_session
from cube_scheduler.core.makeup_window import is_makeup_window_expired, makeup_window_end
from cube_scheduler.core.models import (
    DisruptionStatus,
    DisruptionType,
    IntensityType,
    JITInput,
    Lift,
    MuscleGroup,
    MuscleVolumeLimits,
    PlannedSessionRef,
    PlannedSet,
    ProgramRecord,
    RecentSessionSummary,
    RestOverride,
    SessionLogSummary,
    SessionRef,
    Severity,
    SorenessLevel,
    StrategyTag,
    TrainingDisruption,
)
from cube_scheduler.core.strategies.formula import run_formula


def _inp(**overrides) -> JITInput:
    fields = dict(
        lift=Lift.SQUAT,
        intensity_type=IntensityType.HEAVY,
        block_number=1,
        one_rm_kg=140.0,
        session_id="s-1",
        active_auxiliaries=("Pause Squat", "Box Squat"),
    )
    fields.update(overrides)
    return JITInput(**fields)


def _disruption(severity: Severity, lifts=None, **kw) -> TrainingDisruption:
    return TrainingDisruption(
        disruption_type=kw.pop("disruption_type", DisruptionType.INJURY),
        severity=severity,
        affected_lifts=lifts,
        **kw,
    )


def _weights(output) -> list[float]:
    return [s.weight_kg for s in output.main_lift_sets]


# ---------------------------------------------------------------------------
# Baseline
# ---------------------------------------------------------------------------


class TestBaselineSession:
    def test_two_sets_at_112_5(self):
        out = run_formula(_inp())
        assert [(s.set_number, s.weight_kg, s.reps) for s in out.main_lift_sets] == [(1, 112.5, 5), (2, 112.5, 5)]
        assert not out.skipped_main_lift
        assert out.strategy == StrategyTag.FORMULA
        assert out.volume_modifier == 1.0
        assert out.intensity_modifier == 1.0
        assert out.rationale == []
        assert out.warnings == []

    def test_warmup_ends_below_working_weight(self):
        out = run_formula(_inp())
        assert [w.weight_kg for w in out.warmup_sets] == [45.0, 67.5, 85.0, 102.5]
        assert out.warmup_sets[-1].weight_kg < 112.5

    def test_auxiliaries(self):
        out = run_formula(_inp())
        assert [a.exercise for a in out.auxiliary_work] == ["Pause Squat", "Box Squat"]
        for aux in out.auxiliary_work:
            assert [(s.weight_kg, s.reps) for s in aux.sets] == [(95.0, 10)] * 3

    def test_female_auxiliary_reps(self):
        out = run_formula(_inp(biological_sex="female"))
        assert all(s.reps == 12 for s in out.auxiliary_work[0].sets)

    def test_rest_recommendations(self):
        out = run_formula(_inp())
        assert out.rest_recommendations.main_lift == [210, 210]
        assert out.rest_recommendations.auxiliary == [90, 90]

    def test_string_inputs_are_coerced(self):
        out = run_formula(_inp(lift="squat", intensity_type="heavy", soreness_ratings={"quads": 3}))
        # soreness 3: 2 − 1 = 1 set
        assert len(out.main_lift_sets) == 1

    @pytest.mark.parametrize(
        "overrides",
        [
            {"one_rm_kg": 0},
            {"block_number": 4},
            {"intensity_type": "tempo"},
            {"soreness_ratings": {MuscleGroup.QUADS: 6}},
            {"soreness_ratings": {"calves": 2}},
            {"weekly_volume_to_date": {MuscleGroup.QUADS: -1}},
        ],
    )
    def test_invalid_input_raises(self, overrides):
        with pytest.raises(InvalidInputError):
            _inp(**overrides)


# ---------------------------------------------------------------------------
# Trend
# ---------------------------------------------------------------------------


class TestRpeTrend:
    def test_high_trend_reduces(self):
        logs = [RecentSessionSummary(9.5, 8.0), RecentSessionSummary(9.5, 8.0)]
        out = run_formula(_inp(recent_logs=logs))
        # 112.5 × 0.975 = 109.6875 → 110
        assert _weights(out) == [110.0, 110.0]
        assert out.rationale == ["Recent RPE above target — reduced intensity 2.5%"]

    def test_low_trend_increases(self):
        logs = [RecentSessionSummary(6.0, 8.0), RecentSessionSummary(6.5, 8.0)]
        out = run_formula(_inp(recent_logs=logs))
        # 112.5 × 1.025 = 115.3125 → 115
        assert _weights(out) == [115.0, 115.0]

    def test_mixed_or_boundary_is_no_trend(self):
        assert detect_rpe_trend([RecentSessionSummary(9.5, 8.0), RecentSessionSummary(8.0, 8.0)]) is None
        assert detect_rpe_trend([RecentSessionSummary(9.0, 8.0), RecentSessionSummary(9.0, 8.0)]) is None

    def test_unrated_logs_skipped(self):
        logs = [RecentSessionSummary(None, 8.0), RecentSessionSummary(9.5, 8.0), RecentSessionSummary(9.5, 8.0)]
        assert detect_rpe_trend(logs) == "high"
        assert detect_rpe_trend(logs[:2]) is None


# ---------------------------------------------------------------------------
# Soreness
# ---------------------------------------------------------------------------


class TestSorenessScenarios:
    def test_level_four_one_set_at_107_5(self):
        out = run_formula(_inp(soreness_ratings={MuscleGroup.QUADS: SorenessLevel.HIGH}))
        # 2 − 2 → clamped 1 ; 112.5 × 0.95 = 106.875 → 107.5
        assert [(s.weight_kg, s.reps) for s in out.main_lift_sets] == [(107.5, 5)]
        assert out.volume_modifier == 0.5
        assert out.rationale == ["High soreness — reduced volume and intensity 5%"]
        # auxiliaries: 2 sets at 95 × 0.95 = 90.25 → 90
        assert [(s.weight_kg, s.reps) for s in out.auxiliary_work[0].sets] == [(90.0, 10)] * 2

    @pytest.mark.parametrize("level", [1, 2])
    def test_low_levels_are_noops(self, level):
        baseline = run_formula(_inp())
        out = run_formula(_inp(soreness_ratings={MuscleGroup.GLUTES: level}))
        assert out.main_lift_sets == baseline.main_lift_sets
        assert out.auxiliary_work == baseline.auxiliary_work

    def test_soreness_on_other_lift_ignored(self):
        out = run_formula(_inp(soreness_ratings={MuscleGroup.CHEST: SorenessLevel.SEVERE}))
        assert _weights(out) == [112.5, 112.5]

    def test_recovery_mode(self):
        out = run_formula(_inp(soreness_ratings={MuscleGroup.LOWER_BACK: SorenessLevel.SEVERE}))
        # 0.40 × 112.5 = 45 ; 3 × 5 @ RPE 5
        assert [(s.weight_kg, s.reps, s.rpe_target) for s in out.main_lift_sets] == [(45.0, 5, 5.0)] * 3
        assert out.recovery_mode
        assert out.intensity_modifier == 0.40
        assert all(a.skipped for a in out.auxiliary_work)
        # minimal protocol: 22.5, 33.75 → 35
        assert [w.weight_kg for w in out.warmup_sets] == [22.5, 35.0]

    def test_recovery_mode_floors_at_bar(self):
        out = run_formula(_inp(one_rm_kg=50.0, soreness_ratings={MuscleGroup.QUADS: 5}))
        # base 40 → 0.40 × 40 = 16 → bar
        assert _weights(out) == [20.0, 20.0, 20.0]


# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------


class TestVolumeCapacity:
    def test_exhausted_capacity_skips(self):
        out = run_formula(_inp(weekly_volume_to_date={MuscleGroup.QUADS: 20}))
        assert out.skipped_main_lift
        assert out.main_lift_sets == []
        assert out.warmup_sets == []
        assert "MRV exceeded for quads — main lift skipped" in out.warnings
        assert all(a.skipped for a in out.auxiliary_work)

    def test_cap_on_remaining(self):
        out = run_formula(_inp(weekly_volume_to_date={MuscleGroup.QUADS: 19}))
        assert len(out.main_lift_sets) == 1
        assert "Approaching MRV for quads — sets capped at 1" in out.warnings
        # 20 − 19 − 1 = 0 left for auxiliaries
        assert "Approaching MRV for quads — Pause Squat skipped" in out.warnings

    def test_custom_limits(self):
        out = run_formula(
            _inp(
                weekly_volume_to_date={"quads": 5},
                mrv_mev_config={"quads": MuscleVolumeLimits(mev=2, mrv=5)},
            )
        )
        assert out.skipped_main_lift

    def test_constraint_skips_recovery_session_at_mrv(self):
        out = run_formula(
            _inp(
                soreness_ratings={MuscleGroup.QUADS: SorenessLevel.SEVERE},
                weekly_volume_to_date={MuscleGroup.QUADS: 20},
            )
        )
        assert out.skipped_main_lift
        assert out.main_lift_sets == []
        assert "[constraint] MRV exceeded for quads — main lift forced skip" in out.warnings


# ---------------------------------------------------------------------------
# Disruptions
# ---------------------------------------------------------------------------


class TestDisruptionOverride:
    def test_major_skips(self):
        out = run_formula(_inp(active_disruptions=[_disruption(Severity.MAJOR)]))
        assert out.skipped_main_lift
        assert out.main_lift_sets == []
        assert out.warmup_sets == []
        assert out.rationale == ["Training disruption adjustment — main lift skipped"]

    def test_major_skips_despite_soreness(self):
        out = run_formula(
            _inp(
                soreness_ratings={MuscleGroup.QUADS: SorenessLevel.HIGH},
                active_disruptions=[_disruption(Severity.MAJOR)],
            )
        )
        assert out.skipped_main_lift

    def test_excluded_lift_has_no_effect(self):
        baseline = run_formula(_inp())
        out = run_formula(_inp(active_disruptions=[_disruption(Severity.MAJOR, lifts=(Lift.BENCH,))]))
        assert out.main_lift_sets == baseline.main_lift_sets
        assert out.rationale == baseline.rationale

    def test_empty_lift_list_has_no_effect(self):
        baseline = run_formula(_inp())
        out = run_formula(_inp(active_disruptions=[_disruption(Severity.MAJOR, lifts=())]))
        assert not out.skipped_main_lift
        assert out.main_lift_sets == baseline.main_lift_sets

    def test_moderate_halves_and_cuts_intensity(self):
        out = run_formula(_inp(active_disruptions=[_disruption(Severity.MODERATE, description="Knee tweak")]))
        # ceil(2 / 2) = 1 set ; 112.5 × 0.90 = 101.25 → 102.5
        assert [(s.weight_kg, s.reps) for s in out.main_lift_sets] == [(102.5, 5)]
        assert out.rationale == ["Knee tweak — volume and intensity reduced"]

    def test_minor_resets_soreness_adjustment(self):
        out = run_formula(
            _inp(
                soreness_ratings={MuscleGroup.QUADS: SorenessLevel.HIGH},
                active_disruptions=[_disruption(Severity.MINOR, description="Sore knee")],
            )
        )
        assert _weights(out) == [112.5, 112.5]
        assert out.rationale[-1] == "Sore knee"

    def test_recovery_mode_not_overridden(self):
        out = run_formula(
            _inp(
                soreness_ratings={MuscleGroup.QUADS: SorenessLevel.SEVERE},
                active_disruptions=[_disruption(Severity.MAJOR)],
            )
        )
        assert out.recovery_mode
        assert not out.skipped_main_lift

    def test_most_severe_wins(self):
        ds = [_disruption(Severity.MINOR), _disruption(Severity.MODERATE), _disruption(Severity.MINOR)]
        out = run_formula(_inp(active_disruptions=ds))
        assert len(out.main_lift_sets) == 1

    def test_resolved_ignored(self):
        out = run_formula(_inp(active_disruptions=[_disruption(Severity.MAJOR, status=DisruptionStatus.RESOLVED)]))
        assert not out.skipped_main_lift

    def test_date_scoping(self):
        d = _disruption(
            Severity.MAJOR,
            affected_date_start=date(2026, 3, 1),
            affected_date_end=date(2026, 3, 7),
        )
        inside = run_formula(_inp(active_disruptions=[d], session_date=date(2026, 3, 4)))
        outside = run_formula(_inp(active_disruptions=[d], session_date=date(2026, 3, 9)))
        assert inside.skipped_main_lift
        assert not outside.skipped_main_lift


# ---------------------------------------------------------------------------
# Rest
# ---------------------------------------------------------------------------


class TestRestOverrides:
    def test_lift_override(self):
        out = run_formula(_inp(user_rest_overrides=[RestOverride(180, lift="squat")]))
        assert out.rest_recommendations.main_lift == [180, 180]

    def test_specificity(self):
        overrides = [
            RestOverride(120),
            RestOverride(150, lift=Lift.SQUAT),
            RestOverride(170, intensity_type=IntensityType.HEAVY),
        ]
        assert run_formula(_inp(user_rest_overrides=overrides)).rest_recommendations.main_lift[0] == 170
        overrides.append(RestOverride(200, lift=Lift.SQUAT, intensity_type=IntensityType.HEAVY))
        assert run_formula(_inp(user_rest_overrides=overrides)).rest_recommendations.main_lift[0] == 200

    def test_block_three_heavy_rest(self):
        out = run_formula(_inp(block_number=3))
        assert out.rest_recommendations.main_lift == [300] * 4


# ---------------------------------------------------------------------------
# Constraint enforcer
# ---------------------------------------------------------------------------


class TestHardConstraints:
    def test_weight_floor(self):
        inp = _inp()
        candidate = replace(
            generate_jit_session(inp),
            main_lift_sets=[PlannedSet(set_number=1, weight_kg=20.0, reps=5, rpe_target=8.5)],
        )
        out = enforce_hard_constraints(candidate, inp)
        # floor = 0.40 × 112.5 = 45
        assert _weights(out) == [45.0]
        assert out.warmup_sets[-1].weight_kg < 45.0
        assert out.rest_recommendations.main_lift == [210]

    def test_minimum_one_set(self):
        inp = _inp()
        candidate = replace(generate_jit_session(inp), main_lift_sets=[], warmup_sets=[])
        out = enforce_hard_constraints(candidate, inp)
        assert _weights(out) == [112.5]
        assert "[constraint] Minimum 1 working set enforced" in out.warnings
        assert out.warmup_sets

    def test_candidate_warmup_discarded(self):
        inp = _inp()
        base = generate_jit_session(inp)
        candidate = replace(base, warmup_sets=base.warmup_sets[:1])
        out = enforce_hard_constraints(candidate, inp)
        assert out.warmup_sets == base.warmup_sets

    def test_candidate_left_untouched(self):
        inp = _inp(weekly_volume_to_date={MuscleGroup.QUADS: 25})
        candidate = generate_jit_session(_inp())
        out = enforce_hard_constraints(candidate, inp)
        assert out.skipped_main_lift
        assert not candidate.skipped_main_lift

    def test_corrections_silent_without_enabled_logging(self):
        # the debug line for the forced skip stays inside the library
        messages = []
        sink_id = logger.add(messages.append, level="DEBUG")
        try:
            candidate = generate_jit_session(_inp())
            enforce_hard_constraints(candidate, _inp(weekly_volume_to_date={MuscleGroup.QUADS: 25}))
        finally:
            logger.remove(sink_id)
        assert messages == []


# ---------------------------------------------------------------------------
# Auxiliary rotation
# ---------------------------------------------------------------------------


class TestAuxiliaryRotation:
    def test_nine_assignments(self):
        assignments = generate_auxiliary_assignments(DEFAULT_AUXILIARY_POOLS)
        assert len(assignments) == 9
        squat = [(a.block_number, a.exercise1, a.exercise2) for a in assignments if a.lift == Lift.SQUAT]
        assert squat == [
            (1, "Pause Squat", "Box Squat"),
            (2, "Bulgarian Split Squat", "Leg Press"),
            (3, "High-Bar Squat", "Belt Squat"),
        ]

    def test_offset_wraps(self):
        # 3 completed blocks → offset 6 ; block 2 → positions 8 % 8 = 0, 1
        offset = compute_block_offset([ProgramRecord(completed_blocks=3)])
        assert offset == 6
        pool = DEFAULT_AUXILIARY_POOLS[Lift.SQUAT]
        assert get_auxiliaries_for_block(1, pool, offset) == ("Hack Squat", "Front Squat")
        assert get_auxiliaries_for_block(2, pool, offset) == ("Pause Squat", "Box Squat")

    def test_pure(self):
        pool = DEFAULT_AUXILIARY_POOLS[Lift.BENCH]
        assert get_auxiliaries_for_block(3, pool, 4) == get_auxiliaries_for_block(3, pool, 4)

    def test_short_pool_skipped(self):
        pools = dict(DEFAULT_AUXILIARY_POOLS)
        pools[Lift.BENCH] = ["Dips"]
        assert len(generate_auxiliary_assignments(pools)) == 6

    def test_invalid_block(self):
        with pytest.raises(InvalidInputError):
            get_auxiliaries_for_block(4, DEFAULT_AUXILIARY_POOLS[Lift.SQUAT])


# ---------------------------------------------------------------------------
# Makeup window
# ---------------------------------------------------------------------------


class TestMakeupWindow:
    def _sessions(self):
        return [
            SessionRef("a", date(2026, 1, 5), Lift.SQUAT, 1),  # Monday
            SessionRef("b", date(2026, 1, 7), Lift.BENCH, 1),
            SessionRef("c", date(2026, 1, 12), Lift.SQUAT, 2),
        ]

    def test_until_day_before_next_same_lift(self):
        sessions = self._sessions()
        assert makeup_window_end(sessions[0], sessions) == date(2026, 1, 11)
        assert not is_makeup_window_expired(sessions[0], sessions, date(2026, 1, 11))
        assert is_makeup_window_expired(sessions[0], sessions, date(2026, 1, 12))

    def test_sunday_when_no_next(self):
        sessions = self._sessions()
        # bench on Wed 7 Jan, no later bench → Sunday 11 Jan
        assert makeup_window_end(sessions[1], sessions) == date(2026, 1, 11)


# ---------------------------------------------------------------------------
# Program-level suggestions
# ---------------------------------------------------------------------------


class TestDisruptionSuggestions:
    def _sessions(self):
        return [PlannedSessionRef("s1", Lift.SQUAT), PlannedSessionRef("s2", Lift.BENCH)]

    def test_injury_moderate_on_squat(self):
        d = _disruption(Severity.MODERATE, lifts=(Lift.SQUAT,))
        result = suggest_disruption_adjustment(d, self._sessions())
        assert [(s.session_id, s.action, s.reduction_pct) for s in result] == [("s1", "weight_reduced", 40)]

    def test_illness_moderate_two_per_session(self):
        d = _disruption(Severity.MODERATE, disruption_type=DisruptionType.ILLNESS)
        result = suggest_disruption_adjustment(d, self._sessions())
        assert [s.action for s in result] == ["weight_reduced", "reps_reduced"] * 2

    def test_empty_lift_list_means_all(self):
        d = _disruption(Severity.MAJOR, lifts=())
        assert len(suggest_disruption_adjustment(d, self._sessions())) == 2

    def test_equipment_and_other(self):
        equipment = _disruption(Severity.MINOR, disruption_type=DisruptionType.EQUIPMENT_UNAVAILABLE)
        other = _disruption(Severity.MAJOR, disruption_type=DisruptionType.OTHER)
        assert suggest_disruption_adjustment(equipment, self._sessions())[0].action == "exercise_substituted"
        assert suggest_disruption_adjustment(other, self._sessions()) == []


class TestPerformanceSuggestions:
    def _log(self, sid, actual, target=8.5, lift=Lift.SQUAT, it=IntensityType.HEAVY, completion=None):
        return SessionLogSummary(sid, lift, it, actual, target, completion)

    def test_two_high_sessions_reduce(self):
        # deviation 9.6 − 8.5 = 1.1 > 1.0 on both
        result = suggest_program_adjustments([self._log("a", 9.6), self._log("b", 9.6)])
        assert len(result) == 1
        assert result[0].type == "reduce_pct"
        assert result[0].pct_adjustment == -0.025

    def test_alternating_sessions_no_suggestion(self):
        logs = [self._log("a", 9.6), self._log("b", 8.5), self._log("c", 9.6)]
        assert suggest_program_adjustments(logs) == []

    def test_two_low_sessions_increase(self):
        logs = [self._log("a", 6.0, lift=Lift.BENCH), self._log("b", 7.0, lift=Lift.BENCH)]
        result = suggest_program_adjustments(logs)
        assert [(r.type, r.pct_adjustment) for r in result] == [("increase_pct", 0.025)]

    def test_incomplete_flagged(self):
        result = suggest_program_adjustments([self._log("a", None, completion=70)])
        assert [(r.type, r.session_id) for r in result] == [("flag_for_review", "a")]
        assert result[0].rationale == "Session incomplete at 70% completion"

    def test_female_thresholds_need_three(self):
        logs = [self._log("a", 10.5), self._log("b", 10.5)]
        assert suggest_program_adjustments(logs, DEFAULT_THRESHOLDS_FEMALE) == []

    def test_one_suggestion_per_lift(self):
        logs = [
            self._log("a", 9.6),
            self._log("b", 9.6),
            self._log("c", 9.6, it=IntensityType.REP),
            self._log("d", 9.6, it=IntensityType.REP),
        ]
        assert len(suggest_program_adjustments(logs)) == 1
