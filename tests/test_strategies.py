"""
Tests for the generation strategy layer.

Fake advisory clients are plain async callables; nothing touches the
network except the HTTP client tests, which use httpx.MockTransport.
Baseline: squat / block 1 / heavy / 1RM 140 → 2 × 5 @ 112.5.
"""

import asyncio

import httpx
import pytest

from cube_scheduler.core.advisory import build_advisory_request, clamp_rest_delta
from cube_scheduler.core.errors import AdvisoryUnavailableError, InvalidInputError
from cube_scheduler.core.models import (
    IntensityType,
    JITInput,
    Lift,
    RecentSessionSummary,
    StrategyTag,
)
from cube_scheduler.core.strategies import (
    AdvisoryStrategy,
    FormulaStrategy,
    HybridStrategy,
    compute_divergence,
    get_jit_generator,
    run_formula,
)
from cube_scheduler.io.advisory_client import HttpAdvisoryClient, client_from_env


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


def _response(**overrides) -> dict:
    body = {
        "intensity_modifier": 1.0,
        "set_modifier": 0,
        "skip_main_lift": False,
        "aux_overrides": {},
        "rationale": ["Recovery looks normal"],
        "confidence": "high",
    }
    body.update(overrides)
    return body


def _client(body):
    """Async client that records requests and returns body."""
    calls = []

    async def client(request):
        calls.append(request)
        return body

    client.calls = calls
    return client


async def _failing_client(request):
    raise ConnectionError("service down")


async def _slow_client(request):
    await asyncio.sleep(1.0)
    return _response()


# ---------------------------------------------------------------------------
# Formula
# ---------------------------------------------------------------------------


class TestFormulaStrategy:
    @pytest.mark.asyncio
    async def test_tagged_formula(self):
        out = await FormulaStrategy().generate(_inp())
        assert out.strategy == StrategyTag.FORMULA
        assert [s.weight_kg for s in out.main_lift_sets] == [112.5, 112.5]

    def test_sync_form_matches(self):
        assert run_formula(_inp()).main_lift_sets == asyncio.run(FormulaStrategy().generate(_inp())).main_lift_sets


# ---------------------------------------------------------------------------
# Advisory
# ---------------------------------------------------------------------------


class TestAdvisoryStrategy:
    @pytest.mark.asyncio
    async def test_neutral_response(self):
        out = await AdvisoryStrategy(_client(_response())).generate(_inp())
        assert out.strategy == StrategyTag.ADVISORY
        assert [s.weight_kg for s in out.main_lift_sets] == [112.5, 112.5]
        assert out.rationale == ["Recovery looks normal"]
        assert [w.weight_kg for w in out.warmup_sets] == [45.0, 67.5, 85.0, 102.5]

    @pytest.mark.asyncio
    async def test_fewer_sets_lighter(self):
        out = await AdvisoryStrategy(_client(_response(intensity_modifier=0.9, set_modifier=-1))).generate(_inp())
        # 112.5 × 0.9 = 101.25 → 102.5
        assert [(s.set_number, s.weight_kg) for s in out.main_lift_sets] == [(1, 102.5)]

    @pytest.mark.asyncio
    async def test_extra_sets_repeat_last(self):
        out = await AdvisoryStrategy(_client(_response(set_modifier=2))).generate(_inp())
        assert [s.set_number for s in out.main_lift_sets] == [1, 2, 3, 4]
        assert all(s.reps == 5 for s in out.main_lift_sets)

    @pytest.mark.asyncio
    async def test_removing_every_set_is_a_skip(self):
        out = await AdvisoryStrategy(_client(_response(set_modifier=-3))).generate(_inp())
        assert out.skipped_main_lift
        assert out.main_lift_sets == []
        assert out.warmup_sets == []

    @pytest.mark.asyncio
    async def test_skip_flag(self):
        out = await AdvisoryStrategy(_client(_response(skip_main_lift=True))).generate(_inp())
        assert out.skipped_main_lift
        assert out.warmup_sets == []

    @pytest.mark.asyncio
    async def test_aux_overrides(self):
        body = _response(aux_overrides={"Pause Squat": "skip", "Box Squat": "reduce"})
        out = await AdvisoryStrategy(_client(body)).generate(_inp())
        pause, box = out.auxiliary_work
        assert pause.skipped
        # 95 × 0.90 = 85.5 → 85, 2 sets
        assert [(s.weight_kg, s.reps) for s in box.sets] == [(85.0, 10), (85.0, 10)]

    @pytest.mark.asyncio
    async def test_rest_delta_clamped(self):
        out = await AdvisoryStrategy(_client(_response(rest_adjustments={"main_lift": 90}))).generate(_inp())
        assert out.rest_recommendations.main_lift == [270, 270]
        assert out.advisory_rest_suggestion.delta_seconds == 60
        assert out.advisory_rest_suggestion.formula_base_seconds == 210

    def test_clamp_rest_delta(self):
        assert clamp_rest_delta(-120) == -60
        assert clamp_rest_delta(30.4) == 30

    @pytest.mark.asyncio
    async def test_constraints_applied_to_advisory(self):
        out = await AdvisoryStrategy(_client(_response())).generate(
            _inp(weekly_volume_to_date={"quads": 20})
        )
        assert out.skipped_main_lift
        assert "[constraint] MRV exceeded for quads — main lift forced skip" in out.warnings

    @pytest.mark.parametrize(
        "body",
        [
            _response(intensity_modifier=1.5),
            _response(set_modifier=3),
            _response(set_modifier="1"),
            _response(confidence="certain"),
            _response(rationale=["x" * 201]),
            _response(rationale=["a", "b", "c", "d", "e", "f"]),
            _response(surprise=True),
            {"intensity_modifier": 1.0},
            "not json",
        ],
    )
    @pytest.mark.asyncio
    async def test_malformed_response_falls_back(self, body):
        out = await AdvisoryStrategy(_client(body)).generate(_inp())
        assert out.strategy == StrategyTag.FORMULA_FALLBACK
        assert out.main_lift_sets == run_formula(_inp()).main_lift_sets

    @pytest.mark.asyncio
    async def test_client_error_falls_back(self):
        out = await AdvisoryStrategy(_failing_client).generate(_inp())
        assert out.strategy == StrategyTag.FORMULA_FALLBACK

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self):
        out = await AdvisoryStrategy(_slow_client, timeout=0.01).generate(_inp())
        assert out.strategy == StrategyTag.FORMULA_FALLBACK

    @pytest.mark.asyncio
    async def test_no_client_falls_back(self):
        out = await AdvisoryStrategy().generate(_inp())
        assert out.strategy == StrategyTag.FORMULA_FALLBACK

    @pytest.mark.asyncio
    async def test_strict_raises(self):
        with pytest.raises(AdvisoryUnavailableError):
            await AdvisoryStrategy(_failing_client).generate_strict(_inp())

    @pytest.mark.asyncio
    async def test_request_body(self):
        client = _client(_response())
        logs = [RecentSessionSummary(None, 8.0), RecentSessionSummary(9.0, 8.5)]
        await AdvisoryStrategy(client).generate(_inp(recent_logs=logs))
        request = client.calls[0]
        assert "warmup_config" not in request
        assert request["lift"] == "squat"
        assert request["formula_rest_seconds"] == 210
        assert request["last_set_rpe"] == 9.0
        assert request["active_auxiliaries"] == ["Pause Squat", "Box Squat"]

    def test_request_without_rated_history(self):
        assert "last_set_rpe" not in build_advisory_request(_inp())


# ---------------------------------------------------------------------------
# Hybrid
# ---------------------------------------------------------------------------


class TestHybridStrategy:
    @pytest.mark.asyncio
    async def test_identical_outputs(self):
        out = await HybridStrategy(advisory=AdvisoryStrategy(_client(_response()))).generate(_inp())
        assert out.strategy == StrategyTag.ADVISORY
        div = out.comparison.divergence
        assert div.weight_pct == 0
        assert div.set_delta == 0
        assert not out.comparison.should_surface_to_user
        assert out.comparison.formula_output.strategy == StrategyTag.FORMULA

    @pytest.mark.asyncio
    async def test_twenty_percent_divergence_surfaces(self):
        advisory = AdvisoryStrategy(_client(_response(intensity_modifier=0.8)))
        out = await HybridStrategy(advisory=advisory).generate(_inp())
        # 112.5 × 0.8 = 90 → |90 − 112.5| / 112.5 = 0.20
        assert out.comparison.divergence.weight_pct == pytest.approx(0.20)
        assert out.comparison.should_surface_to_user

    @pytest.mark.asyncio
    async def test_moderate_divergence_not_surfaced(self):
        advisory = AdvisoryStrategy(_client(_response(intensity_modifier=0.88)))
        out = await HybridStrategy(advisory=advisory).generate(_inp())
        # 112.5 × 0.88 = 99 → 100 ; 12.5 / 112.5 ≈ 0.11
        assert 0.10 < out.comparison.divergence.weight_pct <= 0.15
        assert not out.comparison.should_surface_to_user

    @pytest.mark.asyncio
    async def test_set_delta_surfaces(self):
        advisory = AdvisoryStrategy(_client(_response(set_modifier=-1)))
        out = await HybridStrategy(advisory=advisory).generate(_inp())
        assert out.comparison.divergence.set_delta == -1
        assert out.comparison.should_surface_to_user

    @pytest.mark.asyncio
    async def test_advisory_failure_falls_back_without_comparison(self):
        out = await HybridStrategy(advisory=AdvisoryStrategy(_failing_client)).generate(_inp())
        assert out.strategy == StrategyTag.FORMULA_FALLBACK
        assert out.comparison is None

    @pytest.mark.asyncio
    async def test_observer_receives_divergence(self):
        seen = []

        def observer(inp, formula, advisory, divergence):
            seen.append(divergence)

        hybrid = HybridStrategy(advisory=AdvisoryStrategy(_client(_response())), observer=observer)
        await hybrid.generate(_inp())
        assert len(seen) == 1
        assert seen[0].rpe_context_summary == "Recovery looks normal"

    @pytest.mark.asyncio
    async def test_observer_errors_swallowed(self):
        def observer(*args):
            raise RuntimeError("metrics sink offline")

        hybrid = HybridStrategy(advisory=AdvisoryStrategy(_client(_response())), observer=observer)
        out = await hybrid.generate(_inp())
        assert out.comparison is not None

    @pytest.mark.asyncio
    async def test_observer_skipped_when_advisory_fails(self):
        seen = []

        def observer(*args):
            seen.append(args)

        hybrid = HybridStrategy(advisory=AdvisoryStrategy(_failing_client), observer=observer)
        out = await hybrid.generate(_inp())
        assert out.strategy == StrategyTag.FORMULA_FALLBACK
        assert seen == []

    @pytest.mark.asyncio
    async def test_formula_failure_propagates(self):
        class BrokenFormula(FormulaStrategy):
            async def generate(self, inp):
                raise InvalidInputError("formula config corrupted")

        hybrid = HybridStrategy(formula=BrokenFormula(), advisory=AdvisoryStrategy(_client(_response())))
        with pytest.raises(InvalidInputError, match="formula config corrupted"):
            await hybrid.generate(_inp())

    def test_divergence_with_skipped_formula(self):
        skipped = run_formula(_inp(weekly_volume_to_date={"quads": 20}))
        normal = run_formula(_inp())
        div = compute_divergence(skipped, normal)
        assert div.weight_pct == 0.0
        assert div.set_delta == 2


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_names(self):
        assert isinstance(get_jit_generator("formula", is_online=True), FormulaStrategy)
        assert isinstance(get_jit_generator("advisory", is_online=False), AdvisoryStrategy)
        assert isinstance(get_jit_generator("hybrid", is_online=True), HybridStrategy)

    def test_auto(self):
        client = _client(_response())
        assert isinstance(get_jit_generator("auto", is_online=True, client=client), AdvisoryStrategy)
        assert isinstance(get_jit_generator("auto", is_online=False, client=client), FormulaStrategy)
        assert isinstance(get_jit_generator("auto", is_online=True), FormulaStrategy)

    def test_unknown(self):
        with pytest.raises(InvalidInputError):
            get_jit_generator("oracle", is_online=True)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


class TestHttpAdvisoryClient:
    @pytest.mark.asyncio
    async def test_posts_json_with_bearer_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            seen["url"] = str(request.url)
            return httpx.Response(200, json=_response(intensity_modifier=0.9))

        client = HttpAdvisoryClient(
            "https://advisor.test/jit", api_key="k-123", transport=httpx.MockTransport(handler)
        )
        out = await AdvisoryStrategy(client).generate(_inp())
        assert out.strategy == StrategyTag.ADVISORY
        assert seen == {"auth": "Bearer k-123", "url": "https://advisor.test/jit"}

    @pytest.mark.asyncio
    async def test_http_error_falls_back(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        client = HttpAdvisoryClient("https://advisor.test/jit", transport=transport)
        with pytest.raises(httpx.HTTPStatusError):
            await client({"session_id": "s-1"})
        out = await AdvisoryStrategy(client).generate(_inp())
        assert out.strategy == StrategyTag.FORMULA_FALLBACK

    def test_client_from_env(self, monkeypatch):
        monkeypatch.delenv("CUBE_SCHEDULER_ADVISORY_URL", raising=False)
        assert client_from_env() is None
        monkeypatch.setenv("CUBE_SCHEDULER_ADVISORY_URL", "https://advisor.test/jit")
        client = client_from_env()
        assert client is not None
        assert client.url == "https://advisor.test/jit"
