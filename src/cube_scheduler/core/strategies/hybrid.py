"""
Hybrid strategy: run formula and advisory concurrently, then reconcile.

Both branches are joined with asyncio.gather(return_exceptions=True) so the
result is available once both have settled.  A formula failure propagates;
an advisory failure yields the formula output tagged formula_fallback with
no comparison.  When both succeed the advisory output is returned with a
divergence comparison attached.
"""

import asyncio
from dataclasses import replace
from typing import Callable

from loguru import logger

from ..config import DIVERGENCE_AGREEMENT_PCT, DIVERGENCE_SURFACE_PCT
from ..models import ComparisonData, Divergence, JITInput, JITOutput, StrategyTag
from .advisory import AdvisoryStrategy
from .base import JITGenerator
from .formula import FormulaStrategy

# (input, formula output, advisory output, divergence) -> None; errors are discarded
ComparisonObserver = Callable[[JITInput, JITOutput, JITOutput, Divergence], None]


def compute_divergence(formula: JITOutput, advisory: JITOutput) -> Divergence:
    """
    Compare first working-set weight and set count.

    weight_pct = |advisory - formula| / formula (0 when formula has no load)
    set_delta  = advisory sets - formula sets
    """
    formula_weight = formula.main_lift_sets[0].weight_kg if formula.main_lift_sets else 0.0
    advisory_weight = advisory.main_lift_sets[0].weight_kg if advisory.main_lift_sets else 0.0
    return Divergence(
        weight_pct=abs(advisory_weight - formula_weight) / formula_weight if formula_weight > 0 else 0.0,
        set_delta=len(advisory.main_lift_sets) - len(formula.main_lift_sets),
        rpe_context_summary=advisory.rationale[0] if advisory.rationale else "",
    )


def should_surface(divergence: Divergence) -> bool:
    if divergence.weight_pct <= DIVERGENCE_AGREEMENT_PCT and divergence.set_delta == 0:
        return False
    return divergence.weight_pct > DIVERGENCE_SURFACE_PCT or divergence.set_delta != 0


class HybridStrategy(JITGenerator):
    name = "hybrid"
    description = "Runs formula and advisory in parallel; compares outputs"

    def __init__(
        self,
        formula: FormulaStrategy | None = None,
        advisory: AdvisoryStrategy | None = None,
        observer: ComparisonObserver | None = None,
    ) -> None:
        self._formula = formula or FormulaStrategy()
        self._advisory = advisory or AdvisoryStrategy()
        self._observer = observer

    def _notify(self, inp: JITInput, formula: JITOutput, advisory: JITOutput, divergence: Divergence) -> None:
        if self._observer is None:
            return
        try:
            self._observer(inp, formula, advisory, divergence)
        except Exception as e:
            logger.warning("Comparison observer failed (ignored): {}", e)

    async def generate(self, inp: JITInput) -> JITOutput:
        formula_result, advisory_result = await asyncio.gather(
            self._formula.generate(inp),
            self._advisory.generate_strict(inp),
            return_exceptions=True,
        )

        if isinstance(formula_result, BaseException):
            raise formula_result

        if isinstance(advisory_result, BaseException):
            logger.warning("Hybrid advisory branch failed, using formula fallback: {}", advisory_result)
            return replace(formula_result, strategy=StrategyTag.FORMULA_FALLBACK, comparison=None)

        divergence = compute_divergence(formula_result, advisory_result)
        self._notify(inp, formula_result, advisory_result, divergence)

        surface = should_surface(divergence)
        logger.debug(
            "Hybrid divergence weight_pct={:.3f} set_delta={} surface={}",
            divergence.weight_pct,
            divergence.set_delta,
            surface,
        )
        return replace(
            advisory_result,
            strategy=StrategyTag.ADVISORY,
            comparison=ComparisonData(
                divergence=divergence,
                formula_output=formula_result,
                should_surface_to_user=surface,
            ),
        )
