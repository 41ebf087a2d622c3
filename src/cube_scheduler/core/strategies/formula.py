"""Deterministic strategy: adjustment pipeline + constraint enforcer."""

from dataclasses import replace

from ..constraints import enforce_hard_constraints
from ..jit import generate_jit_session
from ..models import JITInput, JITOutput, StrategyTag
from .base import JITGenerator


def run_formula(inp: JITInput) -> JITOutput:
    """Synchronous form of FormulaStrategy.generate()."""
    output = enforce_hard_constraints(generate_jit_session(inp), inp)
    return replace(output, strategy=StrategyTag.FORMULA)


class FormulaStrategy(JITGenerator):
    name = "formula"
    description = "Rule-based deterministic generator — works offline"

    async def generate(self, inp: JITInput) -> JITOutput:
        return run_formula(inp)
