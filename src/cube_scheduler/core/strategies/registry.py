"""
Strategy registry.

get_jit_generator() maps a strategy name to a configured generator.
"auto" picks the advisory strategy only when online with a client
configured, otherwise the formula strategy.
"""

from typing import Literal

from ..errors import InvalidInputError
from .advisory import AdvisoryClient, AdvisoryStrategy
from .base import JITGenerator
from .formula import FormulaStrategy
from .hybrid import ComparisonObserver, HybridStrategy

StrategyName = Literal["auto", "formula", "advisory", "hybrid"]

STRATEGY_NAMES: tuple[str, ...] = ("auto", "formula", "advisory", "hybrid")


def get_jit_generator(
    strategy: StrategyName,
    is_online: bool,
    client: AdvisoryClient | None = None,
    observer: ComparisonObserver | None = None,
) -> JITGenerator:
    """
    Build the generator for a strategy name.

    Raises:
        InvalidInputError: Unknown strategy name
    """
    if strategy == "formula":
        return FormulaStrategy()
    if strategy == "advisory":
        return AdvisoryStrategy(client)
    if strategy == "hybrid":
        return HybridStrategy(advisory=AdvisoryStrategy(client), observer=observer)
    if strategy == "auto":
        if is_online and client is not None:
            return AdvisoryStrategy(client)
        return FormulaStrategy()
    valid = ", ".join(STRATEGY_NAMES)
    raise InvalidInputError(f"Unknown JIT strategy '{strategy}'. Valid names: {valid}")
