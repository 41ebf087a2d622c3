"""
JIT generation strategies.

FormulaStrategy is deterministic and offline; AdvisoryStrategy consults an
external service and falls back to the formula; HybridStrategy runs both
and attaches a divergence comparison.
"""

from .advisory import AdvisoryClient, AdvisoryStrategy
from .base import JITGenerator
from .formula import FormulaStrategy, run_formula
from .hybrid import ComparisonObserver, HybridStrategy, compute_divergence
from .registry import STRATEGY_NAMES, get_jit_generator

__all__ = [
    "AdvisoryClient",
    "AdvisoryStrategy",
    "ComparisonObserver",
    "FormulaStrategy",
    "HybridStrategy",
    "JITGenerator",
    "STRATEGY_NAMES",
    "compute_divergence",
    "get_jit_generator",
    "run_formula",
]
