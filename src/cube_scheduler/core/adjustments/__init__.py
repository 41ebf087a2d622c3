"""
Session adjusters layered on top of the formula baseline by the JIT pipeline.
"""

from .disruption import relevant_disruptions, suggest_disruption_adjustment, worst_disruption
from .performance import (
    AdjustmentThresholds,
    detect_rpe_trend,
    get_default_thresholds,
    suggest_program_adjustments,
)
from .soreness import apply_soreness_to_sets, get_soreness_modifier, get_worst_soreness

__all__ = [
    "AdjustmentThresholds",
    "apply_soreness_to_sets",
    "detect_rpe_trend",
    "get_default_thresholds",
    "get_soreness_modifier",
    "get_worst_soreness",
    "relevant_disruptions",
    "suggest_disruption_adjustment",
    "suggest_program_adjustments",
    "worst_disruption",
]
