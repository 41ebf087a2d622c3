"""
Warmup calculator.

Resolves a preset or custom protocol into (pct, reps) steps and ramps them
up to the working weight.  Every rung is at least the empty bar, and
consecutive rungs that round to the same load are collapsed.
"""

from .config import BAR_WEIGHT_KG, DEFAULT_ROUNDING_INCREMENT_KG, LIGHT_LOAD_THRESHOLD_KG
from .errors import InvalidInputError
from .formulas import round_to_nearest
from .models import WarmupProtocol, WarmupSet, WarmupStep

PRESET_STEPS: dict[str, tuple[WarmupStep, ...]] = {
    "standard": (
        WarmupStep(0.40, 5),
        WarmupStep(0.60, 3),
        WarmupStep(0.75, 2),
        WarmupStep(0.90, 1),
    ),
    "standard_female": (
        WarmupStep(0.40, 5),
        WarmupStep(0.55, 4),
        WarmupStep(0.70, 3),
        WarmupStep(0.85, 2),
        WarmupStep(0.925, 1),
    ),
    "minimal": (
        WarmupStep(0.50, 5),
        WarmupStep(0.75, 2),
    ),
    "extended": (
        WarmupStep(0.30, 10),
        WarmupStep(0.50, 5),
        WarmupStep(0.65, 3),
        WarmupStep(0.80, 2),
        WarmupStep(0.90, 1),
        WarmupStep(0.95, 1),
    ),
    # pct 0 always resolves to the bar
    "empty_bar": (
        WarmupStep(0.0, 10),
        WarmupStep(0.50, 5),
        WarmupStep(0.70, 3),
        WarmupStep(0.85, 1),
    ),
}

MINIMAL_PROTOCOL = WarmupProtocol.named("minimal")


def get_preset_steps(name: str) -> list[WarmupStep]:
    if name not in PRESET_STEPS:
        valid = ", ".join(PRESET_STEPS)
        raise InvalidInputError(f"Unknown warmup preset '{name}'. Valid presets: {valid}")
    return list(PRESET_STEPS[name])


def resolve_protocol(protocol: WarmupProtocol) -> list[WarmupStep]:
    if protocol.steps is not None:
        return list(protocol.steps)
    return get_preset_steps(protocol.preset or "")


def effective_protocol(
    working_weight_kg: float,
    configured: WarmupProtocol,
    recovery_mode: bool = False,
) -> WarmupProtocol:
    """Minimal protocol for recovery sessions and light loads, else the configured one."""
    if recovery_mode or working_weight_kg < LIGHT_LOAD_THRESHOLD_KG:
        return MINIMAL_PROTOCOL
    return configured


def format_warmup_weight(weight_kg: float) -> str:
    if weight_kg == BAR_WEIGHT_KG:
        return f"{BAR_WEIGHT_KG:g} kg (bar)"
    return f"{weight_kg:g} kg"


def generate_warmup_sets(
    working_weight_kg: float,
    protocol: WarmupProtocol,
    increment_kg: float = DEFAULT_ROUNDING_INCREMENT_KG,
) -> list[WarmupSet]:
    """
    Build the warmup ramp for a working weight.

    Args:
        working_weight_kg: Final resolved weight of the first working set
        protocol: Preset or custom steps
        increment_kg: Rounding increment

    Returns:
        Warmup sets numbered 1..n with no two consecutive sets at the same load
    """
    sets: list[WarmupSet] = []
    previous: float | None = None
    for step in resolve_protocol(protocol):
        weight = max(BAR_WEIGHT_KG, round_to_nearest(working_weight_kg * step.pct, increment_kg))
        if weight == previous:
            continue
        sets.append(
            WarmupSet(
                set_number=len(sets) + 1,
                weight_kg=weight,
                display_weight=format_warmup_weight(weight),
                reps=step.reps,
            )
        )
        previous = weight
    return sets
