"""Pressure-adaptive tier boundaries."""

import math

from tiergc.compaction.types import Budget, PressureZone
from tiergc.config.schema import ContextGCConfig

# (upper bound, zone); anything at or above the last bound is extreme
PRESSURE_CUTS: tuple[tuple[float, PressureZone], ...] = (
    (0.30, "low"),
    (0.45, "normal"),
    (0.60, "elevated"),
    (0.75, "high"),
)

PRESSURE_MULTIPLIERS: dict[str, dict[str, float]] = {
    "low": {"hot": 1.5, "warm": 1.5, "cold": 1.3, "gone": 1.3},
    "normal": {"hot": 1.0, "warm": 1.0, "cold": 1.0, "gone": 1.0},
    "elevated": {"hot": 1.0, "warm": 0.8, "cold": 0.7, "gone": 0.6},
    "high": {"hot": 0.8, "warm": 0.6, "cold": 0.5, "gone": 0.4},
    "extreme": {"hot": 0.6, "warm": 0.4, "cold": 0.3, "gone": 0.25},
}


def _clamp_ratio(ratio: float) -> float:
    return max(0.0, min(1.0, ratio))


def _round_half_up(value: float) -> int:
    # round() would send 4.5 to 4; boundaries round halves upward
    return math.floor(value + 0.5)


def get_pressure_zone(context_usage_ratio: float) -> PressureZone:
    """Classify a context usage ratio (clamped to [0, 1]) into a pressure zone."""
    ratio = _clamp_ratio(context_usage_ratio)
    for bound, zone in PRESSURE_CUTS:
        if ratio < bound:
            return zone
    return "extreme"


def _ordered(hot: int, warm: int, cold: int, gone: int, min_hot: int) -> Budget:
    hot = max(min_hot, hot)
    warm = max(hot + 1, warm)
    cold = max(warm + 1, cold)
    gone = max(cold + 1, gone)
    return Budget(hot_turns=hot, warm_turns=warm, cold_turns=cold, gone_turns=gone)


def compute_dynamic_budget(
    config: ContextGCConfig | None,
    context_usage_ratio: float,
) -> Budget:
    """
    Scale the configured tier boundaries by the current context pressure.

    Low pressure keeps more history hot and warm; high pressure shrinks every
    boundary. The result always satisfies ``min_hot_turns <= hot < warm <
    cold < gone``.

    Args:
        config: Base boundaries, defaults when None.
        context_usage_ratio: Fraction of the context window in use.

    Returns:
        Boundaries for this cycle.
    """
    config = config or ContextGCConfig()
    mult = PRESSURE_MULTIPLIERS[get_pressure_zone(context_usage_ratio)]

    return _ordered(
        _round_half_up(config.hot_turns * mult["hot"]),
        _round_half_up(config.warm_turns * mult["warm"]),
        _round_half_up(config.cold_turns * mult["cold"]),
        _round_half_up(config.gone_turns * mult["gone"]),
        config.min_hot_turns,
    )


def static_budget(config: ContextGCConfig | None) -> Budget:
    """Boundaries as configured, without pressure scaling."""
    config = config or ContextGCConfig()
    return _ordered(
        config.hot_turns,
        config.warm_turns,
        config.cold_turns,
        config.gone_turns,
        config.min_hot_turns,
    )
