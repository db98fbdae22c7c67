"""Post-run analysis of an aggregate history."""

from __future__ import annotations

from typing import Sequence

from .schemas import AggregateState, HistorySummary, MarketStressLevel

# Upper bounds (exclusive) of each stress band on the systemic risk scale.
STRESS_BANDS = (
    (25.0, MarketStressLevel.LOW),
    (50.0, MarketStressLevel.MODERATE),
    (75.0, MarketStressLevel.HIGH),
)


def classify_stress(systemic_risk: float) -> MarketStressLevel:
    """Map a systemic risk score onto a qualitative stress band."""

    for upper, level in STRESS_BANDS:
        if systemic_risk < upper:
            return level
    return MarketStressLevel.EXTREME


def market_drop_pct(initial_index: float, final_index: float) -> float:
    """Percentage fall of the market index; negative when the index rose."""

    # The index is floored at 10, so initial_index is never zero for valid states.
    return (initial_index - final_index) / initial_index * 100


def summarize_history(history: Sequence[AggregateState]) -> HistorySummary:
    """Reduce a run history to its headline numbers.

    Raises:
        ValueError: If ``history`` is empty.
    """

    if not history:
        raise ValueError("Cannot summarize an empty history")

    initial = history[0]
    final = history[-1]
    return HistorySummary(
        steps=final.time - initial.time,
        initial_index=initial.market_index,
        final_index=final.market_index,
        market_drop_pct=market_drop_pct(initial.market_index, final.market_index),
        final_systemic_risk=final.systemic_risk,
        peak_systemic_risk=max(state.systemic_risk for state in history),
        min_liquidity=min(state.liquidity for state in history),
        final_default_count=final.default_count,
        stress_level=classify_stress(final.systemic_risk),
    )


def format_summary(summary: HistorySummary) -> str:
    """Multi-line human readable rendering of a history summary."""

    lines = [
        f"Steps: {summary.steps}",
        f"Market index: {summary.initial_index:.1f} -> {summary.final_index:.1f} "
        f"({summary.market_drop_pct:.2f}% drop)",
        f"Systemic risk: final {summary.final_systemic_risk:.1f}, "
        f"peak {summary.peak_systemic_risk:.1f} ({summary.stress_level.value})",
        f"Minimum liquidity: {summary.min_liquidity:.1f}",
        f"Defaults at end: {summary.final_default_count}",
    ]
    return "\n".join(lines)
