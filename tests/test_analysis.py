"""Tests for history summaries and stress classification."""

import pytest

from regusim.analysis import classify_stress, format_summary, summarize_history
from regusim.schemas import AggregateState, MarketStressLevel


def _state(time, index, risk, liquidity, defaults=0):
    return AggregateState(
        time=time,
        market_index=index,
        systemic_risk=risk,
        liquidity=liquidity,
        default_count=defaults,
    )


@pytest.mark.parametrize(
    "risk, level",
    [
        (0.0, MarketStressLevel.LOW),
        (24.9, MarketStressLevel.LOW),
        (25.0, MarketStressLevel.MODERATE),
        (49.9, MarketStressLevel.MODERATE),
        (50.0, MarketStressLevel.HIGH),
        (75.0, MarketStressLevel.EXTREME),
        (100.0, MarketStressLevel.EXTREME),
    ],
)
def test_classify_stress_bands(risk, level):
    assert classify_stress(risk) is level


def test_summarize_history_headline_numbers():
    history = [
        _state(0, 96.0, 0.0, 80.0),
        _state(1, 80.0, 30.0, 79.0),
        _state(2, 48.0, 62.0, 78.0, defaults=3),
        _state(3, 60.0, 55.0, 77.0, defaults=2),
    ]

    summary = summarize_history(history)

    assert summary.steps == 3
    assert summary.initial_index == 96.0
    assert summary.final_index == 60.0
    assert summary.market_drop_pct == pytest.approx(37.5)
    assert summary.final_systemic_risk == 55.0
    assert summary.peak_systemic_risk == 62.0
    assert summary.min_liquidity == 77.0
    assert summary.final_default_count == 2
    assert summary.stress_level is MarketStressLevel.HIGH


def test_summarize_history_negative_drop_when_index_rises():
    summary = summarize_history([_state(0, 96.0, 0.0, 80.0), _state(1, 96.1, 0.0, 80.5)])

    assert summary.market_drop_pct < 0


def test_summarize_empty_history_raises():
    with pytest.raises(ValueError):
        summarize_history([])


def test_format_summary_mentions_drop_and_level():
    text = format_summary(summarize_history([_state(0, 100.0, 0.0, 80.0), _state(1, 50.0, 80.0, 70.0)]))

    assert "50.00% drop" in text
    assert "Extreme" in text
    assert "Defaults at end: 0" in text
