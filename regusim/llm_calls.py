"""
Narrative generator calls using Mirascope for provider-agnostic LLM access.

This module provides:
- Pre-simulation brief (generate_pre_simulation_brief)
- Post-simulation report (generate_post_simulation_report)

Both calls are allowed to fail. Any provider, network, timeout or schema
error is logged and replaced by a fixed fallback so the host always has
something to display. Nothing here feeds back into the numeric engine.
"""

from typing import Sequence

from .analysis import summarize_history
from .logging_utils import log_error, log_llm
from .llm_utils import call_llm_with_retries
from .prompts import DEFAULT_PROMPTS, PromptLibrary, render_prompt
from .schemas import AggregateState, AnalysisReport, SimulationBrief, StressConfig


BRIEF_FALLBACK = "ReguSim AI systems offline. Proceeding with manual simulation."
BRIEF_EMPTY = "Simulation initialized. Ready for stress testing."


def report_fallback() -> AnalysisReport:
    """Report returned whenever the post-run analysis cannot be generated."""

    return AnalysisReport(
        summary="Analysis failed due to connection error.",
        risk_assessment="Unknown",
        recommendations=["Check network connection", "Retry simulation"],
    )


def _config_values(config: StressConfig) -> dict[str, str]:
    return {
        "tangibility_ratio_min": str(config.tangibility_ratio_min),
        "market_liquidity_base": str(config.market_liquidity_base),
        "investor_panic_sensitivity": str(config.investor_panic_sensitivity),
        "shock_scenario": config.shock_scenario.value,
    }


# ============================================================================
# LLM Call Functions
# ============================================================================


async def generate_pre_simulation_brief(
    config: StressConfig,
    llm_provider: str | None,
    llm_model: str | None,
    *,
    prompts: PromptLibrary = DEFAULT_PROMPTS,
) -> str:
    """
    Explain the theoretical risk of ``config`` before the run starts.

    Args:
        config: Stress-test parameters
        llm_provider: LLM provider name (e.g., "openai", "anthropic"); None disables the call
        llm_model: Model identifier; None disables the call

    Returns:
        Brief text, or a fallback string if the call fails
    """
    if not (llm_provider and llm_model):
        log_error("Narrative generator not configured; using offline brief.")
        return BRIEF_FALLBACK

    rendered = render_prompt(prompts.get("brief"), _config_values(config))
    log_llm(f"Requesting pre-simulation brief from {llm_provider}/{llm_model}")
    try:
        brief = await call_llm_with_retries(
            system_prompt=rendered.system,
            user_prompt=rendered.user,
            llm_provider=llm_provider,
            llm_model=llm_model,
            response_model=SimulationBrief,
        )
    except Exception as exc:
        log_error(f"Brief generation failed: {exc}")
        return BRIEF_FALLBACK

    return brief.text.strip() or BRIEF_EMPTY


async def generate_post_simulation_report(
    config: StressConfig,
    history: Sequence[AggregateState],
    llm_provider: str | None,
    llm_model: str | None,
    *,
    prompts: PromptLibrary = DEFAULT_PROMPTS,
) -> AnalysisReport:
    """
    Analyse a completed run and recommend policy responses.

    Args:
        config: Stress-test parameters used for the run
        history: Full aggregate history, initial state first
        llm_provider: LLM provider name; None disables the call
        llm_model: Model identifier; None disables the call

    Returns:
        AnalysisReport, or ``report_fallback()`` if the call fails
    """
    if not (llm_provider and llm_model):
        log_error("Narrative generator not configured; using fallback report.")
        return report_fallback()

    try:
        summary = summarize_history(history)
        values = _config_values(config)
        values.update(
            {
                "market_drop_pct": f"{summary.market_drop_pct:.2f}",
                "final_systemic_risk": f"{summary.final_systemic_risk:.0f}",
                "peak_systemic_risk": f"{summary.peak_systemic_risk:.0f}",
                "stress_level": summary.stress_level.value,
                "final_default_count": str(summary.final_default_count),
            }
        )
        rendered = render_prompt(prompts.get("report"), values)
        log_llm(f"Requesting post-simulation report from {llm_provider}/{llm_model}")
        return await call_llm_with_retries(
            system_prompt=rendered.system,
            user_prompt=rendered.user,
            llm_provider=llm_provider,
            llm_model=llm_model,
            response_model=AnalysisReport,
        )
    except Exception as exc:
        log_error(f"Report generation failed: {exc}")
        return report_fallback()
