"""Command-line runner for ReguSim stress tests.

Example usage (single narrated run with a fixed seed):

    regusim --seed 42 --tangibility 33 --panic 80 --narrate

Monte Carlo batch (100 runs, seeds 7..106):

    regusim --runs 100 --seed 7 --scenario "Oil Price Collapse"

A JSON scenario file can replace the individual flags:

    regusim --scenario-file examples/scenarios/oil_collapse.json
"""

from __future__ import annotations

import argparse
import asyncio
import statistics
from pathlib import Path
from typing import List, Optional

from .analysis import format_summary, summarize_history
from .config import Config
from .logging_utils import log_info, log_success
from .orchestrator import Orchestrator
from .scenario import ScenarioLoader, StressScenario
from .schemas import HistorySummary, ShockScenario, StressConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Financial contagion stress-test simulator")
    parser.add_argument(
        "--population", type=int, default=Config.DEFAULT_POPULATION, help="Number of entities"
    )
    parser.add_argument(
        "--steps", type=int, default=Config.DEFAULT_MAX_TIME, help="Final time step of each run"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=Config.DEFAULT_SEED,
        help="Seed (batch runs add their index); omit for non-deterministic runs",
    )
    parser.add_argument("--tangibility", type=int, default=51, help="Tangibility ratio minimum (0-100)")
    parser.add_argument("--liquidity", type=int, default=80, help="Market liquidity base (0-100)")
    parser.add_argument("--panic", type=int, default=50, help="Investor panic sensitivity (0-100)")
    parser.add_argument(
        "--scenario",
        choices=[scenario.value for scenario in ShockScenario],
        default=ShockScenario.TANGIBILITY_BREACH.value,
        help="Named shock scenario (affects narratives only)",
    )
    parser.add_argument(
        "--scenario-file", type=Path, default=None, help="JSON scenario file overriding the flags above"
    )
    parser.add_argument("--runs", type=int, default=1, help="Number of Monte Carlo runs")
    parser.add_argument(
        "--narrate",
        action="store_true",
        help="Request brief/report from the configured LLM (single run only)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress per-tick output")
    return parser


def scenario_from_args(args: argparse.Namespace) -> StressScenario:
    if args.scenario_file is not None:
        return ScenarioLoader().load_path(args.scenario_file)

    return StressScenario(
        name="cli",
        description="Stress test configured from command-line flags",
        config=StressConfig(
            tangibility_ratio_min=args.tangibility,
            market_liquidity_base=args.liquidity,
            investor_panic_sensitivity=args.panic,
            shock_scenario=ShockScenario(args.scenario),
        ),
        population_size=args.population,
        seed=args.seed,
        max_time=args.steps,
    )


def _seed_for_index(base_seed: Optional[int], index: int) -> Optional[int]:
    if base_seed is None:
        return None
    return base_seed + index


async def run_single(scenario: StressScenario, *, narrate: bool, verbose: bool) -> HistorySummary:
    orchestrator = Orchestrator(
        scenario.config,
        population_size=scenario.population_size,
        max_time=scenario.max_time,
        seed=scenario.seed,
        llm_provider=Config.LLM_PROVIDER,
        llm_model=Config.LLM_MODEL,
        narrate=narrate,
        verbose=verbose,
    )
    log_info(f"Network composition: {orchestrator.kind_breakdown()}")
    result = await orchestrator.run()

    if result.brief:
        print(f"\nBrief:\n{result.brief}")

    summary = summarize_history(result.history)
    print()
    print(format_summary(summary))

    if result.report:
        print(f"\nSummary: {result.report.summary}")
        print(f"Risk assessment: {result.report.risk_assessment}")
        for index, recommendation in enumerate(result.report.recommendations, start=1):
            print(f"  {index}. {recommendation}")
    return summary


async def run_batch(scenario: StressScenario, runs: int) -> List[HistorySummary]:
    summaries: List[HistorySummary] = []
    for index in range(runs):
        orchestrator = Orchestrator(
            scenario.config,
            population_size=scenario.population_size,
            max_time=scenario.max_time,
            seed=_seed_for_index(scenario.seed, index),
            verbose=False,
        )
        result = await orchestrator.run()
        summaries.append(summarize_history(result.history))

    risks = [summary.final_systemic_risk for summary in summaries]
    drops = [summary.market_drop_pct for summary in summaries]
    with_defaults = sum(1 for summary in summaries if summary.final_default_count > 0)

    log_success(f"Completed {runs} runs of {scenario.max_time} steps each.")
    print(f"  Mean final systemic risk: {statistics.fmean(risks):.2f} "
          f"(σ={statistics.pstdev(risks) if runs > 1 else 0.0:.2f})")
    print(f"  Mean market drop: {statistics.fmean(drops):.2f}%")
    print(f"  Worst market drop: {max(drops):.2f}%")
    print(f"  P(any default at end): {with_defaults / runs:.2%}")
    return summaries


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.runs < 1:
        parser.error("--runs must be at least 1")

    Config.validate()
    scenario = scenario_from_args(args)

    if args.runs == 1:
        asyncio.run(run_single(scenario, narrate=args.narrate, verbose=not args.quiet))
    else:
        asyncio.run(run_batch(scenario, args.runs))


if __name__ == "__main__":
    main()
