"""
SimulationRules interface for the deterministic step function of a ReguSim run.

This module provides the abstract base class the driver is written against.
Concrete rules (see ``regusim.contagion``) define how the entity population
and the aggregate market state evolve over one discrete time step.

Key responsibilities:
- Apply one step of the update rule to the entities and the aggregate state
- Decide when a run is complete (termination policy lives here, not in step)
- Format a one-line aggregate summary for console output

Design principle: the step is plain Python. Randomness comes only from the
generator passed in, never from module-level state.
"""

import random
from abc import ABC, abstractmethod
from typing import List, Tuple

from regusim.schemas import AggregateState, Entity, Network, StressConfig

DEFAULT_MAX_TIME = 100


def format_aggregate_generic(aggregate: AggregateState) -> str:
    """Format an aggregate state as a compact summary line.

    Floats >= 10 show 1 decimal place, smaller floats show 2, matching the
    precision conventions of a market dashboard.

    Example output:
    "Index=84.3, Risk=12.50, Liquidity=80.0, Defaults=0"
    """

    def _fmt(value: float) -> str:
        return f"{value:.1f}" if abs(value) >= 10 else f"{value:.2f}"

    parts = [
        f"Index={_fmt(aggregate.market_index)}",
        f"Risk={_fmt(aggregate.systemic_risk)}",
        f"Liquidity={_fmt(aggregate.liquidity)}",
        f"Defaults={aggregate.default_count}",
    ]
    return ", ".join(parts)


class SimulationRules(ABC):
    """Abstract base class for the per-step update rule of a stress test.

    Rules are dependency-injected into the Orchestrator. The orchestrator
    calls ``step`` once per tick, feeding each result into the next call, and
    stops as soon as ``should_stop`` returns True.

    What BELONGS in SimulationRules:
    - Entity health dynamics (shocks, decay, recovery)
    - Aggregate derivation (systemic risk, liquidity, market index)
    - The termination predicate

    What does NOT belong in SimulationRules:
    - Pacing, scheduling or rendering
    - Narrative generation (see ``regusim.llm_calls``)
    """

    def __init__(self, max_time: int = DEFAULT_MAX_TIME) -> None:
        self.max_time = max_time

    @abstractmethod
    def step(
        self,
        entities: List[Entity],
        prior: AggregateState,
        config: StressConfig,
        rng: random.Random,
    ) -> Tuple[List[Entity], AggregateState]:
        """
        Apply one step of the update rule.

        Implementations must not mutate ``entities`` or ``prior``; they return
        fresh copies. Given the same inputs and the same generator state the
        result must be identical.

        Args:
            entities: Current entity population
            prior: Aggregate state produced by the previous step
            config: Stress-test parameters for this run
            rng: Random source for every stochastic draw

        Returns:
            (next_entities, next_aggregate)
        """
        pass

    def should_stop(self, aggregate: AggregateState) -> bool:
        """Return True once the run has reached its final step."""

        return aggregate.time >= self.max_time

    def on_simulation_start(
        self, network: Network, aggregate: AggregateState
    ) -> Tuple[Network, AggregateState]:
        """
        Hook called once after the network is built, before the first step.

        Override to seed custom initial conditions (e.g., pre-stressed banks).
        """
        return network, aggregate

    def on_simulation_end(self, entities: List[Entity], aggregate: AggregateState) -> AggregateState:
        """Hook called once after the final step. Returns the final aggregate."""
        return aggregate

    def format_aggregate_summary(self, aggregate: AggregateState) -> str:
        """Return a printable aggregate summary for the orchestrator output.

        Subclasses can override to provide domain-specific labels.
        """

        return format_aggregate_generic(aggregate)
