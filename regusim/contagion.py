"""
Contagion step function: the per-tick update rule of the stress test.

Each step reads the PRIOR aggregate state (never the entities being produced
in the same step), updates every entity's health independently, and then
derives the next aggregate from the new population.

Per-entity rule, in order:
1. Shock at step 5: issuers lose 50 health with probability 0.5
2. After step 5: liquidity-driven healing and panic-driven decay
3. Every step: random contagion pressure when systemic risk exceeds the
   tangibility-derived trigger
4. Clamp health to [0, 100]

The relation graph is not traversed; contagion pressure is population-wide.
"""

from __future__ import annotations

import random
from typing import List, Tuple

from .schemas import MARKET_INDEX_FLOOR, AggregateState, Entity, EntityKind, StressConfig
from .simulation_rules import DEFAULT_MAX_TIME, SimulationRules

SHOCK_TIME = 5
SHOCK_PROBABILITY = 0.5
SHOCK_HEALTH_HIT = 50.0

HEALING_LIQUIDITY_THRESHOLD = 60
HEALING_RATE = 0.5
PANIC_RISK_THRESHOLD = 50.0
PANIC_DIVISOR = 20.0
CONTAGION_MAX_DECAY = 2.0

LIQUIDITY_DRAIN_RISK = 40.0
LIQUIDITY_RECOVERY_RISK = 20.0
LIQUIDITY_DRAIN = 1.0
LIQUIDITY_RECOVERY = 0.5


class InvalidStateError(ValueError):
    """Raised when ``step`` receives a population or aggregate it cannot evolve.

    Attributes:
        time: Step counter of the offending prior aggregate, when known.
    """

    def __init__(self, message: str, *, time: int | None = None) -> None:
        self.time = time
        super().__init__(message)


def compute_market_index(systemic_risk: float, liquidity: float) -> float:
    """Market index: inverse of risk, modulated by liquidity, floored at 10."""

    return max(MARKET_INDEX_FLOOR, 100 - systemic_risk * 0.8 - (100 - liquidity) * 0.2)


def initial_aggregate(config: StressConfig) -> AggregateState:
    """Aggregate state at time 0 for a fully healthy population."""

    liquidity = float(config.market_liquidity_base)
    return AggregateState(
        time=0,
        market_index=compute_market_index(0.0, liquidity),
        systemic_risk=0.0,
        liquidity=liquidity,
        default_count=0,
    )


def next_liquidity(prior_liquidity: float, systemic_risk: float) -> float:
    """Evolve liquidity from its prior value given the new systemic risk.

    The recovery branch only fires strictly below 100, so liquidity can reach
    exactly 100 but recovery never pushes it past.
    """

    liquidity = prior_liquidity
    if systemic_risk > LIQUIDITY_DRAIN_RISK:
        liquidity -= LIQUIDITY_DRAIN
    elif systemic_risk < LIQUIDITY_RECOVERY_RISK and liquidity < 100:
        liquidity += LIQUIDITY_RECOVERY
    return min(100.0, max(0.0, liquidity))


def _validate_inputs(entities: List[Entity], prior: AggregateState) -> None:
    if not entities:
        raise InvalidStateError(
            "Cannot step an empty entity population (average health is undefined)",
            time=prior.time,
        )
    if prior.time < 0:
        raise InvalidStateError(f"Prior aggregate has negative time {prior.time}", time=prior.time)
    if not 0 <= prior.systemic_risk <= 100:
        raise InvalidStateError(
            f"Prior systemic risk {prior.systemic_risk!r} outside [0, 100]", time=prior.time
        )
    if not 0 <= prior.liquidity <= 100:
        raise InvalidStateError(
            f"Prior liquidity {prior.liquidity!r} outside [0, 100]", time=prior.time
        )
    for entity in entities:
        if not 0 <= entity.health <= 100:
            raise InvalidStateError(
                f"Entity '{entity.id}' has health {entity.health!r} outside [0, 100]",
                time=prior.time,
            )


class ContagionStepper(SimulationRules):
    """Concrete rules for the financial contagion stress test.

    The stepper holds no per-run state: everything it needs arrives through
    ``step`` arguments, so one instance can serve many independent runs.
    """

    def __init__(self, max_time: int = DEFAULT_MAX_TIME) -> None:
        super().__init__(max_time=max_time)

    def entity_decay(
        self,
        entity: Entity,
        prior: AggregateState,
        config: StressConfig,
        rng: random.Random,
    ) -> Tuple[float, float]:
        """Return ``(shock, decay)`` for one entity.

        ``shock`` is the immediate health hit of the step-5 event; ``decay`` is
        the summed healing/panic/contagion delta (negative decay heals).
        """

        shock = 0.0
        decay = 0.0

        # One-time shock, independent of the configured scenario's identity.
        # Only issuers consume a draw.
        if prior.time == SHOCK_TIME and entity.kind == EntityKind.ISSUER:
            if rng.random() < SHOCK_PROBABILITY:
                shock = SHOCK_HEALTH_HIT

        if prior.time > SHOCK_TIME:
            if config.market_liquidity_base > HEALING_LIQUIDITY_THRESHOLD:
                decay -= HEALING_RATE
            if prior.systemic_risk > PANIC_RISK_THRESHOLD:
                decay += config.investor_panic_sensitivity / PANIC_DIVISOR

        if prior.systemic_risk > config.risk_trigger:
            decay += rng.random() * CONTAGION_MAX_DECAY

        return shock, decay

    def step(
        self,
        entities: List[Entity],
        prior: AggregateState,
        config: StressConfig,
        rng: random.Random,
    ) -> Tuple[List[Entity], AggregateState]:
        """Advance the population and the aggregate state by one step.

        Raises:
            InvalidStateError: On an empty population or an out-of-range prior.
        """

        _validate_inputs(entities, prior)

        next_entities: List[Entity] = []
        total_health = 0.0
        default_count = 0
        for entity in entities:
            shock, decay = self.entity_decay(entity, prior, config, rng)
            # The shock bypasses clamping until the single clamp below.
            health = min(100.0, max(0.0, entity.health - shock - decay))
            next_entities.append(entity.model_copy(update={"health": health}))
            total_health += health
            if health <= 0:
                default_count += 1

        avg_health = total_health / len(next_entities)
        systemic_risk = min(100.0, max(0.0, 100 - avg_health))
        liquidity = next_liquidity(prior.liquidity, systemic_risk)

        aggregate = AggregateState(
            time=prior.time + 1,
            market_index=compute_market_index(systemic_risk, liquidity),
            systemic_risk=systemic_risk,
            liquidity=liquidity,
            default_count=default_count,
        )
        return next_entities, aggregate


_DEFAULT_STEPPER = ContagionStepper()


def step_simulation(
    entities: List[Entity],
    prior: AggregateState,
    config: StressConfig,
    rng: random.Random,
) -> Tuple[List[Entity], AggregateState]:
    """Functional form of :meth:`ContagionStepper.step`."""

    return _DEFAULT_STEPPER.step(entities, prior, config, rng)


__all__ = [
    "ContagionStepper",
    "InvalidStateError",
    "compute_market_index",
    "initial_aggregate",
    "next_liquidity",
    "step_simulation",
    "SHOCK_TIME",
]
