"""Tests for the contagion step function."""

import random

import pytest

from regusim.contagion import (
    ContagionStepper,
    InvalidStateError,
    compute_market_index,
    initial_aggregate,
    next_liquidity,
    step_simulation,
)
from regusim.network import build_network
from regusim.schemas import AggregateState, Entity, EntityKind, StressConfig


class ConstantRandom(random.Random):
    """Random source whose random() always returns the same value."""

    def __init__(self, value: float):
        super().__init__(0)
        self.value = value
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.value


def _entities(count: int, *, kind: EntityKind = EntityKind.BANK, health: float = 100.0) -> list[Entity]:
    return [
        Entity(id=f"node-{i}", kind=kind, health=health, exposure=10.0, position=(1.0, 1.0))
        for i in range(count)
    ]


def _aggregate(time: int, *, risk: float = 0.0, liquidity: float = 80.0) -> AggregateState:
    return AggregateState(
        time=time,
        market_index=compute_market_index(risk, liquidity),
        systemic_risk=risk,
        liquidity=liquidity,
        default_count=0,
    )


def test_initial_aggregate_uses_liquidity_base():
    start = initial_aggregate(StressConfig(market_liquidity_base=80))

    assert start.time == 0
    assert start.systemic_risk == 0
    assert start.liquidity == 80
    assert start.default_count == 0
    assert start.market_index == pytest.approx(96.0)


def test_step_preserves_population_and_advances_time():
    entities = _entities(25)
    prior = _aggregate(3)

    next_entities, aggregate = step_simulation(entities, prior, StressConfig(), random.Random(1))

    assert len(next_entities) == len(entities)
    assert [e.id for e in next_entities] == [e.id for e in entities]
    assert aggregate.time == prior.time + 1


def test_step_does_not_mutate_inputs():
    entities = _entities(5, kind=EntityKind.ISSUER)
    prior = _aggregate(5)

    step_simulation(entities, prior, StressConfig(), ConstantRandom(0.0))

    assert all(entity.health == 100.0 for entity in entities)
    assert prior.time == 5


def test_no_shock_before_step_five():
    rng = ConstantRandom(0.0)
    entities = _entities(20, kind=EntityKind.ISSUER)

    next_entities, aggregate = step_simulation(entities, _aggregate(4), StressConfig(), rng)

    assert all(entity.health == 100.0 for entity in next_entities)
    assert aggregate.systemic_risk == 0
    assert rng.calls == 0


def test_shock_at_step_five_hits_only_issuers():
    entities = (
        _entities(3, kind=EntityKind.BANK)
        + _entities(3, kind=EntityKind.ISSUER)
        + _entities(3, kind=EntityKind.MARKET_MAKER)
    )
    entities = [e.model_copy(update={"id": f"node-{i}"}) for i, e in enumerate(entities)]

    next_entities, aggregate = step_simulation(
        entities, _aggregate(5), StressConfig(), ConstantRandom(0.0)
    )

    for entity in next_entities:
        if entity.kind == EntityKind.ISSUER:
            assert entity.health == 50.0
        else:
            assert entity.health == 100.0
    assert aggregate.systemic_risk == pytest.approx(100 - (6 * 100 + 3 * 50) / 9)


def test_shock_skipped_when_draw_fails():
    next_entities, _ = step_simulation(
        _entities(10, kind=EntityKind.ISSUER), _aggregate(5), StressConfig(), ConstantRandom(0.9)
    )

    assert all(entity.health == 100.0 for entity in next_entities)


def test_shock_hits_roughly_half_of_issuers():
    next_entities, _ = step_simulation(
        _entities(400, kind=EntityKind.ISSUER), _aggregate(5), StressConfig(), random.Random(8)
    )

    hit = sum(1 for entity in next_entities if entity.health == 50.0)
    assert 150 < hit < 250


def test_healing_dominance_keeps_full_health():
    config = StressConfig(market_liquidity_base=100, investor_panic_sensitivity=0)
    prior = _aggregate(10, risk=0.0, liquidity=100.0)

    next_entities, aggregate = step_simulation(_entities(30), prior, config, random.Random(4))

    assert all(entity.health == 100.0 for entity in next_entities)
    assert aggregate.systemic_risk == 0
    assert aggregate.default_count == 0
    assert aggregate.liquidity == 100.0
    assert aggregate.market_index == 100.0


def test_full_panic_stress():
    config = StressConfig(
        tangibility_ratio_min=51, market_liquidity_base=50, investor_panic_sensitivity=100
    )
    prior = _aggregate(10, risk=90.0, liquidity=50.0)
    entities = _entities(40, health=10.0)

    next_entities, aggregate = step_simulation(entities, prior, config, random.Random(99))

    # Panic decay of exactly 5 plus contagion pressure in [0, 2).
    for entity in next_entities:
        assert 3.0 < entity.health <= 5.0
    avg_before = sum(e.health for e in entities) / len(entities)
    avg_after = sum(e.health for e in next_entities) / len(next_entities)
    assert avg_after < avg_before
    assert aggregate.liquidity == 49.0
    assert aggregate.systemic_risk > 40


def test_healing_offsets_panic_when_liquidity_high():
    config = StressConfig(
        tangibility_ratio_min=100, market_liquidity_base=80, investor_panic_sensitivity=100
    )
    # Trigger is 0 and prior risk 60 > 0, so contagion applies; ConstantRandom(0) makes it zero.
    prior = _aggregate(10, risk=60.0, liquidity=50.0)

    next_entities, _ = step_simulation(_entities(4, health=40.0), prior, config, ConstantRandom(0.0))

    # decay = -0.5 + 100 / 20 + 0
    assert all(entity.health == pytest.approx(35.5) for entity in next_entities)


def test_contagion_pressure_applies_before_shock_step():
    config = StressConfig(tangibility_ratio_min=51)
    prior = _aggregate(0, risk=60.0)

    next_entities, _ = step_simulation(_entities(50), prior, config, random.Random(17))

    assert all(98.0 < entity.health <= 100.0 for entity in next_entities)
    assert any(entity.health < 100.0 for entity in next_entities)


def test_no_contagion_pressure_at_trigger():
    config = StressConfig(tangibility_ratio_min=60)
    rng = ConstantRandom(0.5)

    step_simulation(_entities(5), _aggregate(2, risk=40.0), config, rng)

    assert rng.calls == 0


def test_default_count_is_recomputed_not_cumulative():
    config = StressConfig(market_liquidity_base=80, investor_panic_sensitivity=0)
    defaulted = _entities(6, health=0.0)

    next_entities, aggregate = step_simulation(
        defaulted, _aggregate(10, risk=0.0), config, random.Random(2)
    )

    # Healing lifts every defaulted entity back above zero.
    assert all(entity.health == 0.5 for entity in next_entities)
    assert aggregate.default_count == 0


def test_collapsed_market_hits_index_floor():
    config = StressConfig(tangibility_ratio_min=100, market_liquidity_base=0)
    prior = _aggregate(20, risk=100.0, liquidity=0.0)

    next_entities, aggregate = step_simulation(
        _entities(10, health=0.0), prior, config, random.Random(6)
    )

    assert aggregate.default_count == 10
    assert aggregate.systemic_risk == 100.0
    assert aggregate.liquidity == 0.0
    assert aggregate.market_index == 10.0


def test_compute_market_index_floor():
    assert compute_market_index(100.0, 0.0) == 10.0
    assert compute_market_index(0.0, 100.0) == 100.0
    assert compute_market_index(50.0, 50.0) == pytest.approx(50.0)


@pytest.mark.parametrize(
    "prior, risk, expected",
    [
        (50.0, 45.0, 49.0),
        (0.5, 90.0, 0.0),
        (0.0, 90.0, 0.0),
        (99.5, 10.0, 100.0),
        (100.0, 10.0, 100.0),
        (60.0, 30.0, 60.0),
        (60.0, 40.0, 60.0),
        (60.0, 20.0, 60.0),
    ],
)
def test_next_liquidity(prior, risk, expected):
    assert next_liquidity(prior, risk) == expected


def test_empty_population_is_invalid_state():
    with pytest.raises(InvalidStateError):
        step_simulation([], _aggregate(0), StressConfig(), random.Random(0))


def test_negative_time_is_invalid_state():
    prior = AggregateState.model_construct(
        time=-1, market_index=100.0, systemic_risk=0.0, liquidity=80.0, default_count=0
    )

    with pytest.raises(InvalidStateError) as excinfo:
        step_simulation(_entities(3), prior, StressConfig(), random.Random(0))

    assert excinfo.value.time == -1


def test_out_of_range_prior_is_invalid_state():
    prior = AggregateState.model_construct(
        time=3, market_index=100.0, systemic_risk=float("nan"), liquidity=80.0, default_count=0
    )

    with pytest.raises(InvalidStateError):
        step_simulation(_entities(3), prior, StressConfig(), random.Random(0))


@pytest.mark.parametrize(
    "config",
    [
        StressConfig(),
        StressConfig(tangibility_ratio_min=0, market_liquidity_base=20, investor_panic_sensitivity=100),
        StressConfig(tangibility_ratio_min=100, market_liquidity_base=100, investor_panic_sensitivity=0),
        StressConfig(tangibility_ratio_min=33, market_liquidity_base=61, investor_panic_sensitivity=75),
    ],
)
def test_invariants_hold_over_full_run(config):
    rng = random.Random(123)
    stepper = ContagionStepper()
    entities = build_network(60, rng).entities
    aggregate = initial_aggregate(config)

    while not stepper.should_stop(aggregate):
        previous_time = aggregate.time
        entities, aggregate = stepper.step(entities, aggregate, config, rng)
        assert len(entities) == 60
        assert aggregate.time == previous_time + 1
        assert all(0 <= entity.health <= 100 for entity in entities)
        assert 0 <= aggregate.systemic_risk <= 100
        assert 0 <= aggregate.liquidity <= 100
        assert aggregate.market_index >= 10
        assert aggregate.default_count == sum(1 for e in entities if e.health <= 0)

    assert aggregate.time == 100


def test_step_chain_is_deterministic_under_seed():
    config = StressConfig(tangibility_ratio_min=33, investor_panic_sensitivity=80)

    def run(seed: int):
        rng = random.Random(seed)
        entities = build_network(40, rng).entities
        aggregate = initial_aggregate(config)
        history = [aggregate]
        for _ in range(30):
            entities, aggregate = step_simulation(entities, aggregate, config, rng)
            history.append(aggregate)
        return [e.model_dump() for e in entities], [a.model_dump() for a in history]

    assert run(5) == run(5)


def test_stepper_keeps_running_past_horizon():
    stepper = ContagionStepper(max_time=100)
    prior = _aggregate(100)

    assert stepper.should_stop(prior)
    _, aggregate = stepper.step(_entities(3), prior, StressConfig(), random.Random(0))
    assert aggregate.time == 101
