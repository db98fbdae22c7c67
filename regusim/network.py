"""Random construction of the initial entity network.

The builder runs once per simulation. Draws happen in a fixed order (kind,
exposure, x, y per entity, then out-degree, target and strength per source)
so a seeded ``random.Random`` reproduces the same network bit for bit.
"""

from __future__ import annotations

import random
from typing import List

from .schemas import (
    LAYOUT_HEIGHT,
    LAYOUT_WIDTH,
    Entity,
    EntityKind,
    Network,
    Relation,
)

# Cut points on a single uniform [0, 1) draw: ~80% banks, ~15% issuers, ~5% market makers.
BANK_CUTOFF = 0.8
ISSUER_CUTOFF = 0.95

MIN_OUT_DEGREE = 1
MAX_OUT_DEGREE = 3


class InvalidArgumentError(ValueError):
    """Raised when the network builder receives an unusable population size."""


def draw_entity_kind(rng: random.Random) -> EntityKind:
    """Draw an entity kind using the fixed 0.8 / 0.95 cut points."""

    sample = rng.random()
    if sample < BANK_CUTOFF:
        return EntityKind.BANK
    if sample < ISSUER_CUTOFF:
        return EntityKind.ISSUER
    return EntityKind.MARKET_MAKER


class NetworkBuilder:
    """Builds a random directed network of banks, issuers and market makers.

    Args:
        rng: Random source. Inject a seeded ``random.Random`` for reproducible
            networks; a fresh unseeded generator is used otherwise.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def build(self, population_size: int) -> Network:
        """Create ``population_size`` healthy entities and random relations.

        Each entity proposes 1-3 outgoing edges to uniformly chosen targets.
        Self-loop candidates are skipped without retrying, so the realised
        out-degree can fall below the drawn count. Duplicate edges are kept.

        Raises:
            InvalidArgumentError: If ``population_size`` is not a non-negative int.
        """

        # bool is an int subclass; True is not a population size.
        if isinstance(population_size, bool) or not isinstance(population_size, int):
            raise InvalidArgumentError(
                f"population_size must be an integer, got {population_size!r}"
            )
        if population_size < 0:
            raise InvalidArgumentError(
                f"population_size must be non-negative, got {population_size}"
            )

        rng = self.rng
        entities: List[Entity] = []
        for index in range(population_size):
            kind = draw_entity_kind(rng)
            exposure = rng.random() * 100
            x = rng.random() * LAYOUT_WIDTH
            y = rng.random() * LAYOUT_HEIGHT
            entities.append(
                Entity(
                    id=f"node-{index}",
                    kind=kind,
                    health=100.0,
                    exposure=exposure,
                    position=(x, y),
                )
            )

        relations: List[Relation] = []
        for source in entities:
            edge_count = rng.randint(MIN_OUT_DEGREE, MAX_OUT_DEGREE)
            for _ in range(edge_count):
                target = entities[rng.randrange(population_size)]
                if target.id == source.id:
                    continue
                relations.append(
                    Relation(source=source.id, target=target.id, strength=rng.random())
                )

        return Network(entities=entities, relations=relations)


def build_network(population_size: int, rng: random.Random | None = None) -> Network:
    """Convenience wrapper around :class:`NetworkBuilder`."""

    return NetworkBuilder(rng).build(population_size)


__all__ = [
    "InvalidArgumentError",
    "NetworkBuilder",
    "build_network",
    "draw_entity_kind",
    "BANK_CUTOFF",
    "ISSUER_CUTOFF",
]
