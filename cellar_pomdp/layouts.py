"""
Start configurations for the Cellar.

Positions are fixed per simulator instance. The four published problems use
hand-placed layouts so results are reproducible across papers:

    cellar[5,1,0,4]       5x5, one bottle, four shelves
    cellar[5,2,6,4]       5x5, two bottles among six crates and four shelves
    cellar[7,8,7,8]       7x7, eight bottles, seven crates, eight shelves
    cellar[11,11,15,15]   11x11, eleven bottles, fifteen crates, fifteen shelves

Every other parameterisation draws positions without replacement from the
grid. In both modes the hidden values (which bottles are valuable, which
objects are crates) are drawn again for every start state, so a belief over
start states is a distribution over those values alone.

Layout of the 5x5 single-bottle preset (y grows upward, A = agent start,
B = bottle, S = shelf):

        y=4  . . . S .
        y=3  . . B . .
        y=2  A . S . .
        y=1  . S . S .
        y=0  . . . . .
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from cellar_pomdp.config import CellarConfig, ConfigurationError
from cellar_pomdp.coord import Coord
from cellar_pomdp.state import (
    BottleRecord, BottleTruth, CellarState, ObjectKind, ObjectRecord,
    ObjectTruth,
)

logger = logging.getLogger(__name__)


def _coords(*pairs: Tuple[int, int]) -> Tuple[Coord, ...]:
    return tuple(Coord(x, y) for x, y in pairs)


# name -> (bottle positions, object positions)
PRESET_LAYOUTS: Dict[str, Tuple[Tuple[Coord, ...], Tuple[Coord, ...]]] = {
    "5_1": (
        _coords((2, 3)),
        _coords((1, 1), (2, 2), (3, 4), (3, 1)),
    ),
    "5_2": (
        _coords((2, 4), (3, 1)),
        _coords((1, 2), (2, 3), (3, 2), (1, 0), (4, 4),
                (2, 1), (1, 3), (3, 3), (4, 1), (0, 4)),
    ),
    "7_8": (
        _coords((1, 5), (2, 1), (2, 4), (3, 6), (4, 2), (5, 0), (5, 5), (6, 3)),
        _coords((1, 2), (1, 3), (1, 4), (2, 2), (2, 5), (3, 1), (3, 3), (3, 5),
                (4, 0), (4, 4), (4, 6), (5, 2), (5, 4), (6, 1), (6, 5)),
    ),
    "11_11": (
        _coords((1, 8), (2, 2), (3, 5), (4, 9), (5, 1), (5, 6), (6, 3), (7, 8),
                (8, 0), (9, 5), (10, 2)),
        _coords((1, 4), (1, 5), (1, 6), (2, 3), (2, 7), (2, 9), (3, 1), (3, 4),
                (3, 6), (3, 8), (4, 2), (4, 5), (4, 7), (5, 3), (5, 9), (6, 0),
                (6, 5), (6, 8), (7, 2), (7, 4), (7, 6), (7, 10), (8, 1), (8, 5),
                (8, 8), (9, 3), (9, 7), (9, 9), (10, 4), (10, 6)),
    ),
}


@dataclass(frozen=True)
class Layout:
    """Where everything starts. Fixed for the lifetime of a simulator."""
    name: str
    size: int
    start: Coord
    bottle_positions: Tuple[Coord, ...]
    object_positions: Tuple[Coord, ...]


def start_position(size: int) -> Coord:
    return Coord(0, size // 2)


def build_layout(config: CellarConfig,
                 rng: np.random.RandomState) -> Layout:
    """Place bottles and objects for ``config``."""
    start = start_position(config.size)
    name = config.preset_name
    if name is not None:
        bottles, objects = PRESET_LAYOUTS[name]
        logger.debug("using preset layout cellar[%s]", name)
        return Layout(name, config.size, start, bottles, objects)

    free = [Coord(x, y) for x in range(config.size)
            for y in range(config.size) if Coord(x, y) != start]
    needed = config.bottles + config.num_objects
    if needed > len(free):
        raise ConfigurationError(
            f"cannot place {needed} entities on {len(free)} free tiles")

    chosen = rng.choice(len(free), size=needed, replace=False)
    positions = [free[i] for i in chosen]
    name = "random_{}_{}_{}_{}".format(*config.dimensions)
    logger.debug("drew %s layout with %d entities", name, needed)
    return Layout(
        name=name,
        size=config.size,
        start=start,
        bottle_positions=tuple(positions[:config.bottles]),
        object_positions=tuple(positions[config.bottles:]),
    )


def initial_state(layout: Layout, config: CellarConfig,
                  rng: random.Random) -> CellarState:
    """
    Draw one start state: hidden values are sampled, beliefs are neutral.

    Each bottle is valuable with probability ``config.valuable_prior``.
    Object kinds are a random permutation of exactly ``config.crates``
    crates and ``config.shelves`` shelves.
    """
    bottles = [
        BottleRecord(BottleTruth(rng.random() < config.valuable_prior))
        for _ in layout.bottle_positions
    ]

    kinds: List[ObjectKind] = ([ObjectKind.CRATE] * config.crates
                               + [ObjectKind.SHELF] * config.shelves)
    rng.shuffle(kinds)
    objects = [
        ObjectRecord(position=pos, truth=ObjectTruth(kind))
        for pos, kind in zip(layout.object_positions, kinds)
    ]

    return CellarState(agent=layout.start, bottles=bottles, objects=objects)
