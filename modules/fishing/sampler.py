"""
🎲 Population sampler

Weighted random selection of a fish, proportional to its population count.
"""
import bisect
import itertools
import logging
import random
from typing import Optional, Sequence

from modules.fishing.errors import EmptyPopulation
from modules.fishing.models import FishDefinition

LOGGER = logging.getLogger(__name__)


def choose_fish(
    fishes: Sequence[FishDefinition],
    rng: Optional[random.Random] = None,
) -> FishDefinition:
    """
    Pick one fish, weighted by population.

    Draws r uniformly from [0, total) and returns the first fish whose
    cumulative population exceeds r. Fish with a population of 0 are never
    returned.

    Raises:
        EmptyPopulation: no fish given, or all populations are 0
    """
    if not fishes:
        raise EmptyPopulation("fish population is empty")

    cumulative = list(itertools.accumulate(fish.count for fish in fishes))
    total = cumulative[-1]
    if total <= 0:
        raise EmptyPopulation(f"all {len(fishes)} fishes have a population of 0")

    rng = rng or random
    r = rng.random() * total
    index = bisect.bisect_right(cumulative, r)

    # r * total can round up to total for r close to 1.0
    if index >= len(fishes):
        index = bisect.bisect_left(cumulative, total)

    fish = fishes[index]
    LOGGER.debug(f"🎲 Picked {fish.name} (r={r:.3f}/{total})")
    return fish
