"""
🎣 Catch generator

Population sampler + weight sampling + value curve = one Catch.
"""
import logging
import random
from datetime import datetime, timezone
from typing import Optional

import numpy as np

from modules.fishing.models import Catch, FishDefinition, FishPopulation
from modules.fishing.sampler import choose_fish
from modules.fishing.value_curve import catch_value

LOGGER = logging.getLogger(__name__)


def sample_weight(fish: FishDefinition, rng: Optional[random.Random] = None) -> Optional[float]:
    """Uniform weight in [min, max) in float32, or None for fish without a range."""
    if fish.weight_range is None:
        return None

    rng = rng or random
    low = np.float32(fish.weight_range.min)
    high = np.float32(fish.weight_range.max)
    weight = low + (high - low) * np.float32(rng.random())

    # float32 rounding must not reach the exclusive upper bound
    if weight >= high:
        weight = np.nextafter(high, low)

    return float(weight)


def catch_fish(
    fish: FishDefinition,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> Catch:
    """Catch a specific fish (weight sampling + value curve)."""
    weight = sample_weight(fish, rng)
    return Catch(
        fish_id=fish.id,
        fish_name=fish.name,
        weight=weight,
        value=catch_value(fish.base_value, fish.weight_range, weight),
        caught_at=now or datetime.now(timezone.utc),
    )


def generate_catch(
    population: FishPopulation,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> Catch:
    """
    Resolve one fishing attempt against the given population.

    Raises:
        EmptyPopulation: nothing to catch
    """
    fish = choose_fish(population.fishes, rng)
    LOGGER.debug(f"🎣 Fishing for {population.describe(fish)}")

    catch = catch_fish(fish, rng, now)
    LOGGER.debug(f"🎣 Caught {catch}")
    return catch
