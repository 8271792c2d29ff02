"""
Fishing Module - Fishinge game core

Contient:
- FishDefinition / FishPopulation / Catch: game data
- catch_value: weight to value curve
- choose_fish: weighted population sampler
- generate_catch: one fishing attempt
- check_cooldown / pick_cooldown_message: cooldown gate
- YearAndQuarter: season calendar

Usage:
    from modules.fishing import FishPopulation, generate_catch

    population = FishPopulation(db.list_active_fishes(season["id"]))
    catch = generate_catch(population)
"""

from .catch_generator import catch_fish, generate_catch, sample_weight
from .cooldown import (
    COOLDOWN_CATEGORY,
    COOLDOWN_PLACEHOLDER,
    DEFAULT_COOLDOWN,
    Allowed,
    Blocked,
    check_cooldown,
    format_duration,
    pick_cooldown_message,
)
from .errors import (
    EmptyPopulation,
    FishingError,
    FishNotFound,
    InvalidFishDefinition,
    NoActiveSeason,
    NoMessagesAvailable,
)
from .models import Catch, FishDefinition, FishPopulation, WeightRange
from .sampler import choose_fish
from .seasons import Quarter, YearAndQuarter
from .value_curve import catch_value

__all__ = [
    "Allowed",
    "Blocked",
    "COOLDOWN_CATEGORY",
    "COOLDOWN_PLACEHOLDER",
    "Catch",
    "DEFAULT_COOLDOWN",
    "EmptyPopulation",
    "FishDefinition",
    "FishNotFound",
    "FishPopulation",
    "FishingError",
    "InvalidFishDefinition",
    "NoActiveSeason",
    "NoMessagesAvailable",
    "Quarter",
    "WeightRange",
    "YearAndQuarter",
    "catch_fish",
    "catch_value",
    "check_cooldown",
    "choose_fish",
    "format_duration",
    "generate_catch",
    "pick_cooldown_message",
    "sample_weight",
]
