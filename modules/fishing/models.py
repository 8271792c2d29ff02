"""
🐟 Fishing models

Reference data (fish definitions, the active population) and the immutable
result of one fishing attempt.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, NamedTuple, Optional, Tuple

import numpy as np

from modules.fishing.errors import FishNotFound, InvalidFishDefinition

# Values at or below this magnitude are shown as "worth nothing"
FLOAT32_EPSILON = float(np.finfo(np.float32).eps)


class WeightRange(NamedTuple):
    """Weight range of a fish in kilograms (min inclusive, max exclusive)."""
    min: float
    max: float


@dataclass(frozen=True)
class FishDefinition:
    """Immutable fish entry of a bundle."""
    id: int
    name: str
    count: int                                  # Population (sampling weight)
    base_value: int                             # Negative for junk
    weight_range: Optional[WeightRange] = None
    html_name: Optional[str] = None             # Rendered name for the dashboard
    is_trash: bool = False

    def __post_init__(self):
        if self.count < 0:
            raise InvalidFishDefinition(f"{self.name}: population must be >= 0 (got {self.count})")

        if self.weight_range is not None:
            low, high = self.weight_range
            if low <= 0 or high <= 0 or high <= low:
                raise InvalidFishDefinition(
                    f"{self.name}: invalid weight range {low}..{high}"
                )
            # Accept plain tuples from callers
            object.__setattr__(self, "weight_range", WeightRange(float(low), float(high)))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "FishDefinition":
        """
        Build a definition from a `fishes` table row.

        A fish is weighable only when both stored weights are above float32
        epsilon; zeroed columns mean "no weight variation".
        """
        min_weight = row["min_weight"] or 0.0
        max_weight = row["max_weight"] or 0.0

        weight_range = None
        if min_weight > FLOAT32_EPSILON and max_weight > FLOAT32_EPSILON:
            weight_range = WeightRange(min_weight, max_weight)

        return cls(
            id=row["id"],
            name=row["name"],
            count=int(row["count"]),
            base_value=int(row["base_value"]),
            weight_range=weight_range,
            html_name=row["html_name"] if "html_name" in row.keys() else None,
            is_trash=bool(row["is_trash"]) if "is_trash" in row.keys() else False,
        )


@dataclass(frozen=True)
class FishPopulation:
    """
    Fish definitions active for the current season, plus their total
    population. The total is computed once when the population is loaded.
    """
    fishes: Tuple[FishDefinition, ...]
    total: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "fishes", tuple(self.fishes))
        object.__setattr__(self, "total", sum(fish.count for fish in self.fishes))

    def __len__(self) -> int:
        return len(self.fishes)

    def __iter__(self):
        return iter(self.fishes)

    def rarity(self, fish: FishDefinition) -> float:
        """Share of the population in percent."""
        if self.total == 0:
            return 0.0
        return fish.count / self.total * 100.0

    def describe(self, fish: FishDefinition) -> str:
        """`NAME (12.5%) (1.0kg - 3.0kg)`"""
        text = f"{fish.name} ({self.rarity(fish):.1f}%)"
        if fish.weight_range is not None:
            text += f" ({fish.weight_range.min:.1f}kg - {fish.weight_range.max:.1f}kg)"
        return text

    def get(self, fish_id: int) -> FishDefinition:
        for fish in self.fishes:
            if fish.id == fish_id:
                return fish
        raise FishNotFound(f"fish {fish_id} is not part of this population")


@dataclass(frozen=True)
class Catch:
    """Result of one fishing attempt."""
    fish_id: int
    fish_name: str
    weight: Optional[float]
    value: float
    caught_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        text = self.fish_name
        if self.weight is not None:
            text += f" ({self.weight:.1f}kg)"
        if abs(self.value) > FLOAT32_EPSILON:
            text += f" worth ${self.value:.2f}"
        else:
            text += " worth nothing"
        return text
