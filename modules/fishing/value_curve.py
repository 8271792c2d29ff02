"""
💰 Value curve

Maps a fish's base value and a sampled weight to the value of the catch.

    x          = (weight - min) / (max - min)      (not clamped)
    multiplier = (x * 1.36 - 0.48)^3 + 1.01 + x * 0.11
    value      = base_value * multiplier

The minimum weight pays ~0.9x the base value, the maximum weight ~1.8x.
Arithmetic runs in float32 so stored values stay identical to the ones
produced by earlier versions of the bot.
"""
from typing import Optional, Tuple

import numpy as np

_SLOPE = np.float32(1.36)
_SHIFT = np.float32(0.48)
_OFFSET = np.float32(1.01)
_LINEAR = np.float32(0.11)
_ONE = np.float32(1.0)


def value_multiplier(position: np.float32) -> np.float32:
    """Cubic bonus for a normalized weight position."""
    shifted = position * _SLOPE - _SHIFT
    return shifted * shifted * shifted + _OFFSET + position * _LINEAR


def catch_value(
    base_value: int,
    weight_range: Optional[Tuple[float, float]],
    weight: Optional[float],
) -> float:
    """
    Compute the monetary value of a catch.

    Args:
        base_value: Base value of the fish (may be negative)
        weight_range: (min, max) of the fish or None when it has no weight
        weight: Sampled weight or None

    Returns:
        Value of the catch (float32 precision, returned as a Python float)
    """
    if weight_range is None or weight is None:
        multiplier = _ONE
    else:
        low = np.float32(weight_range[0])
        high = np.float32(weight_range[1])
        position = (np.float32(weight) - low) / (high - low)
        multiplier = value_multiplier(position)

    return float(np.float32(base_value) * multiplier)
