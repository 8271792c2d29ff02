"""
Tests de la génération de prise (modules/fishing/catch_generator.py)
"""
import random
from datetime import datetime, timezone

import pytest

from modules.fishing import (
    EmptyPopulation,
    FishDefinition,
    FishPopulation,
    catch_fish,
    catch_value,
    generate_catch,
    sample_weight,
)

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

CRAB = FishDefinition(id=1, name="🦀", count=10, base_value=300, weight_range=(0.3, 2.0))
BOOT = FishDefinition(id=2, name="👢", count=10, base_value=-50)


@pytest.mark.unit
class TestSampleWeight:

    def test_weight_inside_range(self):
        rng = random.Random(3)
        for _ in range(2_000):
            weight = sample_weight(CRAB, rng)
            assert 0.3 <= weight < 2.0 + 1e-6

    def test_no_range_no_weight(self):
        assert sample_weight(BOOT, random.Random(3)) is None


@pytest.mark.unit
class TestCatchFish:

    def test_weighable_fish(self):
        catch = catch_fish(CRAB, random.Random(5), NOW)
        assert catch.fish_id == 1
        assert catch.fish_name == "🦀"
        assert catch.weight is not None
        assert catch.value == catch_value(300, (0.3, 2.0), catch.weight)
        assert catch.caught_at == NOW

    def test_junk_keeps_base_value(self):
        catch = catch_fish(BOOT, random.Random(5), NOW)
        assert catch.weight is None
        assert catch.value == -50.0
        assert str(catch) == "👢 worth $-50.00"


@pytest.mark.unit
class TestGenerateCatch:

    def test_same_seed_same_catch(self):
        population = FishPopulation([CRAB, BOOT])
        first = generate_catch(population, random.Random(99), NOW)
        second = generate_catch(population, random.Random(99), NOW)
        assert first == second

    def test_only_populated_fish_is_caught(self):
        population = FishPopulation([
            FishDefinition(id=7, name="🐟", count=0, base_value=100),
            BOOT,
        ])
        for seed in range(50):
            assert generate_catch(population, random.Random(seed), NOW).fish_id == BOOT.id

    def test_empty_population(self):
        with pytest.raises(EmptyPopulation):
            generate_catch(FishPopulation([]), random.Random(1), NOW)
