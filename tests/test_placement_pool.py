"""Tests for the two-bucket placement pool."""

import pytest

from genetic_algorithm import ConfigError, PreconditionError
from layout_generator import PlacementGenerator
from placement_pool import PlacementPool


@pytest.fixture
def placements(rng):
    return PlacementGenerator().generate_population(6, rng)


class TestPoolConfig:
    """Construction checks."""

    def test_bad_probability(self):
        with pytest.raises(ConfigError):
            PlacementPool(best_prob=1.5)

    def test_negative_size(self):
        with pytest.raises(ConfigError):
            PlacementPool(best_size=-1)


class TestPoolFilling:
    """Bucket population rules."""

    def test_set_best_needs_exact_size(self, placements):
        pool = PlacementPool(best_size=3, random_size=2)
        with pytest.raises(ValueError):
            pool.set_best(placements[:2])
        pool.set_best(placements[:3])
        assert len(pool.best) == 3

    def test_set_random_needs_exact_size(self, placements):
        pool = PlacementPool(best_size=3, random_size=2)
        with pytest.raises(ValueError):
            pool.set_random(placements[:3])

    def test_fifo_eviction(self, placements):
        pool = PlacementPool(best_size=1, random_size=2)
        for p in placements[:3]:
            pool.add_placement(p)
        assert [p.key() for p in pool.random] == [placements[1].key(), placements[2].key()]

    def test_buckets_hold_copies(self, placements):
        pool = PlacementPool(best_size=1, random_size=1)
        pool.set_best(placements[:1])
        placements[0].genes[0] = 99
        assert pool.best[0].genes[0] != 99


class TestPoolSampling:
    """sample() and indexed access."""

    def test_unpopulated_pool_refuses(self, placements, rng):
        pool = PlacementPool(best_size=2, random_size=2)
        with pytest.raises(PreconditionError):
            pool.sample(rng)
        pool.set_best(placements[:2])
        pool.add_placement(placements[2])
        with pytest.raises(PreconditionError):
            pool.sample(rng)

    @pytest.mark.parametrize("prob, bucket", [(1.0, "best"), (0.0, "random")])
    def test_probability_selects_bucket(self, placements, rng, prob, bucket):
        pool = PlacementPool(best_size=3, random_size=3, best_prob=prob)
        pool.set_best(placements[:3])
        pool.set_random(placements[3:6])
        keys = {p.key() for p in getattr(pool, bucket)}
        for _ in range(30):
            assert pool.sample(rng).key() in keys
        assert pool.is_ready()

    def test_get_placement_order(self, placements):
        pool = PlacementPool(best_size=2, random_size=2)
        pool.set_best(placements[:2])
        pool.set_random(placements[2:4])
        assert len(pool) == 4
        assert pool.get_placement(0).key() == placements[0].key()
        assert pool.get_placement(3).key() == placements[3].key()
        with pytest.raises(IndexError):
            pool.get_placement(4)

    def test_heat_map(self, valid_genome):
        pool = PlacementPool(best_size=1, random_size=1)
        assert pool.heat_map() is None
        pool.set_best([valid_genome])
        heat = pool.heat_map()
        assert heat.shape == (10, 10)
        assert heat.sum() == pytest.approx(20.0)
        assert heat[0, 0] == 1.0 and heat[9, 9] == 0.0


class TestEmptyBucket:
    """A bucket configured with size 0 stays empty and never blocks sampling."""

    def test_zero_random_bucket_stays_empty(self, placements):
        pool = PlacementPool(best_size=1, random_size=0, best_prob=1.0)
        pool.set_best(placements[:1])
        for p in placements[:5]:
            pool.add_placement(p)
        assert len(pool.random) == 0
        assert len(pool) == 1

    @pytest.mark.parametrize("prob", [1.0, 0.0])
    def test_elite_only_pool_samples(self, placements, rng, prob):
        """With no random bucket every draw comes from the elites."""
        pool = PlacementPool(best_size=2, random_size=0, best_prob=prob)
        pool.set_best(placements[:2])
        assert pool.is_ready()
        keys = {p.key() for p in placements[:2]}
        for _ in range(20):
            assert pool.sample(rng).key() in keys

    def test_random_only_pool_samples(self, placements, rng):
        pool = PlacementPool(best_size=0, random_size=2, best_prob=1.0)
        pool.add_placement(placements[0])
        assert not pool.is_ready()
        pool.add_placement(placements[1])
        assert pool.is_ready()
        keys = {placements[0].key(), placements[1].key()}
        for _ in range(20):
            assert pool.sample(rng).key() in keys

    def test_both_buckets_empty_is_never_ready(self, rng):
        pool = PlacementPool(best_size=0, random_size=0)
        assert not pool.is_ready()
        with pytest.raises(PreconditionError):
            pool.sample(rng)
