"""Tests for the constrained placement generator."""

import numpy as np
import pytest

from bitboard import ship_bits, halo_bits, cell_bit
from chromosome import SHIPS
from layout_generator import PlacementGenerator, Bias, ALL_BIASES, random_origin


class TestRandomOrigin:
    """Bias-specific candidate origins always keep the ship on the board."""

    @pytest.mark.parametrize("bias", ALL_BIASES)
    def test_origins_in_bounds(self, bias, rng):
        for _ in range(200):
            for idx, length in enumerate(SHIPS):
                horizontal = bool(rng.random() < 0.5)
                x, y = random_origin(length, horizontal, rng, bias, idx)
                assert ship_bits(x, y, length, horizontal) != 0

    def test_corner_bias(self, rng):
        for _ in range(100):
            x, y = random_origin(1, True, rng, Bias.CORNER)
            assert x in (0, 1, 8, 9) and y in (0, 1, 8, 9)

    def test_edge_bias(self, rng):
        for _ in range(100):
            x, y = random_origin(3, True, rng, Bias.EDGE)
            assert x == 0 or y == 0 or x == 7 or y == 9

    def test_center_bias_tighter_for_long_ships(self, rng):
        for _ in range(100):
            x, y = random_origin(4, True, rng, Bias.CENTER, ship_idx=0)
            assert x == 3
            assert 3 <= y <= 6
            x, y = random_origin(1, True, rng, Bias.CENTER, ship_idx=9)
            assert 2 <= x <= 7 and 2 <= y <= 7


class TestGenerate:
    """Single genome generation."""

    @pytest.mark.parametrize("bias", ALL_BIASES)
    def test_every_bias_yields_valid_genomes(self, bias):
        generator = PlacementGenerator()
        for seed in range(25):
            genome = generator.generate(bias, np.random.default_rng(seed))
            assert genome.is_valid()

    def test_same_seed_same_genome(self):
        generator = PlacementGenerator()
        a = generator.generate(Bias.EDGE, np.random.default_rng(7))
        b = generator.generate(Bias.EDGE, np.random.default_rng(7))
        assert a.key() == b.key()

    def test_exhausted_restarts_raise(self, rng):
        """With no per-ship budget nothing can be placed."""
        generator = PlacementGenerator(max_tries=0, max_restarts=3)
        with pytest.raises(RuntimeError):
            generator.generate(Bias.RANDOM, rng)


def _border_ring():
    bits = 0
    for i in range(10):
        bits |= cell_bit(i, 0) | cell_bit(i, 9) | cell_bit(0, i) | cell_bit(9, i)
    return bits


class TestFallbacks:
    """Bias relaxation per ship and unbiased genome restarts."""

    def test_corner_alone_cannot_place_next_to_a_full_border(self, rng):
        """Every corner origin of a 4-ship touches the occupied border."""
        generator = PlacementGenerator(max_tries=1)
        for _ in range(20):
            assert generator.place_ship(_border_ring(), 0, rng, Bias.CORNER) is None

    def test_corner_relaxes_to_random_after_half_the_budget(self, rng):
        taken = _border_ring()
        generator = PlacementGenerator(max_tries=200)
        for _ in range(10):
            placed = generator.place_ship(taken, 0, rng, Bias.CORNER)
            assert placed is not None
            x, y, horizontal, bits = placed
            assert not (halo_bits(bits) & taken)
            assert 2 <= x <= 7 and 2 <= y <= 7

    def test_failed_genome_restarts_unbiased(self, rng):
        """A biased attempt that cannot place a ship is retried with RANDOM."""
        generator = PlacementGenerator()
        place_ship = generator.place_ship
        biases = []

        def corner_fails(taken, ship_idx, rng, bias):
            biases.append(bias)
            if bias is Bias.CORNER:
                return None
            return place_ship(taken, ship_idx, rng, bias)

        generator.place_ship = corner_fails
        genome = generator.generate(Bias.CORNER, rng)
        assert genome.is_valid()
        assert biases[0] is Bias.CORNER
        assert len(biases) > len(SHIPS)
        assert all(b is Bias.RANDOM for b in biases[1:])


class TestGeneratePopulation:
    """Batches with uniqueness deduplication."""

    def test_unique_and_valid(self, rng):
        pop = PlacementGenerator().generate_population(30, rng)
        assert len(pop) == 30
        assert len({g.key() for g in pop}) == 30
        assert all(g.is_valid() for g in pop)

    def test_shortfall_is_reported_not_looped(self, rng, valid_genome, capsys):
        """If every draw is a duplicate the batch stops short with a warning."""
        generator = PlacementGenerator()
        generator.generate = lambda bias, rng: valid_genome.copy()
        pop = generator.generate_population(5, rng)
        assert len(pop) == 1
        assert "Warning" in capsys.readouterr().out
