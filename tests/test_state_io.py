"""Tests for binary persistence."""

import os

import numpy as np
import pytest

from chromosome import PlacementGenome, WeightGenome
from placement_pool import PlacementPool
from state_io import (
    encode_state, decode_state, save_state, load_state,
    save_placements, load_placements, load_pool_from_placements,
    save_weights, load_weights, load_weight_genome,
)


@pytest.fixture
def scored(valid_genome):
    valid_genome.fitness = 41.25
    valid_genome.mean_shots_random = 60.0
    valid_genome.mean_shots_checkerboard = 45.5
    valid_genome.mean_shots_mc = 30.25
    return valid_genome


class TestStateLayout:
    """Byte layout of the resumable snapshot."""

    def test_placement_state_bytes(self, scored):
        data = encode_state(7, [scored], 0.04)
        # header 4+8+8, genome 8 + 30*4 + 8 + 3*8
        assert len(data) == 20 + 8 + 120 + 8 + 24
        assert np.frombuffer(data[:4], '<i4')[0] == 7
        assert np.frombuffer(data[4:12], '<f8')[0] == 0.04
        assert np.frombuffer(data[12:20], '<u8')[0] == 1
        assert np.frombuffer(data[20:28], '<u8')[0] == 30
        assert np.frombuffer(data[28:148], '<i4').tolist() == scored.genes
        assert np.frombuffer(data[148:156], '<f8')[0] == 41.25

    def test_weight_state_has_no_opponent_means(self):
        genome = WeightGenome([0.5] * 20, fitness=-40.0)
        data = encode_state(3, [genome, genome], 0.3)
        assert len(data) == 20 + 2 * (8 + 160 + 8)

    def test_decode_restores_genomes(self, scored):
        gen, pop, rate = decode_state(encode_state(7, [scored], 0.04), PlacementGenome)
        assert (gen, rate) == (7, 0.04)
        assert pop[0].key() == scored.key()
        assert pop[0].fitness == 41.25
        assert pop[0].mean_shots_checkerboard == 45.5
        assert pop[0].mean_shots_mc == 30.25

    def test_decode_weights(self):
        genome = WeightGenome([float(i) for i in range(20)], fitness=-38.5)
        _, pop, _ = decode_state(encode_state(1, [genome], 0.3), WeightGenome)
        assert pop[0].weights == genome.weights
        assert pop[0].fitness == -38.5

    def test_truncated_and_trailing(self, scored):
        data = encode_state(7, [scored], 0.04)
        with pytest.raises(ValueError):
            decode_state(data[:-1], PlacementGenome)
        with pytest.raises(ValueError):
            decode_state(data + b"\0", PlacementGenome)


class TestStateFiles:
    """save_state / load_state on disk."""

    def test_save_and_load(self, tmp_path, scored):
        path = str(tmp_path / "ckpt" / "state.dat")
        save_state(path, 4, [scored], 0.04)
        assert not os.path.exists(path + ".tmp")
        gen, pop, _ = load_state(path, PlacementGenome)
        assert gen == 4 and pop[0].key() == scored.key()

    def test_missing_or_corrupt_is_none(self, tmp_path):
        assert load_state(str(tmp_path / "nope.dat"), PlacementGenome) is None
        bad = tmp_path / "bad.dat"
        bad.write_bytes(b"\x01\x02\x03")
        assert load_state(str(bad), PlacementGenome) is None


class TestArchives:
    """Placement and weight archives."""

    def test_placement_archive(self, tmp_path, valid_genome):
        path = str(tmp_path / "placements.bin")
        other = valid_genome.copy()
        other.set_ship(9, 9, 6, True)
        save_placements(path, [valid_genome, other])
        assert os.path.getsize(path) == 60
        loaded = load_placements(path)
        assert [g.key() for g in loaded] == [valid_genome.key(), other.key()]

    def test_placement_archive_bad_size(self, tmp_path):
        path = tmp_path / "broken.bin"
        path.write_bytes(b"\0" * 31)
        with pytest.raises(ValueError):
            load_placements(str(path))

    def test_pool_from_archive(self, tmp_path, valid_genome):
        path = str(tmp_path / "placements.bin")
        save_placements(path, [valid_genome] * 3)
        pool = PlacementPool(best_size=2, random_size=5)
        assert load_pool_from_placements(path, pool)
        assert len(pool.best) == 2 and len(pool.random) == 1

    def test_pool_from_small_or_missing_archive(self, tmp_path, valid_genome):
        path = str(tmp_path / "placements.bin")
        save_placements(path, [valid_genome])
        assert not load_pool_from_placements(path, PlacementPool(best_size=2))
        assert not load_pool_from_placements(str(tmp_path / "none.bin"), PlacementPool())

    def test_weight_archive(self, tmp_path):
        path = str(tmp_path / "weights.bin")
        weights = [0.25 * i - 2.0 for i in range(20)]
        save_weights(path, weights)
        assert os.path.getsize(path) == 160
        assert load_weights(path) == weights
        assert load_weight_genome(path).weights == weights
