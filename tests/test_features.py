"""Tests for the 20 shooting feature planes."""

import numpy as np
import pytest

from chromosome import FEATURE_NAMES
from features import compute_features, can_fit, shift
from game_engine import Board


def planes(history=(), heat=None, iteration=0, board=None, seed=0):
    return compute_features(board or Board(), list(history),
                            np.random.default_rng(seed), heat=heat, iteration=iteration)


def index(name):
    return FEATURE_NAMES.index(name)


class TestHelpers:
    """Array shifting and ship-fit maps."""

    def test_shift(self):
        mask = np.zeros((10, 10), dtype=bool)
        mask[5, 5] = True
        assert shift(mask, 1, 0)[5, 4]
        assert shift(mask, 0, -1)[6, 5]
        assert shift(mask, 9, 0).sum() == 0

    def test_can_fit_open_board(self):
        free = np.ones((10, 10), dtype=bool)
        fit4 = can_fit(free, 4)
        assert fit4[6, 6] == 1.0
        assert fit4[9, 9] == 0.0
        assert can_fit(free, 1).sum() == 100

    def test_can_fit_blocked(self):
        free = np.ones((10, 10), dtype=bool)
        free[0, 1] = False
        free[1, 0] = False
        assert can_fit(free, 2)[0, 0] == 0.0


class TestStaticPlanes:
    """Planes that do not depend on the shot history."""

    def test_shape_and_order(self):
        f = planes()
        assert f.shape == (20, 10, 10)
        assert len(FEATURE_NAMES) == 20

    def test_heat_neutral_without_history(self):
        f = planes(heat=np.full((10, 10), 0.3))
        assert (f[index("Heat")] == 0.5).all()

    def test_heat_used_with_history(self):
        f = planes(history=[((0, 0), "MISS")], heat=np.full((10, 10), 0.3))
        assert np.allclose(f[index("Heat")], 0.3)

    def test_geometry(self):
        f = planes()
        assert f[index("Corner")].sum() == 4
        assert f[index("EdgeBias")].sum() == 36
        assert f[index("Parity")][0, 1] == 1.0
        assert f[index("CenterBias")][4, 4] > f[index("CenterBias")][0, 0]

    def test_noise_range(self):
        noise = planes()[index("RandomNoise")]
        assert (noise >= 0.0).all() and (noise < 0.1).all()

    def test_iteration_parity_flips(self):
        a = planes(iteration=0)[index("IterationParityFlip")]
        b = planes(iteration=1)[index("IterationParityFlip")]
        assert np.array_equal(a, 1.0 - b)


class TestHistoryPlanes:
    """Planes driven by previous shots."""

    def test_hit_neighbours(self):
        f = planes(history=[((5, 5), "HIT")])
        assert f[index("HitNeighbor")][4, 5] == 1.0
        assert f[index("HitNeighbor")][5, 5] == 0.0
        assert f[index("DiagHitNeighbor")][4, 4] == 1.0
        assert f[index("DistLastHit")][5, 5] == pytest.approx(1.0)

    def test_no_hits_distance(self):
        f = planes()
        assert np.allclose(f[index("DistLastHit")], 1.0 / 101.0)

    def test_row_and_column_free(self):
        board = Board()
        for x in range(10):
            board.shoot(x, 0)
        history = [((x, 0), "MISS") for x in range(10)]
        f = planes(history=history, board=board)
        assert (f[index("RowFree")][0] == 0.0).all()
        assert (f[index("RowFree")][1] == 1.0).all()
        assert np.allclose(f[index("ColFree")], 0.9)

    def test_recent_miss_penalty(self):
        f = planes(history=[((0, 0), "MISS")])
        plane = f[index("RecentMissPenalty")]
        assert plane[2, 0] == 1.0 and plane[3, 3] == 0.0

    def test_time_decay(self):
        f = planes(history=[((2, 2), "HIT"), ((7, 7), "MISS")])
        hit = f[index("TimeDecayHit")]
        assert hit[2, 2] == pytest.approx(1.0)
        assert hit[2, 3] == pytest.approx(np.exp(-1.0))
        assert f[index("TimeDecayMiss")][7, 7] == pytest.approx(0.5)

    def test_miss_cluster(self):
        f = planes(history=[((0, 0), "MISS")])
        assert f[index("MissCluster")][0, 0] == pytest.approx(1.0 / 9.0)
        assert f[index("MissCluster")][5, 5] == 0.0
