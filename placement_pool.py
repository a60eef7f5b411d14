# ============================================================
#  placement_pool.py
#  Opponent fleets for the shooting-weight GA.
#
#  Two buckets:
#    best   : elite placements from a placement-GA run (set whole)
#    random : valid generator placements (FIFO, oldest evicted)
#  sample() draws from best with probability best_prob, else
#  from random.
# ============================================================

import numpy as np

import config
from bitboard import BOARD
from genetic_algorithm import ConfigError, PreconditionError


class PlacementPool:
    def __init__(self, best_size=config.POOL_BEST_SIZE,
                 random_size=config.POOL_RANDOM_SIZE,
                 best_prob=config.POOL_BEST_PROB):
        if not 0.0 <= best_prob <= 1.0:
            raise ConfigError(f"best_prob must be in [0, 1], got {best_prob}")
        if best_size < 0 or random_size < 0:
            raise ConfigError("pool bucket sizes must be non-negative")
        self.best_size   = best_size
        self.random_size = random_size
        self.best_prob   = best_prob
        self.best        = []
        self.random      = []

    # ── filling ──────────────────────────────────────────────
    def set_best(self, placements):
        placements = [p.copy() for p in placements]
        if len(placements) != self.best_size:
            raise ValueError(f"best bucket needs exactly {self.best_size} "
                             f"placements, got {len(placements)}")
        self.best = placements

    def set_random(self, placements):
        placements = [p.copy() for p in placements]
        if len(placements) != self.random_size:
            raise ValueError(f"random bucket needs exactly {self.random_size} "
                             f"placements, got {len(placements)}")
        self.random = placements

    def add_placement(self, placement):
        """Append to the random bucket, evicting the oldest entries when full."""
        self.random.append(placement.copy())
        while len(self.random) > self.random_size:
            self.random.pop(0)

    # ── queries ──────────────────────────────────────────────
    def is_ready(self):
        """Both buckets at their configured size, and something to draw."""
        return (len(self.best) == self.best_size
                and len(self.random) == self.random_size
                and len(self) > 0)

    def sample(self, rng):
        if not self.is_ready():
            raise PreconditionError(
                f"placement pool not populated: best {len(self.best)}/{self.best_size}, "
                f"random {len(self.random)}/{self.random_size}")
        if not self.random:
            bucket = self.best
        elif not self.best:
            bucket = self.random
        else:
            bucket = self.best if rng.random() < self.best_prob else self.random
        return bucket[int(rng.integers(len(bucket)))]

    def get_placement(self, index):
        """Index over best then random."""
        if 0 <= index < len(self.best):
            return self.best[index]
        if len(self.best) <= index < len(self):
            return self.random[index - len(self.best)]
        raise IndexError(f"pool index {index} out of range (size {len(self)})")

    def heat_map(self):
        """(10,10) fraction of best placements covering each cell, or None."""
        if not self.best:
            return None
        heat = np.zeros((BOARD, BOARD), dtype=np.float64)
        for placement in self.best:
            for x, y in placement.occupied_cells():
                heat[y, x] += 1.0
        return heat / len(self.best)

    def __len__(self):
        return len(self.best) + len(self.random)

    def empty(self):
        return len(self) == 0
