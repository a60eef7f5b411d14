# ============================================================
#  repair.py
#  Bounded local-search repair for invalid placement genomes.
#
#  Crossover and mutation routinely produce fleets that overlap,
#  touch or leave the board.  Repair picks a conflicting ship,
#  lifts it off the board and tries to drop it nearby (±jitter,
#  random orientation).  If no nearby spot is free it makes one
#  fully random attempt.  Once the attempt budget is spent the
#  genome is replaced by a fresh generator output, so repair()
#  always leaves a valid genome behind.
# ============================================================

import config
from bitboard import ship_bits, halo_bits, BOARD
from chromosome import SHIPS
from layout_generator import PlacementGenerator, Bias, random_origin


def _clamp_origin(x, y, length, horizontal):
    max_x = BOARD - length if horizontal else BOARD - 1
    max_y = BOARD - 1 if horizontal else BOARD - length
    return min(max(x, 0), max_x), min(max(y, 0), max_y)


class RepairOperator:
    def __init__(self, generator=None,
                 max_attempts=config.REPAIR_ATTEMPTS,
                 local_tries=config.REPAIR_LOCAL_TRIES,
                 jitter=config.REPAIR_JITTER):
        self.generator    = generator or PlacementGenerator()
        self.max_attempts = max_attempts
        self.local_tries  = local_tries
        self.jitter       = jitter

        # observability counters
        self.repaired_count    = 0
        self.regenerated_count = 0

    def _blocked_by_others(self, genome, skip):
        blocked = 0
        for i in range(len(SHIPS)):
            if i == skip:
                continue
            x, y, h = genome.ship(i)
            blocked |= halo_bits(ship_bits(x, y, SHIPS[i], h))
        return blocked

    def relocate(self, genome, ship_idx, rng):
        """Move one ship to a free spot. Returns True if it was moved."""
        length = SHIPS[ship_idx]
        x0, y0, _ = genome.ship(ship_idx)
        blocked = self._blocked_by_others(genome, ship_idx)

        for _ in range(self.local_tries):
            horizontal = bool(rng.random() < 0.5)
            dx, dy = rng.integers(-self.jitter, self.jitter + 1, size=2)
            x, y = _clamp_origin(x0 + int(dx), y0 + int(dy), length, horizontal)
            if not (ship_bits(x, y, length, horizontal) & blocked):
                genome.set_ship(ship_idx, x, y, horizontal)
                return True

        # one fully random attempt
        horizontal = bool(rng.random() < 0.5)
        x, y = random_origin(length, horizontal, rng, Bias.RANDOM)
        if not (ship_bits(x, y, length, horizontal) & blocked):
            genome.set_ship(ship_idx, x, y, horizontal)
            return True
        return False

    def repair(self, genome, rng):
        """
        Make `genome` valid in place. Returns True (always, by substitution
        when local search fails); stats fields are left untouched.
        """
        if genome.is_valid():
            return True

        # orientation genes outside {0,1} are normalised first
        for i in range(len(SHIPS)):
            x, y, h = genome.ship(i)
            genome.set_ship(i, x, y, h)

        for _ in range(self.max_attempts):
            conflicting = genome.decode().conflicting()
            if not conflicting:
                break
            ship_idx = conflicting[int(rng.integers(len(conflicting)))]
            self.relocate(genome, ship_idx, rng)

        if genome.is_valid():
            self.repaired_count += 1
            return True

        fresh = self.generator.generate(Bias.RANDOM, rng)
        genome.genes[:] = fresh.genes
        self.regenerated_count += 1
        return genome.is_valid()
