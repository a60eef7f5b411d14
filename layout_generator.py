# ============================================================
#  layout_generator.py
#  Constrained random generator for valid fleet placements.
#
#  Each ship (longest first) gets a random orientation and a
#  candidate origin drawn according to a placement bias:
#    EDGE   : along one of the four borders
#    CORNER : inside one of the four 2x2 corner regions
#    CENTER : near the middle (tighter for the 3 longest ships)
#    RANDOM : anywhere the ship fits on the board
#  A candidate is kept only if it is in bounds and no cell of
#  it touches (8-neighbourhood) an already placed ship.
#
#  After half the per-ship budget the bias silently relaxes to
#  RANDOM; if a ship cannot be placed at all the whole genome
#  restarts unbiased.
# ============================================================

from enum import Enum

from tqdm import tqdm

import config
from bitboard import ship_bits, halo_bits, BOARD
from chromosome import PlacementGenome, SHIPS


class Bias(Enum):
    EDGE   = "edge"
    CORNER = "corner"
    CENTER = "center"
    RANDOM = "random"

ALL_BIASES = (Bias.EDGE, Bias.CORNER, Bias.CENTER, Bias.RANDOM)


def _uniform_int(rng, lo, hi):
    """Inclusive on both ends."""
    return int(rng.integers(lo, hi + 1))


# ── Candidate origin per bias ────────────────────────────────
def random_origin(length, horizontal, rng, bias=Bias.RANDOM, ship_idx=0):
    max_x = BOARD - length if horizontal else BOARD - 1
    max_y = BOARD - 1 if horizontal else BOARD - length

    if bias is Bias.EDGE:
        edge = _uniform_int(rng, 0, 3)
        if edge == 0:      # top
            return _uniform_int(rng, 0, max_x), 0
        if edge == 1:      # right
            return max_x, _uniform_int(rng, 0, max_y)
        if edge == 2:      # bottom
            return _uniform_int(rng, 0, max_x), max_y
        return 0, _uniform_int(rng, 0, max_y)   # left

    if bias is Bias.CORNER:
        corner = _uniform_int(rng, 0, 3)
        x = _uniform_int(rng, 0, 1) if corner in (0, 3) else _uniform_int(rng, BOARD - 2, BOARD - 1)
        y = _uniform_int(rng, 0, 1) if corner in (0, 1) else _uniform_int(rng, BOARD - 2, BOARD - 1)
        return min(x, max_x), min(y, max_y)

    if bias is Bias.CENTER:
        lo, hi = (3, 6) if ship_idx < 3 else (2, 7)
        span_x = length - 1 if horizontal else 0
        span_y = 0 if horizontal else length - 1
        return (_uniform_int(rng, lo, max(lo, hi - span_x)),
                _uniform_int(rng, lo, max(lo, hi - span_y)))

    return _uniform_int(rng, 0, max_x), _uniform_int(rng, 0, max_y)


# ── Generator ────────────────────────────────────────────────
class PlacementGenerator:
    def __init__(self, max_tries=config.GENERATOR_MAX_TRIES,
                 max_restarts=config.GENERATOR_MAX_RESTARTS):
        self.max_tries    = max_tries
        self.max_restarts = max_restarts

    @staticmethod
    def fits(taken, x, y, length, horizontal):
        """
        taken: bitmask of occupied cells. The ship fits if it stays on the
        board and none of its cells or their neighbours is taken.
        """
        b = ship_bits(x, y, length, horizontal)
        return b != 0 and not (halo_bits(b) & taken)

    def place_ship(self, taken, ship_idx, rng, bias):
        """Returns (x, y, horizontal, bits) or None once the budget is spent."""
        length = SHIPS[ship_idx]
        horizontal = bool(rng.random() < 0.5)
        for t in range(self.max_tries):
            x, y = random_origin(length, horizontal, rng, bias, ship_idx)
            if self.fits(taken, x, y, length, horizontal):
                return x, y, horizontal, ship_bits(x, y, length, horizontal)
            if t > self.max_tries // 2:
                bias = Bias.RANDOM
        return None

    def generate(self, bias, rng):
        """One valid PlacementGenome. Raises RuntimeError if restarts run out."""
        for _restart in range(self.max_restarts):
            genome = self._try_generate(bias, rng)
            if genome is not None:
                return genome
            bias = Bias.RANDOM
        raise RuntimeError(f"Failed to generate placement after "
                           f"{self.max_restarts} restarts")

    def _try_generate(self, bias, rng):
        taken = 0
        ships = []
        for s in range(len(SHIPS)):
            placed = self.place_ship(taken, s, rng, bias)
            if placed is None:
                return None
            x, y, horizontal, b = placed
            taken |= b
            ships.append((x, y, horizontal))

            relax_prob = 0.1 + s * 0.05
            if rng.random() < relax_prob:
                bias = Bias.RANDOM
        return PlacementGenome.from_ships(ships)

    def generate_population(self, n, rng, progress=False):
        """
        Up to n unique genomes, bias drawn uniformly per genome.
        Falls back to unbiased generation when uniqueness stalls and
        returns fewer than n (with a warning) rather than looping forever.
        """
        seen = set()
        pop  = []

        with tqdm(total=n, desc="Init population", unit="layout",
                  disable=not progress) as bar:
            for phase_biased in (True, False):
                attempts = 0
                while len(pop) < n and attempts < n * 10:
                    attempts += 1
                    if phase_biased:
                        bias = ALL_BIASES[_uniform_int(rng, 0, 3)]
                    else:
                        bias = Bias.RANDOM
                    genome = self.generate(bias, rng)
                    if genome.key() in seen:
                        continue
                    seen.add(genome.key())
                    pop.append(genome)
                    bar.update(1)

        if len(pop) < n:
            print(f"[GA] Warning: only {len(pop)} of {n} unique placements generated")
        return pop
