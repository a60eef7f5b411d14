# ============================================================
#  pdf_bot.py
#  Probability Density Function attacker (Monte Carlo flavour).
#
#  After every shot it asks: "given all hits and misses so far,
#  where is each remaining ship most likely to be?"
#
#  Algorithm:
#    HUNT  (no open hits): sample N random fleets of the ships
#          still afloat that avoid misses, respect the no-touch
#          rule around sunk ships, and count how often each cell
#          is covered.
#    TARGET (open hits)  : enumerate every placement of every
#          remaining ship that covers at least one open hit and
#          is consistent with the board, weighted by hits covered.
#    Fire at the highest-scoring unknown cell.
# ============================================================

import numpy as np

import config
from bitboard import PLACEMENTS, TOTAL, BOARD, cell_bit, halo_bits, popcount, iter_cells
from shooters import HuntTargetShooter

SHIPS = config.SHIPS

PLACE_TRIES = 20     # rejection-sampling tries per ship per sample


# ── Core heatmap computation ─────────────────────────────────
def compute_heatmap(remaining_ship_lens, blocked_bits, hit_bits):
    """
    Count placements of the remaining ships that cover open hits.

    Parameters
    ----------
    remaining_ship_lens : list[int] — lengths of ships not yet sunk
    blocked_bits        : int  — misses plus the no-touch zone of sunk ships
    hit_bits            : int  — hits on ships that are still afloat

    Returns
    -------
    heatmap : (10, 10) float64 ndarray — higher = more likely to contain a ship
    """
    heatmap = np.zeros(TOTAL, dtype=np.float64)

    for length in set(remaining_ship_lens):
        copies = remaining_ship_lens.count(length)
        for _x, _y, _h, b, halo in PLACEMENTS[length]:
            if b & blocked_bits:
                continue
            covered = popcount(b & hit_bits)
            if hit_bits and not covered:
                continue
            # a hit next to the ship but not on it would mean two ships touch
            if halo & hit_bits & ~b:
                continue
            weight = copies * (covered if hit_bits else 1)
            pos = b & ~hit_bits
            while pos:
                lsb = pos & (-pos)
                heatmap[lsb.bit_length() - 1] += weight
                pos &= pos - 1

    return heatmap.reshape(BOARD, BOARD)


def sample_heatmap(remaining_ship_lens, blocked_bits, n_samples, rng):
    """
    Occupancy counts over n_samples random complete fleets of the
    remaining ships.  Falls back to single-ship placement counting when
    no fleet could be sampled.
    """
    candidates = {
        length: [(b, halo) for _x, _y, _h, b, halo in PLACEMENTS[length]
                 if not (b & blocked_bits)]
        for length in set(remaining_ship_lens)
    }
    order = sorted(remaining_ship_lens, reverse=True)

    counts = np.zeros(TOTAL, dtype=np.float64)
    ok_samples = 0
    for _ in range(n_samples):
        taken = 0
        occupied = 0
        for length in order:
            pool = candidates[length]
            if not pool:
                break
            placed = False
            for _try in range(PLACE_TRIES):
                b, halo = pool[int(rng.integers(len(pool)))]
                if not (b & taken):
                    taken |= halo
                    occupied |= b
                    placed = True
                    break
            if not placed:
                break
        else:
            ok_samples += 1
            for x, y in iter_cells(occupied):
                counts[y * BOARD + x] += 1.0

    if ok_samples == 0:
        return compute_heatmap(remaining_ship_lens, blocked_bits, 0)
    return counts.reshape(BOARD, BOARD)


# ── Monte Carlo shooter ──────────────────────────────────────
class MonteCarloShooter(HuntTargetShooter):
    name = "Monte Carlo"

    def __init__(self, rng, samples=config.MC_SAMPLES):
        self.samples = samples
        super().__init__(rng)

    def reset(self):
        super().reset()
        self.remaining = list(SHIPS)
        self.miss_bits = 0
        self.sunk_halo = 0

    def _blocked(self):
        return self.miss_bits | self.sunk_halo

    def _hit_bits(self):
        bits = 0
        for x, y in self.hits:
            bits |= cell_bit(x, y)
        return bits

    def heatmap(self):
        if self.hits:
            return compute_heatmap(self.remaining, self._blocked(), self._hit_bits())
        return sample_heatmap(self.remaining, self._blocked(), self.samples, self.rng)

    def next_shot(self, board):
        if board.all_ships_sunk():
            return None

        heat = self.heatmap()
        # tiny noise breaks ties randomly
        heat = heat + self.rng.uniform(0.0, 1e-6, heat.shape)
        for y in range(BOARD):
            for x in range(BOARD):
                if not self.available(x, y, board):
                    heat[y, x] = -1.0

        y, x = np.unravel_index(int(np.argmax(heat)), heat.shape)
        if heat[y, x] < 0:
            rest = board.unshot_cells()
            if not rest:
                return None
            return self._fire(rest[int(self.rng.integers(len(rest)))])
        return self._fire((int(x), int(y)))

    def notify_result(self, x, y, hit, sunk, board):
        if not hit:
            self.miss_bits |= cell_bit(x, y)
        if sunk:
            cells = board.ship_cells_at(x, y) or [(x, y)]
            bits = 0
            for cx, cy in cells:
                bits |= cell_bit(cx, cy)
            self.sunk_halo |= halo_bits(bits)
            if len(cells) in self.remaining:
                self.remaining.remove(len(cells))
        super().notify_result(x, y, hit, sunk, board)
