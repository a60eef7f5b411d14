# ============================================================
#  game_engine.py
#  Battleship board and single-sided game simulation.
#
#  A game = one shooter firing at one fixed fleet until every
#  ship is sunk (or the shot cap is hit).  The number of shots
#  fired is what both GAs optimise.
# ============================================================

import numpy as np
import config
from bitboard import in_bounds, halo_bits, cell_bit

BOARD     = config.BOARD_SIZE
MAX_SHOTS = config.MAX_SHOTS

# ── Cell states ──────────────────────────────────────────────
SEA  = 0
SHIP = 1
HIT  = 2
MISS = 3
SUNK = 4


class Board:
    """
    10x10 grid indexed grid[y, x] plus per-ship bookkeeping.

    Shooters may query: is_shot, was_ship_sunk_at, all_ships_sunk,
    largest_remaining_ship, remaining_ship_lengths.
    """

    def __init__(self, size=BOARD):
        self.size     = size
        self.grid     = np.full((size, size), SEA, dtype=np.int8)
        self.ship_id  = np.full((size, size), -1, dtype=np.int16)
        self.ships    = []          # list of cell lists
        self.hits     = []          # hits per ship
        self.taken    = 0           # bitmask of ship cells
        self.shots    = 0

    # ── setup ────────────────────────────────────────────────
    def place_ship(self, cells):
        """Place one ship. Refuses out-of-bounds, overlapping or touching ships."""
        bits = 0
        for x, y in cells:
            if not in_bounds(x, y):
                return False
            bits |= cell_bit(x, y)
        if halo_bits(bits) & self.taken:
            return False

        idx = len(self.ships)
        for x, y in cells:
            self.grid[y, x]    = SHIP
            self.ship_id[y, x] = idx
        self.ships.append(list(cells))
        self.hits.append(0)
        self.taken |= bits
        return True

    def place_fleet(self, fleet):
        for cells in fleet.cells():
            if not self.place_ship(cells):
                return False
        return True

    # ── shooting ─────────────────────────────────────────────
    def shoot(self, x, y):
        """Fire at (x, y). Returns True on a hit; repeat shots change nothing."""
        state = self.grid[y, x]
        if state in (HIT, SUNK):
            return True
        if state == MISS:
            return False

        self.shots += 1
        if state == SEA:
            self.grid[y, x] = MISS
            return False

        self.grid[y, x] = HIT
        idx = self.ship_id[y, x]
        self.hits[idx] += 1
        if self.hits[idx] == len(self.ships[idx]):
            for sx, sy in self.ships[idx]:
                self.grid[sy, sx] = SUNK
        return True

    # ── queries ──────────────────────────────────────────────
    def is_shot(self, x, y):
        return self.grid[y, x] in (HIT, MISS, SUNK)

    def was_ship_sunk_at(self, x, y):
        return self.grid[y, x] == SUNK

    def ship_cells_at(self, x, y):
        idx = self.ship_id[y, x]
        return list(self.ships[idx]) if idx >= 0 else []

    def all_ships_sunk(self):
        return all(h == len(s) for s, h in zip(self.ships, self.hits))

    def remaining_ship_lengths(self):
        return sorted((len(s) for s, h in zip(self.ships, self.hits) if h < len(s)),
                      reverse=True)

    def largest_remaining_ship(self):
        remaining = self.remaining_ship_lengths()
        return remaining[0] if remaining else 0

    def unshot_cells(self):
        ys, xs = np.nonzero((self.grid == SEA) | (self.grid == SHIP))
        return list(zip(xs.tolist(), ys.tolist()))


# ── Single game ──────────────────────────────────────────────
def play_game(board, shooter, max_shots=MAX_SHOTS):
    """
    Run shooter against a fully placed board.
    Returns shots fired until every ship is sunk (capped at max_shots).
    """
    shooter.reset()
    shots = 0
    while not board.all_ships_sunk() and shots < max_shots:
        target = shooter.next_shot(board)
        if target is None:
            break
        x, y = target
        hit  = board.shoot(x, y)
        sunk = hit and board.was_ship_sunk_at(x, y)
        shooter.notify_result(x, y, hit, sunk, board)
        shots += 1
    return shots


def play_fleet(fleet, shooter, max_shots=MAX_SHOTS):
    """Place `fleet` on a fresh board and play one game against it."""
    board = Board()
    if not board.place_fleet(fleet):
        raise ValueError("fleet cannot be placed: ships overlap, touch or leave the board")
    return play_game(board, shooter, max_shots)
