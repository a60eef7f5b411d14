# ============================================================
#  bitboard.py
#  Board geometry using Python integers as 100-bit bitboards.
#  No NumPy in the hot path.
#
#  Cells are (x, y): x = column, y = row.
#  Bit index = y * 10 + x  (bit 0 = top-left, bit 99 = bottom-right)
#
#  A ship is (x, y, length, horizontal):
#    horizontal → extends along x,  vertical → extends along y
# ============================================================

import numpy as np
import config

BOARD  = config.BOARD_SIZE
TOTAL  = BOARD * BOARD   # 100 cells
FULL   = (1 << TOTAL) - 1


def _column_mask(col):
    bits = 0
    for y in range(BOARD):
        bits |= 1 << (y * BOARD + col)
    return bits

NOT_FIRST_COL = FULL & ~_column_mask(0)
NOT_LAST_COL  = FULL & ~_column_mask(BOARD - 1)


# ── Bit helpers ──────────────────────────────────────────────
def in_bounds(x, y):
    return 0 <= x < BOARD and 0 <= y < BOARD


def cell_bit(x, y):
    return 1 << (y * BOARD + x)


def ship_cells(x, y, length, horizontal):
    """Cells covered by a ship, in bounds or not."""
    if horizontal:
        return [(x + i, y) for i in range(length)]
    return [(x, y + i) for i in range(length)]


def ship_bits(x, y, length, horizontal):
    """
    Return bitmask for a ship placement, or 0 if any cell is out of bounds.
    """
    bits = 0
    for cx, cy in ship_cells(x, y, length, horizontal):
        if not in_bounds(cx, cy):
            return 0
        bits |= cell_bit(cx, cy)
    return bits


def halo_bits(bits):
    """Cells of `bits` plus their full 8-neighbourhood (no-touch zone)."""
    row = bits | ((bits << 1) & NOT_FIRST_COL) | ((bits >> 1) & NOT_LAST_COL)
    return (row | (row << BOARD) | (row >> BOARD)) & FULL


def popcount(bits):
    return bin(bits).count('1')


def iter_cells(bits):
    """Yield (x, y) for every set bit, lowest index first."""
    while bits:
        lsb = bits & (-bits)
        y, x = divmod(lsb.bit_length() - 1, BOARD)
        yield x, y
        bits &= bits - 1


def bits_to_grid(bits):
    """Convert 100-bit int → (10,10) float32 array indexed [y, x]."""
    grid = np.zeros(TOTAL, dtype=np.float32)
    for i in range(TOTAL):
        if bits & (1 << i):
            grid[i] = 1.0
    return grid.reshape(BOARD, BOARD)


# ── Placement table ──────────────────────────────────────────
# Every in-bounds placement per ship length:
#   PLACEMENTS[length] = [(x, y, horizontal, bits, halo), ...]

def _build_placements():
    table = {}
    for length in sorted(set(config.SHIPS)):
        entries = []
        for y in range(BOARD):
            for x in range(BOARD):
                for horizontal in ((True,) if length == 1 else (True, False)):
                    b = ship_bits(x, y, length, horizontal)
                    if b:
                        entries.append((x, y, horizontal, b, halo_bits(b)))
        table[length] = entries
    return table

PLACEMENTS = _build_placements()
