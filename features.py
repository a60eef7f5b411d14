# ============================================================
#  features.py
#  The 20 per-cell features scored by the weight genome.
#
#  compute_features() returns a (20, 10, 10) float64 array of
#  feature planes indexed [feature, y, x], in FEATURE_NAMES
#  order.  Everything is derived from what the shooter knows:
#  its shot history and which cells have been shot.
# ============================================================

import numpy as np

import config
from chromosome import FEATURE_COUNT

BOARD = config.BOARD_SIZE

_Y, _X = np.mgrid[0:BOARD, 0:BOARD]

CENTER      = (BOARD - 1) / 2.0                  # 4.5
MAX_CENTER  = 7.07                               # ~ sqrt(50)
NO_HIT_DIST = 100.0
RECENT      = 5

PARITY = ((_X + _Y) % 2).astype(np.float64)
CENTER_BIAS = 1.0 - np.sqrt((_X - CENTER) ** 2 + (_Y - CENTER) ** 2) / MAX_CENTER
EDGE = ((_X == 0) | (_X == BOARD - 1) | (_Y == 0) | (_Y == BOARD - 1)).astype(np.float64)
CORNER = (((_X == 0) | (_X == BOARD - 1)) & ((_Y == 0) | (_Y == BOARD - 1))).astype(np.float64)


def shift(mask, dx, dy):
    """out[y, x] = mask[y + dy, x + dx], False outside the board."""
    out = np.zeros_like(mask)
    h, w = mask.shape
    src_y = slice(max(dy, 0), h + min(dy, 0))
    src_x = slice(max(dx, 0), w + min(dx, 0))
    dst_y = slice(max(-dy, 0), h + min(-dy, 0))
    dst_x = slice(max(-dx, 0), w + min(-dx, 0))
    out[dst_y, dst_x] = mask[src_y, src_x]
    return out


def _any_shift(mask, offsets):
    out = np.zeros_like(mask)
    for dx, dy in offsets:
        out |= shift(mask, dx, dy)
    return out


def can_fit(free, length):
    """1.0 where a ship of `length` can start over free cells (either way)."""
    horiz = free.copy()
    vert  = free.copy()
    for i in range(1, length):
        horiz &= shift(free, i, 0)
        vert  &= shift(free, 0, i)
    return (horiz | vert).astype(np.float64)


def _distances(cells):
    """(n, 10, 10) Euclidean distance from each cell in `cells` to every square."""
    xs = np.array([c[0] for c in cells], dtype=np.float64)[:, None, None]
    ys = np.array([c[1] for c in cells], dtype=np.float64)[:, None, None]
    return np.sqrt((_X[None] - xs) ** 2 + (_Y[None] - ys) ** 2)


def _time_decay(history, wanted):
    n = len(history)
    idx   = [i for i, (_, r) in enumerate(history) if r in wanted]
    if not idx:
        return np.zeros((BOARD, BOARD))
    cells = [history[i][0] for i in idx]
    decay = 1.0 - np.array(idx, dtype=np.float64) / n
    influence = np.exp(-_distances(cells)) * decay[:, None, None]
    return influence.max(axis=0)


def compute_features(board, history, rng, heat=None, iteration=0):
    """
    board    : Board (only which cells are shot is read)
    history  : [((x, y), "MISS" | "HIT" | "KILL"), ...] oldest first
    rng      : numpy Generator for the noise feature
    heat     : optional (10,10) occupancy fraction of expected fleets
    """
    hit_cells  = [c for c, r in history if r != "MISS"]
    miss_cells = [c for c, r in history if r == "MISS"]

    hits   = np.zeros((BOARD, BOARD), dtype=bool)
    misses = np.zeros((BOARD, BOARD), dtype=bool)
    for x, y in hit_cells:
        hits[y, x] = True
    for x, y in miss_cells:
        misses[y, x] = True

    free = np.array([[not board.is_shot(x, y) for x in range(BOARD)]
                     for y in range(BOARD)], dtype=bool)

    f = np.zeros((FEATURE_COUNT, BOARD, BOARD), dtype=np.float64)

    # 0  Heat
    if heat is None or not history:
        f[0] = 0.5
    else:
        f[0] = heat

    # 1, 2  neighbouring hits
    f[1] = _any_shift(hits, ((0, -1), (1, 0), (0, 1), (-1, 0)))
    f[2] = _any_shift(hits, ((-1, -1), (1, -1), (-1, 1), (1, 1)))

    # 3  Parity
    f[3] = PARITY

    # 4  closeness to nearest hit
    if hit_cells:
        nearest = _distances(hit_cells).min(axis=0)
    else:
        nearest = np.full((BOARD, BOARD), NO_HIT_DIST)
    f[4] = 1.0 / (1.0 + nearest)

    # 5  miss density in the 5x5 window
    window = [(dx, dy) for dy in range(-2, 3) for dx in range(-2, 3)]
    miss_count  = sum(shift(misses, dx, dy).astype(np.float64) for dx, dy in window)
    valid_count = sum(shift(np.ones_like(misses), dx, dy).astype(np.float64) for dx, dy in window)
    f[5] = miss_count / valid_count

    # 6, 7  free fraction of row / column
    f[6] = (free.sum(axis=1, keepdims=True) / BOARD) * np.ones((1, BOARD))
    f[7] = (free.sum(axis=0, keepdims=True) / BOARD) * np.ones((BOARD, 1))

    # 8, 9, 10  static geometry
    f[8]  = CENTER_BIAS
    f[9]  = EDGE
    f[10] = CORNER

    # 11..14  room for ships of length 4, 3, 2, 1
    for k, length in enumerate((4, 3, 2, 1)):
        f[11 + k] = can_fit(free, length)

    # 15  a recent miss close by
    recent = [c for c, r in history[-RECENT:] if r == "MISS"]
    if recent:
        f[15] = (_distances(recent).min(axis=0) <= 2.0).astype(np.float64)

    # 16, 17  time-decayed influence of hits / misses
    if history:
        f[16] = _time_decay(history, ("HIT", "KILL"))
        f[17] = _time_decay(history, ("MISS",))

    # 18  noise
    f[18] = rng.uniform(0.0, 0.1, size=(BOARD, BOARD))

    # 19  parity flipping each shot
    f[19] = ((_X + _Y + iteration) % 2).astype(np.float64)

    return f
