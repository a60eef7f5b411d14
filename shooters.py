# ============================================================
#  shooters.py
#  The closed set of shooting policies used as opponents and as
#  the evolved weight-genome player.
#
#  Every shooter offers the same four operations:
#    next_shot(board)                     → (x, y) or None when done
#    notify_result(x, y, hit, sunk, board)
#    reset()
#    name
#
#  Kinds:
#    random        : random hunt, hit-following target mode
#    checkerboard  : parity hunt, hit-following target mode
#    montecarlo    : sampled-fleet probability map  (pdf_bot.py)
#    feature       : weighted feature heat map      (weight genome)
# ============================================================

from collections import deque

import numpy as np

from bitboard import in_bounds
from features import compute_features

ORTHO = ((0, -1), (1, 0), (0, 1), (-1, 0))
AROUND = tuple((dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if dx or dy)

MISS_RESULT = "MISS"
HIT_RESULT  = "HIT"
KILL_RESULT = "KILL"


class Shooter:
    """Shooting policy interface."""

    name = "Shooter"

    def __init__(self, rng):
        self.rng = rng
        self.reset()

    def reset(self):
        raise NotImplementedError

    def next_shot(self, board):
        raise NotImplementedError

    def notify_result(self, x, y, hit, sunk, board):
        raise NotImplementedError


# ── Hunt / target base ───────────────────────────────────────
class HuntTargetShooter(Shooter):
    """
    Hunt with _hunt_cell() until something is hit, then work the
    neighbours of the open hits.  Once two hits line up only the two
    ends of the line are queued.  Cells around a sunk ship are excluded
    from later shots since ships never touch.
    """

    def reset(self):
        self.shots    = set()
        self.hits     = []          # hits on ships not yet sunk
        self.excluded = set()
        self.queue    = deque()

    def available(self, x, y, board=None):
        if not in_bounds(x, y) or (x, y) in self.shots or (x, y) in self.excluded:
            return False
        return board is None or not board.is_shot(x, y)

    def unknown_cells(self, board):
        return [(x, y) for y in range(board.size) for x in range(board.size)
                if self.available(x, y, board)]

    def _fire(self, cell):
        self.shots.add(cell)
        return cell

    def next_shot(self, board):
        if board.all_ships_sunk():
            return None
        while self.queue:
            cell = self.queue.popleft()
            if self.available(*cell, board):
                return self._fire(cell)

        cell = self._hunt_cell(board)
        if cell is None:
            # everything left is excluded; fall back to any unshot cell
            rest = board.unshot_cells()
            if not rest:
                return None
            cell = rest[int(self.rng.integers(len(rest)))]
        return self._fire(cell)

    def _hunt_cell(self, board):
        raise NotImplementedError

    def notify_result(self, x, y, hit, sunk, board):
        self.shots.add((x, y))
        if not hit:
            return
        if sunk:
            sunk_cells = board.ship_cells_at(x, y) or [(x, y)]
            for sx, sy in sunk_cells:
                for dx, dy in AROUND:
                    if in_bounds(sx + dx, sy + dy):
                        self.excluded.add((sx + dx, sy + dy))
            self.hits = [h for h in self.hits if h not in sunk_cells and (x, y) != h]
            self.queue.clear()
            if self.hits:
                self._update_queue()
        else:
            self.hits.append((x, y))
            self._update_queue()

    def line_targets(self):
        """Cells worth shooting next given the open hits, best first."""
        if not self.hits:
            return []
        xs = {h[0] for h in self.hits}
        ys = {h[1] for h in self.hits}
        targets = []
        if len(self.hits) >= 2 and len(xs) == 1:
            x = next(iter(xs))
            targets = [(x, min(ys) - 1), (x, max(ys) + 1)]
        elif len(self.hits) >= 2 and len(ys) == 1:
            y = next(iter(ys))
            targets = [(min(xs) - 1, y), (max(xs) + 1, y)]
        targets = [c for c in targets if self.available(*c)]
        if targets:
            return targets

        for hx, hy in reversed(self.hits):
            for dx, dy in ORTHO:
                cell = (hx + dx, hy + dy)
                if self.available(*cell) and cell not in targets:
                    targets.append(cell)
        return targets

    def _update_queue(self):
        self.queue = deque(self.line_targets())


class RandomShooter(HuntTargetShooter):
    name = "Random"

    def _hunt_cell(self, board):
        cells = self.unknown_cells(board)
        if not cells:
            return None
        return cells[int(self.rng.integers(len(cells)))]


class CheckerboardShooter(HuntTargetShooter):
    """
    Parity hunt: only cells with (x + y) % 2 == parity while the parity
    class has candidates.  Parity is drawn at reset and flips once only
    ships of length <= 2 are left afloat.
    """

    name = "Checkerboard"

    def reset(self):
        super().reset()
        self.parity  = int(self.rng.integers(2))
        self.flipped = False

    def notify_result(self, x, y, hit, sunk, board):
        super().notify_result(x, y, hit, sunk, board)
        if sunk and not self.flipped and board.largest_remaining_ship() <= 2:
            self.parity  = 1 - self.parity
            self.flipped = True

    def _hunt_cell(self, board):
        cells = self.unknown_cells(board)
        if not cells:
            return None
        preferred = [c for c in cells if (c[0] + c[1]) % 2 == self.parity]
        pick_from = preferred or cells
        return pick_from[int(self.rng.integers(len(pick_from)))]


# ── Feature-weighted shooter ─────────────────────────────────
class FeatureShooter(Shooter):
    """
    Scores every unshot cell as weights · features(cell) and fires at
    the best one.  `heat` is an optional (10,10) occupancy map of the
    elite placements the shooter expects to face.
    """

    name = "Feature-Based"

    def __init__(self, weights, rng, heat=None):
        self.weights = np.asarray(weights, dtype=np.float64)
        self.heat    = heat
        super().__init__(rng)

    def reset(self):
        self.history = []           # [((x, y), MISS|HIT|KILL), ...]

    def cell_scores(self, board):
        planes = compute_features(board, self.history, self.rng,
                                  heat=self.heat, iteration=len(self.history))
        return np.tensordot(self.weights, planes, axes=1)

    def next_shot(self, board):
        if board.all_ships_sunk():
            return None
        scores = self.cell_scores(board)
        unshot = np.zeros(scores.shape, dtype=bool)
        for x, y in board.unshot_cells():
            unshot[y, x] = True
        if not unshot.any():
            return None
        scores = np.where(unshot, scores, -np.inf)
        y, x = np.unravel_index(int(np.argmax(scores)), scores.shape)
        return int(x), int(y)

    def notify_result(self, x, y, hit, sunk, board):
        result = KILL_RESULT if sunk else (HIT_RESULT if hit else MISS_RESULT)
        self.history.append(((x, y), result))


# ── Factory ──────────────────────────────────────────────────
SHOOTER_KINDS = ("random", "checkerboard", "montecarlo", "feature")


def make_shooter(kind, rng, **kwargs):
    """
    kind: one of SHOOTER_KINDS.
      montecarlo accepts samples=N; feature needs weights=[...] and
      accepts heat=array.
    """
    if kind == "random":
        return RandomShooter(rng)
    if kind == "checkerboard":
        return CheckerboardShooter(rng)
    if kind == "montecarlo":
        from pdf_bot import MonteCarloShooter
        return MonteCarloShooter(rng, **kwargs)
    if kind == "feature":
        return FeatureShooter(kwargs.pop("weights"), rng, **kwargs)
    raise ValueError(f"unknown shooter kind: {kind!r} (expected one of {SHOOTER_KINDS})")
