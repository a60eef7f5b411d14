# ============================================================
#  chromosome.py
#  The two genome kinds evolved by this project.
#
#  PlacementGenome : 30 ints, [x, y, horizontal] per ship, ship
#                    lengths fixed by position (config.SHIPS)
#  WeightGenome    : 20 floats, one weight per shooting feature
#
#  Both carry derived statistics (fitness, mean/std shots) that
#  are written once per evaluation and read-only otherwise.
# ============================================================

from dataclasses import dataclass, field, replace

import config
from bitboard import ship_bits, ship_cells, halo_bits, iter_cells

SHIPS      = config.SHIPS
N_SHIPS    = len(SHIPS)
GENE_COUNT = N_SHIPS * config.GENES_PER_SHIP   # 30

FEATURE_NAMES = (
    "Heat", "HitNeighbor", "DiagHitNeighbor", "Parity", "DistLastHit",
    "MissCluster", "RowFree", "ColFree", "CenterBias", "EdgeBias",
    "Corner", "FitLength4", "FitLength3", "FitLength2", "FitLength1",
    "RecentMissPenalty", "TimeDecayHit", "TimeDecayMiss", "RandomNoise",
    "IterationParityFlip",
)
FEATURE_COUNT = len(FEATURE_NAMES)

# Initial sampling range per feature weight, in FEATURE_NAMES order
INIT_RANGES = (
    (0.0, 1.0), (1.0, 3.0), (0.5, 2.0), (-1.0, 1.0), (0.0, 2.0),
    (-2.0, 0.0), (0.0, 1.0), (0.0, 1.0), (-1.0, 1.0), (-1.0, 1.0),
    (-1.0, 1.0), (0.0, 2.0), (0.0, 1.5), (0.0, 1.0), (-0.5, 0.5),
    (-2.0, 0.0), (-1.0, 1.0), (-1.0, 1.0), (0.0, 0.2), (-0.5, 0.5),
)


# ── Fleet (decoded placement) ────────────────────────────────
class Fleet:
    """Ten ships as (x, y, length, horizontal) with no-touch checks."""

    def __init__(self, ships):
        self.ships = list(ships)

    def masks(self):
        # 0 marks a ship that leaves the board
        return [ship_bits(x, y, l, h) for x, y, l, h in self.ships]

    def occupied_bits(self):
        bits = 0
        for m in self.masks():
            bits |= m
        return bits

    def cells(self):
        return [ship_cells(x, y, l, h) for x, y, l, h in self.ships]

    def conflicting(self):
        """Indices of ships that are out of bounds or overlap/touch another."""
        masks = self.masks()
        halos = [halo_bits(m) for m in masks]
        bad = set()
        for i, m in enumerate(masks):
            if not m:
                bad.add(i)
                continue
            for j in range(i + 1, len(masks)):
                if masks[j] and (m & halos[j]):
                    bad.add(i)
                    bad.add(j)
        return sorted(bad)

    def is_valid(self):
        if len(self.ships) != N_SHIPS:
            return False
        taken = 0
        for m in self.masks():
            if not m or (m & taken):
                return False
            taken |= halo_bits(m)
        return True

    def __len__(self):
        return len(self.ships)


# ── Placement genome ─────────────────────────────────────────
@dataclass
class PlacementGenome:
    genes: list
    fitness: float = 0.0
    mean_shots: float = 0.0
    std_shots: float = 0.0
    mean_shots_random: float = 0.0
    mean_shots_checkerboard: float = 0.0
    mean_shots_mc: float = 0.0

    def __post_init__(self):
        self.genes = [int(g) for g in self.genes]
        if len(self.genes) != GENE_COUNT:
            raise ValueError(f"placement genome needs {GENE_COUNT} genes, "
                             f"got {len(self.genes)}")

    @classmethod
    def from_ships(cls, ships):
        """ships: iterable of (x, y, horizontal), one per fleet slot."""
        genes = []
        for x, y, horizontal in ships:
            genes.extend((x, y, int(bool(horizontal))))
        return cls(genes)

    def ship(self, i):
        x, y, o = self.genes[3 * i: 3 * i + 3]
        return x, y, bool(o)

    def set_ship(self, i, x, y, horizontal):
        self.genes[3 * i: 3 * i + 3] = [int(x), int(y), int(bool(horizontal))]

    def decode(self):
        """Genes → Fleet. Orientation genes other than 0/1 count as horizontal."""
        ships = []
        for i in range(N_SHIPS):
            x, y, h = self.ship(i)
            ships.append((x, y, SHIPS[i], h))
        return Fleet(ships)

    def is_valid(self):
        if any(o not in (0, 1) for o in self.genes[2::3]):
            return False
        return self.decode().is_valid()

    def key(self):
        return tuple(self.genes)

    def copy(self):
        return replace(self, genes=list(self.genes))

    def occupied_cells(self):
        return list(iter_cells(self.decode().occupied_bits()))

    def serialize(self):
        return " ".join(str(g) for g in self.genes)

    @classmethod
    def deserialize(cls, text):
        return cls([int(tok) for tok in text.split()])


# ── Weight genome ────────────────────────────────────────────
@dataclass
class WeightGenome:
    weights: list = field(default_factory=lambda: [0.0] * FEATURE_COUNT)
    fitness: float = 0.0
    mean_shots: float = 0.0
    std_shots: float = 0.0

    def __post_init__(self):
        self.weights = [float(w) for w in self.weights]
        if len(self.weights) != FEATURE_COUNT:
            raise ValueError(f"weight genome needs {FEATURE_COUNT} weights, "
                             f"got {len(self.weights)}")

    @property
    def genes(self):
        return self.weights

    @classmethod
    def random(cls, rng):
        return cls([rng.uniform(lo, hi) for lo, hi in INIT_RANGES])

    def clamp(self, bound):
        self.weights = [min(bound, max(-bound, w)) for w in self.weights]

    def named(self):
        return dict(zip(FEATURE_NAMES, self.weights))

    def copy(self):
        return replace(self, weights=list(self.weights))
