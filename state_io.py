# ============================================================
#  state_io.py
#  Binary persistence for GA runs.
#
#  Resumable state (little-endian):
#    int32   generation
#    float64 mutation_rate
#    uint64  population_size
#    per genome:
#      uint64  gene_count
#      genes   (int32 each for placements, float64 for weights)
#      float64 fitness
#      3 x float64 mean shots vs random / checkerboard / MC
#                  (placement genomes only)
#
#  Placement archive : 30 uint8 per genome, back to back
#  Weight archive    : float64 per weight
#
#  All writes go to a temp file first, then os.replace().
# ============================================================

import os

import numpy as np

from chromosome import PlacementGenome, WeightGenome, GENE_COUNT

_I32 = np.dtype('<i4')
_U64 = np.dtype('<u8')
_F64 = np.dtype('<f8')
_U8  = np.dtype('u1')


def _atomic_write(path, payload):
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    tmp = path + ".tmp"
    with open(tmp, 'wb') as f:
        f.write(payload)
    os.replace(tmp, path)


class _Reader:
    def __init__(self, data):
        self.data   = data
        self.offset = 0

    def take(self, dtype, count=1):
        end = self.offset + dtype.itemsize * count
        if end > len(self.data):
            raise ValueError(f"state file truncated at byte {self.offset}")
        values = np.frombuffer(self.data, dtype=dtype, count=count, offset=self.offset)
        self.offset = end
        return values

    def one(self, dtype):
        return self.take(dtype)[0]


# ── Resumable state ──────────────────────────────────────────
def encode_state(generation, population, mutation_rate):
    chunks = [
        np.array([generation], dtype=_I32).tobytes(),
        np.array([mutation_rate], dtype=_F64).tobytes(),
        np.array([len(population)], dtype=_U64).tobytes(),
    ]
    for genome in population:
        placement = isinstance(genome, PlacementGenome)
        genes = genome.genes
        chunks.append(np.array([len(genes)], dtype=_U64).tobytes())
        chunks.append(np.array(genes, dtype=_I32 if placement else _F64).tobytes())
        chunks.append(np.array([genome.fitness], dtype=_F64).tobytes())
        if placement:
            chunks.append(np.array([genome.mean_shots_random,
                                    genome.mean_shots_checkerboard,
                                    genome.mean_shots_mc], dtype=_F64).tobytes())
    return b"".join(chunks)


def decode_state(data, genome_cls):
    """Returns (generation, population, mutation_rate)."""
    placement = genome_cls is PlacementGenome
    reader = _Reader(data)
    generation    = int(reader.one(_I32))
    mutation_rate = float(reader.one(_F64))
    pop_size      = int(reader.one(_U64))

    population = []
    for _ in range(pop_size):
        n_genes = int(reader.one(_U64))
        genes   = reader.take(_I32 if placement else _F64, n_genes).tolist()
        genome  = genome_cls(genes)
        genome.fitness = float(reader.one(_F64))
        if placement:
            r, c, m = reader.take(_F64, 3).tolist()
            genome.mean_shots_random       = r
            genome.mean_shots_checkerboard = c
            genome.mean_shots_mc           = m
        population.append(genome)

    if reader.offset != len(data):
        raise ValueError(f"{len(data) - reader.offset} trailing bytes in state file")
    return generation, population, mutation_rate


def save_state(path, generation, population, mutation_rate):
    _atomic_write(path, encode_state(generation, population, mutation_rate))
    print(f"[IO] ✓ State saved at generation {generation} → {path}")


def load_state(path, genome_cls):
    """Returns (generation, population, mutation_rate) or None if unusable."""
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'rb') as f:
            return decode_state(f.read(), genome_cls)
    except (OSError, ValueError) as e:
        print(f"[IO] Warning: state load failed ({e}) — starting fresh")
        return None


# ── Placement archive ────────────────────────────────────────
def save_placements(path, genomes):
    rows = []
    for genome in genomes:
        if len(genome.genes) != GENE_COUNT:
            raise ValueError("invalid gene count in placement genome")
        rows.append([g & 0xFF for g in genome.genes])
    _atomic_write(path, np.array(rows, dtype=_U8).tobytes())


def load_placements(path):
    with open(path, 'rb') as f:
        data = f.read()
    if len(data) % GENE_COUNT:
        raise ValueError(f"{path}: size {len(data)} is not a multiple of {GENE_COUNT}")
    raw = np.frombuffer(data, dtype=_U8).reshape(-1, GENE_COUNT)
    return [PlacementGenome(row.tolist()) for row in raw]


def load_pool_from_placements(path, pool):
    """
    Fill `pool` from a placement archive: the first best_size placements
    become the elite bucket, the rest go to the random bucket.
    Returns False if the archive is missing, unreadable or too small.
    """
    try:
        placements = load_placements(path)
    except (OSError, ValueError) as e:
        print(f"[Pool] Could not read placements ({e})")
        return False

    placements = [p for p in placements if p.is_valid()]
    if len(placements) < pool.best_size:
        print(f"[Pool] {path} holds {len(placements)} valid placements, "
              f"need {pool.best_size} for the elite bucket")
        return False

    pool.set_best(placements[:pool.best_size])
    for p in placements[pool.best_size:]:
        pool.add_placement(p)
    return True


# ── Weight archive ───────────────────────────────────────────
def save_weights(path, weights):
    _atomic_write(path, np.asarray(weights, dtype=_F64).tobytes())


def load_weights(path):
    with open(path, 'rb') as f:
        data = f.read()
    usable = len(data) - len(data) % _F64.itemsize
    return np.frombuffer(data[:usable], dtype=_F64).tolist()


def load_weight_genome(path):
    return WeightGenome(load_weights(path))
