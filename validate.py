# ============================================================
#  validate.py
#  Shooter benchmark.
#
#  Plays every shooter in the closed set against the same batch
#  of generator fleets and reports mean / std shots to win.
#  The evolved feature shooter joins in once phase 2 has written
#  results/best_weights.bin.  Optionally the evolved placements
#  are benchmarked too (how long they survive each shooter).
# ============================================================

import os
import time

import numpy as np
from tqdm import tqdm

import config
from chromosome import FEATURE_COUNT
from fitness import simulate, shot_stats
from layout_generator import PlacementGenerator, ALL_BIASES
from shooters import make_shooter
from state_io import load_weights, load_placements


def _shooters(rng, mc_samples, weights):
    entries = [
        ("random",       make_shooter("random", rng)),
        ("checkerboard", make_shooter("checkerboard", rng)),
        ("montecarlo",   make_shooter("montecarlo", rng, samples=mc_samples)),
    ]
    if weights is not None:
        entries.append(("feature", make_shooter("feature", rng, weights=weights)))
    return entries


def benchmark_shooters(n_fleets=20, games_per_fleet=1, seed=None,
                       mc_samples=config.MC_SAMPLES, weights_path=None,
                       fleets=None):
    """
    Returns {kind: {"mean": ..., "std": ..., "games": ..., "games_per_sec": ...}}.
    `fleets` overrides the generated batch (list of PlacementGenome).
    """
    rng = np.random.default_rng(config.SEED if seed is None else seed)
    weights_path = weights_path or config.WEIGHTS_FILE

    weights = None
    if os.path.exists(weights_path):
        weights = load_weights(weights_path)
        if len(weights) != FEATURE_COUNT:
            print(f"[Bench] Ignoring {weights_path}: {len(weights)} weights, "
                  f"expected {FEATURE_COUNT}")
            weights = None

    if fleets is None:
        generator = PlacementGenerator()
        fleets = [generator.generate(ALL_BIASES[i % len(ALL_BIASES)], rng)
                  for i in range(n_fleets)]

    print(f"\n[Bench] ═══ Shooter benchmark ═══")
    print(f"  Fleets          : {len(fleets)}")
    print(f"  Games per fleet : {games_per_fleet}")
    print(f"  MC samples      : {mc_samples}")
    print(f"  Feature shooter : {'yes' if weights is not None else 'no weights yet'}\n")

    results = {}
    for kind, shooter in _shooters(rng, mc_samples, weights):
        t0 = time.time()
        shots = []
        for genome in tqdm(fleets, desc=f"{shooter.name:<14}", unit="fleet"):
            shots.extend(simulate(genome.decode(), shooter, games_per_fleet))
        elapsed = max(time.time() - t0, 1e-9)
        mean, std = shot_stats(shots)
        results[kind] = {
            "mean":          mean,
            "std":           std,
            "games":         len(shots),
            "games_per_sec": len(shots) / elapsed,
        }
        print(f"  {shooter.name:<14}: {mean:6.2f} ± {std:5.2f} shots "
              f"({len(shots) / elapsed:.1f} games/sec)")

    return results


def benchmark_archive(games_per_fleet=5, seed=None, top=10,
                      mc_samples=config.MC_SAMPLES, placements_path=None):
    """
    Benchmark the evolved placements instead of fresh generator fleets.
    Returns None when phase 1 has not written an archive yet.
    """
    placements_path = placements_path or config.PLACEMENTS_FILE
    if not os.path.exists(placements_path):
        print("[Bench] Placement archive not found. Run: python run.py placement")
        return None
    fleets = load_placements(placements_path)[:top]
    print(f"[Bench] Top {len(fleets)} evolved placements from {placements_path}")
    return benchmark_shooters(games_per_fleet=games_per_fleet, seed=seed,
                              mc_samples=mc_samples, fleets=fleets)


if __name__ == "__main__":
    benchmark_shooters()
