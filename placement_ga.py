# ============================================================
#  placement_ga.py
#  Phase 1: evolve fleet placements that are hard to sink.
#
#  Fitness = weighted mean shots needed by the random,
#  checkerboard and Monte Carlo shooters (see fitness.py).
#
#  RESUME SUPPORT:
#    Every PGA_SAVE_EVERY generations → binary state snapshot
#    On restart → loads the snapshot and continues
#    Ctrl+C → finishes the current generation, saves, exits
#
#  OUTPUTS:
#    results/best_placements.bin  ← top PGA_TOP_KEEP genomes (phase 2 input)
#    results/best_placement.txt   ← best genome + per-shooter means
#    results/placement_report_*.txt
#    logs/placement_ga_log.csv
# ============================================================

import os
import time
import signal

import numpy as np

import config
from chromosome import PlacementGenome
from fitness import PlacementFitness, SimulationConfig
from genetic_algorithm import EvolutionEngine, PlacementOperators
from state_io import save_state, load_state, save_placements
from visualize import layout_ascii, write_placement_report

_stop_requested = False

def _handle_signal(sig, frame):
    global _stop_requested
    print("\n[GA] Stop requested — saving after this generation...")
    _stop_requested = True

def _install_signal_handlers():
    previous = {s: signal.getsignal(s) for s in (signal.SIGINT, signal.SIGTERM)}
    for s in previous:
        signal.signal(s, _handle_signal)
    return previous

def _restore_signal_handlers(previous):
    for s, handler in previous.items():
        signal.signal(s, handler)


def write_best_placement(path, genome):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, 'w') as f:
        f.write("# Best placement genome\n")
        f.write(f"# Fitness: {genome.fitness:.4f}\n")
        f.write(f"# Mean shots (Random): {genome.mean_shots_random:.2f}\n")
        f.write(f"# Mean shots (Checkerboard): {genome.mean_shots_checkerboard:.2f}\n")
        f.write(f"# Mean shots (Monte Carlo): {genome.mean_shots_mc:.2f}\n")
        f.write(genome.serialize() + "\n")


_HEADER_FIELDS = {
    "Fitness":                  "fitness",
    "Mean shots (Random)":       "mean_shots_random",
    "Mean shots (Checkerboard)": "mean_shots_checkerboard",
    "Mean shots (Monte Carlo)":  "mean_shots_mc",
}

def read_best_placement(path):
    stats = {}
    genes = None
    with open(path) as f:
        for ln in f:
            ln = ln.strip()
            if ln.startswith('#'):
                label, _, value = ln.lstrip('# ').partition(':')
                if label in _HEADER_FIELDS:
                    stats[_HEADER_FIELDS[label]] = float(value)
            elif ln and genes is None:
                genes = ln
    if genes is None:
        raise ValueError(f"{path}: no genome line")
    genome = PlacementGenome.deserialize(genes)
    for attr, value in stats.items():
        setattr(genome, attr, value)
    return genome


# ── Main placement GA loop ───────────────────────────────────
def run_placement_ga(generations=None, seed=None, workers=None,
                     population_size=None, sim=None, resume=True):
    global _stop_requested
    _stop_requested = False

    generations     = generations or config.PGA_GENERATIONS
    population_size = population_size or config.PGA_POPULATION
    workers         = workers or config.WORKERS
    seed            = config.SEED if seed is None else seed
    sim             = sim or SimulationConfig()

    os.makedirs(config.CKPT_DIR, exist_ok=True)
    os.makedirs(config.LOG_DIR,  exist_ok=True)

    rng        = np.random.default_rng(seed)
    operators  = PlacementOperators()
    fitness_fn = PlacementFitness()
    engine     = EvolutionEngine(operators, population_size,
                                 config.PGA_CROSSOVER, config.PGA_MUTATION,
                                 min(config.PGA_TOURNAMENT, population_size),
                                 min(config.PGA_ELITE, population_size),
                                 workers=workers, progress=True)

    # Resume or fresh start
    state = load_state(config.PLACEMENT_STATE_FILE, PlacementGenome) if resume else None
    fresh = True
    if state is not None:
        start_gen, population, _mut = state
        if len(population) == population_size:
            engine.initialize_with_population(population, start_gen)
            fresh = False
            print(f"\n[GA] ═══ Resuming placement GA from generation {start_gen} ═══")
            print(f"[GA] Best fitness: {engine.best_fitness():.2f} | "
                  f"Mean: {engine.average_fitness():.2f}\n")
        else:
            print(f"[GA] Saved population has {len(population)} genomes, "
                  f"expected {population_size} — starting fresh")

    if fresh:
        print(f"\n[GA] ═══ Starting placement GA (fresh) ═══")
        print(f"  Population : {population_size:,}")
        print(f"  Generations: {generations}")
        print(f"  Fitness    : {sim.games_random}/{sim.games_checker}/{sim.games_mc} "
              f"games vs random/checkerboard/MC ({sim.mc_samples} samples)")
        print(f"  Weights    : {sim.weights}")
        print(f"  CPU workers: {workers}\n")

    log_path = config.PLACEMENT_LOG_FILE
    write_header = fresh or not os.path.exists(log_path)
    best_per_generation = {}
    t_start = time.time()

    previous_handlers = _install_signal_handlers()
    try:
        with open(log_path, 'w' if fresh else 'a') as log:
            if write_header:
                log.write("generation,best_fitness,mean_fitness,mutation_rate,"
                          "top5_mean,regenerated,elapsed_h\n")

            def on_generation(eng):
                gen  = eng.generation
                best = eng.population[0]
                mean = eng.average_fitness()
                top5 = float(np.mean([g.fitness for g in eng.population[:5]]))
                elapsed = time.time() - t_start
                best_per_generation[gen] = best.copy()

                print(f"Gen {gen:>4}/{generations} | best={best.fitness:.2f} | "
                      f"mean={mean:.2f} | top5={top5:.2f} | "
                      f"R/C/MC={best.mean_shots_random:.1f}/"
                      f"{best.mean_shots_checkerboard:.1f}/{best.mean_shots_mc:.1f} | "
                      f"regen={operators.regenerated_count}")

                log.write(f"{gen},{best.fitness:.4f},{mean:.4f},{eng.mutation_rate:.4f},"
                          f"{top5:.4f},{operators.regenerated_count},{elapsed/3600:.4f}\n")
                log.flush()

                if gen % config.PGA_SAVE_EVERY == 0 or _stop_requested:
                    save_state(config.PLACEMENT_STATE_FILE, gen, eng.population,
                               eng.mutation_rate)

            if fresh:
                print("[GA] Initializing population...")
                engine.initialize_population(fitness_fn, sim, rng)
                on_generation(engine)

            best = engine.evolve(generations, config.PGA_TARGET, fitness_fn, sim, rng,
                                 on_generation=on_generation,
                                 should_stop=lambda: _stop_requested)
    finally:
        _restore_signal_handlers(previous_handlers)

    # ── Final save ────────────────────────────────────────────
    save_state(config.PLACEMENT_STATE_FILE, engine.generation,
               engine.population, engine.mutation_rate)

    top = engine.top_n(config.PGA_TOP_KEEP)
    save_placements(config.PLACEMENTS_FILE, top)
    write_best_placement(config.BEST_PLACEMENT_FILE, best)

    run_id = time.strftime("%Y%m%d_%H%M%S")
    report = os.path.join(config.RESULTS_DIR, f"placement_report_{run_id}.txt")
    write_placement_report(report, top, best_per_generation)

    print(f"\n[GA] ═══ Placement GA Complete ═══")
    print(f"  Generations run : {engine.generation}")
    print(f"  Best fitness    : {best.fitness:.2f}")
    print(f"  Mean shots      : random={best.mean_shots_random:.1f} | "
          f"checkerboard={best.mean_shots_checkerboard:.1f} | "
          f"monte carlo={best.mean_shots_mc:.1f}")
    print(f"  Regenerated     : {operators.regenerated_count} offspring")
    print(layout_ascii(best))
    print(f"  Saved to        : {config.PLACEMENTS_FILE}")

    if _stop_requested:
        print("[GA] Stopped early. Re-run to continue from last checkpoint.")

    return best, top


if __name__ == "__main__":
    run_placement_ga()
