# ============================================================
#  weight_ga.py
#  Phase 2: evolve the 20 feature weights of the shooter.
#
#  Opponent fleets come from a PlacementPool:
#    best   ← results/best_placements.bin (phase 1 output),
#             or generator placements if phase 1 never ran
#    random ← fresh generator placements, biases mixed
#
#  Fitness = -(mean shots to sink) + STABILITY_BONUS * std
#  Mutation sigma anneals from SIGMA_INITIAL to SIGMA_MIN.
#
#  RESUME / STOP: same as placement_ga.py.
#
#  OUTPUTS:
#    results/best_weights.bin   ← float64 per feature weight
#    logs/weight_ga_log.csv
# ============================================================

import os
import time
import signal

import numpy as np

import config
from chromosome import WeightGenome
from fitness import WeightFitness
from genetic_algorithm import EvolutionEngine, WeightOperators
from layout_generator import PlacementGenerator, ALL_BIASES
from placement_pool import PlacementPool
from state_io import save_state, load_state, save_weights, load_pool_from_placements

_stop_requested = False

def _handle_signal(sig, frame):
    global _stop_requested
    print("\n[Weights] Stop requested, saving after this generation...")
    _stop_requested = True

def _install_signal_handlers():
    previous = {s: signal.getsignal(s) for s in (signal.SIGINT, signal.SIGTERM)}
    for s in previous:
        signal.signal(s, _handle_signal)
    return previous

def _restore_signal_handlers(previous):
    for s, handler in previous.items():
        signal.signal(s, handler)


# ── Opponent pool ────────────────────────────────────────────
def build_pool(rng, placements_path=None, generator=None,
               best_size=config.POOL_BEST_SIZE,
               random_size=config.POOL_RANDOM_SIZE,
               best_prob=config.POOL_BEST_PROB):
    """
    Returns a ready PlacementPool.  The random bucket cycles through
    every placement bias so it is not dominated by one style.
    """
    placements_path = placements_path or config.PLACEMENTS_FILE
    generator = generator or PlacementGenerator()
    pool = PlacementPool(best_size, random_size, best_prob)

    if os.path.exists(placements_path) and load_pool_from_placements(placements_path, pool):
        print(f"[Pool] Elite bucket: {best_size} placements from {placements_path}")
    else:
        print("[Pool] No usable placement archive, elite bucket from the generator")
        pool.set_best(generator.generate_population(best_size, rng))

    while len(pool.random) < random_size:
        i = len(pool.random)
        pool.add_placement(generator.generate(ALL_BIASES[i % len(ALL_BIASES)], rng))

    print(f"[Pool] Ready: {len(pool.best)} elite + {len(pool.random)} random "
          f"(elite prob {best_prob:.2f})")
    return pool


# ── Main weight GA loop ──────────────────────────────────────
def run_weight_ga(generations=None, seed=None, workers=None,
                  population_size=None, games=None, resume=True, pool=None):
    global _stop_requested
    _stop_requested = False

    generations     = generations or config.WGA_GENERATIONS
    population_size = population_size or config.WGA_POPULATION
    workers         = workers or config.WORKERS
    games           = games or config.WEIGHT_GAMES
    seed            = config.SEED if seed is None else seed

    os.makedirs(config.CKPT_DIR, exist_ok=True)
    os.makedirs(config.LOG_DIR,  exist_ok=True)

    rng        = np.random.default_rng(seed)
    if pool is None:
        pool = build_pool(rng)
    operators  = WeightOperators()
    fitness_fn = WeightFitness(games=games)
    engine     = EvolutionEngine(operators, population_size,
                                 config.WGA_CROSSOVER, config.WGA_MUTATION,
                                 min(config.WGA_TOURNAMENT, population_size),
                                 min(config.WGA_ELITE, population_size),
                                 workers=workers, progress=True)

    state = load_state(config.WEIGHT_STATE_FILE, WeightGenome) if resume else None
    fresh = True
    if state is not None:
        start_gen, population, _mut = state
        if len(population) == population_size:
            engine.initialize_with_population(population, start_gen)
            fresh = False
            print(f"\n[Weights] ═══ Resuming weight GA from generation {start_gen} ═══")
            print(f"[Weights] Best fitness: {engine.best_fitness():.2f} | "
                  f"sigma={operators.sigma(start_gen):.4f}\n")
        else:
            print(f"[Weights] Saved population has {len(population)} genomes, "
                  f"expected {population_size}, starting fresh")

    if fresh:
        print(f"\n[Weights] ═══ Starting weight GA (fresh) ═══")
        print(f"  Population : {population_size:,}")
        print(f"  Generations: {generations}")
        print(f"  Games/eval : {games}")
        print(f"  Sigma      : {operators.sigma0} → {operators.sigma_min} "
              f"over {operators.horizon} generations")
        print(f"  CPU workers: {workers}\n")

    log_path = config.WEIGHT_LOG_FILE
    write_header = fresh or not os.path.exists(log_path)
    t_start = time.time()

    previous_handlers = _install_signal_handlers()
    try:
        with open(log_path, 'w' if fresh else 'a') as log:
            if write_header:
                log.write("generation,best_fitness,mean_fitness,sigma,"
                          "best_mean_shots,elapsed_h\n")

            def on_generation(eng):
                gen   = eng.generation
                best  = eng.population[0]
                mean  = eng.average_fitness()
                sigma = operators.sigma(gen)
                elapsed = time.time() - t_start

                print(f"Gen {gen:>4}/{generations} | best={best.fitness:.2f} | "
                      f"mean={mean:.2f} | shots={best.mean_shots:.1f}±{best.std_shots:.1f} | "
                      f"sigma={sigma:.4f}")

                log.write(f"{gen},{best.fitness:.4f},{mean:.4f},{sigma:.5f},"
                          f"{best.mean_shots:.4f},{elapsed/3600:.4f}\n")
                log.flush()

                if gen % config.WGA_SAVE_EVERY == 0 or _stop_requested:
                    save_state(config.WEIGHT_STATE_FILE, gen, eng.population,
                               eng.mutation_rate)

            if fresh:
                print("[Weights] Initializing population...")
                engine.initialize_population(fitness_fn, pool, rng)
                on_generation(engine)

            best = engine.evolve(generations, config.WGA_TARGET, fitness_fn, pool, rng,
                                 on_generation=on_generation,
                                 should_stop=lambda: _stop_requested)
    finally:
        _restore_signal_handlers(previous_handlers)

    save_state(config.WEIGHT_STATE_FILE, engine.generation,
               engine.population, engine.mutation_rate)
    save_weights(config.WEIGHTS_FILE, best.weights)

    print(f"\n[Weights] ═══ Weight GA Complete ═══")
    print(f"  Generations run : {engine.generation}")
    print(f"  Best fitness    : {best.fitness:.2f}")
    print(f"  Mean shots      : {best.mean_shots:.2f} ± {best.std_shots:.2f}")
    for name, w in best.named().items():
        print(f"    {name:<20} {w:+.4f}")
    print(f"  Saved to        : {config.WEIGHTS_FILE}")

    if _stop_requested:
        print("[Weights] Stopped early. Re-run to continue from last checkpoint.")

    return best


if __name__ == "__main__":
    run_weight_ga()
