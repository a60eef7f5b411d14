#!/usr/bin/env python3
# ============================================================
#  run.py  —  Master entry point for the Battleship GA
#
#  COMMANDS:
#    python run.py placement    ← Phase 1: evolve hard-to-sink placements
#    python run.py weights      ← Phase 2: evolve shooting feature weights
#    python run.py benchmark    ← Compare shooters on generated (and evolved) fleets
#    python run.py visualize    ← Generate all plots
#    python run.py status       ← Show progress of both phases
#    python run.py all          ← Run everything in order
#
#  OPTIONS (placement / weights / all / benchmark):
#    --generations N   --seed S   --workers W
#
#  STOP/RESUME:
#    Press Ctrl+C at any time; both GA phases checkpoint.
#    Re-run the same command to continue from where you stopped.
# ============================================================

import os
import sys


def banner():
    print("""
╔══════════════════════════════════════════════════════════════╗
║              BATTLESHIP GENETIC ALGORITHMS                   ║
║                                                              ║
║  Phase 1 │ Placement GA  vs random / checkerboard / MC      ║
║  Phase 2 │ Weight GA     feature-based shooter              ║
║                                                              ║
║  Result  │ Hardest fleets + evolved shooting weights        ║
╚══════════════════════════════════════════════════════════════╝
""")


# ── Options ──────────────────────────────────────────────────
OPTIONS = {"--generations": int, "--seed": int, "--workers": int}


def parse_options(argv):
    """['--seed', '3', ...] → {'seed': 3, ...}. Raises ValueError on bad input."""
    opts = {}
    i = 0
    while i < len(argv):
        flag = argv[i]
        if flag not in OPTIONS:
            raise ValueError(f"unknown option '{flag}'")
        if i + 1 >= len(argv):
            raise ValueError(f"option '{flag}' needs a value")
        try:
            opts[flag.lstrip('-')] = OPTIONS[flag](argv[i + 1])
        except ValueError:
            raise ValueError(f"option '{flag}' expects an integer, got '{argv[i + 1]}'")
        i += 2
    return opts


# ── Placement GA ─────────────────────────────────────────────
def cmd_placement(generations=None, seed=None, workers=None):
    print("── Phase 1: Placement GA ───────────────────────────────")
    print("  Fitness = weighted mean shots the random, checkerboard")
    print("  and Monte Carlo shooters need to sink the fleet.")
    print("  Ctrl+C saves. Re-run to continue.\n")
    from placement_ga import run_placement_ga
    run_placement_ga(generations=generations, seed=seed, workers=workers)


# ── Weight GA ────────────────────────────────────────────────
def cmd_weights(generations=None, seed=None, workers=None):
    print("── Phase 2: Weight GA ──────────────────────────────────")
    print("  Evolves the 20 feature weights of the shooter against")
    print("  fleets drawn from the phase 1 placement pool.")
    print("  Ctrl+C saves. Re-run to continue.\n")
    from weight_ga import run_weight_ga
    run_weight_ga(generations=generations, seed=seed, workers=workers)


# ── Benchmark ────────────────────────────────────────────────
def cmd_benchmark(generations=None, seed=None, workers=None):
    print("── Benchmark ───────────────────────────────────────────")
    import config
    from validate import benchmark_shooters, benchmark_archive
    results = benchmark_shooters(n_fleets=20, seed=seed)

    # Estimate phase 1 time from the measured game rates
    rates = {k: r["games_per_sec"] for k, r in results.items()}
    secs_per_genome = (config.GAMES_RANDOM  / rates["random"] +
                       config.GAMES_CHECKER / rates["checkerboard"] +
                       config.GAMES_MC      / rates["montecarlo"])
    gens = generations or config.PGA_GENERATIONS
    est_h = secs_per_genome * config.PGA_POPULATION * gens / (workers or config.WORKERS) / 3600
    print(f"\n  Estimated placement GA time ({gens} gens, "
          f"{workers or config.WORKERS} workers): {est_h:.1f}h")

    if os.path.exists(config.PLACEMENTS_FILE):
        print()
        benchmark_archive(seed=seed)


# ── Visualize ────────────────────────────────────────────────
def cmd_visualize(**_):
    print("── Visualize ───────────────────────────────────────────")
    from visualize import plot_ga_curve, show_top_layouts, layout_heatmap, print_summary
    print_summary()
    plot_ga_curve()
    show_top_layouts(n=20)
    layout_heatmap()
    import config
    print(f"\n  Images saved to:")
    print(f"    {config.LOG_DIR}/placement_ga_curve.png")
    print(f"    {config.LOG_DIR}/weight_ga_curve.png")
    print(f"    {config.RESULTS_DIR}/top_layouts.png")
    print(f"    {config.RESULTS_DIR}/heatmap.png")


# ── Status ───────────────────────────────────────────────────
def _state_line(label, path, genome_cls, total):
    from state_io import load_state
    state = load_state(path, genome_cls)
    if state is None:
        print(f"{label}: Not started")
        return False
    gen, population, _mut = state
    best = max(g.fitness for g in population)
    mean = sum(g.fitness for g in population) / len(population)
    pct  = min(gen / total * 100, 100)
    print(f"{label}: Gen {gen}/{total} ({pct:.0f}%) | "
          f"best={best:.2f} | mean={mean:.2f} | pop={len(population)}")
    return True


def cmd_status(**_):
    import config
    from chromosome import PlacementGenome, WeightGenome

    print("── Status ──────────────────────────────────────────────\n")

    placement_started = _state_line("Placement GA", config.PLACEMENT_STATE_FILE,
                                    PlacementGenome, config.PGA_GENERATIONS)
    if os.path.exists(config.PLACEMENTS_FILE):
        n = os.path.getsize(config.PLACEMENTS_FILE) // 30
        print(f"  archive   : {n} placements in {config.PLACEMENTS_FILE}")

    weights_started = _state_line("Weight GA   ", config.WEIGHT_STATE_FILE,
                                  WeightGenome, config.WGA_GENERATIONS)
    if os.path.exists(config.WEIGHTS_FILE):
        print(f"  weights   : {config.WEIGHTS_FILE}")

    print("\nNext step:")
    if not placement_started:
        print("  python run.py placement")
    elif not os.path.exists(config.PLACEMENTS_FILE):
        print("  python run.py placement  ← placement GA still running")
    elif not weights_started or not os.path.exists(config.WEIGHTS_FILE):
        print("  python run.py weights")
    else:
        print("  python run.py visualize  ← you're done!")


# ── All ──────────────────────────────────────────────────────
def cmd_all(generations=None, seed=None, workers=None):
    print("Running full pipeline...\n")
    cmd_placement(generations, seed, workers)
    print("\n" + "─"*60)
    cmd_weights(generations, seed, workers)
    print("\n" + "─"*60)
    cmd_visualize()
    print("\n══ ALL DONE ══")
    print(f"→ Placements : results/best_placements.bin")
    print(f"→ Weights    : results/best_weights.bin")


# ── help ─────────────────────────────────────────────────────
def cmd_help(**_):
    print("""
Commands:
  python run.py placement   Phase 1: evolve fleet placements
  python run.py weights     Phase 2: evolve shooter feature weights
  python run.py benchmark   Compare shooters on generated and evolved fleets
  python run.py visualize   Generate plots and images
  python run.py status      Show progress of each phase
  python run.py all         Run both phases, then visualize

Options:
  --generations N   generations to run (default from config.py)
  --seed S          seed for a reproducible run
  --workers W       processes for fitness evaluation (1 = serial)

Stop any phase with Ctrl+C; it saves and you can resume later.

Output files:
  results/best_placements.bin   ← top placements, 30 bytes each
  results/best_placement.txt    ← best genome + per-shooter mean shots
  results/best_weights.bin      ← 20 float64 feature weights
  results/placement_report_*.txt
  logs/placement_ga_log.csv, logs/weight_ga_log.csv
  logs/*_curve.png, results/top_layouts.png, results/heatmap.png
""")


# ── Entry ────────────────────────────────────────────────────
COMMANDS = {
    "placement": cmd_placement,
    "weights":   cmd_weights,
    "benchmark": cmd_benchmark,
    "visualize": cmd_visualize,
    "status":    cmd_status,
    "all":       cmd_all,
    "help":      cmd_help,
    "--help":    cmd_help,
    "-h":        cmd_help,
}

if __name__ == "__main__":
    banner()
    cmd = sys.argv[1].lower() if len(sys.argv) > 1 else "help"
    if cmd not in COMMANDS:
        print(f"Unknown command: '{cmd}'")
        cmd_help()
        sys.exit(1)
    try:
        options = parse_options(sys.argv[2:])
    except ValueError as e:
        print(f"Error: {e}")
        cmd_help()
        sys.exit(1)
    COMMANDS[cmd](**options)
