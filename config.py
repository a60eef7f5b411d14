# ============================================================
#  config.py  —  Master config for the Battleship GA
#  Edit values here to tune for your hardware / time budget
# ============================================================

import os

# ── Paths ────────────────────────────────────────────────────
BASE_DIR         = os.path.dirname(os.path.abspath(__file__))
CKPT_DIR         = os.path.join(BASE_DIR, "checkpoints")
LOG_DIR          = os.path.join(BASE_DIR, "logs")
RESULTS_DIR      = os.path.join(BASE_DIR, "results")

# Resumable GA state (binary snapshots)
PLACEMENT_STATE_FILE = os.path.join(CKPT_DIR, "placement_ga_state.dat")
WEIGHT_STATE_FILE    = os.path.join(CKPT_DIR, "weight_ga_state.dat")

# Per-generation CSV logs
PLACEMENT_LOG_FILE   = os.path.join(LOG_DIR, "placement_ga_log.csv")
WEIGHT_LOG_FILE      = os.path.join(LOG_DIR, "weight_ga_log.csv")

# Final outputs
PLACEMENTS_FILE      = os.path.join(RESULTS_DIR, "best_placements.bin")
BEST_PLACEMENT_FILE  = os.path.join(RESULTS_DIR, "best_placement.txt")
WEIGHTS_FILE         = os.path.join(RESULTS_DIR, "best_weights.bin")

# ── Board & Fleet ────────────────────────────────────────────
BOARD_SIZE       = 10
SHIPS            = [4, 3, 3, 2, 2, 2, 1, 1, 1, 1]   # fixed by gene position
GENES_PER_SHIP   = 3                                # x, y, horizontal
MAX_SHOTS        = 100                              # shot cap per game

# ── ═══════════════════════════════════════════════════════ ──
#    PHASE 1: PLACEMENT GA
# ── ═══════════════════════════════════════════════════════ ──

PGA_POPULATION   = 100
PGA_CROSSOVER    = 0.8
PGA_MUTATION     = 0.04
PGA_TOURNAMENT   = 3
PGA_ELITE        = 2
PGA_GENERATIONS  = 50
PGA_TARGET       = 80.0       # stop early once best fitness reaches this
PGA_SAVE_EVERY   = 5          # checkpoint every N generations
PGA_TOP_KEEP     = 50         # placements written for phase 2

GENERATOR_MAX_TRIES   = 50    # per-ship attempts before a genome restart
GENERATOR_MAX_RESTARTS = 10_000

REPAIR_ATTEMPTS       = 50    # ship relocations before regenerating
REPAIR_LOCAL_TRIES    = 30
REPAIR_JITTER         = 2

# Fitness: games per opponent
GAMES_RANDOM     = 15
GAMES_CHECKER    = 15
GAMES_MC         = 10
MC_SAMPLES       = 200        # sampled fleets per Monte Carlo shot

# Fitness = W_RANDOM*random + W_CHECKER*checker + W_MC*mc  (mean shots)
W_RANDOM         = 0.20
W_CHECKER        = 0.40
W_MC             = 0.40
INVALID_FITNESS  = -1000.0

# ── ═══════════════════════════════════════════════════════ ──
#    PHASE 2: SHOOTING-WEIGHT GA
# ── ═══════════════════════════════════════════════════════ ──

WGA_POPULATION   = 150
WGA_CROSSOVER    = 0.8
WGA_MUTATION     = 0.3
WGA_TOURNAMENT   = 3
WGA_ELITE        = 2
WGA_GENERATIONS  = 30
WGA_TARGET       = -35.0
WGA_SAVE_EVERY   = 5

SIGMA_INITIAL    = 0.2
SIGMA_MIN        = 0.01
SIGMA_HORIZON    = 100        # generations until sigma reaches SIGMA_MIN
WEIGHT_BOUND     = 5.0        # |w| <= WEIGHT_BOUND after mutation

WEIGHT_GAMES     = 30         # fleets sampled from the pool per evaluation
STABILITY_BONUS  = 0.1        # fitness = -mean + STABILITY_BONUS * std

# ── Placement pool (opponent fleets for phase 2) ─────────────
POOL_BEST_SIZE   = 50
POOL_RANDOM_SIZE = 50
POOL_BEST_PROB   = 0.7

# ── Hardware ─────────────────────────────────────────────────
WORKERS          = 4          # processes for fitness eval (1 = serial)
SEED             = None       # None = fresh OS entropy every run

# ── Scoring semantics ────────────────────────────────────────
# Placement fitness = weighted avg shots the attackers needed to win.
#   Higher = layout survived longer = BETTER layout.
# Weight fitness    = -(avg shots to win) + small stability bonus.
#   Higher = fewer shots needed = BETTER shooter.
