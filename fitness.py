# ============================================================
#  fitness.py
#  Simulation-based fitness for both genome kinds.
#
#  Placement genome (context: SimulationConfig)
#    invalid fleet        → INVALID_FITNESS
#    otherwise            → W_RANDOM*R + W_CHECKER*C + W_MC*M
#    where R, C, M are the mean shots the random, checkerboard
#    and Monte Carlo shooters needed to sink the fleet.
#    Higher = survives longer = better.
#
#  Weight genome (context: PlacementPool)
#    play WEIGHT_GAMES fleets sampled from the pool with the
#    feature shooter → fitness = -mean + STABILITY_BONUS * std
#    Higher = fewer shots = better.
#
#  Both write mean/std (and per-opponent means) onto the genome.
# ============================================================

from dataclasses import dataclass

import numpy as np

import config
from game_engine import play_fleet
from genetic_algorithm import PreconditionError
from shooters import make_shooter


# ── Formulas ─────────────────────────────────────────────────
def placement_fitness(mean_random, mean_checker, mean_mc,
                      weights=(config.W_RANDOM, config.W_CHECKER, config.W_MC)):
    w_random, w_checker, w_mc = weights
    return w_random * mean_random + w_checker * mean_checker + w_mc * mean_mc


def decision_fitness(mean_shots, std_shots, bonus=config.STABILITY_BONUS):
    return -mean_shots + bonus * std_shots


def shot_stats(shots):
    """(mean, population std) of a list of shot counts; (0, 0) if empty."""
    if not shots:
        return 0.0, 0.0
    arr = np.asarray(shots, dtype=np.float64)
    return float(arr.mean()), float(arr.std())


def simulate(fleet, shooter, n_games, max_shots=config.MAX_SHOTS):
    """Shots needed in each of n_games against `fleet`."""
    return [play_fleet(fleet, shooter, max_shots) for _ in range(n_games)]


# ── Placement fitness ────────────────────────────────────────
@dataclass(frozen=True)
class SimulationConfig:
    games_random:  int   = config.GAMES_RANDOM
    games_checker: int   = config.GAMES_CHECKER
    games_mc:      int   = config.GAMES_MC
    mc_samples:    int   = config.MC_SAMPLES
    max_shots:     int   = config.MAX_SHOTS
    weights:       tuple = (config.W_RANDOM, config.W_CHECKER, config.W_MC)


class PlacementFitness:
    """fitness_fn(genome, SimulationConfig | None, rng) -> float"""

    invalid_fitness = config.INVALID_FITNESS

    def __call__(self, genome, sim, rng):
        sim = sim or SimulationConfig()

        if not genome.is_valid():
            genome.fitness    = self.invalid_fitness
            genome.mean_shots = genome.std_shots = 0.0
            genome.mean_shots_random = genome.mean_shots_checkerboard = genome.mean_shots_mc = 0.0
            return genome.fitness

        fleet = genome.decode()
        shots_random  = simulate(fleet, make_shooter("random", rng),
                                 sim.games_random, sim.max_shots)
        shots_checker = simulate(fleet, make_shooter("checkerboard", rng),
                                 sim.games_checker, sim.max_shots)
        shots_mc      = simulate(fleet, make_shooter("montecarlo", rng, samples=sim.mc_samples),
                                 sim.games_mc, sim.max_shots)

        genome.mean_shots_random, _       = shot_stats(shots_random)
        genome.mean_shots_checkerboard, _ = shot_stats(shots_checker)
        genome.mean_shots_mc, _           = shot_stats(shots_mc)
        genome.mean_shots, genome.std_shots = shot_stats(shots_random + shots_checker + shots_mc)

        genome.fitness = placement_fitness(genome.mean_shots_random,
                                           genome.mean_shots_checkerboard,
                                           genome.mean_shots_mc,
                                           sim.weights)
        return genome.fitness


# ── Weight fitness ───────────────────────────────────────────
class WeightFitness:
    """fitness_fn(genome, PlacementPool, rng) -> float"""

    def __init__(self, games=config.WEIGHT_GAMES, max_shots=config.MAX_SHOTS,
                 bonus=config.STABILITY_BONUS, use_heat=True):
        self.games     = games
        self.max_shots = max_shots
        self.bonus     = bonus
        self.use_heat  = use_heat

    def __call__(self, genome, pool, rng):
        if pool is None or pool.empty():
            raise PreconditionError("weight fitness needs a populated placement pool")

        heat = pool.heat_map() if self.use_heat else None
        shooter = make_shooter("feature", rng, weights=genome.weights, heat=heat)
        shots = [play_fleet(pool.sample(rng).decode(), shooter, self.max_shots)
                 for _ in range(self.games)]

        genome.mean_shots, genome.std_shots = shot_stats(shots)
        genome.fitness = decision_fitness(genome.mean_shots, genome.std_shots, self.bonus)
        return genome.fitness
