# ============================================================
#  genetic_algorithm.py
#  Generational GA engine shared by both genome kinds.
#
#  One generation:
#    Elitism   : top elite_count genomes copied forward unchanged
#    Selection : tournament of k (with replacement), fittest wins
#    Crossover : with crossover_rate, else clone parent 1
#    Mutation  : with mutation_rate
#    Repair    : placement offspring made valid before scoring
#    Evaluate  : fitness_fn(genome, context, rng), serial or Pool
#    Sort      : population kept descending by fitness
#
#  Genome-specific behaviour lives in PlacementOperators and
#  WeightOperators.  Every random draw comes from the numpy
#  Generator passed in by the caller, so a seeded run replays
#  exactly.
# ============================================================

from multiprocessing import Pool

import numpy as np
from tqdm import tqdm

import config
from chromosome import PlacementGenome, WeightGenome, N_SHIPS, SHIPS
from layout_generator import PlacementGenerator, Bias, random_origin
from repair import RepairOperator

MAX_SEED = 2**63 - 1


class ConfigError(ValueError):
    """Engine or pool constructed with inconsistent parameters."""


class PreconditionError(RuntimeError):
    """Operation needs a populated population / pool."""


# ── Sigma annealing ──────────────────────────────────────────
def sigma_schedule(generation, sigma0=config.SIGMA_INITIAL,
                   sigma_min=config.SIGMA_MIN, horizon=config.SIGMA_HORIZON):
    """Linear decay from sigma0 to sigma_min over `horizon` generations."""
    progress = min(max(generation / horizon, 0.0), 1.0)
    return sigma0 - (sigma0 - sigma_min) * progress


# ── Placement operators ──────────────────────────────────────
class PlacementOperators:
    def __init__(self, generator=None, repairer=None):
        self.generator = generator or PlacementGenerator()
        self.repairer  = repairer or RepairOperator(self.generator)

    @property
    def regenerated_count(self):
        return self.repairer.regenerated_count

    def initial_population(self, n, rng, progress=False):
        pop = self.generator.generate_population(n, rng, progress=progress)
        # uniqueness stalled: pad with (possibly duplicate) unbiased genomes
        while len(pop) < n:
            pop.append(self.generator.generate(Bias.RANDOM, rng))
        return pop

    def crossover(self, parent_a, parent_b, rng):
        """Ship swap: child = A with 1-4 ships copied over from B."""
        child = PlacementGenome(list(parent_a.genes))
        for _ in range(int(rng.integers(1, 5))):
            i = int(rng.integers(N_SHIPS))
            child.genes[3 * i: 3 * i + 3] = parent_b.genes[3 * i: 3 * i + 3]
        return child

    def mutate(self, genome, rng, generation=0):
        """One ship: 75% nudge by ±1, 20% rotate, 5% teleport."""
        i = int(rng.integers(N_SHIPS))
        x, y, horizontal = genome.ship(i)
        r = rng.random()
        if r < 0.75:
            dx, dy = 0, 0
            while dx == 0 and dy == 0:
                dx, dy = (int(v) for v in rng.integers(-1, 2, size=2))
            last = config.BOARD_SIZE - 1
            genome.set_ship(i, min(max(x + dx, 0), last), min(max(y + dy, 0), last), horizontal)
        elif r < 0.95:
            genome.set_ship(i, x, y, not horizontal)
        else:
            horizontal = bool(rng.random() < 0.5)
            x, y = random_origin(SHIPS[i], horizontal, rng, Bias.RANDOM)
            genome.set_ship(i, x, y, horizontal)

    def repair(self, genome, rng):
        if genome.is_valid():
            return True
        return self.repairer.repair(genome, rng)


# ── Weight operators ─────────────────────────────────────────
class WeightOperators:
    def __init__(self, sigma0=config.SIGMA_INITIAL, sigma_min=config.SIGMA_MIN,
                 horizon=config.SIGMA_HORIZON, bound=config.WEIGHT_BOUND):
        if sigma0 < 0 or sigma_min < 0:
            raise ConfigError("mutation sigmas must be non-negative")
        if sigma_min > sigma0:
            raise ConfigError(f"sigma_min ({sigma_min}) exceeds sigma0 ({sigma0})")
        if horizon <= 0:
            raise ConfigError("annealing horizon must be positive")
        if bound <= 0:
            raise ConfigError("weight bound must be positive")
        self.sigma0    = sigma0
        self.sigma_min = sigma_min
        self.horizon   = horizon
        self.bound     = bound

    def sigma(self, generation):
        return sigma_schedule(generation, self.sigma0, self.sigma_min, self.horizon)

    def initial_population(self, n, rng, progress=False):
        return [WeightGenome.random(rng) for _ in range(n)]

    def crossover(self, parent_a, parent_b, rng):
        """Arithmetic blend with one alpha for every weight."""
        alpha = rng.random()
        return WeightGenome([alpha * a + (1.0 - alpha) * b
                             for a, b in zip(parent_a.weights, parent_b.weights)])

    def mutate(self, genome, rng, generation=0):
        noise = rng.normal(0.0, self.sigma(generation), size=len(genome.weights))
        genome.weights = [w + float(n) for w, n in zip(genome.weights, noise)]
        genome.clamp(self.bound)

    def repair(self, genome, rng):
        return True


# ── Fitness evaluation (parallel) ────────────────────────────
def _evaluate_worker(args):
    """
    Worker function for multiprocessing.Pool.imap().
    args = (fitness_fn, genome, context, seed). Returns the scored genome.
    """
    fitness_fn, genome, context, seed = args
    fitness_fn(genome, context, np.random.default_rng(seed))
    return genome


def evaluate_population(genomes, fitness_fn, context, rng, workers=1, progress=False):
    """
    Score every genome in place.  One seed per genome is drawn from
    `rng` up front, so serial and parallel runs give the same numbers.
    Exceptions from fitness_fn propagate.
    """
    if not genomes:
        return genomes
    seeds = rng.integers(0, MAX_SEED, size=len(genomes))
    tasks = [(fitness_fn, g, context, int(s)) for g, s in zip(genomes, seeds)]

    if workers > 1 and len(tasks) > 1:
        with Pool(workers) as pool:
            scored = list(tqdm(
                pool.imap(_evaluate_worker, tasks, chunksize=max(1, len(tasks) // (workers * 4))),
                total=len(tasks),
                desc="Fitness eval",
                unit="genome",
                disable=not progress,
            ))
        for genome, result in zip(genomes, scored):
            vars(genome).update(vars(result))
    else:
        for task in tqdm(tasks, desc="Fitness eval", unit="genome", disable=not progress):
            _evaluate_worker(task)

    return genomes


# ── Engine ───────────────────────────────────────────────────
class EvolutionEngine:
    def __init__(self, operators, population_size, crossover_rate, mutation_rate,
                 tournament_size, elite_count, workers=1, progress=False):
        if population_size <= 0:
            raise ConfigError(f"population size must be positive, got {population_size}")
        for label, p in (("crossover", crossover_rate), ("mutation", mutation_rate)):
            if not 0.0 <= p <= 1.0:
                raise ConfigError(f"{label} probability must be in [0, 1], got {p}")
        if not 1 <= tournament_size <= population_size:
            raise ConfigError(f"tournament size must be in [1, {population_size}], "
                              f"got {tournament_size}")
        if not 0 <= elite_count <= population_size:
            raise ConfigError(f"elite count must be in [0, {population_size}], "
                              f"got {elite_count}")

        self.operators       = operators
        self.population_size = population_size
        self.crossover_rate  = crossover_rate
        self.mutation_rate   = mutation_rate
        self.tournament_size = tournament_size
        self.elite_count     = elite_count
        self.workers         = workers
        self.progress        = progress

        self.population = []
        self.generation = 0

    # ── population setup ─────────────────────────────────────
    def _sort(self):
        self.population.sort(key=lambda g: g.fitness, reverse=True)

    def initialize_population(self, fitness_fn, context, rng):
        self.population = self.operators.initial_population(
            self.population_size, rng, progress=self.progress)
        evaluate_population(self.population, fitness_fn, context, rng,
                            self.workers, self.progress)
        self._sort()
        self.generation = 0
        return self.best()

    def initialize_with_population(self, population, generation=0):
        """Adopt an already scored population (e.g. from a checkpoint)."""
        if len(population) != self.population_size:
            raise ConfigError(f"population has {len(population)} genomes, "
                              f"engine expects {self.population_size}")
        self.population = [g.copy() for g in population]
        self._sort()
        self.generation = generation

    # ── operators ────────────────────────────────────────────
    def tournament_select(self, rng):
        if not self.population:
            raise PreconditionError("tournament selection on an empty population")
        picks = rng.integers(len(self.population), size=self.tournament_size)
        best = None
        for i in picks:
            candidate = self.population[int(i)]
            if best is None or candidate.fitness > best.fitness:
                best = candidate
        return best

    def make_offspring(self, rng):
        parent_a = self.tournament_select(rng)
        parent_b = self.tournament_select(rng)
        if rng.random() < self.crossover_rate:
            child = self.operators.crossover(parent_a, parent_b, rng)
        else:
            child = parent_a.copy()
        if rng.random() < self.mutation_rate:
            self.operators.mutate(child, rng, self.generation)
        self.operators.repair(child, rng)
        return child

    # ── generational loop ────────────────────────────────────
    def evolve_one_generation(self, fitness_fn, context, rng):
        if not self.population:
            raise PreconditionError("evolve_one_generation before initialize_population")

        elites = [g.copy() for g in self.population[:self.elite_count]]
        offspring = [self.make_offspring(rng)
                     for _ in range(self.population_size - len(elites))]
        evaluate_population(offspring, fitness_fn, context, rng,
                            self.workers, self.progress)

        self.population = elites + offspring
        self._sort()
        self.generation += 1
        return self.best()

    def evolve(self, max_generations, target_fitness, fitness_fn, context, rng,
               on_generation=None, should_stop=None):
        """
        Run until `max_generations` generations are complete or the best
        fitness reaches `target_fitness`.  Returns the best genome seen.
        on_generation(engine) is called after every completed generation;
        should_stop() is polled before each one.
        """
        if not self.population:
            self.initialize_population(fitness_fn, context, rng)
            if on_generation:
                on_generation(self)

        best = self.best()
        while self.generation < max_generations:
            if should_stop and should_stop():
                break
            current = self.evolve_one_generation(fitness_fn, context, rng)
            if current.fitness > best.fitness:
                best = current
            if on_generation:
                on_generation(self)
            if best.fitness >= target_fitness:
                break
        return best

    # ── queries ──────────────────────────────────────────────
    def best(self):
        if not self.population:
            raise PreconditionError("best genome of an empty population")
        return self.population[0].copy()

    def best_fitness(self):
        return self.best().fitness

    def average_fitness(self):
        if not self.population:
            raise PreconditionError("average fitness of an empty population")
        return float(np.mean([g.fitness for g in self.population]))

    def top_n(self, n):
        if not self.population:
            raise PreconditionError("top-n of an empty population")
        return [g.copy() for g in self.population[:n]]
