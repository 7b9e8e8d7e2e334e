"""
Genetic optimizer over an opaque settings genome.

Genome operators (create / mutate / crossover / validate) come from the caller.
Fitness evaluation runs in a thread pool; selection, crossover, mutation and
elitism run on one thread from one seeded random stream, so a seed reproduces
the whole trajectory.
"""

from __future__ import annotations
import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from typing import Callable, Generic, List, Optional, Protocol, Sequence, TypeVar

from tradelab.core.config import GeneticOptimizerSettings
from tradelab.core.exceptions import NoValidSolutionError

logger = logging.getLogger("tradelab.optimizer")

S = TypeVar("S")

# Assigned when the fitness callable raises. Below every policy sentinel.
FAILED_EVALUATION_FITNESS = -1_000_000.0

EARLY_STOP_MESSAGE = "Early stopping: fitness plateaued"

# Redraws per initial slot before an invalid random genome is accepted as is.
MAX_RANDOM_ATTEMPTS = 10


class GenomeOperators(Protocol[S]):
    """Domain operators for one settings type. All randomness comes from rng."""

    def create_random(self, rng: random.Random) -> S: ...

    def mutate(self, genome: S, rng: random.Random) -> S: ...

    def crossover(self, first: S, second: S, rng: random.Random) -> S: ...

    def validate(self, genome: S) -> bool: ...


class FunctionOperators(Generic[S]):
    """GenomeOperators built from plain callables."""

    def __init__(
        self,
        create_random: Callable[[random.Random], S],
        mutate: Callable[[S, random.Random], S],
        crossover: Callable[[S, S, random.Random], S],
        validate: Optional[Callable[[S], bool]] = None,
    ):
        self._create_random = create_random
        self._mutate = mutate
        self._crossover = crossover
        self._validate = validate

    def create_random(self, rng: random.Random) -> S:
        return self._create_random(rng)

    def mutate(self, genome: S, rng: random.Random) -> S:
        return self._mutate(genome, rng)

    def crossover(self, first: S, second: S, rng: random.Random) -> S:
        return self._crossover(first, second, rng)

    def validate(self, genome: S) -> bool:
        return self._validate(genome) if self._validate is not None else True


@dataclass(frozen=True)
class Chromosome(Generic[S]):
    """One population slot. Evaluation returns a new instance instead of mutating."""
    settings: S
    fitness: float = 0.0
    is_evaluated: bool = False
    failed: bool = False

    def evaluated(self, fitness: float, failed: bool = False) -> "Chromosome[S]":
        return replace(self, fitness=fitness, is_evaluated=True, failed=failed)


@dataclass(frozen=True)
class GenerationStats(Generic[S]):
    generation: int
    best_fitness: float
    average_fitness: float
    worst_fitness: float
    best_settings: S


@dataclass
class GeneticOptimizationResult(Generic[S]):
    best_settings: S
    best_fitness: float
    generation_history: List[GenerationStats[S]] = field(default_factory=list)

    @property
    def convergence_rate(self) -> float:
        """Best-fitness gain per recorded generation."""
        if len(self.generation_history) < 2:
            return 0.0
        first, last = self.generation_history[0], self.generation_history[-1]
        return (last.best_fitness - first.best_fitness) / len(self.generation_history)


@dataclass(frozen=True)
class GeneticProgress(Generic[S]):
    current_generation: int
    total_generations: int
    best_fitness: float
    average_fitness: float
    current_best: S
    message: Optional[str] = None

    @property
    def percent_complete(self) -> float:
        return self.current_generation / self.total_generations * 100 if self.total_generations else 100.0


ProgressCallback = Callable[[GeneticProgress], None]


class GeneticOptimizer(Generic[S]):
    """
    Evolutionary search: evaluate, record, early-stop check, then evolve via
    elitism and tournament selection. Invalid genomes are not filtered; the
    fitness function is expected to score them low.
    """

    def __init__(
        self,
        operators: GenomeOperators[S],
        settings: Optional[GeneticOptimizerSettings] = None,
    ):
        self.operators = operators
        self.settings = settings or GeneticOptimizerSettings()
        self._rng = random.Random(self.settings.random_seed)

    def optimize(
        self,
        fitness: Callable[[S], float],
        progress: Optional[ProgressCallback] = None,
    ) -> GeneticOptimizationResult[S]:
        s = self.settings
        population = self._initial_population()
        history: List[GenerationStats[S]] = []
        best: Optional[Chromosome[S]] = None

        for generation in range(s.generations):
            population = self._evaluate(population, fitness)
            ranked = sorted(population, key=lambda c: c.fitness, reverse=True)

            fitnesses = [c.fitness for c in population]
            stats = GenerationStats(
                generation=generation,
                best_fitness=ranked[0].fitness,
                average_fitness=sum(fitnesses) / len(fitnesses),
                worst_fitness=ranked[-1].fitness,
                best_settings=ranked[0].settings,
            )
            history.append(stats)

            # strict comparison: on ties the earliest best is kept
            for chromosome in ranked:
                if chromosome.failed:
                    continue
                if best is None or chromosome.fitness > best.fitness:
                    best = chromosome
                break

            logger.info(
                "Generation %d/%d: best %.4f avg %.4f worst %.4f",
                generation + 1, s.generations, stats.best_fitness, stats.average_fitness, stats.worst_fitness,
            )
            if progress is not None and best is not None:
                progress(GeneticProgress(
                    current_generation=generation + 1,
                    total_generations=s.generations,
                    best_fitness=best.fitness,
                    average_fitness=stats.average_fitness,
                    current_best=best.settings,
                ))

            if self._plateaued(history):
                logger.info("Early stopping after generation %d: fitness plateaued", generation + 1)
                if progress is not None and best is not None:
                    progress(GeneticProgress(
                        current_generation=generation + 1,
                        total_generations=s.generations,
                        best_fitness=best.fitness,
                        average_fitness=stats.average_fitness,
                        current_best=best.settings,
                        message=EARLY_STOP_MESSAGE,
                    ))
                break

            if generation < s.generations - 1:
                population = self._evolve(ranked)

        if best is None:
            raise NoValidSolutionError("No valid solution found: every fitness evaluation failed")
        return GeneticOptimizationResult(
            best_settings=best.settings,
            best_fitness=best.fitness,
            generation_history=history,
        )

    def _initial_population(self) -> List[Chromosome[S]]:
        population = []
        for _ in range(self.settings.population_size):
            genome = self.operators.create_random(self._rng)
            for _ in range(MAX_RANDOM_ATTEMPTS - 1):
                if self.operators.validate(genome):
                    break
                genome = self.operators.create_random(self._rng)
            population.append(Chromosome(genome))
        return population

    def _evaluate(self, population: List[Chromosome[S]], fitness: Callable[[S], float]) -> List[Chromosome[S]]:
        """Parallel map over unevaluated slots; each worker writes only its own index."""
        pending = [i for i, c in enumerate(population) if not c.is_evaluated]
        if not pending:
            return population

        def evaluate_one(chromosome: Chromosome[S]) -> Chromosome[S]:
            try:
                return chromosome.evaluated(float(fitness(chromosome.settings)))
            except Exception:
                logger.warning("Fitness evaluation failed for %r", chromosome.settings, exc_info=True)
                return chromosome.evaluated(FAILED_EVALUATION_FITNESS, failed=True)

        result = list(population)
        with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
            futures = {executor.submit(evaluate_one, population[i]): i for i in pending}
            for future in as_completed(futures):
                result[futures[future]] = future.result()
        return result

    def _plateaued(self, history: Sequence[GenerationStats[S]]) -> bool:
        patience = self.settings.early_stopping_patience
        if len(history) < patience:
            return False
        recent = history[-patience:]
        return recent[-1].best_fitness - recent[0].best_fitness < self.settings.early_stopping_threshold

    def _evolve(self, ranked: List[Chromosome[S]]) -> List[Chromosome[S]]:
        s = self.settings
        rng = self._rng
        ops = self.operators
        next_population = list(ranked[:s.elite_count])

        while len(next_population) < s.population_size:
            first = self._tournament(ranked)
            second = self._tournament(ranked)
            if rng.random() < s.crossover_rate:
                child = ops.crossover(first.settings, second.settings, rng)
            else:
                child = (first if rng.random() < 0.5 else second).settings
            if rng.random() < s.mutation_rate:
                child = ops.mutate(child, rng)
            next_population.append(Chromosome(child))
        return next_population

    def _tournament(self, population: List[Chromosome[S]]) -> Chromosome[S]:
        winner = None
        for _ in range(self.settings.tournament_size):
            candidate = population[self._rng.randrange(len(population))]
            if winner is None or candidate.fitness > winner.fitness:
                winner = candidate
        return winner
