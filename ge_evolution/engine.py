"""
ge_evolution/engine.py - Generational loop

Orchestrates one run:
1. Initialize a random population
2. Evaluate: map every genome and score its phenotype
3. Record the generation's best and ratchet the all-time best
4. Select and breed, mutate the children, replace the population
5. Repeat for the configured number of generations
"""
import logging
import math
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Any, List, Optional

import numpy as np

from .config import EvolutionConfig
from .exceptions import ConfigurationError
from .fitness import Direction, FitnessFunction
from .genome import Genome
from .grammar import Grammar
from .mapper import Phenotype
from .population import Population

logger = logging.getLogger(__name__)


@dataclass
class GenerationSummary:
    """Snapshot of one evaluated generation"""
    generation: int
    best_fitness: float
    mean_fitness: float
    std_fitness: float
    best_phenotype: str
    best_codons: List[int]
    invalid: int
    unique_genomes: int
    all_time_best_fitness: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generation': self.generation,
            'best_fitness': self.best_fitness,
            'mean_fitness': self.mean_fitness,
            'std_fitness': self.std_fitness,
            'best_phenotype': self.best_phenotype,
            'best_codons': list(self.best_codons),
            'invalid': self.invalid,
            'unique_genomes': self.unique_genomes,
            'all_time_best_fitness': self.all_time_best_fitness,
        }


@dataclass
class EvolutionResult:
    """Outcome of a run: the all-time best individual and per-generation history"""
    best_genome: Genome
    best_phenotype: Phenotype
    best_fitness: float
    direction: Direction
    history: List[GenerationSummary] = field(default_factory=list)
    final_population: List[Genome] = field(default_factory=list)
    runtime_seconds: float = 0.0

    @property
    def generations_completed(self) -> int:
        return len(self.history)

    @property
    def final_mean_fitness(self) -> float:
        return self.history[-1].mean_fitness if self.history else math.nan

    def summary(self) -> str:
        """Generate summary string"""
        lines = [
            f"Generations: {self.generations_completed}",
            f"Best fitness: {self.best_fitness:.6g} ({self.direction.value})",
            f"Best phenotype: {self.best_phenotype.text}",
            f"Best genome: {self.best_genome.codons}",
            f"Runtime: {self.runtime_seconds:.1f}s",
        ]
        if not self.best_phenotype.valid:
            lines.append("Best phenotype is an incomplete derivation")
        return '\n'.join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'best_genome': self.best_genome.to_dict(),
            'best_phenotype': self.best_phenotype.text,
            'best_valid': self.best_phenotype.valid,
            'best_fitness': self.best_fitness,
            'direction': self.direction.value,
            'runtime_seconds': self.runtime_seconds,
            'history': [s.to_dict() for s in self.history],
        }


def _summarize(population: Population, best: Genome, all_time_best: float) -> GenerationSummary:
    fitnesses = [g.fitness for g in population.genomes]
    with np.errstate(all='ignore'):
        mean = float(np.mean(fitnesses))
        std = float(np.std(fitnesses))
    return GenerationSummary(
        generation=population.generation,
        best_fitness=best.fitness,
        mean_fitness=mean,
        std_fitness=std,
        best_phenotype=best.phenotype.text,
        best_codons=list(best.codons),
        invalid=sum(1 for g in population.genomes if not g.phenotype.valid),
        unique_genomes=len({tuple(g.codons) for g in population.genomes}),
        all_time_best_fitness=all_time_best,
    )


def run(config: EvolutionConfig, grammar: Grammar, fitness: FitnessFunction,
        rng: random.Random = None,
        on_generation: Callable[[GenerationSummary], None] = None) -> EvolutionResult:
    """Evolve for ``config.generations`` evaluated generations.

    ``rng`` defaults to ``random.Random(config.seed)``; identical seeds and
    configuration reproduce identical runs. The all-time best only changes
    when a later individual is strictly better.
    """
    config.validate()
    direction = config.resolve_direction(fitness.direction)
    if direction is not fitness.direction:
        raise ConfigurationError(
            f"configured direction {direction.value!r} conflicts with the fitness "
            f"function, which is optimized by {fitness.direction.value!r}")
    if rng is None:
        rng = random.Random(config.seed)

    start_time = time.time()
    population = Population.create_random(config, rng, direction)

    best_genome: Optional[Genome] = None
    history = []

    for gen in range(config.generations):
        population.evaluate(grammar, fitness, config.max_derivation_steps, config.max_wraps)

        current_best = population.best()
        if best_genome is None or direction.is_better(current_best.fitness, best_genome.fitness):
            best_genome = current_best.copy()

        summary = _summarize(population, current_best, best_genome.fitness)
        history.append(summary)
        logger.info("Generation %d: best=%.6g mean=%.6g invalid=%d",
                    gen, summary.best_fitness, summary.mean_fitness, summary.invalid)
        if on_generation is not None:
            on_generation(summary)

        if gen < config.generations - 1:
            population.evolve_generation(config, rng)

    return EvolutionResult(
        best_genome=best_genome,
        best_phenotype=best_genome.phenotype,
        best_fitness=best_genome.fitness,
        direction=direction,
        history=history,
        final_population=population.genomes,
        runtime_seconds=time.time() - start_time,
    )


def run_many(config: EvolutionConfig, grammar: Grammar, fitness: FitnessFunction,
             runs: int,
             on_generation: Callable[[int, GenerationSummary], None] = None) -> List[EvolutionResult]:
    """Independent repeated runs; run i is seeded with ``config.seed + i`` when a seed is set"""
    if runs < 1:
        raise ConfigurationError("runs must be at least 1")

    results = []
    for i in range(runs):
        seed = None if config.seed is None else config.seed + i
        callback = None
        if on_generation is not None:
            callback = lambda summary, run_index=i: on_generation(run_index, summary)
        logger.info("Starting run %d/%d", i + 1, runs)
        results.append(run(config.replace(seed=seed), grammar, fitness, on_generation=callback))
    return results


def summarize_runs(results: List[EvolutionResult]) -> Dict[str, Any]:
    """Overall best fitness and the mean of each run's final average fitness"""
    if not results:
        raise ConfigurationError("no results to summarize")
    direction = results[0].direction
    best = results[0]
    for result in results[1:]:
        if direction.is_better(result.best_fitness, best.best_fitness):
            best = result
    with np.errstate(all='ignore'):
        mean = float(np.mean([r.final_mean_fitness for r in results]))
    return {
        'runs': len(results),
        'overall_best_fitness': best.best_fitness,
        'overall_best_phenotype': best.best_phenotype.text,
        'overall_mean_fitness': mean,
    }
