"""
ge_evolution/population.py - Population management and generation replacement
"""
import logging
import random
from typing import List, Optional, Dict, Any

import numpy as np

from .config import EvolutionConfig
from .exceptions import ConfigurationError
from .fitness import Direction, FitnessFunction
from .genome import Genome, create_random_genomes
from .grammar import Grammar
from .mapper import DEFAULT_MAX_STEPS, map_genome
from .operators import (mutate, mutate_per_codon, one_point_crossover,
                        select_elites, tournament_selection)

logger = logging.getLogger(__name__)


class Population:
    """A fixed-size list of genomes evolved one generation at a time"""

    def __init__(self, genomes: List[Genome], direction: Direction = Direction.MAXIMIZE,
                 generation: int = 0):
        if not genomes:
            raise ConfigurationError("population must contain at least one genome")
        self.genomes = list(genomes)
        self.size = len(self.genomes)
        self.direction = direction
        self.generation = generation

    @classmethod
    def create_random(cls, config: EvolutionConfig, rng: random.Random,
               direction: Direction = Direction.MAXIMIZE) -> 'Population':
        """Independently initialized genomes sized by the config's length bounds"""
        genomes = create_random_genomes(config.population_size, rng,
                                        config.min_genome_length,
                                        config.max_genome_length,
                                        config.max_codon_value)
        return cls(genomes, direction)

    def evaluate(self, grammar: Grammar, fitness: FitnessFunction,
                 max_steps: int = DEFAULT_MAX_STEPS, max_wraps: int = None) -> None:
        """Map every genome to its phenotype and score it"""
        invalid = 0
        for genome in self.genomes:
            genome.phenotype = map_genome(genome, grammar, max_steps, max_wraps)
            genome.fitness = float(fitness(genome.phenotype))
            if not genome.phenotype.valid:
                invalid += 1
        if invalid:
            logger.debug("Generation %d: %d/%d phenotypes incomplete",
                         self.generation, invalid, self.size)

    def _check_evaluated(self) -> None:
        if any(g.fitness is None for g in self.genomes):
            raise ConfigurationError("population must be evaluated before breeding")

    def breed(self, count: int, config: EvolutionConfig, rng: random.Random) -> List[Genome]:
        """Produce exactly ``count`` children from tournament-selected parent pairs"""
        self._check_evaluated()
        children = []
        while len(children) < count:
            parent1 = tournament_selection(self.genomes, config.tournament_size,
                                           self.direction, rng)
            parent2 = tournament_selection(self.genomes, config.tournament_size,
                                           self.direction, rng)

            if rng.random() < config.crossover_probability:
                child1, child2 = one_point_crossover(parent1, parent2, rng)
            else:
                child1, child2 = parent1.offspring(), parent2.offspring()

            children.append(child1)
            if len(children) < count:
                children.append(child2)
        return children

    def mutate_children(self, children: List[Genome], config: EvolutionConfig,
                        rng: random.Random) -> List[Genome]:
        """Apply the configured mutation policy to freshly bred children"""
        mutated = []
        for child in children:
            if config.mutation_mode == 'codon':
                child = mutate_per_codon(child, config.mutation_probability, rng,
                                         config.max_codon_value)
            elif rng.random() < config.mutation_probability:
                child = mutate(child, rng, config.max_codon_value)
            mutated.append(child)
        return mutated

    def evolve_generation(self, config: EvolutionConfig, rng: random.Random) -> None:
        """Replace the population: elites first, then bred and mutated children"""
        self._check_evaluated()
        elites = select_elites(self.genomes, config.elitism_count, self.direction)
        children = self.breed(self.size - len(elites), config, rng)
        children = self.mutate_children(children, config, rng)

        self.genomes = elites + children
        self.generation += 1

    def get_best(self, n: int = 1) -> List[Genome]:
        """Get the best n genomes"""
        ranked = sorted(self.genomes, key=lambda g: self.direction.sort_key(g.fitness))
        return ranked[:n]

    def best(self) -> Optional[Genome]:
        """First genome with the best fitness, in population order"""
        best = None
        for genome in self.genomes:
            if best is None or self.direction.is_better(genome.fitness, best.fitness):
                best = genome
        return best

    def get_stats(self) -> Dict[str, Any]:
        """Get population statistics"""
        fitnesses = [g.fitness for g in self.genomes if g.fitness is not None]
        lengths = [len(g) for g in self.genomes]
        used = [g.phenotype.used_codons for g in self.genomes if g.phenotype is not None]

        stats = {
            'generation': self.generation,
            'population_size': self.size,
            'invalid': sum(1 for g in self.genomes
                           if g.phenotype is not None and not g.phenotype.valid),
            'length': {
                'min': min(lengths),
                'max': max(lengths),
                'mean': float(np.mean(lengths)),
                'std': float(np.std(lengths))
            },
        }
        if fitnesses:
            stats['fitness'] = {
                'min': min(fitnesses),
                'max': max(fitnesses),
                'mean': float(np.mean(fitnesses)),
                'std': float(np.std(fitnesses))
            }
        if used:
            stats['used_codons'] = {
                'min': min(used),
                'max': max(used),
                'mean': float(np.mean(used)),
            }
        return stats

    def diversity_stats(self) -> Dict[str, float]:
        """Share of distinct genotypes and phenotypes"""
        unique_genomes = len({tuple(g.codons) for g in self.genomes})
        phenotypes = [g.phenotype.text for g in self.genomes if g.phenotype is not None]
        unique_phenotypes = len(set(phenotypes))

        return {
            'unique_genomes': unique_genomes,
            'genotype_diversity': unique_genomes / self.size,
            'unique_phenotypes': unique_phenotypes,
            'phenotype_diversity': unique_phenotypes / len(phenotypes) if phenotypes else 0.0,
        }
