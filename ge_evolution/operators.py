"""
ge_evolution/operators.py - Selection, crossover, mutation and elitism

Every operator takes its random source explicitly and returns new genomes;
parents are never modified.
"""
import random
from typing import List, Sequence, Tuple

from .exceptions import ConfigurationError
from .fitness import Direction
from .genome import Genome, MAX_CODON_VALUE


# =============================================================================
# Selection
# =============================================================================

def tournament_selection(genomes: Sequence[Genome], tournament_size: int,
                         direction: Direction, rng: random.Random) -> Genome:
    """
    Best of ``tournament_size`` uniform draws with replacement.

    Ties keep the first contestant drawn. Genomes must already carry a
    fitness value.
    """
    if not genomes:
        raise ConfigurationError("cannot select from an empty population")
    if tournament_size < 1:
        raise ConfigurationError(f"tournament size must be positive, got {tournament_size}")

    best = genomes[rng.randrange(len(genomes))]
    for _ in range(tournament_size - 1):
        contender = genomes[rng.randrange(len(genomes))]
        if direction.is_better(contender.fitness, best.fitness):
            best = contender
    return best


def select_elites(genomes: Sequence[Genome], count: int,
                  direction: Direction) -> List[Genome]:
    """Copies of the ``count`` best genomes; equal fitness keeps population order"""
    if count <= 0:
        return []
    ranked = sorted(genomes, key=lambda g: direction.sort_key(g.fitness))
    return [g.copy() for g in ranked[:count]]


# =============================================================================
# Crossover
# =============================================================================

def one_point_crossover(parent1: Genome, parent2: Genome,
                        rng: random.Random) -> Tuple[Genome, Genome]:
    """
    Swap tails at one cut point in [0, min(len(parent1), len(parent2))).

    The children's combined length equals the parents' combined length.
    """
    point = rng.randrange(min(len(parent1), len(parent2)))
    child1 = parent1.codons[:point] + parent2.codons[point:]
    child2 = parent2.codons[:point] + parent1.codons[point:]
    return parent1.offspring(child1), parent2.offspring(child2)


# =============================================================================
# Mutation
# =============================================================================

def mutate(genome: Genome, rng: random.Random,
           max_codon_value: int = MAX_CODON_VALUE) -> Genome:
    """
    Replace the codon at one random locus with a different value drawn
    uniformly from [0, max_codon_value].

    With ``max_codon_value=0`` a codon already 0 has no alternative and
    stays unchanged.
    """
    codons = list(genome.codons)
    locus = rng.randrange(len(codons))
    old = codons[locus]
    if 0 <= old <= max_codon_value and max_codon_value > 0:
        value = rng.randint(0, max_codon_value - 1)
        codons[locus] = value + 1 if value >= old else value
    else:
        codons[locus] = rng.randint(0, max_codon_value)
    return genome.offspring(codons)


def mutate_per_codon(genome: Genome, probability: float, rng: random.Random,
                     max_codon_value: int = MAX_CODON_VALUE) -> Genome:
    """Independently replace each codon with the given probability"""
    codons = [rng.randint(0, max_codon_value) if rng.random() < probability else c
              for c in genome.codons]
    return genome.offspring(codons)
