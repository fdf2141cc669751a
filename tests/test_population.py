"""
Tests for Population.

Run with: python -m pytest tests/test_population.py -v
"""

import random

import pytest

from ge_evolution.config import EvolutionConfig
from ge_evolution.datasets import xor
from ge_evolution.exceptions import ConfigurationError
from ge_evolution.fitness import BooleanFitness, Direction
from ge_evolution.genome import Genome
from ge_evolution.grammar import boolean_grammar
from ge_evolution.population import Population


@pytest.fixture
def config():
    return EvolutionConfig(population_size=7, min_genome_length=4, max_genome_length=12,
                           elitism_count=2, generations=3, seed=0)


@pytest.fixture
def evaluated(config):
    population = Population.create_random(config, random.Random(0))
    population.evaluate(boolean_grammar(), BooleanFitness(xor))
    return population


class TestPopulation:
    """Tests for Population class."""

    def test_create_random_initialization(self, config):
        population = Population.create_random(config, random.Random(1))
        assert population.size == 7
        assert all(4 <= len(g) <= 12 for g in population.genomes)
        assert all(g.fitness is None for g in population.genomes)

    def test_empty_population_rejected(self):
        with pytest.raises(ConfigurationError):
            Population([])

    def test_evaluate_records_phenotype_and_fitness(self, evaluated):
        for genome in evaluated.genomes:
            assert genome.phenotype is not None
            assert 0.0 <= genome.fitness <= 8.0

    def test_breeding_requires_evaluation(self, config):
        population = Population.create_random(config, random.Random(1))
        with pytest.raises(ConfigurationError):
            population.evolve_generation(config, random.Random(1))

    def test_size_is_preserved_for_odd_child_counts(self, evaluated, config):
        evaluated.evolve_generation(config, random.Random(2))
        assert len(evaluated.genomes) == 7
        assert evaluated.generation == 1

    def test_elites_survive_unchanged(self, evaluated):
        config = EvolutionConfig(population_size=7, elitism_count=2,
                                 mutation_probability=1.0)
        best = [g.codons for g in evaluated.get_best(2)]
        evaluated.evolve_generation(config, random.Random(3))
        assert [g.codons for g in evaluated.genomes[:2]] == best
        assert evaluated.genomes[0].fitness is not None

    def test_children_are_unevaluated(self, evaluated, config):
        evaluated.evolve_generation(config, random.Random(4))
        assert all(g.fitness is None for g in evaluated.genomes[2:])

    def test_no_crossover_no_mutation_clones_parents(self, evaluated):
        config = EvolutionConfig(population_size=7, elitism_count=0,
                                 crossover_probability=0.0, mutation_probability=0.0)
        before = [g.codons for g in evaluated.genomes]
        evaluated.evolve_generation(config, random.Random(5))
        assert all(g.codons in before for g in evaluated.genomes)

    def test_individual_mutation_changes_one_locus(self, evaluated):
        config = EvolutionConfig(mutation_probability=1.0)
        children = [Genome([9] * 5) for _ in range(10)]
        mutated = evaluated.mutate_children(children, config, random.Random(6))
        for child in mutated:
            assert sum(c != 9 for c in child) == 1

    def test_codon_mutation_mode(self, evaluated):
        config = EvolutionConfig(mutation_mode='codon', mutation_probability=1.0,
                                 max_codon_value=0)
        mutated = evaluated.mutate_children([Genome([9] * 5)], config, random.Random(7))
        assert mutated[0].codons == [0] * 5


class TestBestAndStats:

    def test_best_is_first_in_population_order(self):
        genomes = [Genome([i]) for i in range(4)]
        for genome, fitness in zip(genomes, [1.0, 5.0, 5.0, 2.0]):
            genome.fitness = fitness
        population = Population(genomes)
        assert population.best() is genomes[1]

    def test_best_minimize(self):
        genomes = [Genome([i]) for i in range(3)]
        for genome, fitness in zip(genomes, [3.0, 0.5, 2.0]):
            genome.fitness = fitness
        assert Population(genomes, Direction.MINIMIZE).best() is genomes[1]

    def test_stats(self, evaluated):
        stats = evaluated.get_stats()
        assert stats['population_size'] == 7
        assert stats['fitness']['min'] <= stats['fitness']['mean'] <= stats['fitness']['max']
        assert 4 <= stats['length']['min'] <= stats['length']['max'] <= 12

    def test_diversity(self, evaluated):
        diversity = evaluated.diversity_stats()
        assert 1 <= diversity['unique_genomes'] <= 7
        assert 0.0 < diversity['phenotype_diversity'] <= 1.0
