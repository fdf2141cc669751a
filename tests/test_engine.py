"""
Tests for the generational loop.

Run with: python -m pytest tests/test_engine.py -v
"""

import random

import pytest

from ge_evolution.config import EvolutionConfig
from ge_evolution.datasets import Dataset, sample_regression_dataset, xor
from ge_evolution.engine import run, run_many, summarize_runs
from ge_evolution.exceptions import ConfigurationError
from ge_evolution.fitness import BooleanFitness, Direction, RegressionFitness
from ge_evolution.grammar import arithmetic_grammar, boolean_grammar, vladislavleva_grammar
from ge_evolution.mapper import map_genome


@pytest.fixture
def config():
    return EvolutionConfig(population_size=20, min_genome_length=5, max_genome_length=15,
                           generations=6, mutation_probability=0.2, seed=42)


def history_dicts(result):
    return [s.to_dict() for s in result.history]


class TestRun:
    """Tests for run()."""

    def test_same_seed_reproduces_run(self, config):
        a = run(config, boolean_grammar(), BooleanFitness(xor))
        b = run(config, boolean_grammar(), BooleanFitness(xor))
        assert history_dicts(a) == history_dicts(b)
        assert a.best_genome == b.best_genome
        assert [g.codons for g in a.final_population] == [g.codons for g in b.final_population]

    def test_explicit_rng_matches_seed(self, config):
        a = run(config, boolean_grammar(), BooleanFitness(xor))
        b = run(config.replace(seed=None), boolean_grammar(), BooleanFitness(xor),
                rng=random.Random(42))
        assert history_dicts(a) == history_dicts(b)

    def test_history_covers_every_generation(self, config):
        seen = []
        result = run(config, boolean_grammar(), BooleanFitness(xor), on_generation=seen.append)
        assert result.generations_completed == 6
        assert [s.generation for s in result.history] == list(range(6))
        assert seen == result.history

    def test_best_phenotype_matches_genome(self, config):
        result = run(config, boolean_grammar(), BooleanFitness(xor))
        assert result.best_phenotype == map_genome(result.best_genome, boolean_grammar())
        assert result.best_fitness == BooleanFitness(xor)(result.best_phenotype)
        assert 0.0 <= result.best_fitness <= 8.0

    def test_all_time_best_is_a_ratchet(self, config):
        result = run(config.replace(elitism_count=0), boolean_grammar(), BooleanFitness(xor))
        ratchet = [s.all_time_best_fitness for s in result.history]
        assert ratchet == sorted(ratchet)
        assert result.best_fitness == max(s.best_fitness for s in result.history)

    def test_elitism_keeps_generation_best(self, config):
        dataset = sample_regression_dataset()
        fitness = RegressionFitness(dataset, evaluator='direct', objective='mse')
        result = run(config.replace(elitism_count=1), arithmetic_grammar(), fitness)
        bests = [s.best_fitness for s in result.history]
        assert all(later <= earlier for earlier, later in zip(bests, bests[1:]))
        assert result.direction is Direction.MINIMIZE
        assert result.best_fitness == bests[-1]

    def test_inverse_objective_is_bounded(self, config):
        fitness = RegressionFitness(sample_regression_dataset(), evaluator='direct',
                                    objective='inverse')
        result = run(config, arithmetic_grammar(), fitness)
        assert 0.0 <= result.best_fitness <= 1.0

    def test_incomplete_derivations_do_not_abort(self, config):
        # a one-step cap cuts off every derivation
        result = run(config.replace(max_derivation_steps=1), boolean_grammar(),
                     BooleanFitness(xor))
        assert result.best_fitness == 0.0
        assert not result.best_phenotype.valid
        assert all(s.invalid == 20 for s in result.history)
        assert "incomplete" in result.summary()

    def test_ast_regression(self):
        dataset = Dataset.from_rows([((x,), 2.0 * x) for x in (0.5, 1.0, 2.0, 3.0)])
        config = EvolutionConfig(population_size=30, min_genome_length=5,
                                 max_genome_length=20, generations=5, seed=3)
        fitness = RegressionFitness(dataset)
        result = run(config, vladislavleva_grammar(1), fitness)
        assert result.best_fitness <= result.history[0].best_fitness
        assert result.best_fitness == fitness(result.best_phenotype)

    def test_direction_conflict(self, config):
        with pytest.raises(ConfigurationError):
            run(config.replace(direction='minimize'), boolean_grammar(), BooleanFitness(xor))

    def test_matching_direction_accepted(self, config):
        result = run(config.replace(direction='maximize', generations=1),
                     boolean_grammar(), BooleanFitness(xor))
        assert result.direction is Direction.MAXIMIZE

    def test_invalid_config(self, config):
        with pytest.raises(ConfigurationError):
            run(config.replace(population_size=0), boolean_grammar(), BooleanFitness(xor))

    def test_result_serialization(self, config):
        result = run(config.replace(generations=2), boolean_grammar(), BooleanFitness(xor))
        data = result.to_dict()
        assert data['direction'] == 'maximize'
        assert len(data['history']) == 2
        assert data['best_genome']['codons'] == result.best_genome.codons


class TestRunMany:

    def test_runs_are_seeded_in_sequence(self, config):
        small = config.replace(generations=3)
        results = run_many(small, boolean_grammar(), BooleanFitness(xor), runs=2)
        assert len(results) == 2
        second = run(small.replace(seed=43), boolean_grammar(), BooleanFitness(xor))
        assert history_dicts(results[1]) == history_dicts(second)

    def test_callback_receives_run_index(self, config):
        calls = []
        run_many(config.replace(generations=2), boolean_grammar(), BooleanFitness(xor),
                 runs=3, on_generation=lambda i, s: calls.append((i, s.generation)))
        assert calls == [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1)]

    def test_summarize_runs(self, config):
        results = run_many(config.replace(generations=2), boolean_grammar(),
                           BooleanFitness(xor), runs=3)
        overview = summarize_runs(results)
        assert overview['runs'] == 3
        assert overview['overall_best_fitness'] == max(r.best_fitness for r in results)

    def test_needs_a_run(self, config):
        with pytest.raises(ConfigurationError):
            run_many(config, boolean_grammar(), BooleanFitness(xor), runs=0)
        with pytest.raises(ConfigurationError):
            summarize_runs([])
