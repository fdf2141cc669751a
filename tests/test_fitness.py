"""
Tests for optimization direction and fitness functions.

Run with: python -m pytest tests/test_fitness.py -v
"""

import math

import numpy as np
import pytest

from ge_evolution.datasets import Dataset, sample_regression_dataset, xor
from ge_evolution.fitness import (
    DEFAULT_MSE_PENALTY,
    BooleanFitness,
    Direction,
    RegressionFitness,
)
from ge_evolution.grammar import vladislavleva_grammar
from ge_evolution.mapper import Phenotype, map_genome


@pytest.fixture
def doubling_dataset():
    return Dataset.from_rows([((1.0,), 2.0), ((2.0,), 4.0), ((3.0,), 6.0)])


class TestDirection:

    def test_parse(self):
        assert Direction.parse('MAXIMIZE') is Direction.MAXIMIZE
        assert Direction.parse(Direction.MINIMIZE) is Direction.MINIMIZE
        with pytest.raises(ValueError):
            Direction.parse('sideways')

    def test_is_better_is_strict(self):
        assert Direction.MAXIMIZE.is_better(2.0, 1.0)
        assert not Direction.MAXIMIZE.is_better(1.0, 1.0)
        assert Direction.MINIMIZE.is_better(1.0, 2.0)
        assert not Direction.MINIMIZE.is_better(2.0, 2.0)

    def test_nan_never_better(self):
        nan = float('nan')
        for direction in Direction:
            assert not direction.is_better(nan, 0.0)
            assert direction.is_better(0.0, nan)
            assert not direction.is_better(nan, nan)

    def test_sort_key_puts_best_first(self):
        values = [1.0, float('nan'), 3.0, 2.0]
        assert sorted(values, key=Direction.MAXIMIZE.sort_key)[:3] == [3.0, 2.0, 1.0]
        assert sorted(values, key=Direction.MINIMIZE.sort_key)[:3] == [1.0, 2.0, 3.0]

    def test_worst(self):
        assert Direction.MAXIMIZE.worst == -math.inf
        assert Direction.MINIMIZE.worst == math.inf


class TestBooleanFitness:
    """Truth-table match counting."""

    def test_perfect_formula(self):
        fitness = BooleanFitness(lambda a, b, c: (a and b) or c)
        assert fitness.max_score == 8.0
        assert fitness("A AND B OR C") == 8.0

    def test_single_variable_against_xor(self):
        assert BooleanFitness(xor)("A") == 4.0

    def test_malformed_formula_matches_false_rows(self):
        # evaluates False on every row; xor is False on four of them
        assert BooleanFitness(xor)("AND") == 4.0

    def test_invalid_phenotype_scores_penalty(self):
        fitness = BooleanFitness(xor)
        assert fitness(Phenotype("A", valid=False)) == 0.0
        assert fitness(Phenotype("A")) == 4.0

    def test_two_input_variables(self):
        fitness = BooleanFitness(lambda a, b: a != b, variables=('A', 'B'))
        assert len(fitness.cases) == 4
        assert fitness("( A AND NOT B ) OR ( NOT A AND B )") == 4.0

    def test_maximized(self):
        fitness = BooleanFitness(xor)
        assert fitness.direction is Direction.MAXIMIZE
        assert fitness.is_better(5.0, 4.0)


class TestRegressionFitness:
    """MSE scoring with both evaluators."""

    def test_exact_expression(self, doubling_dataset):
        fitness = RegressionFitness(doubling_dataset)
        assert fitness.direction is Direction.MINIMIZE
        assert fitness("x[0] * 2.0") == 0.0

    def test_mse_value(self, doubling_dataset):
        fitness = RegressionFitness(doubling_dataset)
        assert fitness("x[0]") == pytest.approx(14.0 / 3.0)

    def test_inverse_objective(self, doubling_dataset):
        fitness = RegressionFitness(doubling_dataset, objective='inverse')
        assert fitness.direction is Direction.MAXIMIZE
        assert fitness("x[0] * 2.0") == 1.0
        assert fitness("x[0]") == pytest.approx(1.0 / (1.0 + 14.0 / 3.0))

    @pytest.mark.parametrize('expression', [
        "x[0] +",
        "x[0] / 0.0",
        "x[1]",
        "sqrt( 0.0 - x[0] )",
    ])
    def test_unusable_expressions_get_penalty(self, doubling_dataset, expression):
        assert RegressionFitness(doubling_dataset)(expression) == DEFAULT_MSE_PENALTY
        assert RegressionFitness(doubling_dataset, objective='inverse')(expression) == 0.0

    def test_huge_error_is_clamped(self, doubling_dataset):
        fitness = RegressionFitness(doubling_dataset)
        assert fitness.mse("pow( 10.0 , 10.0 )") > DEFAULT_MSE_PENALTY
        assert fitness("pow( 10.0 , 10.0 )") == DEFAULT_MSE_PENALTY

    def test_invalid_phenotype_gets_penalty(self, doubling_dataset):
        fitness = RegressionFitness(doubling_dataset, penalty=99.0)
        assert fitness(Phenotype("x[0] * 2.0", valid=False)) == 99.0

    def test_direct_evaluator_uses_variable_names(self):
        fitness = RegressionFitness(sample_regression_dataset(), evaluator='direct')
        # errors 0.09 and 0.21
        assert fitness("x + y") == pytest.approx(0.0261)
        assert fitness("x +") == DEFAULT_MSE_PENALTY

    def test_evaluators_agree(self, doubling_dataset):
        named = Dataset(doubling_dataset.inputs, doubling_dataset.targets,
                        variable_names=('x',))
        ast = RegressionFitness(doubling_dataset)
        direct = RegressionFitness(named, evaluator='direct')
        assert ast("x[0] * x[0] - 1.0") == pytest.approx(direct("x * x - 1.0"))

    def test_rejects_unknown_options(self, doubling_dataset):
        with pytest.raises(ValueError):
            RegressionFitness(doubling_dataset, evaluator='eval')
        with pytest.raises(ValueError):
            RegressionFitness(doubling_dataset, objective='mae')

    def test_deeply_nested_phenotype_gets_penalty(self):
        # 332 nested sqrt( ... ) around x[0], valid under the default step cap
        phenotype = map_genome([3] * 332 + [4, 0], vladislavleva_grammar(5))
        assert phenotype.valid
        dataset = Dataset(np.ones((3, 5)), np.ones(3))
        assert RegressionFitness(dataset)(phenotype) == DEFAULT_MSE_PENALTY

    def test_deeply_nested_direct_expression_gets_penalty(self):
        text = "( " * 400 + "x" + " )" * 400
        fitness = RegressionFitness(sample_regression_dataset(), evaluator='direct')
        assert fitness(text) == DEFAULT_MSE_PENALTY
