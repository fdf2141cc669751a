"""
ge_evolution/fitness.py - Optimization direction and pluggable fitness functions
"""
import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Sequence, Union

import numpy as np

from .arithmetic import evaluate_arithmetic
from .ast_nodes import evaluate_tree
from .boolean_expr import evaluate_postfix, infix_to_postfix, tokenize
from .datasets import Dataset, truth_table
from .mapper import Phenotype
from .parser import try_parse_expression

logger = logging.getLogger(__name__)

DEFAULT_MSE_PENALTY = 1e10


class Direction(Enum):
    """Which way fitness improves"""
    MAXIMIZE = 'maximize'
    MINIMIZE = 'minimize'

    @classmethod
    def parse(cls, value: Union[str, 'Direction']) -> 'Direction':
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"unknown optimization direction {value!r}") from None

    @property
    def worst(self) -> float:
        return -math.inf if self is Direction.MAXIMIZE else math.inf

    def is_better(self, a: float, b: float) -> bool:
        """Strictly better; NaN is never better than anything"""
        if a is None or math.isnan(a):
            return False
        if b is None or math.isnan(b):
            return True
        return a > b if self is Direction.MAXIMIZE else a < b

    def sort_key(self, value: float) -> float:
        """Key that sorts best first in ascending order, NaN last"""
        if value is None or math.isnan(value):
            return math.inf
        return -value if self is Direction.MAXIMIZE else value


class FitnessFunction(ABC):
    """Scores phenotypes; invalid (truncated) phenotypes get ``penalty``"""

    direction = Direction.MAXIMIZE
    penalty = 0.0

    def __call__(self, phenotype: Union[Phenotype, str]) -> float:
        if isinstance(phenotype, Phenotype):
            if not phenotype.valid:
                return self.penalty
            phenotype = phenotype.text
        return self.score(phenotype)

    @abstractmethod
    def score(self, expression: str) -> float:
        """Fitness of a complete phenotype string"""
        pass

    def is_better(self, a: float, b: float) -> bool:
        return self.direction.is_better(a, b)


class BooleanFitness(FitnessFunction):
    """Number of truth-table rows on which the formula matches ``target``"""

    direction = Direction.MAXIMIZE
    penalty = 0.0

    def __init__(self, target: Callable[..., bool],
                 variables: Sequence[str] = ('A', 'B', 'C')):
        self.variables = tuple(variables)
        self.cases = [dict(zip(self.variables, row)) for row in truth_table(len(self.variables))]
        self.expected = [bool(target(*row)) for row in truth_table(len(self.variables))]

    @property
    def max_score(self) -> float:
        return float(len(self.cases))

    def score(self, expression: str) -> float:
        postfix = infix_to_postfix(tokenize(expression))
        matches = 0
        for case, expected in zip(self.cases, self.expected):
            result = evaluate_postfix(postfix, case)
            if (result is True) == expected:
                matches += 1
        return float(matches)


class RegressionFitness(FitnessFunction):
    """Mean squared error against a dataset.

    ``objective="mse"`` minimizes the raw error; ``objective="inverse"``
    maximizes ``1 / (1 + mse)``. ``evaluator="ast"`` parses the phenotype
    into a tree once and evaluates it over all rows; ``evaluator="direct"``
    re-evaluates the text row by row using variable names.
    """

    def __init__(self, dataset: Dataset, evaluator: str = 'ast',
                 objective: str = 'mse', penalty: float = None):
        if evaluator not in ('ast', 'direct'):
            raise ValueError(f"unknown evaluator {evaluator!r}")
        if objective not in ('mse', 'inverse'):
            raise ValueError(f"unknown objective {objective!r}")

        self.dataset = dataset
        self.evaluator = evaluator
        self.objective = objective
        if objective == 'mse':
            self.direction = Direction.MINIMIZE
            self.penalty = DEFAULT_MSE_PENALTY if penalty is None else float(penalty)
        else:
            self.direction = Direction.MAXIMIZE
            self.penalty = 0.0 if penalty is None else float(penalty)

    def predict(self, expression: str) -> np.ndarray:
        """Predicted output per row; all NaN when the text cannot be parsed"""
        if self.evaluator == 'direct':
            return np.array([evaluate_arithmetic(expression, self.dataset.assignment(i))
                             for i in range(len(self.dataset))])

        tree = try_parse_expression(expression, self.dataset.n_variables)
        if tree is None:
            return np.full(len(self.dataset), np.nan)
        return np.broadcast_to(evaluate_tree(tree, self.dataset.inputs),
                               self.dataset.targets.shape)

    def mse(self, expression: str) -> float:
        """Raw mean squared error; NaN or inf for unusable expressions"""
        with np.errstate(all='ignore'):
            errors = self.predict(expression) - self.dataset.targets
            return float(np.mean(errors * errors))

    def score(self, expression: str) -> float:
        mse = self.mse(expression)
        if not math.isfinite(mse):
            return self.penalty
        if self.objective == 'mse':
            return min(mse, self.penalty)
        return 1.0 / (1.0 + mse)
