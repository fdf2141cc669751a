"""
ge_evolution/datasets.py - Regression datasets, benchmark targets and truth tables
"""
import itertools
from typing import Callable, Iterable, Iterator, List, Sequence, Tuple

import numpy as np


class Dataset:
    """Rows of (input vector, target output) with named input variables"""

    def __init__(self, inputs, targets, variable_names: Sequence[str] = None):
        inputs = np.asarray(inputs, dtype=float)
        targets = np.asarray(targets, dtype=float)
        if inputs.ndim == 1:
            inputs = inputs.reshape(-1, 1)
        if inputs.ndim != 2:
            raise ValueError(f"inputs must be 2-D, got shape {inputs.shape}")
        if targets.shape != (inputs.shape[0],):
            raise ValueError(
                f"expected {inputs.shape[0]} targets, got shape {targets.shape}")
        if len(inputs) == 0:
            raise ValueError("dataset has no rows")

        if variable_names is None:
            variable_names = default_variable_names(inputs.shape[1])
        if len(variable_names) != inputs.shape[1]:
            raise ValueError(
                f"{len(variable_names)} variable names for {inputs.shape[1]} inputs")

        self.inputs = inputs
        self.targets = targets
        self.variable_names = tuple(variable_names)

    @classmethod
    def from_rows(cls, rows: Iterable[Tuple[Sequence[float], float]],
                  variable_names: Sequence[str] = None) -> 'Dataset':
        rows = list(rows)
        inputs = [list(x) for x, _ in rows]
        targets = [y for _, y in rows]
        return cls(inputs, targets, variable_names)

    @property
    def n_variables(self) -> int:
        return self.inputs.shape[1]

    def assignment(self, row: int) -> dict:
        """Variable name to value mapping for one row"""
        return dict(zip(self.variable_names, self.inputs[row].tolist()))

    def __len__(self) -> int:
        return len(self.targets)

    def __iter__(self) -> Iterator[Tuple[np.ndarray, float]]:
        for x, y in zip(self.inputs, self.targets):
            yield x, float(y)

    def __repr__(self) -> str:
        return f"Dataset(rows={len(self)}, variables={self.variable_names})"


def default_variable_names(n_variables: int) -> Tuple[str, ...]:
    return tuple(f"x[{i}]" for i in range(n_variables))


def generate_dataset(target: Callable[[np.ndarray], np.ndarray], n_samples: int,
                     n_variables: int, low: float, high: float,
                     rng: np.random.Generator,
                     variable_names: Sequence[str] = None) -> Dataset:
    """Sample inputs uniformly in [low, high) and label them with ``target``.

    ``target`` receives the whole (n_samples, n_variables) matrix and returns
    one value per row.
    """
    inputs = rng.uniform(low, high, size=(n_samples, n_variables))
    targets = np.asarray(target(inputs), dtype=float)
    return Dataset(inputs, targets, variable_names)


def save_dataset(dataset: Dataset, filename: str) -> None:
    """Write rows as ``x0,x1,...,y`` lines"""
    table = np.column_stack([dataset.inputs, dataset.targets])
    np.savetxt(filename, table, delimiter=',', fmt='%.17g')


def load_dataset(filename: str, variable_names: Sequence[str] = None) -> Dataset:
    """Read ``x0,x1,...,y`` lines; the last column is the target"""
    table = np.loadtxt(filename, delimiter=',', ndmin=2)
    return Dataset(table[:, :-1], table[:, -1], variable_names)


# Benchmark targets

def vladislavleva4(x: np.ndarray) -> np.ndarray:
    """10 / (5 + sum_i (x_i - 3)^2) over the last axis"""
    x = np.asarray(x, dtype=float)
    return 10.0 / (5.0 + np.sum((x - 3.0) ** 2, axis=-1))


def vladislavleva4_datasets(rng: np.random.Generator, n_train: int = 1024,
                            n_test: int = 5000) -> Tuple[Dataset, Dataset]:
    """Training set on [0.05, 6.05) and wider test set on [-0.25, 6.35)"""
    train = generate_dataset(vladislavleva4, n_train, 5, 0.05, 6.05, rng)
    test = generate_dataset(vladislavleva4, n_test, 5, -0.25, 6.35, rng)
    return train, test


def sample_regression_dataset() -> Dataset:
    """Two points of y ~ x + y used by the two-variable regression example"""
    return Dataset.from_rows([((0.1, 0.3), 0.31), ((0.2, 0.6), 0.59)],
                             variable_names=('x', 'y'))


def parity(*bits: bool) -> bool:
    """True when an odd number of inputs are true"""
    return sum(bool(b) for b in bits) % 2 == 1


def xor(a: bool, b: bool, c: bool) -> bool:
    return a ^ b ^ c


def truth_table(n_inputs: int) -> List[Tuple[bool, ...]]:
    """All input combinations in binary counting order, all-false first"""
    return list(itertools.product((False, True), repeat=n_inputs))
