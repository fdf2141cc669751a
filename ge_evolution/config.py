"""
ge_evolution/config.py - Run configuration
"""
import json
from dataclasses import dataclass, asdict, fields, replace
from typing import Dict, Any, Optional

from .exceptions import ConfigurationError
from .fitness import Direction
from .genome import MAX_CODON_VALUE, MAX_GENOME_LENGTH
from .mapper import DEFAULT_MAX_STEPS

MUTATION_MODES = ('individual', 'codon')


@dataclass(frozen=True)
class EvolutionConfig:
    """Parameters of one evolutionary run.

    ``mutation_probability`` is applied once per bred individual when
    ``mutation_mode`` is ``"individual"`` (one random locus changes), or to
    every codon independently when it is ``"codon"``. ``direction`` of None
    means the fitness function's own direction is used.
    """
    population_size: int = 100
    min_genome_length: int = 1
    max_genome_length: int = MAX_GENOME_LENGTH
    max_codon_value: int = MAX_CODON_VALUE
    tournament_size: int = 3
    crossover_probability: float = 0.9
    mutation_probability: float = 0.01
    mutation_mode: str = 'individual'
    elitism_count: int = 2
    generations: int = 20
    direction: Optional[str] = None
    max_derivation_steps: int = DEFAULT_MAX_STEPS
    max_wraps: Optional[int] = None
    seed: Optional[int] = None

    def validate(self) -> 'EvolutionConfig':
        """Raise ConfigurationError for any unusable setting"""
        if self.population_size < 1:
            raise ConfigurationError("population_size must be at least 1")
        if self.min_genome_length < 1:
            raise ConfigurationError("min_genome_length must be at least 1")
        if self.max_genome_length < self.min_genome_length:
            raise ConfigurationError("max_genome_length must be >= min_genome_length")
        if self.max_codon_value < 0:
            raise ConfigurationError("max_codon_value must be non-negative")
        if self.tournament_size < 1:
            raise ConfigurationError("tournament_size must be at least 1")
        for name in ('crossover_probability', 'mutation_probability'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be in [0, 1], got {value}")
        if self.mutation_mode not in MUTATION_MODES:
            raise ConfigurationError(
                f"mutation_mode must be one of {MUTATION_MODES}, got {self.mutation_mode!r}")
        if not 0 <= self.elitism_count <= self.population_size:
            raise ConfigurationError("elitism_count must be between 0 and population_size")
        if self.generations < 1:
            raise ConfigurationError("generations must be at least 1")
        if self.max_derivation_steps < 1:
            raise ConfigurationError("max_derivation_steps must be at least 1")
        if self.max_wraps is not None and self.max_wraps < 0:
            raise ConfigurationError("max_wraps must be non-negative")
        if self.direction is not None:
            try:
                Direction.parse(self.direction)
            except ValueError as e:
                raise ConfigurationError(str(e)) from None
        return self

    def resolve_direction(self, default: Direction) -> Direction:
        if self.direction is None:
            return default
        return Direction.parse(self.direction)

    def replace(self, **changes) -> 'EvolutionConfig':
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if isinstance(self.direction, Direction):
            data['direction'] = self.direction.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"unknown config keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, json_data: str = None, filename: str = None) -> 'EvolutionConfig':
        """Load from a JSON string or file"""
        if filename:
            with open(filename, 'r') as f:
                json_data = f.read()
        return cls.from_dict(json.loads(json_data))
