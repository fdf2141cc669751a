"""
ge_evolution/genome.py - Codon-string genome and JSON serialization
"""
import json
import random
from typing import Dict, Any, Iterable, Iterator, List, Optional

from .exceptions import ConfigurationError

MAX_GENOME_LENGTH = 100
MAX_CODON_VALUE = 255


class Genome:
    """An individual: an ordered list of non-negative integer codons.

    The evaluation record (phenotype and fitness) belongs to the current
    generation and is never carried over to offspring.
    """

    def __init__(self, codons: Iterable[int]):
        codons = [int(c) for c in codons]
        if not codons:
            raise ConfigurationError("genome must contain at least one codon")
        if any(c < 0 for c in codons):
            raise ConfigurationError("codons must be non-negative")
        self.codons = codons

        self.phenotype = None
        self.fitness: Optional[float] = None

    @property
    def evaluated(self) -> bool:
        return self.fitness is not None

    @property
    def valid(self) -> bool:
        """False when the last mapping hit the derivation cap"""
        return self.phenotype is not None and self.phenotype.valid

    def copy(self) -> 'Genome':
        """Independent copy of this genome including its evaluation record"""
        new_genome = Genome(self.codons)
        new_genome.phenotype = self.phenotype
        new_genome.fitness = self.fitness
        return new_genome

    def offspring(self, codons: Iterable[int] = None) -> 'Genome':
        """Fresh, unevaluated genome with these codons (or a copy of ours)"""
        return Genome(self.codons if codons is None else codons)

    def extend(self, length: int, rng: random.Random,
               max_codon_value: int = MAX_CODON_VALUE) -> None:
        """Append ``length`` random codons"""
        for _ in range(length):
            self.codons.append(rng.randint(0, max_codon_value))

    def truncate(self, length: int) -> None:
        """Drop up to ``length`` codons from the end, keeping at least one"""
        keep = max(1, len(self.codons) - length)
        del self.codons[keep:]

    def __len__(self) -> int:
        return len(self.codons)

    def __getitem__(self, index):
        return self.codons[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.codons)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Genome):
            return NotImplemented
        return self.codons == other.codons

    __hash__ = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize genome to dictionary"""
        data = {
            'codons': list(self.codons),
            'fitness': self.fitness,
        }
        if self.phenotype is not None:
            data['phenotype'] = self.phenotype.text
            data['valid'] = self.phenotype.valid
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Genome':
        """Deserialize genome from dictionary (the phenotype is re-derived on evaluation)"""
        genome = cls(data['codons'])
        genome.fitness = data.get('fitness')
        return genome

    def to_json(self, filename: str = None) -> str:
        """Serialize to JSON string or file"""
        json_str = json.dumps(self.to_dict(), indent=2)
        if filename:
            with open(filename, 'w') as f:
                f.write(json_str)
        return json_str

    @classmethod
    def from_json(cls, json_data: str = None, filename: str = None) -> 'Genome':
        """Deserialize from JSON string or file"""
        if filename:
            with open(filename, 'r') as f:
                json_data = f.read()

        data = json.loads(json_data)
        return cls.from_dict(data)

    def __repr__(self) -> str:
        return f"Genome({self.codons!r})"

    def __str__(self) -> str:
        codons = ', '.join(str(c) for c in self.codons[:20])
        if len(self.codons) > 20:
            codons += ', ...'
        lines = [f"Genome (length {len(self.codons)}): [{codons}]"]
        if self.fitness is not None:
            lines.append(f"  Fitness: {self.fitness:.4f}")
        if self.phenotype is not None:
            text = self.phenotype.text
            lines.append(f"  Phenotype: {text[:100]}{'...' if len(text) > 100 else ''}")
        return '\n'.join(lines)


def create_random_genome(rng: random.Random, min_length: int = 1,
                         max_length: int = MAX_GENOME_LENGTH,
                         max_codon_value: int = MAX_CODON_VALUE) -> Genome:
    """Random genome; length uniform in [min_length, max_length], codons in [0, max_codon_value]"""
    if min_length < 1 or max_length < min_length:
        raise ConfigurationError(
            f"invalid genome length bounds [{min_length}, {max_length}]")
    if max_codon_value < 0:
        raise ConfigurationError("max_codon_value must be non-negative")
    length = rng.randint(min_length, max_length)
    return Genome(rng.randint(0, max_codon_value) for _ in range(length))


def create_random_genomes(count: int, rng: random.Random, min_length: int = 1,
                          max_length: int = MAX_GENOME_LENGTH,
                          max_codon_value: int = MAX_CODON_VALUE) -> List[Genome]:
    """Independently initialized genomes"""
    return [create_random_genome(rng, min_length, max_length, max_codon_value)
            for _ in range(count)]
