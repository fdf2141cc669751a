"""
ge_evolution/mapper.py - Genotype to phenotype derivation through a grammar
"""
import logging
from dataclasses import dataclass
from typing import List, Sequence, Union

from .exceptions import ConfigurationError
from .genome import Genome
from .grammar import Grammar

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 1000


@dataclass(frozen=True)
class Phenotype:
    """Terminal symbols produced by a derivation, space separated.

    ``valid`` is False when the derivation was cut off before the symbol
    stack emptied; ``text`` then holds the partial output.
    """
    text: str
    valid: bool = True
    steps: int = 0
    used_codons: int = 0
    wraps: int = 0

    @property
    def tokens(self) -> List[str]:
        return self.text.split()

    def __str__(self) -> str:
        return self.text


def map_genome(genome: Union[Genome, Sequence[int]], grammar: Grammar,
               max_steps: int = DEFAULT_MAX_STEPS, max_wraps: int = None) -> Phenotype:
    """Derive a phenotype by leftmost expansion from the grammar's start symbol.

    Each non-terminal consumes the next codon (``codon % n_productions``
    picks the production). The codon cursor wraps around the genome. Every
    popped symbol counts as a step; hitting ``max_steps`` with symbols still
    pending, or needing more than ``max_wraps`` passes over the genome,
    returns the partial output marked invalid.
    """
    codons = genome.codons if isinstance(genome, Genome) else list(genome)
    if not codons:
        raise ConfigurationError("cannot map an empty genome")
    if max_steps < 1:
        raise ConfigurationError("max_steps must be at least 1")

    n_codons = len(codons)
    output = []
    stack = [grammar.start_symbol]
    cursor = 0
    steps = 0
    valid = True

    while stack:
        if steps >= max_steps:
            valid = False
            logger.debug("Derivation stopped after %d steps with %d symbols pending",
                         steps, len(stack))
            break

        symbol = stack.pop()
        steps += 1

        productions = grammar.lookup(symbol)
        if productions is None:
            output.append(symbol)
            continue

        if max_wraps is not None and cursor // n_codons > max_wraps:
            valid = False
            logger.debug("Derivation exceeded %d wraps", max_wraps)
            break

        codon = codons[cursor % n_codons]
        production = productions[codon % len(productions)]
        cursor += 1
        stack.extend(reversed(production))

    wraps = (cursor - 1) // n_codons if cursor else 0
    return Phenotype(' '.join(output), valid, steps, cursor, wraps)
