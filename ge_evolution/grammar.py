"""
ge_evolution/grammar.py - Context-free grammar rule table and BNF loading
"""
import logging
from types import MappingProxyType
from typing import Dict, Any, List, Mapping, Optional, Sequence, Tuple, Union

from .exceptions import GrammarError

logger = logging.getLogger(__name__)

Production = Tuple[str, ...]
ProductionSpec = Union[str, Sequence[str]]

DEFAULT_START_SYMBOL = 'S'


class Grammar:
    """Immutable mapping from non-terminal to its ordered productions.

    Any symbol without an entry is a terminal. Productions may be given as
    whitespace-separated strings or as sequences of symbols.
    """

    def __init__(self, rules: Mapping[str, Sequence[ProductionSpec]],
                 start_symbol: str = DEFAULT_START_SYMBOL):
        if not rules:
            raise GrammarError("grammar has no rules")

        table = {}
        for non_terminal, productions in rules.items():
            if isinstance(productions, str):
                raise GrammarError(
                    f"productions for {non_terminal!r} must be a sequence, got a string")
            parsed = tuple(self._as_production(p) for p in productions)
            if not parsed:
                raise GrammarError(f"non-terminal {non_terminal!r} has no productions")
            if any(len(p) == 0 for p in parsed):
                raise GrammarError(f"non-terminal {non_terminal!r} has an empty production")
            table[non_terminal] = parsed

        if start_symbol not in table:
            raise GrammarError(f"start symbol {start_symbol!r} has no productions")

        self._rules = MappingProxyType(table)
        self.start_symbol = start_symbol

    @staticmethod
    def _as_production(spec: ProductionSpec) -> Production:
        if isinstance(spec, str):
            return tuple(spec.split())
        return tuple(spec)

    @property
    def rules(self) -> Mapping[str, Tuple[Production, ...]]:
        return self._rules

    @property
    def non_terminals(self) -> List[str]:
        return list(self._rules)

    @property
    def terminals(self) -> List[str]:
        """All terminal symbols in first-appearance order"""
        seen = []
        for productions in self._rules.values():
            for production in productions:
                for symbol in production:
                    if symbol not in self._rules and symbol not in seen:
                        seen.append(symbol)
        return seen

    def lookup(self, symbol: str) -> Optional[Tuple[Production, ...]]:
        """Productions for a non-terminal, or None when symbol is a terminal"""
        return self._rules.get(symbol)

    def is_terminal(self, symbol: str) -> bool:
        return symbol not in self._rules

    def arity(self, production: ProductionSpec) -> int:
        """Number of non-terminal symbols in a production"""
        return sum(1 for symbol in self._as_production(production)
                   if symbol in self._rules)

    def is_recursive(self, non_terminal: str) -> bool:
        """True when non_terminal can derive a form that contains itself"""
        if non_terminal not in self._rules:
            return False

        visited = set()
        pending = [non_terminal]
        while pending:
            current = pending.pop()
            for production in self._rules[current]:
                for symbol in production:
                    if symbol == non_terminal:
                        return True
                    if symbol in self._rules and symbol not in visited:
                        visited.add(symbol)
                        pending.append(symbol)
        return False

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grammar):
            return NotImplemented
        return (self.start_symbol == other.start_symbol
                and dict(self._rules) == dict(other._rules))

    def __hash__(self):
        return hash((self.start_symbol, tuple(sorted(self._rules.items()))))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize grammar to dictionary"""
        return {
            'start_symbol': self.start_symbol,
            'rules': {nt: [' '.join(p) for p in productions]
                      for nt, productions in self._rules.items()}
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Grammar':
        """Deserialize grammar from dictionary"""
        return cls(data['rules'], data.get('start_symbol', DEFAULT_START_SYMBOL))

    def to_bnf(self) -> str:
        """Render the rule table in the ``A ::= x | y`` text format"""
        lines = []
        for non_terminal, productions in self._rules.items():
            alternatives = ' | '.join(' '.join(p) for p in productions)
            lines.append(f"{non_terminal} ::= {alternatives}")
        return '\n'.join(lines) + '\n'

    @classmethod
    def loads(cls, text: str, start_symbol: str = None) -> 'Grammar':
        """Parse ``NonTerminal ::= prod1 | prod2`` lines.

        Blank lines and lines starting with ``#`` are ignored, as is any line
        without exactly one ``::=``. The first rule's left-hand side is the
        start symbol unless one is given. A repeated left-hand side replaces
        the earlier rule.
        """
        rules = {}
        for line_number, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue
            parts = stripped.split('::=')
            if len(parts) != 2:
                logger.debug("Skipping grammar line %d: %r", line_number, line)
                continue
            non_terminal = parts[0].strip()
            if not non_terminal:
                raise GrammarError(f"line {line_number}: missing non-terminal")
            productions = [alt.split() for alt in parts[1].split('|')]
            if non_terminal in rules:
                logger.warning("Grammar redefines %s on line %d", non_terminal, line_number)
            rules[non_terminal] = productions

        if not rules:
            raise GrammarError("no rules found in grammar text")
        if start_symbol is None:
            start_symbol = next(iter(rules))
        return cls(rules, start_symbol)

    @classmethod
    def load(cls, filename: str, start_symbol: str = None) -> 'Grammar':
        """Read a grammar from a BNF file"""
        with open(filename, 'r', encoding='utf-8') as f:
            return cls.loads(f.read(), start_symbol)

    def __repr__(self) -> str:
        return f"Grammar(start={self.start_symbol!r}, rules={len(self._rules)})"

    def __str__(self) -> str:
        return self.to_bnf().rstrip('\n')


# Grammars used by the shipped problems

def boolean_grammar() -> Grammar:
    """Three-input boolean formulas over A, B and C"""
    return Grammar({
        'S': ['E'],
        'E': ['E OR T', 'T'],
        'T': ['T AND F', 'F'],
        'F': ['NOT F', 'A', 'B', 'C'],
    })


def arithmetic_grammar() -> Grammar:
    """Two-variable arithmetic over x and y with small constants"""
    return Grammar({
        'S': ['E'],
        'E': ['E + T', 'E - T', 'T'],
        'T': ['T * F', 'T / F', 'F'],
        'F': ['x', 'y', '( E )', '1.0', '2.0', '3.0'],
    })


def vladislavleva_grammar(n_variables: int = 5) -> Grammar:
    """Indexed-variable grammar with pow and sqrt for the Vladislavleva problems"""
    if n_variables < 1:
        raise GrammarError("n_variables must be at least 1")
    return Grammar({
        '<expr>': [
            '<expr> <op> <expr>',
            '( <expr> <op> <expr> )',
            'pow( <expr> , <expr> )',
            'sqrt( <expr> )',
            '<var>',
            '<const>',
        ],
        '<op>': ['+', '-', '*', '/'],
        '<var>': [f'x[{i}]' for i in range(n_variables)],
        '<const>': ['1.0', '2.0', '3.0', '5.0', '10.0'],
    }, start_symbol='<expr>')
