"""
ge_evolution/parser_state.py - Immutable token cursor for recursive descent
"""
import re
from typing import NamedTuple, Optional, Tuple

from .exceptions import ExpressionParseError

# Each bracketed group costs three parser frames; stay well under the
# interpreter's recursion limit.
MAX_NESTING_DEPTH = 200

# Decimal literals only; float() alone would also take nan, inf and 1_0.
NUMBER_PATTERN = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


class ParserState(NamedTuple):
    """Token sequence, the index of the next unread token and the current
    bracket nesting depth.

    Sub-parsers take a state and return a new one alongside their result;
    a state is never modified in place.
    """
    tokens: Tuple[str, ...]
    position: int = 0
    depth: int = 0

    @classmethod
    def from_text(cls, text: str) -> 'ParserState':
        return cls(tuple(text.split()), 0)

    @property
    def at_end(self) -> bool:
        return self.position >= len(self.tokens)

    def peek(self) -> Optional[str]:
        if self.at_end:
            return None
        return self.tokens[self.position]

    def advance(self) -> 'ParserState':
        return self._replace(position=self.position + 1)

    def enter(self) -> 'ParserState':
        """Consume an opening token and descend one nesting level"""
        if self.depth >= MAX_NESTING_DEPTH:
            raise ExpressionParseError(
                f"nesting deeper than {MAX_NESTING_DEPTH} levels", self.position)
        return self._replace(position=self.position + 1, depth=self.depth + 1)

    def leave(self) -> 'ParserState':
        """Consume a closing token and return to the enclosing level"""
        return self._replace(position=self.position + 1, depth=self.depth - 1)

    def remaining(self) -> Tuple[str, ...]:
        return self.tokens[self.position:]
