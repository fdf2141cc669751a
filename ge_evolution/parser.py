"""
ge_evolution/parser.py - Recursive-descent parser building expression trees

Accepted token grammar (tokens separated by whitespace):

    E -> T (('+' | '-') T)*
    T -> F (('*' | '/') F)*
    F -> x[i] | number | 'pow(' E ',' E ')' | 'sqrt(' E ')' | '(' E ')'
"""
import logging
import re
from typing import Optional, Tuple

from .ast_nodes import ASTNode, Add, Sub, Mul, Div, Pow, Sqrt, Variable, Constant
from .exceptions import ExpressionParseError
from .parser_state import NUMBER_PATTERN, ParserState

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r'^x\[(\d+)\]$')

ADDITIVE = {'+': Add, '-': Sub}
MULTIPLICATIVE = {'*': Mul, '/': Div}


def parse_expression(text: str, n_variables: int = None) -> ASTNode:
    """Parse phenotype text into a tree.

    Raises ExpressionParseError on unexpected or missing tokens, trailing
    input, brackets nested deeper than MAX_NESTING_DEPTH, or a variable
    index not below ``n_variables`` (when given).
    """
    state = ParserState.from_text(text)
    if state.at_end:
        raise ExpressionParseError("empty expression", 0)

    node, state = _parse_expr(state, n_variables)
    if not state.at_end:
        raise ExpressionParseError(f"unexpected token {state.peek()!r}", state.position)
    return node


def try_parse_expression(text: str, n_variables: int = None) -> Optional[ASTNode]:
    """Like parse_expression but returns None for unparseable text"""
    try:
        return parse_expression(text, n_variables)
    except ExpressionParseError as e:
        logger.debug("Cannot parse %r: %s", text, e)
        return None


def _expect(state: ParserState, token: str) -> ParserState:
    """Check that ``token`` comes next without consuming it"""
    if state.peek() != token:
        found = state.peek()
        raise ExpressionParseError(
            f"expected {token!r}, found {'end of input' if found is None else repr(found)}",
            state.position)
    return state


def _parse_expr(state: ParserState, n_variables: Optional[int]) -> Tuple[ASTNode, ParserState]:
    node, state = _parse_term(state, n_variables)
    while state.peek() in ADDITIVE:
        op = ADDITIVE[state.peek()]
        right, state = _parse_term(state.advance(), n_variables)
        node = op(node, right)
    return node, state


def _parse_term(state: ParserState, n_variables: Optional[int]) -> Tuple[ASTNode, ParserState]:
    node, state = _parse_factor(state, n_variables)
    while state.peek() in MULTIPLICATIVE:
        op = MULTIPLICATIVE[state.peek()]
        right, state = _parse_factor(state.advance(), n_variables)
        node = op(node, right)
    return node, state


def _parse_factor(state: ParserState, n_variables: Optional[int]) -> Tuple[ASTNode, ParserState]:
    token = state.peek()
    if token is None:
        raise ExpressionParseError("unexpected end of expression", state.position)

    if token == 'pow(':
        base, state = _parse_expr(state.enter(), n_variables)
        state = _expect(state, ',').advance()
        exponent, state = _parse_expr(state, n_variables)
        state = _expect(state, ')').leave()
        return Pow(base, exponent), state

    if token == 'sqrt(':
        value, state = _parse_expr(state.enter(), n_variables)
        state = _expect(state, ')').leave()
        return Sqrt(value), state

    if token == '(':
        node, state = _parse_expr(state.enter(), n_variables)
        state = _expect(state, ')').leave()
        return node, state

    match = VARIABLE_PATTERN.match(token)
    if match:
        index = int(match.group(1))
        if n_variables is not None and index >= n_variables:
            raise ExpressionParseError(
                f"variable {token} out of range for {n_variables} inputs", state.position)
        return Variable(index), state.advance()

    if not NUMBER_PATTERN.match(token):
        raise ExpressionParseError(f"unexpected token {token!r}", state.position)
    return Constant(float(token)), state.advance()
