"""
ge_evolution/arithmetic.py - Direct recursive-descent arithmetic evaluator

Evaluates while parsing, without building a tree:

    E -> T (('+' | '-') T)*
    T -> F (('*' | '/') F)*
    F -> variable | number | '(' E ')'
"""
import logging
from typing import Mapping, Tuple

from .exceptions import ExpressionParseError
from .parser_state import NUMBER_PATTERN, ParserState

logger = logging.getLogger(__name__)

NAN = float('nan')


def evaluate_arithmetic(expression: str, variables: Mapping[str, float]) -> float:
    """Value of an infix expression; NaN when malformed, nested too deeply or dividing by zero"""
    try:
        value, state = _parse_expr(ParserState.from_text(expression), variables)
        if not state.at_end:
            raise ExpressionParseError(f"unexpected token {state.peek()!r}", state.position)
    except ExpressionParseError as e:
        logger.debug("Malformed arithmetic expression %r: %s", expression, e)
        return NAN
    return value


def _parse_expr(state: ParserState, variables: Mapping[str, float]) -> Tuple[float, ParserState]:
    value, state = _parse_term(state, variables)
    while state.peek() in ('+', '-'):
        op = state.peek()
        right, state = _parse_term(state.advance(), variables)
        value = value + right if op == '+' else value - right
    return value, state


def _parse_term(state: ParserState, variables: Mapping[str, float]) -> Tuple[float, ParserState]:
    value, state = _parse_factor(state, variables)
    while state.peek() in ('*', '/'):
        op = state.peek()
        right, state = _parse_factor(state.advance(), variables)
        if op == '*':
            value = value * right
        elif right == 0.0:
            value = NAN
        else:
            value = value / right
    return value, state


def _parse_factor(state: ParserState, variables: Mapping[str, float]) -> Tuple[float, ParserState]:
    token = state.peek()
    if token is None:
        raise ExpressionParseError("unexpected end of expression", state.position)

    if token == '(':
        value, state = _parse_expr(state.enter(), variables)
        if state.peek() != ')':
            raise ExpressionParseError("expected ')'", state.position)
        return value, state.leave()

    if token in variables:
        return float(variables[token]), state.advance()

    if not NUMBER_PATTERN.match(token):
        raise ExpressionParseError(f"unexpected token {token!r}", state.position)
    return float(token), state.advance()
