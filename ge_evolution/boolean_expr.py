"""
ge_evolution/boolean_expr.py - Boolean formula evaluation via postfix conversion
"""
from typing import List, Mapping, Optional, Sequence

AND = 'AND'
OR = 'OR'
NOT = 'NOT'
LPAREN = '('
RPAREN = ')'

OPERATORS = (AND, OR, NOT)
KEYWORDS = frozenset(OPERATORS + (LPAREN, RPAREN))


def tokenize(expression: str) -> List[str]:
    return expression.split()


def infix_to_postfix(tokens: Sequence[str]) -> List[str]:
    """Shunting-yard conversion.

    AND, OR and NOT share one precedence level and associate left: a binary
    operator first emits any operator on top of the stack. NOT is a prefix
    operator and only waits on the stack.
    """
    output = []
    stack = []

    for token in tokens:
        if token in (AND, OR):
            while stack and stack[-1] in OPERATORS:
                output.append(stack.pop())
            stack.append(token)
        elif token in (NOT, LPAREN):
            stack.append(token)
        elif token == RPAREN:
            while stack and stack[-1] != LPAREN:
                output.append(stack.pop())
            if stack:
                stack.pop()
        else:
            output.append(token)

    while stack:
        output.append(stack.pop())

    return output


def evaluate_postfix(postfix: Sequence[str], assignment: Mapping[str, bool]) -> Optional[bool]:
    """Evaluate a postfix token list; None when the expression is malformed"""
    stack = []

    for token in postfix:
        if token in (AND, OR):
            if len(stack) < 2:
                return None
            right = stack.pop()
            left = stack.pop()
            stack.append(left and right if token == AND else left or right)
        elif token == NOT:
            if not stack:
                return None
            stack.append(not stack.pop())
        elif token in KEYWORDS:
            # unmatched parenthesis left over from conversion
            return None
        elif token in assignment:
            stack.append(bool(assignment[token]))
        else:
            return None

    if len(stack) != 1:
        return None
    return stack[0]


def evaluate_boolean(expression: str, assignment: Mapping[str, bool]) -> bool:
    """Truth value of an infix formula; malformed formulas are False"""
    result = evaluate_postfix(infix_to_postfix(tokenize(expression)), assignment)
    return bool(result) if result is not None else False
