"""
ge_evolution/ast_nodes.py - Arithmetic expression tree nodes

Nodes evaluate over numpy arrays: ``inputs`` is either one input vector or a
2-D matrix with one row per sample, and variables select along the last axis.
Domain errors (division by zero, square root of a negative, invalid powers)
yield NaN instead of raising.
"""
import numpy as np
from abc import ABC, abstractmethod
from typing import Dict, Any, List, Union

Number = Union[float, np.ndarray]


class ASTNode(ABC):
    """Base class for all AST nodes"""

    arity = 0
    children: tuple = ()

    @abstractmethod
    def evaluate(self, inputs: np.ndarray) -> np.ndarray:
        """Evaluate the node for one input vector or a matrix of rows"""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary"""
        pass

    @abstractmethod
    def copy(self) -> 'ASTNode':
        """Create a deep copy of this node"""
        pass

    def get_all_nodes(self) -> List['ASTNode']:
        """Get all nodes in this subtree"""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.get_all_nodes())
        return nodes

    def get_depth(self) -> int:
        """Get maximum depth of this subtree"""
        if not self.children:
            return 1
        return 1 + max(child.get_depth() for child in self.children)

    def variable_indices(self) -> List[int]:
        return sorted({n.index for n in self.get_all_nodes() if isinstance(n, Variable)})

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None


class Variable(ASTNode):
    """Indexed input variable, printed as x[i]"""

    def __init__(self, index: int):
        if index < 0:
            raise ValueError(f"variable index must be non-negative, got {index}")
        self.index = index

    def evaluate(self, inputs: np.ndarray) -> np.ndarray:
        inputs = np.asarray(inputs, dtype=float)
        if inputs.ndim == 0 or self.index >= inputs.shape[-1]:
            return np.full(inputs.shape[:-1], np.nan)
        return inputs[..., self.index]

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'Variable', 'index': self.index}

    def copy(self) -> 'Variable':
        return Variable(self.index)

    def __str__(self):
        return f"x[{self.index}]"


class Constant(ASTNode):
    """Numeric constant"""

    def __init__(self, value: float):
        self.value = float(value)

    def evaluate(self, inputs: np.ndarray) -> np.ndarray:
        inputs = np.asarray(inputs, dtype=float)
        return np.full(inputs.shape[:-1], self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'Constant', 'value': self.value}

    def copy(self) -> 'Constant':
        return Constant(self.value)

    def __str__(self):
        return repr(self.value)


class BinaryOp(ASTNode):
    """Infix binary operation; subclasses supply the symbol and the numpy kernel"""

    symbol = '?'
    arity = 2

    def __init__(self, left: ASTNode, right: ASTNode):
        self.left = left
        self.right = right
        self.children = (left, right)

    @staticmethod
    @abstractmethod
    def apply(left: np.ndarray, right: np.ndarray) -> np.ndarray:
        pass

    def evaluate(self, inputs: np.ndarray) -> np.ndarray:
        left_val = self.left.evaluate(inputs)
        right_val = self.right.evaluate(inputs)
        with np.errstate(all='ignore'):
            return self.apply(left_val, right_val)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': type(self).__name__,
            'left': self.left.to_dict(),
            'right': self.right.to_dict()
        }

    def copy(self) -> 'BinaryOp':
        return type(self)(self.left.copy(), self.right.copy())

    def __str__(self):
        return f"( {self.left} {self.symbol} {self.right} )"


class Add(BinaryOp):
    symbol = '+'

    @staticmethod
    def apply(left, right):
        return np.add(left, right)


class Sub(BinaryOp):
    symbol = '-'

    @staticmethod
    def apply(left, right):
        return np.subtract(left, right)


class Mul(BinaryOp):
    symbol = '*'

    @staticmethod
    def apply(left, right):
        return np.multiply(left, right)


class Div(BinaryOp):
    """Division; a zero divisor gives NaN"""
    symbol = '/'

    @staticmethod
    def apply(left, right):
        return np.where(np.equal(right, 0.0), np.nan, np.divide(left, right))


class Pow(BinaryOp):
    """Power, printed in the function form pow( a , b )"""
    symbol = 'pow'

    @staticmethod
    def apply(left, right):
        return np.power(np.asarray(left, dtype=float), right)

    def __str__(self):
        return f"pow( {self.left} , {self.right} )"


class Sqrt(ASTNode):
    """Square root; negative operands give NaN"""

    arity = 1

    def __init__(self, child: ASTNode):
        self.child = child
        self.children = (child,)

    def evaluate(self, inputs: np.ndarray) -> np.ndarray:
        child_val = self.child.evaluate(inputs)
        with np.errstate(all='ignore'):
            return np.sqrt(child_val)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'Sqrt', 'child': self.child.to_dict()}

    def copy(self) -> 'Sqrt':
        return Sqrt(self.child.copy())

    def __str__(self):
        return f"sqrt( {self.child} )"


BINARY_OPS = {cls.__name__: cls for cls in (Add, Sub, Mul, Div, Pow)}


def node_from_dict(data: Dict[str, Any]) -> ASTNode:
    """Create node from dictionary representation"""
    node_type = data['type']

    if node_type == 'Variable':
        return Variable(data['index'])
    elif node_type == 'Constant':
        return Constant(data['value'])
    elif node_type == 'Sqrt':
        return Sqrt(node_from_dict(data['child']))
    elif node_type in BINARY_OPS:
        return BINARY_OPS[node_type](node_from_dict(data['left']),
                                     node_from_dict(data['right']))
    else:
        raise ValueError(f"Unknown node type: {node_type}")


def evaluate_tree(node: ASTNode, inputs) -> Number:
    """Evaluate a tree; a float for one input vector, an array for a matrix"""
    inputs = np.atleast_1d(np.asarray(inputs, dtype=float))
    result = np.asarray(node.evaluate(inputs), dtype=float)
    if result.ndim == 0:
        return float(result)
    return result
