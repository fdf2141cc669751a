"""
ge_evolution/exceptions.py - Error types raised by the package
"""


class GEError(ValueError):
    """Base class for all ge_evolution errors"""


class GrammarError(GEError):
    """Grammar is structurally unusable (missing start symbol, empty rule)"""


class ConfigurationError(GEError):
    """A precondition of the run was violated (empty genome, bad config)"""


class ExpressionParseError(GEError):
    """Phenotype text could not be parsed into an expression tree"""

    def __init__(self, message: str, position: int = None):
        if position is not None:
            message = f"{message} at token {position}"
        super().__init__(message)
        self.position = position
