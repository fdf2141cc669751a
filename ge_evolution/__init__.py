"""
ge_evolution - Grammatical Evolution of boolean and arithmetic expressions

Integer codon strings are mapped to phenotype strings through a context-free
grammar, evaluated as expressions and scored by a pluggable fitness function
that drives a generational search.
"""

__version__ = "0.1.0"
__author__ = "GE Evolution Project"

from .exceptions import GEError, GrammarError, ConfigurationError, ExpressionParseError
from .grammar import Grammar, boolean_grammar, arithmetic_grammar, vladislavleva_grammar
from .genome import Genome, create_random_genome, create_random_genomes
from .mapper import Phenotype, map_genome
from .boolean_expr import infix_to_postfix, evaluate_postfix, evaluate_boolean
from .arithmetic import evaluate_arithmetic
from .ast_nodes import (
    ASTNode, Variable, Constant, BinaryOp, Add, Sub, Mul, Div, Pow, Sqrt,
    node_from_dict, evaluate_tree
)
from .parser import parse_expression, try_parse_expression
from .datasets import Dataset, generate_dataset, load_dataset, save_dataset
from .fitness import Direction, FitnessFunction, BooleanFitness, RegressionFitness
from .operators import (
    tournament_selection, select_elites, one_point_crossover, mutate, mutate_per_codon
)
from .config import EvolutionConfig
from .population import Population
from .engine import run, run_many, summarize_runs, EvolutionResult, GenerationSummary
from .archive import EvolutionArchive

__all__ = [
    'GEError', 'GrammarError', 'ConfigurationError', 'ExpressionParseError',
    'Grammar', 'boolean_grammar', 'arithmetic_grammar', 'vladislavleva_grammar',
    'Genome', 'create_random_genome', 'create_random_genomes',
    'Phenotype', 'map_genome',
    'infix_to_postfix', 'evaluate_postfix', 'evaluate_boolean',
    'evaluate_arithmetic',
    'ASTNode', 'Variable', 'Constant', 'BinaryOp', 'Add', 'Sub', 'Mul', 'Div',
    'Pow', 'Sqrt', 'node_from_dict', 'evaluate_tree',
    'parse_expression', 'try_parse_expression',
    'Dataset', 'generate_dataset', 'load_dataset', 'save_dataset',
    'Direction', 'FitnessFunction', 'BooleanFitness', 'RegressionFitness',
    'tournament_selection', 'select_elites', 'one_point_crossover', 'mutate',
    'mutate_per_codon',
    'EvolutionConfig',
    'Population',
    'run', 'run_many', 'summarize_runs', 'EvolutionResult', 'GenerationSummary',
    'EvolutionArchive'
]
