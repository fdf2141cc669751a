"""
ge_evolution/cli.py - Command-line interface
"""
import functools
import logging
import os

import click
import numpy as np
from click.core import ParameterSource

from .archive import EvolutionArchive
from .arithmetic import evaluate_arithmetic
from .config import EvolutionConfig
from .datasets import (load_dataset, parity as parity_target, sample_regression_dataset,
                       save_dataset, vladislavleva4_datasets)
from .engine import run, run_many, summarize_runs
from .exceptions import GEError, ConfigurationError
from .fitness import BooleanFitness, RegressionFitness
from .genome import Genome
from .grammar import Grammar, arithmetic_grammar, boolean_grammar, vladislavleva_grammar
from .mapper import DEFAULT_MAX_STEPS, map_genome

# CLI option name -> EvolutionConfig field
OPTION_FIELDS = {
    'generations': 'generations',
    'population': 'population_size',
    'min_length': 'min_genome_length',
    'max_length': 'max_genome_length',
    'max_codon': 'max_codon_value',
    'tournament_size': 'tournament_size',
    'crossover_rate': 'crossover_probability',
    'mutation_rate': 'mutation_probability',
    'mutation_mode': 'mutation_mode',
    'elite_size': 'elitism_count',
    'max_steps': 'max_derivation_steps',
    'max_wraps': 'max_wraps',
    'seed': 'seed',
}


def evolution_options(generations=20, population=100, min_length=1, max_length=100,
                      crossover_rate=0.9, mutation_rate=0.01, elite_size=2):
    """Shared run options; defaults differ per problem"""
    options = [
        click.option('--generations', '-g', default=generations, show_default=True,
                     help='Number of generations to evolve'),
        click.option('--population', '-p', default=population, show_default=True,
                     help='Population size'),
        click.option('--min-length', default=min_length, show_default=True,
                     help='Minimum initial genome length'),
        click.option('--max-length', default=max_length, show_default=True,
                     help='Maximum initial genome length'),
        click.option('--max-codon', default=255, show_default=True,
                     help='Largest codon value'),
        click.option('--tournament-size', default=3, show_default=True,
                     help='Tournament size for parent selection'),
        click.option('--crossover-rate', default=crossover_rate, show_default=True,
                     help='Crossover probability (0.0-1.0)'),
        click.option('--mutation-rate', default=mutation_rate, show_default=True,
                     help='Mutation probability (0.0-1.0)'),
        click.option('--mutation-mode', type=click.Choice(['individual', 'codon']),
                     default='individual', show_default=True,
                     help='Apply the mutation rate per individual or per codon'),
        click.option('--elite-size', default=elite_size, show_default=True,
                     help='Number of elite individuals to preserve'),
        click.option('--max-steps', default=DEFAULT_MAX_STEPS, show_default=True,
                     help='Derivation step cap per genome'),
        click.option('--max-wraps', type=int, default=None,
                     help='Maximum passes over a genome during derivation'),
        click.option('--seed', type=int, default=None, help='Random seed'),
        click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False),
                     help='JSON config file; explicit options override it'),
        click.option('--out', '-o', default=None, help='Archive directory (optional)'),
        click.option('--verbose', '-v', is_flag=True, help='Verbose output'),
    ]

    def decorator(f):
        for option in reversed(options):
            f = option(f)
        return f
    return decorator


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')


def _build_config(ctx: click.Context, params: dict) -> EvolutionConfig:
    values = {}
    if params['config_file']:
        values.update(EvolutionConfig.from_json(filename=params['config_file']).to_dict())

    for option, field_name in OPTION_FIELDS.items():
        explicit = ctx.get_parameter_source(option) is not ParameterSource.DEFAULT
        if explicit or not params['config_file']:
            values[field_name] = params[option]

    try:
        return EvolutionConfig.from_dict(values).validate()
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from None


def _load_grammar(path: str, default: Grammar) -> Grammar:
    if not path:
        return default
    try:
        return Grammar.load(path)
    except (OSError, GEError) as e:
        raise click.ClickException(f"Error reading grammar: {e}") from None


def _load_data(path: str, variable_names=None):
    try:
        return load_dataset(path, variable_names)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Error reading dataset {path}: {e}") from None


def _progress(config: EvolutionConfig, verbose: bool, archive: EvolutionArchive = None):
    def on_generation(run_index, summary):
        if archive is not None:
            archive.archive_generation(summary, run_index)
        gen = summary.generation
        if verbose or gen % 10 == 0 or gen == config.generations - 1:
            click.echo(f"Gen {gen:3d}/{config.generations}: "
                       f"Best={summary.best_fitness:.6g} "
                       f"Avg={summary.mean_fitness:.6g} "
                       f"Invalid={summary.invalid} "
                       f"Unique={summary.unique_genomes}")
            if verbose:
                click.echo(f"         {summary.best_phenotype}")
    return on_generation


def _report(result, config, archive, run_index=0):
    click.echo(f"\nBest Individual: {result.best_phenotype.text}")
    click.echo(f"Genome: {result.best_genome.codons}")
    click.echo(f"Fitness: {result.best_fitness:.6g}")
    if not result.best_phenotype.valid:
        click.echo("Warning: best individual is an incomplete derivation")
    if archive is not None:
        archive.save_result(result, config, run_index)


def command_errors(f):
    """Turn configuration errors raised during a run into usage errors"""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ConfigurationError as e:
            raise click.UsageError(str(e)) from None
    return wrapper


@click.group()
def cli():
    """Grammatical Evolution - evolve expressions through a grammar"""
    pass


@cli.command()
@evolution_options(generations=10, population=10, min_length=10, max_length=10)
@click.option('--inputs', '-k', default=3, show_default=True,
              help='Number of boolean inputs (variables A, B, C, ...)')
@click.pass_context
@command_errors
def parity(ctx, inputs, **params):
    """Evolve a boolean formula for odd parity of the inputs"""
    _setup_logging(params['verbose'])
    config = _build_config(ctx, params)

    if inputs == 3:
        grammar = boolean_grammar()
        variables = ('A', 'B', 'C')
    elif 1 <= inputs <= 26:
        variables = tuple(chr(ord('A') + i) for i in range(inputs))
        grammar = Grammar({
            'S': ['E'],
            'E': ['E OR T', 'T'],
            'T': ['T AND F', 'F'],
            'F': ['NOT F'] + list(variables),
        })
    else:
        raise click.BadParameter('must be between 1 and 26', param_hint='--inputs')

    fitness = BooleanFitness(parity_target, variables)
    archive = EvolutionArchive(params['out']) if params['out'] else None

    click.echo(f"Evolving {inputs}-input parity: {config.generations} generations, "
               f"population {config.population_size}")
    callback = _progress(config, params['verbose'], archive)
    result = run(config, grammar, fitness,
                 on_generation=lambda summary: callback(0, summary))

    _report(result, config, archive)
    click.echo(f"Matches: {int(result.best_fitness)}/{int(fitness.max_score)}")


@cli.command()
@evolution_options(generations=10, population=10, min_length=10, max_length=10)
@click.option('--data', type=click.Path(exists=True, dir_okay=False),
              help='CSV file of x,y,target rows (defaults to two built-in samples)')
@click.option('--grammar', type=click.Path(exists=True, dir_okay=False),
              help='BNF grammar file (defaults to the x/y arithmetic grammar)')
@click.option('--objective', type=click.Choice(['inverse', 'mse']), default='inverse',
              show_default=True, help='Maximize 1/(1+MSE) or minimize raw MSE')
@click.option('--predict', default=None, help='Comma separated inputs to predict after the run')
@click.pass_context
@command_errors
def regression(ctx, data, grammar, objective, predict, **params):
    """Evolve an arithmetic expression over named variables x and y"""
    _setup_logging(params['verbose'])
    config = _build_config(ctx, params)
    grammar = _load_grammar(grammar, arithmetic_grammar())

    dataset = _load_data(data, ('x', 'y')) if data else sample_regression_dataset()
    fitness = RegressionFitness(dataset, evaluator='direct', objective=objective)
    archive = EvolutionArchive(params['out']) if params['out'] else None

    click.echo(f"Evolving regression on {len(dataset)} rows: {config.generations} generations, "
               f"population {config.population_size}")
    callback = _progress(config, params['verbose'], archive)
    result = run(config, grammar, fitness,
                 on_generation=lambda summary: callback(0, summary))

    _report(result, config, archive)
    click.echo(f"MSE: {fitness.mse(result.best_phenotype.text):.6g}")

    if predict:
        try:
            values = [float(v) for v in predict.split(',')]
        except ValueError:
            raise click.BadParameter('expected comma separated numbers',
                                     param_hint='--predict') from None
        if len(values) != dataset.n_variables:
            raise click.BadParameter(f'expected {dataset.n_variables} values',
                                     param_hint='--predict')
        prediction = evaluate_arithmetic(result.best_phenotype.text,
                                         dict(zip(dataset.variable_names, values)))
        click.echo(f"Prediction for {values}: {prediction:.6g}")


@cli.command()
@evolution_options(generations=20, population=100)
@click.option('--runs', '-r', default=5, show_default=True, help='Number of independent runs')
@click.option('--grammar', type=click.Path(exists=True, dir_okay=False),
              help='BNF grammar file (defaults to the built-in pow/sqrt grammar)')
@click.option('--train', type=click.Path(exists=True, dir_okay=False),
              help='Training CSV (generated when omitted)')
@click.option('--test', type=click.Path(exists=True, dir_okay=False),
              help='Test CSV (generated when omitted)')
@click.option('--train-samples', default=1024, show_default=True)
@click.option('--test-samples', default=5000, show_default=True)
@click.option('--save-data', type=click.Path(file_okay=False),
              help='Directory to write the generated train/test CSV files')
@click.pass_context
@command_errors
def vladislavleva4(ctx, runs, grammar, train, test, train_samples, test_samples,
                   save_data, **params):
    """Symbolic regression of the five-input Vladislavleva-4 function"""
    _setup_logging(params['verbose'])
    config = _build_config(ctx, params)
    grammar = _load_grammar(grammar, vladislavleva_grammar(5))

    data_rng = np.random.default_rng(config.seed)
    generated_train, generated_test = vladislavleva4_datasets(
        data_rng, train_samples, test_samples)
    train_data = _load_data(train) if train else generated_train
    test_data = _load_data(test) if test else generated_test

    if save_data:
        os.makedirs(save_data, exist_ok=True)
        save_dataset(train_data, os.path.join(save_data, 'vlad_train.txt'))
        save_dataset(test_data, os.path.join(save_data, 'vlad_test.txt'))
        click.echo(f"Datasets saved to {save_data}/")

    fitness = RegressionFitness(train_data, evaluator='ast', objective='mse')
    test_fitness = RegressionFitness(test_data, evaluator='ast', objective='mse')
    archive = EvolutionArchive(params['out']) if params['out'] else None

    click.echo(f"Vladislavleva-4: {runs} runs of {config.generations} generations, "
               f"population {config.population_size}")
    results = run_many(config, grammar, fitness, runs,
                       on_generation=_progress(config, params['verbose'], archive))

    overview = summarize_runs(results)
    click.echo(f"\nOverall Best Fitness: {overview['overall_best_fitness']:.6g}")
    click.echo(f"Overall Average Fitness: {overview['overall_mean_fitness']:.6g}")

    for i, result in enumerate(results):
        expression = result.best_phenotype.text
        click.echo(f"Run {i + 1}: Best Expression: {expression}")
        click.echo(f"Run {i + 1}: test fitness: {test_fitness(result.best_phenotype):.6g}")
        if archive is not None:
            archive.save_result(result, config.replace(seed=None if config.seed is None
                                                       else config.seed + i), i)

    if archive is not None:
        archive.export_summary_report()
        click.echo(f"\nArchive written to {params['out']}")


@cli.command('map')
@click.argument('codons', nargs=-1, type=int, required=True)
@click.option('--grammar', type=click.Path(exists=True, dir_okay=False),
              help='BNF grammar file (defaults to the boolean grammar)')
@click.option('--start', default=None, help='Start symbol (defaults to the first rule)')
@click.option('--max-steps', default=DEFAULT_MAX_STEPS, show_default=True,
              help='Derivation step cap')
@click.option('--max-wraps', type=int, default=None,
              help='Maximum passes over the genome')
def map_command(codons, grammar, start, max_steps, max_wraps):
    """Derive the phenotype of a codon list"""
    if grammar:
        try:
            grammar = Grammar.load(grammar, start)
        except (OSError, GEError) as e:
            raise click.ClickException(f"Error reading grammar: {e}") from None
    else:
        grammar = boolean_grammar()

    try:
        phenotype = map_genome(Genome(codons), grammar, max_steps, max_wraps)
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from None

    click.echo(phenotype.text)
    if not phenotype.valid:
        click.echo(f"(incomplete after {phenotype.steps} steps)", err=True)
    click.echo(f"steps={phenotype.steps} codons={phenotype.used_codons} "
               f"wraps={phenotype.wraps} valid={phenotype.valid}", err=True)


if __name__ == '__main__':
    cli()
