"""
Tests for EvolutionArchive.

Run with: python -m pytest tests/test_archive.py -v
"""

import json
import os

import pytest

from ge_evolution.archive import EvolutionArchive
from ge_evolution.config import EvolutionConfig
from ge_evolution.datasets import xor
from ge_evolution.engine import run
from ge_evolution.fitness import BooleanFitness
from ge_evolution.grammar import boolean_grammar


@pytest.fixture
def archived_run(tmp_path):
    archive = EvolutionArchive(str(tmp_path))
    config = EvolutionConfig(population_size=8, min_genome_length=4, max_genome_length=8,
                             generations=3, seed=1)
    result = run(config, boolean_grammar(), BooleanFitness(xor),
                 on_generation=archive.archive_generation)
    archive.save_result(result, config)
    return archive, result


class TestEvolutionArchive:

    def test_directories_created(self, tmp_path):
        EvolutionArchive(str(tmp_path / 'out'))
        assert os.path.isdir(tmp_path / 'out' / 'best')
        assert os.path.isdir(tmp_path / 'out' / 'logs')

    def test_generation_log(self, archived_run, tmp_path):
        archive, _ = archived_run
        reloaded = EvolutionArchive(str(tmp_path)).load_log()
        assert [e['generation'] for e in reloaded] == [0, 1, 2]
        assert all(e['run'] == 0 for e in reloaded)

    def test_best_genome_saved(self, archived_run):
        archive, result = archived_run
        files = archive.best_genome_files()
        assert [os.path.basename(f) for f in files] == ['run_000.json']
        genome = archive.load_best_genome(0)
        assert genome == result.best_genome
        assert genome.fitness == result.best_fitness
        assert archive.load_best_genome(5) is None

    def test_result_file_includes_config(self, archived_run, tmp_path):
        with open(tmp_path / 'run_000_result.json') as f:
            data = json.load(f)
        assert data['config']['population_size'] == 8
        assert data['best_phenotype'] == archived_run[1].best_phenotype.text

    def test_summary_report(self, archived_run, tmp_path):
        archive, _ = archived_run
        report = archive.export_summary_report()
        assert "run 0 final best:" in report
        assert (tmp_path / 'evolution_summary.txt').read_text() == report

    def test_empty_report(self, tmp_path):
        assert EvolutionArchive(str(tmp_path)).export_summary_report() == \
            "No evolution data to summarize"
