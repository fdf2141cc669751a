"""
ge_evolution/archive.py - Run archive and persistence

Layout under the archive root:

    logs/evolution_log.json     one entry per evaluated generation, all runs
    best/run_000.json           best genome of each run
    run_000_result.json         EvolutionResult plus the config that produced it
    evolution_summary.txt       per-run report
"""
import os
import json
import logging
import time
from datetime import datetime
from typing import Dict, Any, List, Optional

from .config import EvolutionConfig
from .engine import EvolutionResult, GenerationSummary
from .genome import Genome

logger = logging.getLogger(__name__)

LOG_NAME = 'evolution_log.json'
REPORT_NAME = 'evolution_summary.txt'


class EvolutionArchive:
    """JSON archive of generation summaries, best genomes and run results"""

    def __init__(self, base_path: str):
        self.base_path = base_path
        self.log_dir = os.path.join(base_path, 'logs')
        self.best_dir = os.path.join(base_path, 'best')
        self.entries: List[Dict[str, Any]] = []

        os.makedirs(self.log_dir, exist_ok=True)
        os.makedirs(self.best_dir, exist_ok=True)

    @property
    def log_file(self) -> str:
        return os.path.join(self.log_dir, LOG_NAME)

    def best_genome_file(self, run_index: int) -> str:
        return os.path.join(self.best_dir, f"run_{run_index:03d}.json")

    def result_file(self, run_index: int) -> str:
        return os.path.join(self.base_path, f"run_{run_index:03d}_result.json")

    def archive_generation(self, summary: GenerationSummary, run_index: int = 0) -> None:
        """Append one generation summary and rewrite the log"""
        recorded = time.time()
        entry = {'run': run_index}
        entry.update(summary.to_dict())
        entry['timestamp'] = recorded
        entry['datetime'] = datetime.fromtimestamp(recorded).isoformat()
        self.entries.append(entry)

        with open(self.log_file, 'w') as f:
            json.dump(self.entries, f, indent=2)

    def load_log(self) -> List[Dict[str, Any]]:
        """Entries written by an earlier archive on the same path"""
        if os.path.exists(self.log_file):
            with open(self.log_file, 'r') as f:
                self.entries = json.load(f)
        return self.entries

    def save_result(self, result: EvolutionResult, config: EvolutionConfig = None,
                    run_index: int = 0) -> str:
        result.best_genome.to_json(self.best_genome_file(run_index))

        data = result.to_dict()
        if config is not None:
            data['config'] = config.to_dict()
        path = self.result_file(run_index)
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)

        logger.debug("Run %d archived to %s", run_index, path)
        return path

    def best_genome_files(self) -> List[str]:
        return sorted(os.path.join(self.best_dir, name)
                      for name in os.listdir(self.best_dir) if name.endswith('.json'))

    def load_best_genome(self, run_index: int) -> Optional[Genome]:
        """Best genome saved for a run, or None when that run was not archived"""
        path = self.best_genome_file(run_index)
        if not os.path.exists(path):
            return None
        return Genome.from_json(filename=path)

    def _runs(self) -> Dict[int, List[Dict[str, Any]]]:
        runs: Dict[int, List[Dict[str, Any]]] = {}
        for entry in self.entries:
            runs.setdefault(entry.get('run', 0), []).append(entry)
        return runs

    def export_summary_report(self) -> str:
        """Write a per-run report next to the results and return its text"""
        runs = self._runs()
        if not runs:
            return "No evolution data to summarize"

        lines = [
            f"Grammatical Evolution archive: {self.base_path}",
            f"{len(runs)} run(s), {len(self.entries)} generation(s) logged",
            "",
            f"{'run':>4} {'gens':>5} {'first best':>14} {'all-time best':>14} "
            f"{'final mean':>14} {'invalid':>8}",
        ]
        for run_index in sorted(runs):
            first, last = runs[run_index][0], runs[run_index][-1]
            lines.append(f"{run_index:>4} {len(runs[run_index]):>5} "
                         f"{first['best_fitness']:>14.6g} {last['all_time_best_fitness']:>14.6g} "
                         f"{last['mean_fitness']:>14.6g} {last['invalid']:>8}")

        lines.append("")
        for run_index in sorted(runs):
            lines.append(f"run {run_index} final best: {runs[run_index][-1]['best_phenotype']}")

        report = '\n'.join(lines) + '\n'
        with open(os.path.join(self.base_path, REPORT_NAME), 'w') as f:
            f.write(report)
        return report
