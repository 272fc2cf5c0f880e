"""
Base Experiment Class

Common infrastructure for all experiments.
"""

import os
import json
import yaml
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any, List, Optional
from itertools import permutations, product
from pathlib import Path

from cdma.codes import CodeTable, CodeFamily
from cdma.config import ChannelConfig
from cdma.message import Message
from cdma.utils import ensure_dir


@dataclass
class ExperimentConfig:
    """Base configuration for experiments."""
    # Experiment identification
    experiment_name: str = "experiment"
    run_id: str = field(default_factory=lambda: datetime.now().strftime("%Y%m%d_%H%M%S"))

    # Channel settings
    code_family: str = "walsh"
    strict_decode: bool = True
    join_timeout: Optional[float] = 10.0
    recv_timeout: Optional[float] = 10.0

    # Experiment settings
    random_seed: int = 42
    save_figures: bool = True

    # Paths
    output_dir: str = "results"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_yaml(cls, path: str) -> "ExperimentConfig":
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def save(self, path: str):
        ensure_dir(os.path.dirname(path))
        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    def channel_config(self, table: Optional[CodeTable] = None) -> ChannelConfig:
        return ChannelConfig(
            join_timeout=self.join_timeout,
            recv_timeout=self.recv_timeout,
            walsh_codes=table.to_list() if table is not None else None,
            strict_decode=self.strict_decode,
        )

    def code_table(self) -> CodeTable:
        return CodeTable.from_family(CodeFamily(self.code_family), seed=self.random_seed)


class ExperimentBase(ABC):
    """Base class for all experiments."""

    def __init__(self, config: ExperimentConfig):
        self.config = config
        self.results = {}
        self.logger = self._setup_logging()

        # Create output directory
        self.output_path = Path(config.output_dir) / config.experiment_name / config.run_id
        ensure_dir(str(self.output_path))

        # Save config
        self.config.save(str(self.output_path / "config.yaml"))

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the experiment."""
        logger = logging.getLogger(self.config.experiment_name)
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            ch = logging.StreamHandler()
            ch.setLevel(logging.INFO)
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            ch.setFormatter(formatter)
            logger.addHandler(ch)

        return logger

    @abstractmethod
    def run(self) -> Dict[str, Any]:
        """Run the experiment. Must be implemented by subclasses."""
        pass

    def save_results(self, results: Dict[str, Any]):
        """Save experiment results."""
        self.results = results

        results_path = self.output_path / "results.json"
        with open(results_path, 'w') as f:
            json.dump(results, f, indent=2, default=str)

        self.logger.info(f"Results saved to: {results_path}")

    def log_summary(self, results: Dict[str, Any]):
        """Log a summary of results."""
        self.logger.info("=" * 60)
        self.logger.info("EXPERIMENT SUMMARY")
        self.logger.info("=" * 60)

        for key, value in results.items():
            if isinstance(value, dict):
                self.logger.info(f"{key}:")
                for k, v in value.items():
                    if isinstance(v, float):
                        self.logger.info(f"  {k}: {v:.4f}")
                    else:
                        self.logger.info(f"  {k}: {v}")
            elif isinstance(value, float):
                self.logger.info(f"{key}: {value:.4f}")
            else:
                self.logger.info(f"{key}: {value}")

        self.logger.info("=" * 60)


def all_rounds() -> List[List[Message]]:
    """Every value triple under every destination permutation (512 x 6)."""
    rounds = []
    for destinations in permutations((1, 2, 3)):
        for values in product(range(8), repeat=3):
            rounds.append([
                Message(sender=sender, destination=dest, value=value)
                for sender, dest, value in zip((1, 2, 3), destinations, values)
            ])
    return rounds
