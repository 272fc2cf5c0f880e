"""
CDMA Experiment Scripts

Each experiment checks one property of the three-station channel.
"""

from .base import ExperimentBase, ExperimentConfig

from .exp1_reference_trace import ReferenceTraceExperiment, Exp1Config
from .exp2_exhaustive_sweep import ExhaustiveSweepExperiment, Exp2Config
from .exp3_code_families import CodeFamilyExperiment, Exp3Config

__all__ = [
    "ExperimentBase",
    "ExperimentConfig",
    "ReferenceTraceExperiment",
    "Exp1Config",
    "ExhaustiveSweepExperiment",
    "Exp2Config",
    "CodeFamilyExperiment",
    "Exp3Config",
]
