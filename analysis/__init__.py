"""
Analysis and Visualization

Figures for inspecting rounds and experiment results.
"""

from .plots import (
    plot_chip_sequences,
    plot_correlations,
    plot_round,
    plot_confusion_matrix,
)

__all__ = [
    "plot_chip_sequences",
    "plot_correlations",
    "plot_round",
    "plot_confusion_matrix",
]
