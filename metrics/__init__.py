"""
Evaluation Metrics for CDMA Experiments

Value recovery accuracy, bit error rate and confusion statistics.
"""

from .recovery import (
    compute_recovery_accuracy,
    compute_bit_error_rate,
    compute_confusion_matrix,
    compute_per_value_metrics,
)

__all__ = [
    "compute_recovery_accuracy",
    "compute_bit_error_rate",
    "compute_confusion_matrix",
    "compute_per_value_metrics",
]
