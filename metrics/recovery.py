"""
Recovery Metrics

Metrics for how faithfully stations recover the values addressed to them.
A prediction of None marks a round where the despreader raised a decode fault.
"""

import numpy as np
from typing import List, Dict, Optional
from sklearn.metrics import confusion_matrix, precision_recall_fscore_support

NUM_VALUES = 8
BITS_PER_VALUE = 3


def compute_recovery_accuracy(
    predictions: List[Optional[int]],
    ground_truth: List[int],
) -> Dict[str, float]:
    """
    Compute value recovery accuracy.

    Args:
        predictions: Recovered values (None for decode faults)
        ground_truth: Values that were sent

    Returns:
        Dict with accuracy, fault rate and counts
    """
    n = len(predictions)
    correct = sum(1 for p, g in zip(predictions, ground_truth) if p == g)
    faults = sum(1 for p in predictions if p is None)

    return {
        "accuracy": correct / n if n > 0 else 0.0,
        "num_samples": n,
        "num_correct": correct,
        "fault_rate": faults / n if n > 0 else 0.0,
        "num_faults": faults,
    }


def compute_bit_error_rate(
    predictions: List[Optional[int]],
    ground_truth: List[int],
) -> float:
    """
    Fraction of wrong bits over decoded samples; decode faults are skipped.
    """
    pairs = [(p, g) for p, g in zip(predictions, ground_truth) if p is not None]
    if not pairs:
        return 0.0
    errors = sum(bin(p ^ g).count("1") for p, g in pairs)
    return errors / (len(pairs) * BITS_PER_VALUE)


def compute_confusion_matrix(
    predictions: List[Optional[int]],
    ground_truth: List[int],
) -> np.ndarray:
    """
    Confusion matrix of sent vs recovered values.

    Returns:
        np.ndarray of shape (8, 8); rows are sent values, columns recovered.
        Decode faults are left out.
    """
    pairs = [(g, p) for p, g in zip(predictions, ground_truth) if p is not None]
    labels = list(range(NUM_VALUES))
    if not pairs:
        return np.zeros((NUM_VALUES, NUM_VALUES), dtype=np.int64)
    truth, preds = zip(*pairs)
    return confusion_matrix(truth, preds, labels=labels)


def compute_per_value_metrics(
    predictions: List[Optional[int]],
    ground_truth: List[int],
) -> Dict[int, Dict[str, float]]:
    """
    Per-value precision, recall and F1 over decoded samples.
    """
    pairs = [(g, p) for p, g in zip(predictions, ground_truth) if p is not None]
    per_value = {}
    if not pairs:
        return per_value
    truth, preds = zip(*pairs)

    labels = list(range(NUM_VALUES))
    precision, recall, f1, support = precision_recall_fscore_support(
        truth, preds, labels=labels, zero_division=0
    )
    for value in labels:
        per_value[value] = {
            "precision": float(precision[value]),
            "recall": float(recall[value]),
            "f1": float(f1[value]),
            "support": int(support[value]),
        }
    return per_value
