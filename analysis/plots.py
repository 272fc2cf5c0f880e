"""
Channel Plots

Matplotlib views of a round: each station's chip sequence, the composite
signal, and the per-group correlations a station computes when despreading.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Dict, List, Optional

plt.rcParams.update({
    'font.size': 10,
    'axes.labelsize': 11,
    'axes.titlesize': 11,
    'xtick.labelsize': 9,
    'ytick.labelsize': 9,
    'legend.fontsize': 9,
    'figure.dpi': 150,
    'savefig.dpi': 300,
    'savefig.bbox': 'tight',
})

# Color palette
COLORS = {
    1: '#2E86AB',          # Blue
    2: '#A23B72',          # Purple
    3: '#F18F01',          # Orange
    'composite': '#3A3A3A',
    'group': '#DDDDDD',
}

GROUP_SIZE = 4


def _shade_groups(ax, num_chips: int):
    for start in range(0, num_chips, 2 * GROUP_SIZE):
        ax.axvspan(start - 0.5, start + GROUP_SIZE - 0.5, color=COLORS['group'], alpha=0.4, lw=0)


def _finish(fig, output_path: Optional[str], show: bool):
    plt.tight_layout()
    if output_path:
        fig.savefig(output_path)
    if show:
        plt.show()
    return fig


def plot_chip_sequences(
    chips: Dict[int, np.ndarray],
    composite: np.ndarray,
    output_path: Optional[str] = None,
    show: bool = True,
) -> plt.Figure:
    """
    Stacked step plots of every station's chips and their sum.

    Args:
        chips: station id -> 12 chips
        composite: the summed signal
        output_path: Save path
        show: Display figure

    Returns:
        Matplotlib figure
    """
    stations = sorted(chips)
    fig, axes = plt.subplots(len(stations) + 1, 1, figsize=(7, 1.6 * (len(stations) + 1)),
                             sharex=True)
    positions = np.arange(len(composite))

    for ax, sid in zip(axes, stations):
        _shade_groups(ax, len(composite))
        ax.step(positions, chips[sid], where='mid', color=COLORS[sid], linewidth=2)
        ax.set_ylim(-1.6, 1.6)
        ax.set_yticks([-1, 1])
        ax.set_ylabel(f'Station {sid}')

    ax = axes[-1]
    _shade_groups(ax, len(composite))
    ax.step(positions, composite, where='mid', color=COLORS['composite'], linewidth=2)
    ax.set_ylim(-3.6, 3.6)
    ax.set_yticks([-3, -1, 1, 3])
    ax.set_ylabel('Composite')
    ax.set_xlabel('Chip')
    ax.set_xticks(positions)

    axes[0].set_title('Chip sequences and composite signal')
    return _finish(fig, output_path, show)


def plot_correlations(
    correlations: Dict[int, np.ndarray],
    output_path: Optional[str] = None,
    show: bool = True,
) -> plt.Figure:
    """
    Grouped bars of each station's per-symbol correlation sums.

    Sums of +4 decode as 1 and -4 as 0; anything else is a decode fault.
    """
    stations = sorted(correlations)
    width = 0.8 / max(len(stations), 1)
    groups = np.arange(len(next(iter(correlations.values()))))

    fig, ax = plt.subplots(figsize=(6, 4))
    for i, sid in enumerate(stations):
        ax.bar(groups + i * width, correlations[sid], width,
               color=COLORS.get(sid, COLORS['composite']), label=f'Station {sid}')

    for level in (GROUP_SIZE, -GROUP_SIZE):
        ax.axhline(level, color=COLORS['composite'], linestyle='--', linewidth=1)
    ax.axhline(0, color='black', linewidth=0.8)

    ax.set_xticks(groups + width * (len(stations) - 1) / 2)
    ax.set_xticklabels([f'bit {g}' for g in groups])
    ax.set_ylabel('Correlation sum')
    ax.set_title('Despreading correlations')
    ax.legend(loc='best')
    return _finish(fig, output_path, show)


def plot_round(
    result,
    output_path: Optional[str] = None,
    show: bool = True,
) -> plt.Figure:
    """Chip sequences of a simulated RoundResult."""
    return plot_chip_sequences(
        result.combined.chips,
        result.combined.composite,
        output_path=output_path,
        show=show,
    )


def plot_confusion_matrix(
    cm: np.ndarray,
    value_labels: Optional[List[str]] = None,
    title: str = 'Sent vs recovered values',
    output_path: Optional[str] = None,
    show: bool = True,
) -> plt.Figure:
    """
    Plot confusion matrix of sent against recovered values.

    Args:
        cm: Confusion matrix of shape (8, 8)
        value_labels: Labels for each value
        title: Figure title
        output_path: Save path
        show: Display figure

    Returns:
        Matplotlib figure
    """
    num_values = cm.shape[0]

    if value_labels is None:
        value_labels = [str(i) for i in range(num_values)]

    # Rows with no samples stay at zero
    totals = cm.sum(axis=1, keepdims=True)
    cm_normalized = np.divide(cm.astype('float'), totals,
                              out=np.zeros(cm.shape, dtype=float), where=totals > 0)

    fig, ax = plt.subplots(figsize=(6, 6))

    im = ax.imshow(cm_normalized, cmap='Blues', vmin=0, vmax=1)

    ax.set_xticks(range(num_values))
    ax.set_yticks(range(num_values))
    ax.set_xticklabels(value_labels)
    ax.set_yticklabels(value_labels)

    ax.set_xlabel('Recovered value')
    ax.set_ylabel('Sent value')
    ax.set_title(title)

    plt.colorbar(im, ax=ax, label='Proportion')
    return _finish(fig, output_path, show)
