import matplotlib.pyplot as plt
import numpy as np

from analysis.plots import plot_chip_sequences, plot_confusion_matrix, plot_correlations
from cdma.codes import CodeTable
from cdma.despreading import correlate
from cdma.spreading import combine, spread_all


def test_plot_chip_sequences(tmp_path):
    chips = spread_all({1: 4, 2: 5, 3: 7}, CodeTable())
    path = tmp_path / "chips.png"
    fig = plot_chip_sequences(chips, combine(chips), output_path=str(path), show=False)
    assert path.exists()
    assert len(fig.axes) == 4
    plt.close(fig)


def test_plot_correlations():
    table = CodeTable()
    composite = combine(spread_all({1: 4, 2: 5, 3: 7}, table))
    correlations = {sid: correlate(composite, table.code_for(sid)) for sid in (1, 2, 3)}
    fig = plot_correlations(correlations, show=False)
    plt.close(fig)


def test_plot_confusion_matrix_with_empty_rows():
    cm = np.zeros((8, 8), dtype=int)
    cm[3, 3] = 4
    fig = plot_confusion_matrix(cm, show=False)
    plt.close(fig)
