"""
Tests for confusion matrix and k sweep plots.
"""

import os
import shutil
import tempfile

import pytest
import matplotlib.pyplot as plt

from classifier.visualization import (
    figure_to_base64,
    save_figure,
    plot_confusion_matrix,
    plot_accuracy_vs_k
)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir)


@pytest.fixture
def sweep():
    """k sweep results shaped like report.evaluate_k_values output."""
    return {
        1: {'accuracy': 0.96, 'correct': 96, 'false_negatives': 1, 'false_positives': 3},
        5: {'accuracy': 0.98, 'correct': 98, 'false_negatives': 2, 'false_positives': 0},
        21: {'accuracy': 0.98, 'correct': 98, 'false_negatives': 2, 'false_positives': 0}
    }


def test_plot_confusion_matrix():
    """The heatmap figure uses the given label order."""
    fig = plot_confusion_matrix(
        ['Benign', 'Malignant', 'Malignant'],
        ['Benign', 'Malignant', 'Benign'],
        ['Benign', 'Malignant']
    )

    assert isinstance(fig, plt.Figure)
    ax = fig.axes[0]
    assert [t.get_text() for t in ax.get_xticklabels()] == ['Benign', 'Malignant']
    assert ax.get_xlabel() == 'Predicted Label'
    plt.close(fig)


def test_figure_to_base64():
    """Figures are encoded as PNG data URIs."""
    fig = plot_confusion_matrix(['a', 'b'], ['a', 'b'], ['a', 'b'])

    encoded = figure_to_base64(fig)

    assert encoded.startswith('data:image/png;base64,')
    assert len(encoded) > 100


def test_save_figure_creates_directories(temp_dir, sweep):
    """Saving a plot creates missing parent directories."""
    path = os.path.join(temp_dir, 'plots', 'k_sweep.png')

    save_figure(plot_accuracy_vs_k(sweep), path)

    assert os.path.exists(path)
    assert os.path.getsize(path) > 0


def test_plot_accuracy_vs_k_without_error_counts(sweep):
    """Multi-class sweeps without error counts still plot accuracy."""
    for outcome in sweep.values():
        outcome['false_negatives'] = None
        outcome['false_positives'] = None

    fig = plot_accuracy_vs_k(sweep)

    assert len(fig.axes) == 1
    plt.close(fig)
