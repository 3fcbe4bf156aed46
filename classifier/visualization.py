"""
Visualization utilities for classification results
Generates confusion matrix heatmaps and accuracy-vs-k plots
"""

import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
import seaborn as sns
import numpy as np
import io
import os
import base64
import logging
from typing import Dict, List, Sequence

from sklearn.metrics import confusion_matrix


logger = logging.getLogger(__name__)


def figure_to_base64(fig) -> str:
    """Convert matplotlib figure to a base64 PNG data URI and close it"""
    buf = io.BytesIO()
    fig.savefig(buf, format='png', bbox_inches='tight', dpi=100)
    buf.seek(0)
    img_base64 = base64.b64encode(buf.read()).decode('utf-8')
    plt.close(fig)
    return f"data:image/png;base64,{img_base64}"


def save_figure(fig, path: str) -> None:
    """
    Write a figure to a PNG file and close it.

    Args:
        fig: Matplotlib figure
        path: Output file path; parent directories are created
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    fig.savefig(path, format='png', bbox_inches='tight', dpi=100)
    plt.close(fig)

    logger.info(f"Plot saved to {path}")


def plot_confusion_matrix(
    y_true: Sequence,
    y_pred: Sequence,
    classes: List[str],
    title: str = "Confusion Matrix"
) -> plt.Figure:
    """
    Generate confusion matrix heatmap using seaborn.

    Args:
        y_true: True labels
        y_pred: Predicted labels
        classes: Label order for rows and columns (e.g., ['Benign', 'Malignant'])
        title: Plot title

    Returns:
        Matplotlib figure
    """
    cm = confusion_matrix(y_true, y_pred, labels=classes)

    fig, ax = plt.subplots(figsize=(8, 6))
    sns.heatmap(cm, annot=True, fmt='d', cmap='Blues',
                xticklabels=classes, yticklabels=classes,
                ax=ax, cbar_kws={'label': 'Count'}, square=True)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_ylabel('Actual Label', fontsize=12)
    ax.set_xlabel('Predicted Label', fontsize=12)

    plt.tight_layout()
    return fig


def plot_accuracy_vs_k(sweep: Dict[int, Dict], title: str = "Accuracy vs. k") -> plt.Figure:
    """
    Plot test accuracy and error counts for each k in a sweep

    Args:
        sweep: Dictionary from report.evaluate_k_values
        title: Plot title

    Returns:
        Matplotlib figure
    """
    k_values = sorted(sweep.keys())
    accuracies = [sweep[k]['accuracy'] * 100 for k in k_values]

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(k_values, accuracies, 'b-', marker='o', linewidth=2, markersize=8, label='Accuracy')

    if all(sweep[k]['false_negatives'] is not None for k in k_values):
        ax2 = ax.twinx()
        width = 0.35
        ax2.bar(np.array(k_values) - width / 2, [sweep[k]['false_negatives'] for k in k_values],
                width=width, alpha=0.3, color='r', label='False negatives')
        ax2.bar(np.array(k_values) + width / 2, [sweep[k]['false_positives'] for k in k_values],
                width=width, alpha=0.3, color='g', label='False positives')
        ax2.set_ylabel('Count', fontsize=12)
        ax2.legend(loc='lower right', fontsize=10)

    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_xlabel('k', fontsize=12)
    ax.set_ylabel('Accuracy (%)', fontsize=12)
    ax.set_xticks(k_values)
    ax.set_ylim(0, 105)
    ax.legend(loc='lower left', fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig
