"""
Classification Report Module

Cross-tabulates predicted against actual labels and derives accuracy,
per-class precision and recall and, for two-label problems, the
true/false positive/negative counts.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
from sklearn.metrics import confusion_matrix

from classifier.knn import classify


logger = logging.getLogger(__name__)


def _precision_recall(conf_matrix: np.ndarray):
    precisions = []
    recalls = []
    for c in range(conf_matrix.shape[0]):
        tp = conf_matrix[c, c]
        fp = np.sum(conf_matrix[:, c]) - tp
        fn = np.sum(conf_matrix[c, :]) - tp
        precisions.append(float(tp / (tp + fp)) if (tp + fp) > 0 else 0.0)
        recalls.append(float(tp / (tp + fn)) if (tp + fn) > 0 else 0.0)
    return precisions, recalls


def build_report(
    actual: Sequence,
    predicted: Sequence,
    labels: Optional[List] = None,
    positive_label=None
) -> Dict:
    """
    Summarize agreement between actual and predicted labels.

    Args:
        actual: True labels
        predicted: Predicted labels, aligned with actual
        labels: Label order for the confusion matrix (default: sorted labels seen)
        positive_label: Label treated as positive in the binary case
            (default: the last label in order, e.g. 'Malignant')

    Returns:
        Dictionary containing:
            - labels: Label order used for rows and columns
            - confusion_matrix: Array with actual labels as rows, predicted as columns
            - correct, total, accuracy
            - precision, recall: Per-label dictionaries
            - binary: dict with positive_label, tp, tn, fp, fn (two labels only, else None)

    Raises:
        ValueError: If the sequences differ in length or positive_label is unknown
    """
    actual = np.asarray(actual)
    predicted = np.asarray(predicted)

    if actual.shape[0] != predicted.shape[0]:
        raise ValueError(
            f"Actual and predicted labels differ in length: {actual.shape[0]} vs {predicted.shape[0]}"
        )

    if labels is None:
        labels = sorted(set(actual.tolist()) | set(predicted.tolist()))
    labels = list(labels)

    total = int(actual.shape[0])
    correct = int(np.sum(actual == predicted))
    accuracy = correct / total if total > 0 else 0.0

    if total > 0:
        conf_matrix = confusion_matrix(actual, predicted, labels=labels)
    else:
        conf_matrix = np.zeros((len(labels), len(labels)), dtype=np.int64)

    precisions, recalls = _precision_recall(conf_matrix)

    binary = None
    if len(labels) == 2:
        if positive_label is None:
            positive_label = labels[-1]
        if positive_label not in labels:
            raise ValueError(f"Positive label '{positive_label}' not among labels {labels}")

        pos = labels.index(positive_label)
        neg = 1 - pos
        binary = {
            'positive_label': positive_label,
            'tp': int(conf_matrix[pos, pos]),
            'tn': int(conf_matrix[neg, neg]),
            'fp': int(conf_matrix[neg, pos]),
            'fn': int(conf_matrix[pos, neg])
        }

    return {
        'labels': list(labels),
        'confusion_matrix': conf_matrix,
        'correct': correct,
        'total': total,
        'accuracy': accuracy,
        'precision': dict(zip(labels, precisions)),
        'recall': dict(zip(labels, recalls)),
        'binary': binary
    }


def format_confusion_table(report: Dict) -> str:
    """
    Render the confusion matrix as a text cross table with row and column totals.

    Args:
        report: Dictionary from build_report

    Returns:
        Multi-line string, actual labels as rows and predicted labels as columns
    """
    labels = [str(label) for label in report['labels']]
    matrix = report['confusion_matrix']

    first = max([len('Column Total')] + [len(label) for label in labels])
    width = max([len('Row Total')] + [len(label) for label in labels] + [len(str(report['total']))])

    header = ' | '.join([f"{'Actual':<{first}}"] + [f"{label:>{width}}" for label in labels] + [f"{'Row Total':>{width}}"])
    rule = '-+-'.join(['-' * first] + ['-' * width] * (len(labels) + 1))

    lines = [f"{'':<{first}} | Predicted", header, rule]
    for i, label in enumerate(labels):
        cells = [f"{int(matrix[i, j]):>{width}}" for j in range(len(labels))]
        lines.append(' | '.join([f"{label:<{first}}"] + cells + [f"{int(matrix[i].sum()):>{width}}"]))

    lines.append(rule)
    totals = [f"{int(matrix[:, j].sum()):>{width}}" for j in range(len(labels))]
    lines.append(' | '.join([f"{'Column Total':<{first}}"] + totals + [f"{report['total']:>{width}}"]))

    return '\n'.join(lines)


def format_summary(report: Dict) -> str:
    """Accuracy line plus the binary error counts when available."""
    lines = [f"Accuracy: {report['correct']}/{report['total']} = {report['accuracy'] * 100:.1f}%"]

    binary = report['binary']
    if binary is not None:
        lines.append(
            f"Positive label '{binary['positive_label']}': "
            f"TP={binary['tp']} TN={binary['tn']} FP={binary['fp']} FN={binary['fn']}"
        )

    for label in report['labels']:
        lines.append(
            f"  {label}: precision {report['precision'][label] * 100:.1f}%, "
            f"recall {report['recall'][label] * 100:.1f}%"
        )

    return '\n'.join(lines)


def evaluate_k_values(
    train_features: np.ndarray,
    train_labels: np.ndarray,
    test_features: np.ndarray,
    test_labels: np.ndarray,
    k_values: Sequence[int],
    positive_label=None,
    verbose: bool = True
) -> Dict[int, Dict]:
    """
    Classify the test set once per k and compare the outcomes.

    Args:
        train_features: Scaled training features
        train_labels: Training labels
        test_features: Scaled test features
        test_labels: True test labels
        k_values: Values of k to try
        positive_label: Positive label for the false negative/positive counts
        verbose: Whether to log one line per k

    Returns:
        Dictionary keyed by k with accuracy, correct, false_negatives and
        false_positives (the last two None for non-binary problems)
    """
    labels = sorted(set(np.asarray(train_labels).tolist()) | set(np.asarray(test_labels).tolist()))

    results = {}
    for k in k_values:
        predictions = classify(train_features, train_labels, test_features, k)
        report = build_report(test_labels, predictions, labels=labels, positive_label=positive_label)
        binary = report['binary']

        results[k] = {
            'accuracy': report['accuracy'],
            'correct': report['correct'],
            'false_negatives': binary['fn'] if binary else None,
            'false_positives': binary['fp'] if binary else None
        }

        if verbose:
            logger.info(
                f"k={k}: accuracy {report['accuracy'] * 100:.1f}%, "
                f"FN={results[k]['false_negatives']}, FP={results[k]['false_positives']}"
            )

    return results
