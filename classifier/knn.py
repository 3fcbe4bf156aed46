"""
Nearest-Neighbor Classification Module

Brute-force k-nearest-neighbor classification under Euclidean distance.

Every test vector is compared against every training vector. Ordering rules
are fixed so that results are reproducible:

- neighbor selection: smaller distance first; equal distances keep the
  lower training index first (stable ordering)
- voting: the most frequent label among the k neighbors wins; a tie in vote
  count goes to the tied label owning the nearest neighbor, and a tie in that
  distance goes to the smallest label in natural (lexicographic) order
"""

import logging
import numbers
from collections import Counter
from typing import Sequence

import numpy as np
from scipy.spatial.distance import cdist

from classifier.errors import InvalidParameterError, DimensionMismatchError


logger = logging.getLogger(__name__)


def euclidean_distances(queries: np.ndarray, train: np.ndarray) -> np.ndarray:
    """
    Compute the full distance matrix between query and training vectors.

    Args:
        queries: Array of shape (n_queries, n_features)
        train: Array of shape (n_train, n_features)

    Returns:
        Array of shape (n_queries, n_train) with d(q, t) = sqrt(sum((q_i - t_i)^2))
    """
    return cdist(queries, train, metric='euclidean')


def select_neighbors(distances: np.ndarray, k: int) -> np.ndarray:
    """
    Pick the indices of the k smallest distances.

    A stable sort keeps equal distances in training order, so the lower
    training index is preferred.

    Args:
        distances: 1D array of distances from one query to every training vector
        k: Number of neighbors

    Returns:
        Array of k training indices, nearest first
    """
    order = np.argsort(distances, kind='stable')
    return order[:k]


def majority_vote(labels: Sequence, distances: Sequence[float]):
    """
    Return the winning label among a set of neighbors.

    Args:
        labels: Labels of the selected neighbors
        distances: Distances of the same neighbors, aligned with labels

    Returns:
        The label with the most votes, ties broken by nearest neighbor
        distance and then by natural label order
    """
    votes = Counter(labels)
    top_count = max(votes.values())
    candidates = [label for label, count in votes.items() if count == top_count]

    if len(candidates) == 1:
        return candidates[0]

    nearest = {}
    for label, distance in zip(labels, distances):
        if votes[label] == top_count:
            if label not in nearest or distance < nearest[label]:
                nearest[label] = distance

    best_distance = min(nearest.values())
    closest = [label for label in candidates if nearest[label] == best_distance]

    return min(closest)


def _validate_inputs(train_features, train_labels, test_features, k):
    train = np.asarray(train_features, dtype=np.float64)
    test = np.asarray(test_features, dtype=np.float64)
    labels = np.asarray(train_labels)

    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise InvalidParameterError(f"k must be an integer, got {k!r}")

    if k <= 0:
        raise InvalidParameterError(f"k must be positive, got {k}")

    if train.ndim != 2:
        raise DimensionMismatchError(f"Training features must be a 2D array, got {train.ndim}D array")

    if train.shape[0] == 0:
        raise InvalidParameterError("Training set is empty")

    if k > train.shape[0]:
        raise InvalidParameterError(
            f"k ({k}) cannot exceed the number of training samples ({train.shape[0]})"
        )

    if labels.ndim != 1 or labels.shape[0] != train.shape[0]:
        raise InvalidParameterError(
            f"Expected {train.shape[0]} training labels, got {labels.size}"
        )

    if test.ndim != 2:
        raise DimensionMismatchError(f"Test features must be a 2D array, got {test.ndim}D array")

    if test.shape[1] != train.shape[1]:
        raise DimensionMismatchError(
            f"Feature dimension mismatch: test vectors have {test.shape[1]} features, "
            f"training vectors have {train.shape[1]}"
        )

    if not np.all(np.isfinite(train)) or not np.all(np.isfinite(test)):
        raise InvalidParameterError("Feature vectors must not contain missing or infinite values")

    return train, labels, test


def classify(train_features, train_labels, test_features, k: int) -> np.ndarray:
    """
    Predict a label for every test vector by majority vote of its k nearest
    training vectors.

    Args:
        train_features: Array of shape (n_train, n_features)
        train_labels: Array of shape (n_train,)
        test_features: Array of shape (n_test, n_features)
        k: Number of neighbors, 1 <= k <= n_train (odd values avoid vote ties)

    Returns:
        Array of shape (n_test,) with one predicted label per test vector,
        in the same order as test_features

    Raises:
        InvalidParameterError: If k is invalid, the training set is empty or
            labels do not line up with the training rows
        DimensionMismatchError: If feature widths differ between train and test
    """
    train, labels, test = _validate_inputs(train_features, train_labels, test_features, k)

    if k % 2 == 0:
        logger.warning(f"k={k} is even; vote ties are resolved by nearest neighbor distance")

    if test.shape[0] == 0:
        return np.empty(0, dtype=labels.dtype)

    distances = euclidean_distances(test, train)

    predictions = []
    for row in distances:
        neighbors = select_neighbors(row, k)
        predictions.append(majority_vote(labels[neighbors].tolist(), row[neighbors].tolist()))

    logger.debug(f"Classified {test.shape[0]} vectors against {train.shape[0]} training samples (k={k})")

    return np.array(predictions, dtype=labels.dtype)
