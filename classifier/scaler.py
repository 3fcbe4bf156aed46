"""
Feature Scaling Module

Rescales numeric feature columns before distance computation. Two
interchangeable strategies are provided:

- min-max scaling to [0, 1] using the observed minimum and maximum
- z-score standardization using the mean and sample standard deviation

Fitting produces immutable parameters; applying them is a pure transform.
Zero-range and zero-variance columns are rejected with
DegenerateFeatureError instead of producing NaN or infinite values.
"""

import logging
from typing import Callable, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from classifier.errors import InvalidParameterError, DimensionMismatchError, DegenerateFeatureError


logger = logging.getLogger(__name__)

SCALING_METHODS = ('minmax', 'zscore')

FIT_ON_ENTIRE_DATASET = 'entire_dataset'
FIT_ON_TRAINING_ONLY = 'training_only'
FIT_ON_CHOICES = (FIT_ON_ENTIRE_DATASET, FIT_ON_TRAINING_ONLY)


class MinMaxParameters(NamedTuple):
    """Per-feature minimum and maximum."""
    minimum: np.ndarray
    maximum: np.ndarray


class ZScoreParameters(NamedTuple):
    """Per-feature mean and sample standard deviation."""
    mean: np.ndarray
    std: np.ndarray


def _frozen(values: np.ndarray) -> np.ndarray:
    values = np.array(values, dtype=np.float64)
    values.setflags(write=False)
    return values


def _as_matrix(dataset, min_rows: int = 1) -> np.ndarray:
    data = np.asarray(dataset, dtype=np.float64)

    if data.ndim != 2:
        raise DimensionMismatchError(f"Expected a 2D dataset, got {data.ndim}D array")

    if data.shape[0] < min_rows:
        raise InvalidParameterError(
            f"Scaling needs at least {min_rows} row(s), got {data.shape[0]}"
        )

    if not np.all(np.isfinite(data)):
        raise InvalidParameterError("Scaling input contains NaN or infinite values")

    return data


def _describe_columns(columns: Sequence[int], feature_names: Optional[Sequence[str]]) -> str:
    if feature_names is None:
        return ', '.join(str(c) for c in columns)
    return ', '.join(f"{c} ({feature_names[c]})" for c in columns)


def _check_width(vectors, expected: int) -> np.ndarray:
    data = np.asarray(vectors, dtype=np.float64)

    if data.ndim not in (1, 2):
        raise DimensionMismatchError(f"Expected a vector or a 2D array, got {data.ndim}D array")

    width = data.shape[-1]
    if width != expected:
        raise DimensionMismatchError(
            f"Feature vector has {width} components, scaling parameters have {expected}"
        )

    return data


def fit_minmax(dataset, feature_names: Optional[Sequence[str]] = None) -> MinMaxParameters:
    """
    Compute per-feature minimum and maximum over a dataset.

    Args:
        dataset: Array of shape (n_samples, n_features)
        feature_names: Optional column names used in error messages

    Returns:
        MinMaxParameters with read-only minimum and maximum arrays

    Raises:
        DimensionMismatchError: If dataset is not 2D
        InvalidParameterError: If dataset has no rows or non-finite values
        DegenerateFeatureError: If any column has max == min
    """
    data = _as_matrix(dataset)

    minimum = data.min(axis=0)
    maximum = data.max(axis=0)

    degenerate = np.flatnonzero(maximum == minimum)
    if degenerate.size:
        raise DegenerateFeatureError(
            f"Zero-range feature column(s): {_describe_columns(degenerate, feature_names)}",
            columns=degenerate.tolist()
        )

    return MinMaxParameters(minimum=_frozen(minimum), maximum=_frozen(maximum))


def apply_minmax(vectors, params: MinMaxParameters) -> np.ndarray:
    """
    Map each component x to (x - min) / (max - min).

    Args:
        vectors: A single feature vector or an array of shape (n_samples, n_features)
        params: Parameters from fit_minmax

    Returns:
        Scaled array with the same shape as the input
    """
    data = _check_width(vectors, params.minimum.shape[0])
    return (data - params.minimum) / (params.maximum - params.minimum)


def fit_zscore(dataset, feature_names: Optional[Sequence[str]] = None) -> ZScoreParameters:
    """
    Compute per-feature mean and sample standard deviation (ddof=1).

    Args:
        dataset: Array of shape (n_samples, n_features), at least two rows
        feature_names: Optional column names used in error messages

    Returns:
        ZScoreParameters with read-only mean and std arrays

    Raises:
        DimensionMismatchError: If dataset is not 2D
        InvalidParameterError: If dataset has fewer than two rows
            or non-finite values
        DegenerateFeatureError: If any column is constant
    """
    data = _as_matrix(dataset, min_rows=2)

    mean = data.mean(axis=0)
    std = data.std(axis=0, ddof=1)

    degenerate = np.flatnonzero(np.all(data == data[0], axis=0))
    if degenerate.size:
        raise DegenerateFeatureError(
            f"Zero-variance feature column(s): {_describe_columns(degenerate, feature_names)}",
            columns=degenerate.tolist()
        )

    return ZScoreParameters(mean=_frozen(mean), std=_frozen(std))


def apply_zscore(vectors, params: ZScoreParameters) -> np.ndarray:
    """
    Map each component x to (x - mean) / std.

    Args:
        vectors: A single feature vector or an array of shape (n_samples, n_features)
        params: Parameters from fit_zscore

    Returns:
        Standardized array with the same shape as the input
    """
    data = _check_width(vectors, params.mean.shape[0])
    return (data - params.mean) / params.std


def get_scaler(method: str) -> Tuple[Callable, Callable]:
    """
    Look up the (fit, apply) pair for a scaling method.

    Args:
        method: 'minmax' or 'zscore'

    Returns:
        Tuple of (fit_function, apply_function)

    Raises:
        InvalidParameterError: If method is unknown
    """
    if method == 'minmax':
        return fit_minmax, apply_minmax
    if method == 'zscore':
        return fit_zscore, apply_zscore

    raise InvalidParameterError(
        f"Unknown scaling method '{method}', expected one of {SCALING_METHODS}"
    )


def scale_features(
    features: np.ndarray,
    train_idx: np.ndarray,
    method: str = 'minmax',
    fit_on: str = FIT_ON_ENTIRE_DATASET,
    feature_names: Optional[Sequence[str]] = None
):
    """
    Fit scaling parameters and apply them to every row.

    With fit_on='entire_dataset' the statistics are computed over all rows
    before the train/test split, so test-set statistics leak into the scaled
    training data. fit_on='training_only' computes them from the training
    rows alone.

    Args:
        features: Feature array of shape (n_samples, n_features)
        train_idx: Row indices of the training set
        method: 'minmax' or 'zscore'
        fit_on: 'entire_dataset' or 'training_only'
        feature_names: Optional column names used in error messages

    Returns:
        Tuple of (scaled_features, params)
    """
    if fit_on not in FIT_ON_CHOICES:
        raise InvalidParameterError(
            f"Unknown fit_on value '{fit_on}', expected one of {FIT_ON_CHOICES}"
        )

    fit, apply = get_scaler(method)
    data = _as_matrix(features)

    reference = data if fit_on == FIT_ON_ENTIRE_DATASET else data[np.asarray(train_idx, dtype=np.intp)]
    params = fit(reference, feature_names=feature_names)

    logger.debug(f"Fitted {method} scaling on {len(reference)} rows ({fit_on})")

    return apply(data, params), params
