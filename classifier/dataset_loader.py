"""
Biopsy Dataset Loader

This module loads the tabular biopsy dataset (Wisconsin Diagnostic Breast
Cancer layout: an identifier column, a diagnosis column coded B/M and
numeric measurement columns), turns it into a feature matrix and a label
array, and partitions rows into training and test sets.
"""

import logging
import os
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.datasets import load_breast_cancer
from sklearn.model_selection import train_test_split

from classifier.errors import InvalidParameterError


logger = logging.getLogger(__name__)

DEFAULT_LABEL_MAP = {'B': 'Benign', 'M': 'Malignant'}

SPLIT_STRATEGIES = ('index', 'random', 'stratified')


def load_biopsy_table(file_path: str) -> pd.DataFrame:
    """
    Load the biopsy dataset from a CSV file.

    Args:
        file_path: Path to the CSV file (e.g. wisc_bc_data.csv)

    Returns:
        DataFrame with one row per sample, in file order

    Raises:
        FileNotFoundError: If the dataset file doesn't exist
        ValueError: If the file is empty or cannot be parsed
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Dataset file not found at {file_path}")

    try:
        frame = pd.read_csv(file_path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise ValueError(f"Failed to load dataset: {str(e)}") from e

    if frame.empty:
        raise ValueError(f"Dataset file contains no rows: {file_path}")

    logger.info(f"Loaded {len(frame)} rows and {len(frame.columns)} columns from {file_path}")

    return frame


def load_builtin_dataset() -> pd.DataFrame:
    """
    Build the biopsy table from scikit-learn's bundled Wisconsin dataset.

    The result has the same layout as the CSV: an 'id' column, a 'diagnosis'
    column coded B/M and the 30 measurement columns.

    Returns:
        DataFrame with 569 rows
    """
    bunch = load_breast_cancer(as_frame=True)
    features = bunch.frame.drop(columns=['target'])

    # target 0 is malignant, 1 is benign
    diagnosis = np.where(bunch.frame['target'].to_numpy() == 0, 'M', 'B')

    frame = pd.DataFrame({
        'id': np.arange(1, len(features) + 1),
        'diagnosis': diagnosis
    })
    frame = pd.concat([frame, features.reset_index(drop=True)], axis=1)

    logger.info(f"Loaded built-in dataset with {len(frame)} rows")

    return frame


def prepare_dataset(
    frame: pd.DataFrame,
    id_column: Optional[str] = 'id',
    label_column: str = 'diagnosis',
    label_map: Optional[Dict[str, str]] = None
) -> Tuple[np.ndarray, np.ndarray, List[str]]:
    """
    Split a biopsy table into a feature matrix and a label array.

    The identifier column is dropped, label codes are recoded through
    label_map and every remaining column becomes a feature. Row order is
    preserved.

    Args:
        frame: Table as returned by load_biopsy_table
        id_column: Identifier column to drop (None if the table has none)
        label_column: Column holding the label codes
        label_map: Mapping from label code to label name (default: B/M to Benign/Malignant)

    Returns:
        Tuple of (features, labels, feature_names) where:
            - features: float64 array of shape (n_samples, n_features)
            - labels: object array of label names, shape (n_samples,)
            - feature_names: list of feature column names

    Raises:
        ValueError: If columns are missing, label codes are unknown, or
            feature columns are non-numeric or contain missing or infinite values
    """
    if label_map is None:
        label_map = DEFAULT_LABEL_MAP

    if label_column not in frame.columns:
        raise ValueError(f"Label column '{label_column}' not found in dataset")

    if id_column is not None and id_column not in frame.columns:
        raise ValueError(f"Identifier column '{id_column}' not found in dataset")

    codes = frame[label_column].astype(str).str.strip()
    unknown = sorted(set(codes.unique()) - set(label_map.keys()))
    if unknown:
        raise ValueError(f"Unknown label code(s) in '{label_column}': {unknown}")

    dropped = [label_column] if id_column is None else [id_column, label_column]
    feature_frame = frame.drop(columns=dropped)

    if feature_frame.shape[1] == 0:
        raise ValueError("Dataset has no feature columns")

    non_numeric = [c for c in feature_frame.columns if not pd.api.types.is_numeric_dtype(feature_frame[c])]
    if non_numeric:
        raise ValueError(f"Non-numeric feature column(s): {non_numeric}")

    missing = feature_frame.columns[feature_frame.isnull().any()].tolist()
    if missing:
        raise ValueError(f"Missing values in feature column(s): {missing}")

    features = feature_frame.to_numpy(dtype=np.float64)

    infinite = feature_frame.columns[~np.isfinite(features).all(axis=0)].tolist()
    if infinite:
        raise ValueError(f"Infinite values in feature column(s): {infinite}")

    labels = codes.map(label_map).to_numpy(dtype=object)

    return features, labels, [str(c) for c in feature_frame.columns]


def get_dataset_info(features: np.ndarray, labels: np.ndarray) -> Dict:
    """
    Extract metadata and label statistics from a prepared dataset.

    Args:
        features: Feature array of shape (n_samples, n_features)
        labels: Label array of shape (n_samples,)

    Returns:
        Dictionary containing:
            - sample_count: Number of rows
            - n_features: Number of feature columns
            - labels: Sorted list of distinct labels
            - label_counts: Rows per label
            - label_proportions: Share of rows per label, in percent
    """
    n_samples = int(features.shape[0])

    if n_samples == 0:
        return {
            "sample_count": 0,
            "n_features": int(features.shape[1]) if features.ndim == 2 else 0,
            "labels": [],
            "label_counts": {},
            "label_proportions": {}
        }

    distinct, counts = np.unique(labels, return_counts=True)
    label_counts = {str(label): int(count) for label, count in zip(distinct, counts)}

    return {
        "sample_count": n_samples,
        "n_features": int(features.shape[1]),
        "labels": sorted(label_counts.keys()),
        "label_counts": label_counts,
        "label_proportions": {
            label: round(100.0 * count / n_samples, 1) for label, count in label_counts.items()
        }
    }


def _resolve_train_count(n_rows: int, train_size: Union[int, float]) -> int:
    if isinstance(train_size, bool):
        raise InvalidParameterError(f"train_size must be a row count or a fraction, got {train_size!r}")

    if isinstance(train_size, float):
        if not 0 < train_size < 1:
            raise InvalidParameterError(f"train_size fraction must be between 0 and 1, got {train_size}")
        n_train = int(round(n_rows * train_size))
    elif isinstance(train_size, (int, np.integer)):
        n_train = int(train_size)
    else:
        raise InvalidParameterError(f"train_size must be a row count or a fraction, got {train_size!r}")

    if n_train <= 0 or n_train >= n_rows:
        raise InvalidParameterError(
            f"train_size leaves an empty training or test set ({n_train} of {n_rows} rows)"
        )

    return n_train


def split_indices(
    n_rows: int,
    strategy: str = 'index',
    train_size: Union[int, float] = 469,
    random_state: int = 42,
    labels: Optional[np.ndarray] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Partition row indices into training and test sets.

    Strategies:
        - index: first train_size rows are training, the rest are test
        - random: seeded random permutation
        - stratified: seeded split preserving the label proportions

    Both returned index arrays are sorted, so each part keeps the source
    row order.

    Args:
        n_rows: Number of rows in the dataset
        strategy: One of 'index', 'random', 'stratified'
        train_size: Row count (int) or fraction in (0, 1) (float) for the training set
        random_state: Random seed for the random and stratified strategies
        labels: Label array, required for the stratified strategy

    Returns:
        Tuple of (train_idx, test_idx)

    Raises:
        InvalidParameterError: If the strategy is unknown, labels are missing
            for a stratified split, or the size leaves a part empty
    """
    if strategy not in SPLIT_STRATEGIES:
        raise InvalidParameterError(
            f"Unknown split strategy '{strategy}', expected one of {SPLIT_STRATEGIES}"
        )

    n_train = _resolve_train_count(n_rows, train_size)
    indices = np.arange(n_rows)

    if strategy == 'index':
        return indices[:n_train], indices[n_train:]

    if strategy == 'random':
        permuted = np.random.RandomState(random_state).permutation(n_rows)
        return np.sort(permuted[:n_train]), np.sort(permuted[n_train:])

    if labels is None or len(labels) != n_rows:
        raise InvalidParameterError("Stratified split needs one label per row")

    train_idx, test_idx = train_test_split(
        indices, train_size=n_train, random_state=random_state, stratify=labels
    )

    return np.sort(train_idx), np.sort(test_idx)
