"""
Unit tests for biopsy dataset loading functionality.

Tests CSV loading, label recoding, metadata extraction and train/test
splitting.
"""

import pytest
import numpy as np
import pandas as pd
import tempfile
import os
import shutil

from classifier.errors import InvalidParameterError
from classifier.dataset_loader import (
    load_biopsy_table,
    load_builtin_dataset,
    prepare_dataset,
    get_dataset_info,
    split_indices
)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir)


@pytest.fixture
def biopsy_frame():
    """Small biopsy table with an id, a B/M diagnosis and three measurements."""
    rng = np.random.RandomState(0)
    return pd.DataFrame({
        'id': [87139402, 8910251, 905520, 868871, 9012568, 906539, 925291, 87880, 862989, 89827],
        'diagnosis': ['B', 'B', 'B', 'B', 'B', 'M', 'B', 'M', 'B', 'M'],
        'radius_mean': rng.uniform(6, 28, 10),
        'texture_mean': rng.uniform(9, 40, 10),
        'area_mean': rng.uniform(140, 2500, 10)
    })


@pytest.fixture
def biopsy_csv(temp_dir, biopsy_frame):
    """Write the biopsy table to a CSV file."""
    path = os.path.join(temp_dir, 'wisc_bc_data.csv')
    biopsy_frame.to_csv(path, index=False)
    return path


def test_load_biopsy_table_success(biopsy_csv, biopsy_frame):
    """CSV rows and columns are loaded in file order."""
    frame = load_biopsy_table(biopsy_csv)

    assert frame.shape == (10, 5)
    assert list(frame.columns) == list(biopsy_frame.columns)
    assert frame['id'].tolist() == biopsy_frame['id'].tolist()


def test_load_biopsy_table_file_not_found():
    """Loading from nonexistent file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_biopsy_table('/nonexistent/path/wisc_bc_data.csv')


def test_load_biopsy_table_empty_file(temp_dir):
    """An empty file raises ValueError."""
    path = os.path.join(temp_dir, 'empty.csv')
    open(path, 'w').close()

    with pytest.raises(ValueError):
        load_biopsy_table(path)


def test_load_biopsy_table_header_only(temp_dir):
    """A header without rows raises ValueError."""
    path = os.path.join(temp_dir, 'header.csv')
    with open(path, 'w') as f:
        f.write('id,diagnosis,radius_mean\n')

    with pytest.raises(ValueError):
        load_biopsy_table(path)


def test_prepare_dataset(biopsy_frame):
    """The id column is dropped and labels are recoded."""
    features, labels, names = prepare_dataset(biopsy_frame)

    assert features.shape == (10, 3)
    assert features.dtype == np.float64
    assert names == ['radius_mean', 'texture_mean', 'area_mean']
    assert labels.tolist()[:6] == ['Benign'] * 5 + ['Malignant']
    np.testing.assert_array_equal(features[:, 0], biopsy_frame['radius_mean'].to_numpy())


def test_prepare_dataset_custom_label_map(biopsy_frame):
    """A custom label map renames the label codes."""
    _, labels, _ = prepare_dataset(biopsy_frame, label_map={'B': 'benign', 'M': 'malignant'})

    assert set(labels.tolist()) == {'benign', 'malignant'}


def test_prepare_dataset_without_id(biopsy_frame):
    """Tables without an identifier column keep every other column as a feature."""
    features, _, names = prepare_dataset(biopsy_frame.drop(columns=['id']), id_column=None)

    assert features.shape == (10, 3)
    assert 'id' not in names


def test_prepare_dataset_unknown_label(biopsy_frame):
    """Unknown label codes raise ValueError."""
    biopsy_frame.loc[3, 'diagnosis'] = 'X'

    with pytest.raises(ValueError, match='Unknown label'):
        prepare_dataset(biopsy_frame)


def test_prepare_dataset_missing_columns(biopsy_frame):
    """Missing label or id columns raise ValueError."""
    with pytest.raises(ValueError):
        prepare_dataset(biopsy_frame, label_column='outcome')

    with pytest.raises(ValueError):
        prepare_dataset(biopsy_frame.drop(columns=['id']))


def test_prepare_dataset_missing_values(biopsy_frame):
    """Missing feature values raise ValueError."""
    biopsy_frame.loc[2, 'texture_mean'] = np.nan

    with pytest.raises(ValueError, match='texture_mean'):
        prepare_dataset(biopsy_frame)


def test_prepare_dataset_infinite_values(biopsy_frame):
    """Infinite feature values raise ValueError."""
    biopsy_frame.loc[4, 'area_mean'] = -np.inf

    with pytest.raises(ValueError, match='area_mean'):
        prepare_dataset(biopsy_frame)


def test_load_infinite_value_from_csv(temp_dir, biopsy_frame):
    """The text 'inf' in a CSV is read as a float and rejected by prepare_dataset."""
    path = os.path.join(temp_dir, 'wisc_bc_data.csv')
    biopsy_frame.to_csv(path, index=False)
    with open(path) as f:
        lines = f.read().splitlines()
    cells = lines[3].split(',')
    cells[2] = 'inf'
    lines[3] = ','.join(cells)
    with open(path, 'w') as f:
        f.write('\n'.join(lines) + '\n')

    frame = load_biopsy_table(path)

    with pytest.raises(ValueError, match='radius_mean'):
        prepare_dataset(frame)


def test_prepare_dataset_non_numeric(biopsy_frame):
    """Non-numeric feature columns raise ValueError."""
    biopsy_frame['notes'] = 'n/a'

    with pytest.raises(ValueError, match='notes'):
        prepare_dataset(biopsy_frame)


def test_load_builtin_dataset():
    """The bundled dataset has the CSV layout and the known class balance."""
    frame = load_builtin_dataset()

    assert frame.shape == (569, 32)
    assert list(frame.columns[:2]) == ['id', 'diagnosis']
    assert (frame['diagnosis'] == 'B').sum() == 357
    assert (frame['diagnosis'] == 'M').sum() == 212

    features, labels, names = prepare_dataset(frame)
    assert features.shape == (569, 30)
    assert len(names) == 30


def test_get_dataset_info(biopsy_frame):
    """Label counts and proportions are reported."""
    features, labels, _ = prepare_dataset(biopsy_frame)
    info = get_dataset_info(features, labels)

    assert info['sample_count'] == 10
    assert info['n_features'] == 3
    assert info['labels'] == ['Benign', 'Malignant']
    assert info['label_counts'] == {'Benign': 7, 'Malignant': 3}
    assert info['label_proportions'] == {'Benign': 70.0, 'Malignant': 30.0}


def test_get_dataset_info_empty():
    """An empty dataset gives zero counts."""
    info = get_dataset_info(np.empty((0, 4)), np.array([]))

    assert info['sample_count'] == 0
    assert info['n_features'] == 4
    assert info['label_counts'] == {}


def test_split_indices_contiguous():
    """The index strategy takes the first rows for training."""
    train_idx, test_idx = split_indices(10, strategy='index', train_size=7)

    np.testing.assert_array_equal(train_idx, np.arange(7))
    np.testing.assert_array_equal(test_idx, np.arange(7, 10))


def test_split_indices_fraction():
    """A float train_size is a fraction of the rows."""
    train_idx, test_idx = split_indices(20, strategy='index', train_size=0.75)

    assert len(train_idx) == 15
    assert len(test_idx) == 5


def test_split_indices_random():
    """The random strategy is a seeded, sorted, non-overlapping partition."""
    train_idx, test_idx = split_indices(50, strategy='random', train_size=35, random_state=3)
    again_train, again_test = split_indices(50, strategy='random', train_size=35, random_state=3)

    assert len(train_idx) == 35
    assert len(test_idx) == 15
    assert set(train_idx).isdisjoint(test_idx)
    assert sorted(set(train_idx) | set(test_idx)) == list(range(50))
    assert np.all(np.diff(train_idx) > 0)
    np.testing.assert_array_equal(train_idx, again_train)
    np.testing.assert_array_equal(test_idx, again_test)


def test_split_indices_stratified():
    """The stratified strategy keeps label proportions in both parts."""
    labels = np.array(['Benign'] * 30 + ['Malignant'] * 10, dtype=object)

    train_idx, test_idx = split_indices(40, strategy='stratified', train_size=20, random_state=1, labels=labels)

    assert len(train_idx) == 20
    assert (labels[train_idx] == 'Malignant').sum() == 5
    assert (labels[test_idx] == 'Malignant').sum() == 5
    assert set(train_idx).isdisjoint(test_idx)


def test_split_indices_stratified_needs_labels():
    """Stratified splitting without labels raises InvalidParameterError."""
    with pytest.raises(InvalidParameterError):
        split_indices(10, strategy='stratified', train_size=5)


@pytest.mark.parametrize("train_size", [0, 10, 12, 1.0, 0.0, -3, '5', True])
def test_split_indices_invalid_size(train_size):
    """Sizes that leave a part empty or have the wrong type are rejected."""
    with pytest.raises(InvalidParameterError):
        split_indices(10, strategy='index', train_size=train_size)


def test_split_indices_unknown_strategy():
    """Unknown strategies raise InvalidParameterError."""
    with pytest.raises(InvalidParameterError):
        split_indices(10, strategy='kfold', train_size=5)
