"""
Classification Pipeline

Runs the full analysis as a chain of stages:
load -> clean -> split -> scale -> classify -> report.

Every stage takes its inputs as arguments and returns new values; nothing
is kept between runs.
"""

import logging
import time
from typing import Dict, Optional

import numpy as np
import pandas as pd

from classifier.dataset_loader import load_biopsy_table, prepare_dataset, get_dataset_info, split_indices
from classifier.knn import classify
from classifier.report import build_report, evaluate_k_values
from classifier.scaler import scale_features
from classifier.state import get_config_value


logger = logging.getLogger(__name__)


def run_pipeline(config: Dict, frame: Optional[pd.DataFrame] = None, verbose: bool = True) -> Dict:
    """
    Load, scale, split and classify a biopsy dataset and report the outcome.

    Args:
        config: Run configuration (see state.default_config)
        frame: Already loaded table; read from config['dataset_path'] when None
        verbose: Whether to log progress

    Returns:
        Dictionary containing:
            - predictions: Predicted labels for the test rows
            - actual: True labels for the test rows
            - train_idx, test_idx: Row indices of the partition
            - feature_names: Feature column names
            - scaling_params: Fitted scaling parameters
            - dataset_info: Output of get_dataset_info
            - report: Output of build_report for the configured k
            - sweep: Output of evaluate_k_values, or None when no sweep is configured
            - classification_time: Seconds spent classifying the test set
            - inference_time_ms_per_sample: Classification time per test row in milliseconds
    """
    if frame is None:
        frame = load_biopsy_table(config['dataset_path'])

    features, labels, feature_names = prepare_dataset(
        frame,
        id_column=config.get('id_column', 'id'),
        label_column=config['label_column'],
        label_map=config.get('label_map')
    )
    dataset_info = get_dataset_info(features, labels)

    if verbose:
        logger.info(f"Dataset: {dataset_info['sample_count']} samples, {dataset_info['n_features']} features")
        logger.info(f"Label proportions (%): {dataset_info['label_proportions']}")

    train_idx, test_idx = split_indices(
        len(features),
        strategy=get_config_value(config, 'split.strategy', 'index'),
        train_size=get_config_value(config, 'split.train_size', 469),
        random_state=get_config_value(config, 'split.random_state', 42),
        labels=labels
    )

    method = get_config_value(config, 'scaling.method', 'minmax')
    fit_on = get_config_value(config, 'scaling.fit_on', 'entire_dataset')
    scaled, params = scale_features(features, train_idx, method=method, fit_on=fit_on, feature_names=feature_names)

    if verbose:
        logger.info(f"Train samples: {len(train_idx)}, Test samples: {len(test_idx)}")
        logger.info(f"Scaling: {method} fitted on {fit_on}")

    train_features, train_labels = scaled[train_idx], labels[train_idx]
    test_features, test_labels = scaled[test_idx], labels[test_idx]

    k = get_config_value(config, 'classifier.k', 21)

    start_time = time.time()
    predictions = classify(train_features, train_labels, test_features, k)
    classification_time = time.time() - start_time
    inference_time_ms_per_sample = (classification_time / len(test_idx)) * 1000

    label_order = dataset_info['labels']
    positive_label = config.get('positive_label')
    if positive_label is not None and positive_label not in label_order:
        logger.warning(f"Positive label '{positive_label}' not found in dataset labels {label_order}")
        positive_label = None

    report = build_report(test_labels, predictions, labels=label_order, positive_label=positive_label)

    if verbose:
        logger.info(f"Test Accuracy (k={k}): {report['accuracy'] * 100:.2f}%")
        logger.info(f"Inference Time: {inference_time_ms_per_sample:.3f} ms/sample")

    sweep = None
    k_sweep = get_config_value(config, 'classifier.k_sweep', [])
    if k_sweep:
        sweep = evaluate_k_values(
            train_features, train_labels, test_features, test_labels,
            k_sweep, positive_label=positive_label, verbose=verbose
        )

    return {
        'predictions': predictions,
        'actual': test_labels,
        'train_idx': train_idx,
        'test_idx': test_idx,
        'feature_names': feature_names,
        'scaling_params': params,
        'dataset_info': dataset_info,
        'report': report,
        'sweep': sweep,
        'k': k,
        'classification_time': classification_time,
        'inference_time_ms_per_sample': inference_time_ms_per_sample
    }


def result_to_metrics(result: Dict, config: Dict) -> Dict:
    """
    Convert a pipeline result into a JSON-serializable metrics dictionary.

    Args:
        result: Output of run_pipeline
        config: Configuration the run used

    Returns:
        Dictionary suitable for state.save_metrics
    """
    report = result['report']

    metrics = {
        'k': int(result['k']),
        'scaling': get_config_value(config, 'scaling.method', 'minmax'),
        'fit_on': get_config_value(config, 'scaling.fit_on', 'entire_dataset'),
        'split': get_config_value(config, 'split.strategy', 'index'),
        'n_train': int(len(result['train_idx'])),
        'n_test': int(len(result['test_idx'])),
        'labels': [str(label) for label in report['labels']],
        'accuracy': float(report['accuracy']),
        'correct': report['correct'],
        'total': report['total'],
        'confusion_matrix': np.asarray(report['confusion_matrix']).tolist(),
        'binary': report['binary'],
        'inference_time_ms_per_sample': float(result['inference_time_ms_per_sample'])
    }

    if result['sweep'] is not None:
        metrics['sweep'] = {str(k): v for k, v in result['sweep'].items()}

    return metrics
