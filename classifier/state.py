"""
Configuration and Metrics Persistence

This module handles the JSON configuration of a classification run and
persists the metrics it produces. It provides functions to load/save
configuration, validate it, and read/write run metrics.
"""

import copy
import json
import os
from datetime import datetime
from typing import Dict, Any, Optional

from classifier.dataset_loader import DEFAULT_LABEL_MAP, SPLIT_STRATEGIES
from classifier.scaler import SCALING_METHODS, FIT_ON_CHOICES


DEFAULT_CONFIG_PATH = "./classifier/config.json"
DEFAULT_METRICS_PATH = "./classifier/local/metrics.json"

_DEFAULT_CONFIG = {
    "dataset_path": "./data/wisc_bc_data.csv",
    "id_column": "id",
    "label_column": "diagnosis",
    "label_map": DEFAULT_LABEL_MAP,
    "positive_label": "Malignant",
    "metrics_path": DEFAULT_METRICS_PATH,
    "scaling": {
        "method": "minmax",
        "fit_on": "entire_dataset"
    },
    "split": {
        "strategy": "index",
        "train_size": 469,
        "random_state": 42
    },
    "classifier": {
        "k": 21,
        "k_sweep": [1, 5, 11, 15, 21, 27]
    }
}


def default_config() -> Dict:
    """
    Return a fresh copy of the default run configuration.

    The defaults follow the classic Wisconsin analysis: min-max scaling over the
    entire dataset, the first 469 rows for training and k=21.
    """
    return copy.deepcopy(_DEFAULT_CONFIG)


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict:
    """
    Load configuration from a JSON file.

    Keys missing from the file fall back to the defaults.

    Args:
        config_path (str): Path to the configuration file

    Returns:
        dict: Validated configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        json.JSONDecodeError: If config file is not valid JSON
        ValueError: If configuration fields are missing or invalid
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        overrides = json.load(f)

    if not isinstance(overrides, dict):
        raise ValueError("Configuration file must contain a JSON object")

    config = default_config()
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(config.get(key), dict) and key != 'label_map':
            config[key].update(value)
        else:
            config[key] = value

    validate_config(config)

    return config


def save_config(config: Dict, config_path: str = DEFAULT_CONFIG_PATH) -> None:
    """
    Save configuration to a JSON file.

    Args:
        config (dict): Configuration dictionary to save
        config_path (str): Path to the configuration file

    Raises:
        IOError: If the file cannot be written
        ValueError: If configuration fields are missing or invalid
    """
    validate_config(config)

    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config, f, indent=2)


def save_metrics(
    metrics: Dict[str, Any],
    metrics_path: str = DEFAULT_METRICS_PATH
) -> None:
    """
    Save run metrics to a JSON file.

    A timestamp is added when the metrics do not carry one.

    Args:
        metrics (dict): JSON-serializable metrics
        metrics_path (str): Path to the metrics file

    Raises:
        IOError: If the file cannot be written
    """
    directory = os.path.dirname(metrics_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    if 'timestamp' not in metrics:
        metrics['timestamp'] = datetime.now().isoformat()

    with open(metrics_path, 'w') as f:
        json.dump(metrics, f, indent=2)


def load_metrics(metrics_path: str = DEFAULT_METRICS_PATH) -> Optional[Dict]:
    """
    Load run metrics from a JSON file.

    Args:
        metrics_path (str): Path to the metrics file

    Returns:
        dict or None: Metrics dictionary or None if file does not exist

    Raises:
        json.JSONDecodeError: If metrics file is not valid JSON
    """
    if not os.path.exists(metrics_path):
        return None

    with open(metrics_path, 'r') as f:
        metrics = json.load(f)

    return metrics


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Dict) -> None:
    """
    Validate configuration fields and their types.

    Args:
        config (dict): Configuration dictionary to validate

    Raises:
        ValueError: If required fields are missing or invalid
    """
    required_fields = ['dataset_path', 'label_column']

    for field in required_fields:
        if field not in config:
            raise ValueError(f"Required configuration field missing: {field}")

        if not isinstance(config[field], str):
            raise ValueError(f"Configuration field '{field}' must be a string")

        if not config[field].strip():
            raise ValueError(f"Configuration field '{field}' cannot be empty")

    if config.get('id_column') is not None and not isinstance(config['id_column'], str):
        raise ValueError("Configuration field 'id_column' must be a string or null")

    label_map = config.get('label_map')
    if label_map is not None:
        if not isinstance(label_map, dict) or not label_map:
            raise ValueError("'label_map' configuration must be a non-empty dictionary")
        if not all(isinstance(v, str) for v in label_map.values()):
            raise ValueError("'label_map' values must be strings")

    scaling = config.get('scaling', {})
    if not isinstance(scaling, dict):
        raise ValueError("'scaling' configuration must be a dictionary")
    if 'method' in scaling and scaling['method'] not in SCALING_METHODS:
        raise ValueError(f"Scaling method must be one of {SCALING_METHODS}")
    if 'fit_on' in scaling and scaling['fit_on'] not in FIT_ON_CHOICES:
        raise ValueError(f"Scaling fit_on must be one of {FIT_ON_CHOICES}")

    split = config.get('split', {})
    if not isinstance(split, dict):
        raise ValueError("'split' configuration must be a dictionary")
    if 'strategy' in split and split['strategy'] not in SPLIT_STRATEGIES:
        raise ValueError(f"Split strategy must be one of {SPLIT_STRATEGIES}")
    if 'train_size' in split:
        train_size = split['train_size']
        if _is_int(train_size):
            if train_size <= 0:
                raise ValueError("Split parameter 'train_size' must be positive")
        elif isinstance(train_size, float):
            if not 0 < train_size < 1:
                raise ValueError("Split parameter 'train_size' fraction must be between 0 and 1")
        else:
            raise ValueError("Split parameter 'train_size' must be an integer or a float")
    if 'random_state' in split and not _is_int(split['random_state']):
        raise ValueError("Split parameter 'random_state' must be an integer")

    classifier = config.get('classifier', {})
    if not isinstance(classifier, dict):
        raise ValueError("'classifier' configuration must be a dictionary")
    if 'k' in classifier:
        if not _is_int(classifier['k']) or classifier['k'] <= 0:
            raise ValueError("Classifier parameter 'k' must be a positive integer")
    if 'k_sweep' in classifier:
        sweep = classifier['k_sweep']
        if not isinstance(sweep, list) or not all(_is_int(k) and k > 0 for k in sweep):
            raise ValueError("Classifier parameter 'k_sweep' must be a list of positive integers")


def get_config_value(config: Dict, key: str, default: Any = None) -> Any:
    """
    Get a configuration value with optional default.

    Args:
        config (dict): Configuration dictionary
        key (str): Configuration key (supports nested keys with dot notation)
        default: Default value if key is not found

    Returns:
        Configuration value or default

    Example:
        get_config_value(config, 'classifier.k', 21)
    """
    value = config

    for k in key.split('.'):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default

    return value


def update_config_value(config: Dict, key: str, value: Any) -> Dict:
    """
    Update a configuration value (supports nested keys).

    Args:
        config (dict): Configuration dictionary
        key (str): Configuration key (supports nested keys with dot notation)
        value: New value to set

    Returns:
        dict: Updated configuration dictionary

    Example:
        update_config_value(config, 'scaling.method', 'zscore')
    """
    keys = key.split('.')
    current = config

    for k in keys[:-1]:
        current = current.setdefault(k, {})

    current[keys[-1]] = value
    return config
