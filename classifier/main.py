"""
Biopsy k-NN Classifier - Command Line Interface

Runs the classification pipeline on a biopsy CSV (or scikit-learn's
bundled copy of the Wisconsin dataset) and prints the confusion table.

Usage:
    biopsy-knn --data data/wisc_bc_data.csv
    biopsy-knn --builtin --scaling zscore --k 21
    biopsy-knn --builtin --fit-on training_only --split stratified --train-size 0.8
    biopsy-knn --builtin --k-sweep 1 5 11 15 21 27 --plot results/confusion.png
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from classifier.dataset_loader import load_builtin_dataset, SPLIT_STRATEGIES
from classifier.pipeline import run_pipeline, result_to_metrics
from classifier.report import format_confusion_table, format_summary
from classifier.scaler import SCALING_METHODS, FIT_ON_CHOICES
from classifier.state import (
    DEFAULT_CONFIG_PATH,
    default_config,
    load_config,
    save_metrics,
    update_config_value,
    validate_config
)
from classifier.utils import setup_logging
from classifier.visualization import plot_confusion_matrix, plot_accuracy_vs_k, save_figure


logger = logging.getLogger(__name__)


def _train_size(value: str):
    """Parse --train-size as a row count or a fraction."""
    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"train size must be an integer or a float, got '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="biopsy-knn",
        description="Classify biopsy samples with k-nearest neighbors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default run: min-max scaling, first 469 rows for training, k=21
  biopsy-knn --data data/wisc_bc_data.csv

  # Z-score scaling fitted on the training rows only
  biopsy-knn --builtin --scaling zscore --fit-on training_only

  # Compare several values of k
  biopsy-knn --builtin --k-sweep 1 5 11 15 21 27
        """
    )

    parser.add_argument('--config', type=str, default=None,
                        help=f'Path to a JSON configuration file (default: {DEFAULT_CONFIG_PATH} if present)')
    parser.add_argument('--data', type=str, default=None,
                        help='Path to the biopsy CSV file')
    parser.add_argument('--builtin', action='store_true',
                        help="Use scikit-learn's bundled Wisconsin dataset instead of a CSV file")
    parser.add_argument('--k', type=int, default=None,
                        help='Number of neighbors (default: 21)')
    parser.add_argument('--scaling', choices=SCALING_METHODS, default=None,
                        help='Feature scaling method (default: minmax)')
    parser.add_argument('--fit-on', choices=FIT_ON_CHOICES, default=None,
                        help='Rows used to fit the scaling parameters (default: entire_dataset)')
    parser.add_argument('--split', choices=SPLIT_STRATEGIES, default=None,
                        help='Train/test split strategy (default: index)')
    parser.add_argument('--train-size', type=_train_size, default=None,
                        help='Training rows as a count or a fraction (default: 469)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for the random and stratified splits (default: 42)')
    parser.add_argument('--k-sweep', type=int, nargs='*', default=None,
                        help='Values of k to compare after the main run (empty to disable)')
    parser.add_argument('--plot', type=str, default=None,
                        help='Write a confusion matrix PNG to this path')
    parser.add_argument('--metrics', type=str, default=None,
                        help='Write run metrics JSON to this path')
    parser.add_argument('--log-level', type=str, default='INFO',
                        help='Logging level (default: INFO)')

    return parser


def resolve_config(args: argparse.Namespace) -> dict:
    """
    Merge the configuration file (if any) with command line overrides.

    Raises:
        FileNotFoundError: If an explicit --config path does not exist
        ValueError: If the merged configuration is invalid
    """
    if args.config is not None:
        config = load_config(args.config)
    elif os.path.exists(DEFAULT_CONFIG_PATH):
        config = load_config(DEFAULT_CONFIG_PATH)
        logger.info(f"Configuration loaded from {DEFAULT_CONFIG_PATH}")
    else:
        config = default_config()

    overrides = {
        'dataset_path': args.data,
        'classifier.k': args.k,
        'classifier.k_sweep': args.k_sweep,
        'scaling.method': args.scaling,
        'scaling.fit_on': args.fit_on,
        'split.strategy': args.split,
        'split.train_size': args.train_size,
        'split.random_state': args.seed,
        'metrics_path': args.metrics
    }
    for key, value in overrides.items():
        if value is not None:
            update_config_value(config, key, value)

    validate_config(config)

    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        setup_logging(args.log_level)
        config = resolve_config(args)

        frame = load_builtin_dataset() if args.builtin else None
        result = run_pipeline(config, frame=frame)
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        print(f"\n✗ ERROR: {str(e)}", file=sys.stderr)
        return 1

    report = result['report']

    print("\n" + "=" * 60)
    print(f"k-NN CLASSIFICATION (k={result['k']})")
    print("=" * 60)
    print(format_confusion_table(report))
    print()
    print(format_summary(report))

    if result['sweep'] is not None:
        print("\nk sweep:")
        for k, outcome in result['sweep'].items():
            print(f"  k={k:<3d} accuracy {outcome['accuracy'] * 100:5.1f}%  "
                  f"FN={outcome['false_negatives']}  FP={outcome['false_positives']}")

    try:
        if args.plot:
            save_figure(plot_confusion_matrix(result['actual'], result['predictions'], report['labels']), args.plot)
            if result['sweep'] is not None:
                root, ext = os.path.splitext(args.plot)
                save_figure(plot_accuracy_vs_k(result['sweep']), f"{root}_k_sweep{ext or '.png'}")

        if args.metrics:
            save_metrics(result_to_metrics(result, config), config['metrics_path'])
            logger.info(f"Metrics saved to {config['metrics_path']}")
    except OSError as e:
        logger.error(f"Failed to write output: {e}")
        print(f"\n✗ ERROR: {str(e)}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
