"""
Biopsy k-NN classifier

Feature scaling, nearest-neighbor classification and reporting for
tabular biopsy datasets.
"""

from .errors import InvalidParameterError, DimensionMismatchError, DegenerateFeatureError
from .scaler import fit_minmax, apply_minmax, fit_zscore, apply_zscore
from .knn import classify

__all__ = [
    'InvalidParameterError',
    'DimensionMismatchError',
    'DegenerateFeatureError',
    'fit_minmax',
    'apply_minmax',
    'fit_zscore',
    'apply_zscore',
    'classify',
]
