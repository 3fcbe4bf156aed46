"""
Error types raised by the scaler and the classifier.

All of them subclass ValueError so callers that only guard against
bad input in general still catch them.
"""


class InvalidParameterError(ValueError):
    """Bad k, empty training set or otherwise unusable arguments."""


class DimensionMismatchError(ValueError):
    """Feature vectors whose length does not match the expected width."""


class DegenerateFeatureError(ValueError):
    """A feature column with zero range or zero variance."""

    def __init__(self, message: str, columns=None):
        super().__init__(message)
        self.columns = list(columns) if columns is not None else []
