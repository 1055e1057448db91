"""Downsampling and cross-validation for imbalanced binary classifiers."""

import logging

from rebalance.data import Instance
from rebalance.errors import (
    EmptyDatasetError,
    InvalidConfigurationError,
    InvalidTrainingDataError,
    RebalanceError,
    UnsupportedOperationError,
    UnsupportedUpdateError,
)
from rebalance.evaluation import StationaryCrossValidator
from rebalance.sampling import DownsamplingClassifier, DownsamplingClassifierBuilder, DownsamplingConfig

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "DownsamplingClassifier",
    "DownsamplingClassifierBuilder",
    "DownsamplingConfig",
    "EmptyDatasetError",
    "Instance",
    "InvalidConfigurationError",
    "InvalidTrainingDataError",
    "RebalanceError",
    "StationaryCrossValidator",
    "UnsupportedOperationError",
    "UnsupportedUpdateError",
    "__version__",
]
