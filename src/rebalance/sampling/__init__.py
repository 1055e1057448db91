"""Majority-class downsampling for imbalanced binary classification."""

from rebalance.sampling.downsampling import (
    DownsamplingClassifier,
    DownsamplingClassifierBuilder,
    DownsamplingConfig,
    ProbabilityCorrection,
)
from rebalance.sampling.filtering import FilteredInstances, RandomDroppingFilter, compute_drop_probability

__all__ = [
    "DownsamplingClassifier",
    "DownsamplingClassifierBuilder",
    "DownsamplingConfig",
    "FilteredInstances",
    "ProbabilityCorrection",
    "RandomDroppingFilter",
    "compute_drop_probability",
]
