"""Error taxonomy for rebalancing and cross-validation workflows."""

from __future__ import annotations

from typing import Hashable, Mapping


class RebalanceError(Exception):
    """Base class for all rebalance errors."""


class InvalidConfigurationError(RebalanceError, ValueError):
    """Malformed constructor or call arguments."""


class EmptyDatasetError(RebalanceError, ValueError):
    """Zero instances where a non-empty training set is required."""


class InvalidTrainingDataError(RebalanceError, ValueError):
    """Training data with a label cardinality the builder cannot use."""

    def __init__(
        self,
        message: str,
        *,
        observed_label_count: int,
        proportions: Mapping[Hashable, float],
        sample: tuple[object, ...] = (),
    ) -> None:
        super().__init__(message)
        self.observed_label_count = observed_label_count
        self.proportions = dict(proportions)
        self.sample = sample


class UnsupportedOperationError(RebalanceError, NotImplementedError):
    """The configured inner builder lacks an optional capability."""


class UnsupportedUpdateError(UnsupportedOperationError):
    """The configured inner builder cannot update an existing model."""
