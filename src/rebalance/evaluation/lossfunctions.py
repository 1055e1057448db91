"""Pluggable loss functions over (label, prediction, weight) triples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Mapping, Protocol, Sequence

import numpy as np
import numpy.typing as npt

from rebalance.errors import EmptyDatasetError


FloatArray = npt.NDArray[np.float64]


@dataclass(frozen=True, slots=True)
class LabelPredictionWeight:
    """True label, predicted probability per label, and instance weight."""

    label: Hashable
    prediction: Mapping[Hashable, float]
    weight: float

    def probability_of_label(self) -> float:
        """Predicted probability of the true label (0.0 if it was not scored)."""
        return float(self.prediction.get(self.label, 0.0))


@dataclass(frozen=True, slots=True)
class LossFunctionResult:
    """Loss of one evaluated fold."""

    name: str
    loss: float
    fold_index: int
    instance_count: int
    total_weight: float


class LossFunction(Protocol):
    """Scores one fold of predictions; lower is better."""

    @property
    def name(self) -> str:
        ...

    def get_loss(self, results: Sequence[LabelPredictionWeight]) -> float:
        ...


class ClassifierLogLoss:
    """Weighted mean negative log-likelihood of the true label."""

    def __init__(self, *, min_probability: float = 1e-15) -> None:
        if min_probability <= 0.0 or min_probability >= 1.0:
            raise ValueError("min_probability must be in (0, 1)")
        self._min_probability = min_probability

    @property
    def name(self) -> str:
        return "LOG_LOSS"

    def get_loss(self, results: Sequence[LabelPredictionWeight]) -> float:
        probabilities, weights = _true_label_probabilities(results)
        clipped = np.clip(probabilities, self._min_probability, 1.0)
        return _weighted_mean(-np.log(clipped), weights)


class ClassifierRMSE:
    """Weighted root mean squared error of ``1 - p(true label)``."""

    @property
    def name(self) -> str:
        return "RMSE"

    def get_loss(self, results: Sequence[LabelPredictionWeight]) -> float:
        probabilities, weights = _true_label_probabilities(results)
        return float(np.sqrt(_weighted_mean((1.0 - probabilities) ** 2, weights)))


class ClassifierMisclassificationRate:
    """Weighted share of rows whose most probable label is not the true label."""

    @property
    def name(self) -> str:
        return "MISCLASSIFICATION_RATE"

    def get_loss(self, results: Sequence[LabelPredictionWeight]) -> float:
        if not results:
            raise EmptyDatasetError("results must not be empty")
        errors = np.asarray(
            [0.0 if _most_probable_label(result) == result.label else 1.0 for result in results],
            dtype=np.float64,
        )
        weights = np.asarray([result.weight for result in results], dtype=np.float64)
        return _weighted_mean(errors, weights)


def _most_probable_label(result: LabelPredictionWeight) -> Hashable | None:
    if not result.prediction:
        return None
    return max(result.prediction.items(), key=lambda item: item[1])[0]


def _true_label_probabilities(results: Sequence[LabelPredictionWeight]) -> tuple[FloatArray, FloatArray]:
    if not results:
        raise EmptyDatasetError("results must not be empty")
    probabilities = np.asarray([result.probability_of_label() for result in results], dtype=np.float64)
    weights = np.asarray([result.weight for result in results], dtype=np.float64)
    if np.any(probabilities < -1e-9) or np.any(probabilities > 1.0 + 1e-9):
        raise ValueError("predicted probabilities must be in [0, 1]")
    return np.clip(probabilities, 0.0, 1.0), weights


def _weighted_mean(values: FloatArray, weights: FloatArray) -> float:
    total_weight = float(np.sum(weights))
    if total_weight <= 0.0:
        raise ValueError("total weight must be > 0")
    return float(np.sum(values * weights) / total_weight)
