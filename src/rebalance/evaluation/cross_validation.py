"""Stationary k-fold cross-validation with a pluggable loss function."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable, Iterable, Sequence

import numpy as np

from rebalance.data.contracts import Instance
from rebalance.data.splitting import split_into_folds
from rebalance.errors import EmptyDatasetError, InvalidConfigurationError
from rebalance.evaluation.lossfunctions import LabelPredictionWeight, LossFunction, LossFunctionResult
from rebalance.ml.contracts import Classifier, PredictiveModelBuilder


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CrossValidationConfig:
    """Fold layout for cross-validation."""

    folds: int = 4
    folds_used: int | None = None

    def __post_init__(self) -> None:
        if self.folds < 2:
            raise InvalidConfigurationError(f"folds must be >= 2 (was {self.folds})")
        if self.folds_used is not None and not 1 <= self.folds_used <= self.folds:
            raise InvalidConfigurationError(
                f"folds_used must be in [1, {self.folds}] (was {self.folds_used})"
            )

    @property
    def evaluated_folds(self) -> int:
        return self.folds if self.folds_used is None else self.folds_used


@dataclass(frozen=True, slots=True)
class CrossValidationResult:
    """Per-fold losses and their mean."""

    loss_function_name: str
    fold_results: tuple[LossFunctionResult, ...]

    @property
    def losses(self) -> tuple[float, ...]:
        return tuple(result.loss for result in self.fold_results)

    @property
    def mean_loss(self) -> float:
        return float(np.mean(np.asarray(self.losses, dtype=np.float64)))

    def weighted_mean_loss(self) -> float:
        """Mean fold loss weighted by each fold's total instance weight."""
        weights = np.asarray([result.total_weight for result in self.fold_results], dtype=np.float64)
        total = float(np.sum(weights))
        if total <= 0.0:
            raise ValueError("fold weights must sum to > 0")
        return float(np.sum(np.asarray(self.losses, dtype=np.float64) * weights) / total)


class StationaryCrossValidator:
    """Train a fresh model per fold and score the held-out rows.

    Folds are contiguous and order preserving; row order is not treated as time.
    """

    def __init__(self, loss_function: LossFunction, config: CrossValidationConfig | None = None) -> None:
        self._loss_function = loss_function
        self._config = CrossValidationConfig() if config is None else config

    @property
    def config(self) -> CrossValidationConfig:
        return self._config

    def get_cross_validated_loss(
        self,
        builder: PredictiveModelBuilder[Classifier],
        data: Iterable[Instance],
    ) -> CrossValidationResult:
        """Run train/evaluate cycles and return one loss per evaluated fold."""
        instances = tuple(data)
        if not instances:
            raise EmptyDatasetError("cross-validation requires at least one instance")

        logger.debug("Splitting %d instances into %d folds", len(instances), self._config.folds)
        fold_set = split_into_folds(len(instances), self._config.folds)
        labels = _observed_labels(instances)
        for fold_index in range(self._config.evaluated_folds):
            fold_weight = sum(instances[idx].weight for idx in fold_set.eval_indices(fold_index))
            if fold_weight <= 0.0:
                raise EmptyDatasetError(f"fold {fold_index} carries no weight")

        fold_results: list[LossFunctionResult] = []
        for fold_index in range(self._config.evaluated_folds):
            training = tuple(instances[idx] for idx in fold_set.train_indices(fold_index))
            evaluation = tuple(instances[idx] for idx in fold_set.eval_indices(fold_index))

            logger.debug("Fold %d: training on %d instances", fold_index, len(training))
            model = builder.build_model(training)

            logger.debug("Fold %d: evaluating %d instances", fold_index, len(evaluation))
            predictions = [
                LabelPredictionWeight(
                    label=instance.label,
                    prediction={
                        label: float(model.probability_of(instance.attributes, label)) for label in labels
                    },
                    weight=instance.weight,
                )
                for instance in evaluation
            ]

            loss = float(self._loss_function.get_loss(predictions))
            logger.debug("Fold %d: %s = %.6f", fold_index, self._loss_function.name, loss)
            fold_results.append(
                LossFunctionResult(
                    name=self._loss_function.name,
                    loss=loss,
                    fold_index=fold_index,
                    instance_count=len(evaluation),
                    total_weight=float(sum(instance.weight for instance in evaluation)),
                )
            )

        return CrossValidationResult(
            loss_function_name=self._loss_function.name,
            fold_results=tuple(fold_results),
        )


def _observed_labels(instances: Sequence[Instance]) -> tuple[Hashable, ...]:
    return tuple(sorted({instance.label for instance in instances}, key=repr))
