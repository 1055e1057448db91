"""Downsampling classifier builder wrapping an arbitrary inner model builder."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Hashable, Iterable, Mapping

import numpy as np

from rebalance.data.contracts import Instance
from rebalance.data.proportions import ClassificationProportions, compute_classification_proportions
from rebalance.errors import (
    InvalidConfigurationError,
    InvalidTrainingDataError,
    UnsupportedOperationError,
    UnsupportedUpdateError,
)
from rebalance.ml.contracts import (
    Classifier,
    PredictiveModelBuilder,
    UpdatableModelBuilder,
    resolve_updatable_capability,
)
from rebalance.sampling.filtering import FilteredInstances, compute_drop_probability


logger = logging.getLogger(__name__)

DIAGNOSTIC_SAMPLE_SIZE = 10


class ProbabilityCorrection(StrEnum):
    """How a downsampled model reports label probabilities."""

    RAW = "raw"
    PRIOR_CORRECTED = "prior_corrected"


@dataclass(frozen=True, slots=True)
class DownsamplingConfig:
    """Rebalancing policy for :class:`DownsamplingClassifierBuilder`."""

    target_minority_proportion: float
    seed: int | None = None
    probability_correction: ProbabilityCorrection = ProbabilityCorrection.PRIOR_CORRECTED

    def __post_init__(self) -> None:
        if not 0.0 < self.target_minority_proportion < 1.0:
            raise InvalidConfigurationError(
                "target_minority_proportion must be between 0 and 1 "
                f"(was {self.target_minority_proportion})"
            )


class DownsamplingClassifier:
    """Trained inner model plus the rebalancing metadata it was built with.

    ``classify`` delegates to the inner model, which saw the rebalanced
    class prior. Under ``PRIOR_CORRECTED`` the label with the highest
    ``probability_of`` can therefore differ from ``classify``: an inner
    minority probability of 0.6 with ``drop_probability=0.8`` classifies as
    the minority label while ``probability_of`` reports about 0.23 for it.
    Use ``RAW`` when the two must agree.
    """

    def __init__(
        self,
        wrapped_classifier: Classifier,
        *,
        majority_label: Hashable,
        minority_label: Hashable,
        drop_probability: float,
        probability_correction: ProbabilityCorrection = ProbabilityCorrection.PRIOR_CORRECTED,
    ) -> None:
        if drop_probability < 0.0 or drop_probability >= 1.0:
            raise ValueError("drop_probability must be in [0, 1)")
        if majority_label == minority_label:
            raise ValueError("majority_label and minority_label must differ")
        self._wrapped_classifier = wrapped_classifier
        self._majority_label = majority_label
        self._minority_label = minority_label
        self._drop_probability = float(drop_probability)
        self._probability_correction = ProbabilityCorrection(probability_correction)

    @property
    def wrapped_classifier(self) -> Classifier:
        return self._wrapped_classifier

    @property
    def majority_label(self) -> Hashable:
        return self._majority_label

    @property
    def minority_label(self) -> Hashable:
        return self._minority_label

    @property
    def drop_probability(self) -> float:
        return self._drop_probability

    @property
    def probability_correction(self) -> ProbabilityCorrection:
        return self._probability_correction

    def classify(self, attributes: Mapping[str, object]) -> Hashable:
        """Delegate to the inner model trained on the rebalanced data."""
        return self._wrapped_classifier.classify(attributes)

    def probability_of(self, attributes: Mapping[str, object], label: Hashable) -> float:
        """Probability of ``label``, mapped back to the natural class prior if configured.

        With ``PRIOR_CORRECTED`` the inner minority probability ``p`` becomes
        ``p(1 - d) / (1 - p d)`` for drop probability ``d``, undoing the shift in
        class prior caused by keeping majority rows with probability ``1 - d``.
        """
        if (
            self._probability_correction is ProbabilityCorrection.RAW
            or self._drop_probability == 0.0
            or label not in (self._majority_label, self._minority_label)
        ):
            return self._wrapped_classifier.probability_of(attributes, label)

        raw_minority = self._wrapped_classifier.probability_of(attributes, self._minority_label)
        keep = 1.0 - self._drop_probability
        corrected_minority = raw_minority * keep / (1.0 - raw_minority * self._drop_probability)
        if label == self._minority_label:
            return corrected_minority
        return 1.0 - corrected_minority


class DownsamplingClassifierBuilder:
    """Rebalance binary training data by dropping majority rows, then train the inner builder.

    The builder satisfies the updatable builder contract itself, so it can be
    nested or passed to a cross-validator like any plain builder. Whether the
    inner builder supports incremental updates is decided once, here.
    """

    def __init__(self, builder: PredictiveModelBuilder[Classifier], config: DownsamplingConfig) -> None:
        self._builder = builder
        self._updater: UpdatableModelBuilder[Classifier] | None = resolve_updatable_capability(builder)
        self._config = config
        self._rng = np.random.default_rng(config.seed)

    @classmethod
    def with_target(
        cls,
        builder: PredictiveModelBuilder[Classifier],
        target_minority_proportion: float,
        *,
        seed: int | None = None,
    ) -> DownsamplingClassifierBuilder:
        """Shortcut for the default policy with a given target minority proportion."""
        return cls(builder, DownsamplingConfig(target_minority_proportion=target_minority_proportion, seed=seed))

    @property
    def config(self) -> DownsamplingConfig:
        return self._config

    @property
    def supports_updates(self) -> bool:
        return self._updater is not None

    def build_model(
        self,
        data: Iterable[Instance],
        *,
        rng: np.random.Generator | None = None,
    ) -> DownsamplingClassifier:
        """Train the inner builder on data downsampled toward the target minority proportion."""
        instances = _materialize(data)
        proportions = compute_classification_proportions(instances)
        if proportions.label_count != 2:
            sample = _log_diagnostic_sample(instances, proportions)
            raise InvalidTrainingDataError(
                f"training data must contain exactly 2 labels, but it had {proportions.label_count}: "
                f"{dict(proportions.proportions)}",
                observed_label_count=proportions.label_count,
                proportions=proportions.proportions,
                sample=sample,
            )

        majority_label, majority_proportion = proportions.majority()
        minority_label, _ = proportions.minority()
        natural_minority_proportion = 1.0 - majority_proportion
        target = self._config.target_minority_proportion

        if natural_minority_proportion >= target:
            logger.info(
                "Natural minority proportion %.4f already meets target %.4f; training on all %d instances",
                natural_minority_proportion,
                target,
                len(instances),
            )
            model = self._builder.build_model(instances)
            return self._wrap(model, majority_label, minority_label, 0.0)

        drop_probability = compute_drop_probability(
            natural_minority_proportion=natural_minority_proportion,
            target_minority_proportion=target,
        )
        downsampled = FilteredInstances(
            instances,
            label=majority_label,
            drop_probability=drop_probability,
            rng=self._resolve_rng(rng),
        ).materialize()
        logger.info(
            "Downsampling majority label %r with drop probability %.4f: %d -> %d instances",
            majority_label,
            drop_probability,
            len(instances),
            len(downsampled),
        )
        model = self._builder.build_model(downsampled)
        return self._wrap(model, majority_label, minority_label, drop_probability)

    def update_model(
        self,
        model: DownsamplingClassifier,
        new_data: Iterable[Instance],
        split_nodes: bool,
        *,
        rng: np.random.Generator | None = None,
    ) -> None:
        """Update ``model.wrapped_classifier`` in place on downsampled ``new_data``.

        The drop probability stored at build time is reused; it is not
        recomputed from ``new_data``.
        """
        if self._updater is None:
            raise UnsupportedUpdateError(
                "Cannot update a downsampling classifier without an updatable inner builder"
            )
        downsampled = FilteredInstances(
            new_data,
            label=model.majority_label,
            drop_probability=model.drop_probability,
            rng=self._resolve_rng(rng),
        ).materialize()
        logger.info(
            "Updating wrapped model with %d downsampled instances (drop probability %.4f)",
            len(downsampled),
            model.drop_probability,
        )
        self._updater.update_model(model.wrapped_classifier, downsampled, split_nodes)

    def strip_data(self, model: DownsamplingClassifier) -> None:
        """Discard training data retained inside the wrapped model."""
        if self._updater is None:
            raise UnsupportedOperationError(
                "Cannot strip data without an updatable inner builder"
            )
        self._updater.strip_data(model.wrapped_classifier)

    def updatable(self, updatable: bool) -> DownsamplingClassifierBuilder:
        if self._updater is not None:
            self._updater.updatable(updatable)
        elif updatable:
            raise UnsupportedUpdateError("Inner builder does not support updatable models")
        return self

    def set_id(self, model_id: Hashable) -> None:
        if self._updater is None:
            raise UnsupportedOperationError("Inner builder does not support model ids")
        self._updater.set_id(model_id)

    def _wrap(
        self,
        model: Classifier,
        majority_label: Hashable,
        minority_label: Hashable,
        drop_probability: float,
    ) -> DownsamplingClassifier:
        return DownsamplingClassifier(
            model,
            majority_label=majority_label,
            minority_label=minority_label,
            drop_probability=drop_probability,
            probability_correction=self._config.probability_correction,
        )

    def _resolve_rng(self, rng: np.random.Generator | None) -> np.random.Generator:
        return self._rng if rng is None else rng


def _materialize(data: Iterable[Instance]) -> Sequence[Instance]:
    if isinstance(data, Sequence):
        return data
    return tuple(data)


def _diagnostic_sample(
    instances: Sequence[Instance],
    proportions: ClassificationProportions,
) -> tuple[Instance, ...]:
    minority_label, _ = proportions.minority()
    matching = [instance for instance in instances if instance.label == minority_label]
    if not matching:
        return tuple()
    count = min(DIAGNOSTIC_SAMPLE_SIZE, len(matching))
    positions = np.linspace(0, len(matching) - 1, num=count).round().astype(np.int64)
    return tuple(matching[int(pos)] for pos in dict.fromkeys(positions.tolist()))


def _log_diagnostic_sample(
    instances: Sequence[Instance],
    proportions: ClassificationProportions,
) -> tuple[Instance, ...]:
    """Log and return the diagnostic sample; failures yield what was sampled so far."""
    sample: tuple[Instance, ...] = ()
    try:
        sample = _diagnostic_sample(instances, proportions)
        logger.info(
            "Training data has %d labels across %d instances; sample of minority label rows follows",
            proportions.label_count,
            len(instances),
        )
        for instance in sample:
            logger.info(
                "label: %r weight: %s attributes: %s",
                instance.label,
                instance.weight,
                dict(instance.attributes),
            )
    except Exception:  # noqa: BLE001
        logger.debug("Could not emit diagnostic sample", exc_info=True)
    return sample
