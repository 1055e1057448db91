"""Tests for the downsampling classifier builder and wrapped classifier."""

from __future__ import annotations

import logging
from typing import Hashable, Iterable, Mapping

import numpy as np
import pytest

from rebalance.data import Instance
from rebalance.errors import (
    InvalidConfigurationError,
    InvalidTrainingDataError,
    UnsupportedOperationError,
    UnsupportedUpdateError,
)
from rebalance.sampling import (
    DownsamplingClassifier,
    DownsamplingClassifierBuilder,
    DownsamplingConfig,
    ProbabilityCorrection,
)


class FixedProbabilityClassifier:
    def __init__(self, positive_label: Hashable, negative_label: Hashable, probability: float) -> None:
        self.positive_label = positive_label
        self.negative_label = negative_label
        self.probability = probability
        self.updates: list[tuple[tuple[Instance, ...], bool]] = []
        self.stripped = False

    def classify(self, attributes: Mapping[str, object]) -> Hashable:
        return self.positive_label if self.probability >= 0.5 else self.negative_label

    def probability_of(self, attributes: Mapping[str, object], label: Hashable) -> float:
        if label == self.positive_label:
            return self.probability
        if label == self.negative_label:
            return 1.0 - self.probability
        return 0.0


class RecordingBuilder:
    """Plain builder without the optional update capability."""

    def __init__(self) -> None:
        self.training_sets: list[tuple[Instance, ...]] = []

    def build_model(self, data: Iterable[Instance]) -> FixedProbabilityClassifier:
        instances = tuple(data)
        self.training_sets.append(instances)
        return FixedProbabilityClassifier("pos", "neg", 0.5)


class RecordingUpdatableBuilder(RecordingBuilder):
    def __init__(self) -> None:
        super().__init__()
        self.updatable_flags: list[bool] = []
        self.ids: list[Hashable] = []

    def update_model(
        self,
        model: FixedProbabilityClassifier,
        new_data: Iterable[Instance],
        split_nodes: bool,
    ) -> None:
        model.updates.append((tuple(new_data), split_nodes))

    def strip_data(self, model: FixedProbabilityClassifier) -> None:
        model.stripped = True

    def updatable(self, updatable: bool) -> RecordingUpdatableBuilder:
        self.updatable_flags.append(updatable)
        return self

    def set_id(self, model_id: Hashable) -> None:
        self.ids.append(model_id)


def _skewed(majority: int, minority: int, *, majority_label: str = "neg", minority_label: str = "pos") -> list[Instance]:
    return [Instance.create(majority_label, x=float(idx)) for idx in range(majority)] + [
        Instance.create(minority_label, x=float(idx)) for idx in range(minority)
    ]


@pytest.mark.parametrize("target", [0.0, 1.0, -0.1, 1.1])
def test_target_outside_open_unit_interval_raises(target: float) -> None:
    with pytest.raises(InvalidConfigurationError, match="between 0 and 1"):
        DownsamplingClassifierBuilder.with_target(RecordingBuilder(), target)


def test_natural_proportion_meeting_target_trains_on_all_data() -> None:
    inner = RecordingBuilder()
    builder = DownsamplingClassifierBuilder.with_target(inner, 0.2, seed=1)
    data = _skewed(70, 30)

    model = builder.build_model(data)

    assert model.drop_probability == 0.0
    assert len(inner.training_sets[0]) == len(data)
    assert model.majority_label == "neg"
    assert model.minority_label == "pos"


def test_skewed_data_is_downsampled_with_expected_drop_probability() -> None:
    inner = RecordingBuilder()
    builder = DownsamplingClassifierBuilder.with_target(inner, 0.5, seed=3)
    data = _skewed(9_000, 1_000)

    model = builder.build_model(data)

    expected_drop = 1.0 - ((0.1 - 0.5 * 0.1) / (0.5 - 0.5 * 0.1))
    assert model.drop_probability == pytest.approx(expected_drop)
    trained_on = inner.training_sets[0]
    minority = sum(1 for instance in trained_on if instance.label == "pos")
    assert minority == 1_000
    assert minority / len(trained_on) == pytest.approx(0.5, abs=0.03)


def test_one_pass_iterator_input_is_supported() -> None:
    inner = RecordingBuilder()
    builder = DownsamplingClassifierBuilder.with_target(inner, 0.5, seed=3)

    model = builder.build_model(iter(_skewed(900, 100)))

    assert model.drop_probability > 0.0
    assert sum(1 for instance in inner.training_sets[0] if instance.label == "pos") == 100


def test_same_seed_gives_same_downsampled_training_set() -> None:
    data = _skewed(900, 100)
    first_inner, second_inner = RecordingBuilder(), RecordingBuilder()
    DownsamplingClassifierBuilder.with_target(first_inner, 0.4, seed=21).build_model(data)
    DownsamplingClassifierBuilder.with_target(second_inner, 0.4, seed=21).build_model(data)

    assert [id(i) for i in first_inner.training_sets[0]] == [id(i) for i in second_inner.training_sets[0]]


def test_explicit_rng_overrides_builder_generator() -> None:
    data = _skewed(900, 100)
    inner = RecordingBuilder()
    builder = DownsamplingClassifierBuilder.with_target(inner, 0.4, seed=0)
    builder.build_model(data, rng=np.random.default_rng(77))
    builder.build_model(data, rng=np.random.default_rng(77))

    assert [id(i) for i in inner.training_sets[0]] == [id(i) for i in inner.training_sets[1]]


def test_three_labels_raise_with_observed_count(caplog: pytest.LogCaptureFixture) -> None:
    builder = DownsamplingClassifierBuilder.with_target(RecordingBuilder(), 0.3)
    data = _skewed(50, 30) + [Instance.create("other", x=1.0) for _ in range(20)]

    with caplog.at_level(logging.INFO, logger="rebalance.sampling.downsampling"):
        with pytest.raises(InvalidTrainingDataError, match="exactly 2 labels") as excinfo:
            builder.build_model(data)

    assert excinfo.value.observed_label_count == 3
    assert set(excinfo.value.proportions) == {"neg", "pos", "other"}
    assert 0 < len(excinfo.value.sample) <= 10
    assert all(instance.label == "other" for instance in excinfo.value.sample)
    assert "sample of minority label rows" in caplog.text


class RaisingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        raise RuntimeError("log sink unavailable")


def test_logging_failure_does_not_mask_training_data_error() -> None:
    builder = DownsamplingClassifierBuilder.with_target(RecordingBuilder(), 0.3)
    data = _skewed(50, 30) + [Instance.create("other", x=1.0) for _ in range(20)]
    module_logger = logging.getLogger("rebalance.sampling.downsampling")
    raising_filter = RaisingFilter()
    previous_level = module_logger.level
    module_logger.setLevel(logging.INFO)
    module_logger.addFilter(raising_filter)
    try:
        with pytest.raises(InvalidTrainingDataError, match="exactly 2 labels") as excinfo:
            builder.build_model(data)
    finally:
        module_logger.removeFilter(raising_filter)
        module_logger.setLevel(previous_level)

    assert excinfo.value.observed_label_count == 3
    assert 0 < len(excinfo.value.sample) <= 10
    assert all(instance.label == "other" for instance in excinfo.value.sample)


def test_single_label_raises() -> None:
    builder = DownsamplingClassifierBuilder.with_target(RecordingBuilder(), 0.3)
    with pytest.raises(InvalidTrainingDataError) as excinfo:
        builder.build_model(_skewed(10, 0))
    assert excinfo.value.observed_label_count == 1


def test_update_reuses_stored_drop_probability() -> None:
    inner = RecordingUpdatableBuilder()
    builder = DownsamplingClassifierBuilder.with_target(inner, 0.5, seed=5)
    model = builder.build_model(_skewed(900, 100))
    wrapped = model.wrapped_classifier
    assert isinstance(wrapped, FixedProbabilityClassifier)

    builder.update_model(model, _skewed(2_000, 2_000), True)

    (update_data, split_nodes), = wrapped.updates
    majority_kept = sum(1 for instance in update_data if instance.label == "neg")
    assert split_nodes is True
    assert sum(1 for instance in update_data if instance.label == "pos") == 2_000
    assert majority_kept == pytest.approx(2_000 * (1.0 - model.drop_probability), rel=0.25)
    assert model.drop_probability == pytest.approx(0.888888888, abs=1e-8)
    assert model.wrapped_classifier is wrapped


def test_update_and_strip_require_updatable_inner_builder() -> None:
    builder = DownsamplingClassifierBuilder.with_target(RecordingBuilder(), 0.5)
    model = builder.build_model(_skewed(90, 10))

    assert builder.supports_updates is False
    with pytest.raises(UnsupportedUpdateError):
        builder.update_model(model, _skewed(9, 1), False)
    with pytest.raises(UnsupportedOperationError):
        builder.strip_data(model)
    with pytest.raises(UnsupportedOperationError):
        builder.set_id("model-1")


def test_strip_updatable_and_set_id_are_forwarded() -> None:
    inner = RecordingUpdatableBuilder()
    builder = DownsamplingClassifierBuilder.with_target(inner, 0.5)
    model = builder.build_model(_skewed(90, 10))

    assert builder.updatable(True) is builder
    builder.set_id("model-1")
    builder.strip_data(model)

    assert inner.updatable_flags == [True]
    assert inner.ids == ["model-1"]
    assert model.wrapped_classifier.stripped is True  # type: ignore[attr-defined]


def test_prior_corrected_probability_undoes_sampling_shift() -> None:
    inner = FixedProbabilityClassifier("pos", "neg", 0.5)
    model = DownsamplingClassifier(inner, majority_label="neg", minority_label="pos", drop_probability=0.8)

    corrected = model.probability_of({}, "pos")

    assert corrected == pytest.approx(0.5 * 0.2 / (1.0 - 0.5 * 0.8))
    assert model.probability_of({}, "neg") == pytest.approx(1.0 - corrected)
    assert model.classify({}) == "pos"


def test_prior_corrected_probability_can_disagree_with_classify() -> None:
    inner = FixedProbabilityClassifier("pos", "neg", 0.6)
    model = DownsamplingClassifier(inner, majority_label="neg", minority_label="pos", drop_probability=0.8)

    assert model.classify({}) == "pos"
    assert model.probability_of({}, "pos") == pytest.approx(0.12 / 0.52)
    assert model.probability_of({}, "neg") > model.probability_of({}, "pos")


def test_raw_probability_policy_passes_inner_probability_through() -> None:
    inner = FixedProbabilityClassifier("pos", "neg", 0.7)
    model = DownsamplingClassifier(
        inner,
        majority_label="neg",
        minority_label="pos",
        drop_probability=0.8,
        probability_correction=ProbabilityCorrection.RAW,
    )

    assert model.probability_of({}, "pos") == pytest.approx(0.7)
    assert model.probability_of({}, "neg") == pytest.approx(0.3)


def test_correction_policy_is_carried_from_config() -> None:
    config = DownsamplingConfig(target_minority_proportion=0.5, seed=2, probability_correction=ProbabilityCorrection.RAW)
    model = DownsamplingClassifierBuilder(RecordingBuilder(), config).build_model(_skewed(90, 10))

    assert model.probability_correction is ProbabilityCorrection.RAW
    assert model.probability_of({}, "pos") == pytest.approx(0.5)


def test_builder_can_be_nested() -> None:
    inner = RecordingUpdatableBuilder()
    outer = DownsamplingClassifierBuilder.with_target(
        DownsamplingClassifierBuilder.with_target(inner, 0.3, seed=1),
        0.2,
        seed=2,
    )

    model = outer.build_model(_skewed(950, 50))

    assert outer.supports_updates is True
    assert isinstance(model.wrapped_classifier, DownsamplingClassifier)
    assert isinstance(model.wrapped_classifier.wrapped_classifier, FixedProbabilityClassifier)
