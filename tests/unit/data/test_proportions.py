"""Tests for label proportion analysis."""

from __future__ import annotations

import numpy as np
import pytest

from rebalance.data import ClassificationProportions, Instance, compute_classification_proportions
from rebalance.errors import EmptyDatasetError


def _instances(labels: list[str]) -> list[Instance]:
    return [Instance.create(label, x=float(idx)) for idx, label in enumerate(labels)]


def test_two_label_proportions_sum_to_one() -> None:
    rng = np.random.default_rng(5)
    labels = ["pos" if value < 0.137 else "neg" for value in rng.random(997)]
    proportions = compute_classification_proportions(_instances(labels))

    assert proportions.label_count == 2
    assert proportions.total_count == 997
    assert sum(proportions.proportions.values()) == pytest.approx(1.0, abs=1e-9)


def test_proportions_reflect_counts() -> None:
    proportions = compute_classification_proportions(_instances(["a"] * 9 + ["b"]))

    assert proportions.proportions["a"] == pytest.approx(0.9)
    assert proportions.proportions["b"] == pytest.approx(0.1)
    assert proportions.majority() == ("a", pytest.approx(0.9))
    assert proportions.minority() == ("b", pytest.approx(0.1))


def test_proportions_accept_one_pass_iterators() -> None:
    stream = iter(_instances(["a", "b", "b", "b"]))
    proportions = compute_classification_proportions(stream)

    assert proportions.majority()[0] == "b"
    assert proportions.total_count == 4


def test_ties_are_broken_deterministically() -> None:
    proportions = compute_classification_proportions(_instances(["y", "x", "y", "x"]))

    assert proportions.majority()[0] == "x"
    assert proportions.minority()[0] == "y"


def test_empty_data_raises() -> None:
    with pytest.raises(EmptyDatasetError, match="at least one instance"):
        compute_classification_proportions([])


def test_proportions_must_sum_to_one() -> None:
    with pytest.raises(ValueError, match="sum to 1.0"):
        ClassificationProportions(proportions={"a": 0.5, "b": 0.4}, total_count=10)


def test_instance_rejects_negative_weight() -> None:
    with pytest.raises(ValueError, match="weight"):
        Instance(attributes={}, label="a", weight=-1.0)


def test_instance_attributes_are_read_only() -> None:
    source = {"x": 1.0}
    instance = Instance(attributes=source, label="a")
    source["x"] = 2.0

    assert instance.attributes["x"] == 1.0
    with pytest.raises(TypeError):
        instance.attributes["x"] = 3.0  # type: ignore[index]
