"""Attribute-map to dense feature vector conversion."""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Sequence

import numpy as np
import numpy.typing as npt

from rebalance.data.contracts import Instance


FloatArray = npt.NDArray[np.float64]


class AttributeVectorizer:
    """Frozen feature layout for attribute maps.

    Numeric attributes become standardized columns named after the attribute;
    any other value becomes a one-hot column named ``"<attribute>=<value>"``.
    Attributes unknown to the layout are ignored and missing ones encode as 0.
    """

    def __init__(
        self,
        feature_names: Sequence[str],
        *,
        means: Mapping[str, float],
        scales: Mapping[str, float],
    ) -> None:
        if len(set(feature_names)) != len(feature_names):
            raise ValueError("feature_names must be unique")
        for name, scale in scales.items():
            if scale <= 0.0:
                raise ValueError(f"scale for {name!r} must be > 0")
        self._feature_names = tuple(feature_names)
        self._index = {name: idx for idx, name in enumerate(self._feature_names)}
        self._means = dict(means)
        self._scales = dict(scales)

    @classmethod
    def fit(cls, instances: Iterable[Instance]) -> AttributeVectorizer:
        """Derive a column layout and numeric scaling from ``instances``."""
        return cls([], means={}, scales={}).extend(instances)

    @property
    def feature_names(self) -> tuple[str, ...]:
        return self._feature_names

    @property
    def num_features(self) -> int:
        return len(self._feature_names)

    def extend(self, instances: Iterable[Instance]) -> AttributeVectorizer:
        """Return a layout with columns for unseen features appended after the existing ones."""
        numeric_values: dict[str, list[float]] = {}
        categorical: list[str] = []
        for instance in instances:
            for name, value in instance.attributes.items():
                numeric = _as_number(value)
                if numeric is not None:
                    if name not in self._index:
                        numeric_values.setdefault(name, []).append(numeric)
                    continue
                column = _one_hot_name(name, value)
                if column not in self._index and column not in categorical:
                    categorical.append(column)

        new_names = sorted(numeric_values) + sorted(categorical)
        means = dict(self._means)
        scales = dict(self._scales)
        for name, values in numeric_values.items():
            array = np.asarray(values, dtype=np.float64)
            means[name] = float(np.mean(array))
            std = float(np.std(array))
            scales[name] = std if std > 0.0 else 1.0
        return AttributeVectorizer(self._feature_names + tuple(new_names), means=means, scales=scales)

    def transform(self, attributes: Mapping[str, object]) -> FloatArray:
        vector = np.zeros(len(self._feature_names), dtype=np.float64)
        for name, value in attributes.items():
            numeric = _as_number(value)
            if numeric is not None:
                idx = self._index.get(name)
                if idx is not None and name in self._means:
                    vector[idx] = (numeric - self._means[name]) / self._scales[name]
                continue
            idx = self._index.get(_one_hot_name(name, value))
            if idx is not None:
                vector[idx] = 1.0
        return vector

    def transform_many(self, instances: Sequence[Instance]) -> FloatArray:
        if not instances:
            return np.zeros((0, len(self._feature_names)), dtype=np.float64)
        return np.stack([self.transform(instance.attributes) for instance in instances], axis=0)


def _as_number(value: object) -> float | None:
    if isinstance(value, (bool, int, float, np.integer, np.floating)):
        number = float(value)
        if math.isfinite(number):
            return number
    return None


def _one_hot_name(name: str, value: object) -> str:
    return f"{name}={value}"
