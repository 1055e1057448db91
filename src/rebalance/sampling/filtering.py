"""Drop-probability derivation and stochastic majority-class filtering."""

from __future__ import annotations

from typing import Hashable, Iterable, Iterator

import numpy as np

from rebalance.data.contracts import Instance
from rebalance.errors import InvalidConfigurationError


def compute_drop_probability(
    *,
    natural_minority_proportion: float,
    target_minority_proportion: float,
) -> float:
    """Probability of dropping a majority instance so the minority reaches the target.

    Keeping each majority row with probability ``k`` moves the minority share
    from ``n`` to ``n / (n + k(1 - n))``; solving for the target ``t`` gives
    ``k = n(1 - t) / (t(1 - n))`` and the drop probability ``1 - k``.
    """
    natural = natural_minority_proportion
    target = target_minority_proportion
    if natural < 0.0 or natural > 1.0:
        raise InvalidConfigurationError("natural_minority_proportion must be in [0, 1]")
    if target <= 0.0 or target >= 1.0:
        raise InvalidConfigurationError("target_minority_proportion must be in (0, 1)")
    if natural >= target:
        return 0.0
    return 1.0 - ((natural - target * natural) / (target - target * natural))


class RandomDroppingFilter:
    """Keep predicate that drops ``label`` rows with probability ``drop_probability``."""

    def __init__(self, label: Hashable, drop_probability: float, rng: np.random.Generator) -> None:
        if drop_probability < 0.0 or drop_probability > 1.0:
            raise InvalidConfigurationError("drop_probability must be in [0, 1]")
        self._label = label
        self._drop_probability = float(drop_probability)
        self._rng = rng

    @property
    def label(self) -> Hashable:
        return self._label

    @property
    def drop_probability(self) -> float:
        return self._drop_probability

    def __call__(self, instance: Instance) -> bool:
        if instance.label != self._label:
            return True
        if self._drop_probability == 0.0:
            return True
        return bool(self._rng.random() >= self._drop_probability)


class FilteredInstances:
    """Lazy, restartable view of ``data`` with majority rows randomly dropped.

    Every traversal draws fresh outcomes, so iterating twice generally selects
    two different subsets. Builders that read their input more than once must
    receive ``materialize()`` output instead of this view.
    """

    def __init__(
        self,
        data: Iterable[Instance],
        *,
        label: Hashable,
        drop_probability: float,
        rng: np.random.Generator,
    ) -> None:
        self._data = data
        self._filter = RandomDroppingFilter(label, drop_probability, rng)

    @property
    def drop_probability(self) -> float:
        return self._filter.drop_probability

    def __iter__(self) -> Iterator[Instance]:
        return (instance for instance in self._data if self._filter(instance))

    def materialize(self) -> tuple[Instance, ...]:
        """Run one traversal and freeze its selection."""
        return tuple(self)
