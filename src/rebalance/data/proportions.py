"""Label proportion analysis over a training set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Iterable, Mapping

from rebalance.data.contracts import Instance
from rebalance.errors import EmptyDatasetError


@dataclass(frozen=True, slots=True)
class ClassificationProportions:
    """Share of instances carrying each label."""

    proportions: Mapping[Hashable, float]
    total_count: int

    def __post_init__(self) -> None:
        if self.total_count <= 0:
            raise ValueError("total_count must be > 0")
        if not self.proportions:
            raise ValueError("proportions must not be empty")
        total = sum(self.proportions.values())
        if abs(total - 1.0) > 1e-9:
            raise ValueError("proportions must sum to 1.0")

    @property
    def label_count(self) -> int:
        return len(self.proportions)

    def majority(self) -> tuple[Hashable, float]:
        """Label with the highest proportion; ties go to the lowest label repr."""
        ordered = _ordered_by_label(self.proportions)
        return max(ordered, key=lambda item: item[1])

    def minority(self) -> tuple[Hashable, float]:
        """Label with the lowest proportion; ties go to the highest label repr."""
        ordered = _ordered_by_label(self.proportions)
        return min(reversed(ordered), key=lambda item: item[1])


def compute_classification_proportions(data: Iterable[Instance]) -> ClassificationProportions:
    """Count labels in one pass and normalize by the instance count."""
    counts: dict[Hashable, int] = {}
    total = 0
    for instance in data:
        counts[instance.label] = counts.get(instance.label, 0) + 1
        total += 1
    if total == 0:
        raise EmptyDatasetError("training data must contain at least one instance")
    return ClassificationProportions(
        proportions={label: count / total for label, count in counts.items()},
        total_count=total,
    )


def _ordered_by_label(proportions: Mapping[Hashable, float]) -> list[tuple[Hashable, float]]:
    return sorted(proportions.items(), key=lambda item: repr(item[0]))
