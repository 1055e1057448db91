"""Stationary k-fold splitting utilities for cross-validation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, TypeVar

from rebalance.errors import InvalidConfigurationError


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class FoldSet:
    """Contiguous fold index ranges over a dataset of ``size`` rows."""

    folds: tuple[tuple[int, ...], ...]
    size: int

    def __len__(self) -> int:
        return len(self.folds)

    def eval_indices(self, fold_index: int) -> tuple[int, ...]:
        """Indices held out for evaluation in the given fold."""
        return self.folds[fold_index]

    def train_indices(self, fold_index: int) -> tuple[int, ...]:
        """Indices of every other fold, in original order."""
        if fold_index < 0 or fold_index >= len(self.folds):
            raise IndexError(f"fold_index {fold_index} out of range")
        return tuple(
            idx
            for other_idx, fold in enumerate(self.folds)
            if other_idx != fold_index
            for idx in fold
        )


def split_into_folds(size: int, folds: int) -> FoldSet:
    """Partition ``range(size)`` into ``folds`` contiguous, size-balanced folds.

    The split is stationary: it preserves row order and makes no assumption
    that the order carries time. The first ``size % folds`` folds hold one
    extra row.
    """
    if folds < 2:
        raise InvalidConfigurationError(f"folds must be >= 2 (was {folds})")
    if size <= 0:
        raise InvalidConfigurationError("size must be > 0")
    if folds > size:
        raise InvalidConfigurationError(
            f"folds ({folds}) must not exceed the number of instances ({size})"
        )

    base, remainder = divmod(size, folds)
    partitions: list[tuple[int, ...]] = []
    start = 0
    for fold_idx in range(folds):
        fold_size = base + (1 if fold_idx < remainder else 0)
        partitions.append(tuple(range(start, start + fold_size)))
        start += fold_size
    return FoldSet(folds=tuple(partitions), size=size)


def partition_instances(data: Sequence[T], folds: int) -> tuple[tuple[T, ...], ...]:
    """Split a materialized sequence into ``folds`` disjoint row groups."""
    fold_set = split_into_folds(len(data), folds)
    return tuple(tuple(data[idx] for idx in fold) for fold in fold_set.folds)


def assert_fold_partition(fold_set: FoldSet) -> None:
    """Raise if folds overlap, leave rows out, or differ in size by more than one."""
    seen: set[int] = set()
    for fold in fold_set.folds:
        overlap = seen.intersection(fold)
        if overlap:
            raise ValueError(f"Fold overlap detected for indices {sorted(overlap)}")
        seen.update(fold)

    if seen != set(range(fold_set.size)):
        missing = sorted(set(range(fold_set.size)).difference(seen))
        raise ValueError(f"Folds do not cover the dataset; missing indices {missing}")

    sizes = [len(fold) for fold in fold_set.folds]
    if sizes and max(sizes) - min(sizes) > 1:
        raise ValueError(f"Fold sizes are unbalanced: {sizes}")
