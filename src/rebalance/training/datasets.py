"""Tensor dataset conversion from labelled instances."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Sequence

import numpy as np
import torch

from rebalance.data.contracts import Instance
from rebalance.ml.vectorizer import AttributeVectorizer


@dataclass(frozen=True, slots=True)
class InstanceTensorDataset:
    """Torch-ready inputs, binary targets and instance weights."""

    inputs: torch.Tensor
    targets: torch.Tensor
    weights: torch.Tensor
    class_names: tuple[Hashable, ...]


def resolve_class_names(
    instances: Sequence[Instance],
    *,
    known: Sequence[Hashable] = (),
) -> tuple[Hashable, ...]:
    """Known labels first, then newly observed labels in deterministic order."""
    observed = {instance.label for instance in instances}
    new_labels = sorted(observed.difference(known), key=repr)
    return tuple(known) + tuple(new_labels)


def instances_to_dataset(
    instances: Sequence[Instance],
    *,
    vectorizer: AttributeVectorizer,
    class_names: Sequence[Hashable],
) -> InstanceTensorDataset:
    """Encode instances with ``vectorizer``; target is 1.0 for ``class_names[1]``."""
    if not instances:
        raise ValueError("instances must not be empty")
    if not 1 <= len(class_names) <= 2:
        raise ValueError("class_names must hold one or two labels")

    class_to_index = {label: idx for idx, label in enumerate(class_names)}
    targets: list[float] = []
    for instance in instances:
        if instance.label not in class_to_index:
            raise ValueError(f"Instance label {instance.label!r} is not present in class_names")
        targets.append(float(class_to_index[instance.label]))

    inputs_np = vectorizer.transform_many(instances).astype(np.float32)
    targets_np = np.asarray(targets, dtype=np.float32)
    weights_np = np.asarray([instance.weight for instance in instances], dtype=np.float32)

    return InstanceTensorDataset(
        inputs=torch.from_numpy(inputs_np),
        targets=torch.from_numpy(targets_np),
        weights=torch.from_numpy(weights_np),
        class_names=tuple(class_names),
    )
