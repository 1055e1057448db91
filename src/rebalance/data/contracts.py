"""Training instance contract shared by builders, filters and validators."""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Hashable, Mapping


@dataclass(frozen=True, slots=True, eq=False)
class Instance:
    """Immutable labelled example with a non-negative weight.

    Instances compare by identity: two rows with equal content are still two
    rows of the training set.
    """

    attributes: Mapping[str, object]
    label: Hashable
    weight: float = 1.0

    def __post_init__(self) -> None:
        if self.label is None:
            raise ValueError("label must not be None")
        if not math.isfinite(self.weight):
            raise ValueError("weight must be finite")
        if self.weight < 0:
            raise ValueError("weight must be >= 0")
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @classmethod
    def create(cls, label: Hashable, weight: float = 1.0, **attributes: object) -> Instance:
        """Build an instance from keyword attributes."""
        return cls(attributes=attributes, label=label, weight=weight)
