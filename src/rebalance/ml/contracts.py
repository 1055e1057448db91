"""Capability contracts consumed and exposed by rebalancing builders."""

from __future__ import annotations

from typing import Hashable, Iterable, Mapping, Protocol, TypeVar, runtime_checkable

from rebalance.data.contracts import Instance


ModelT = TypeVar("ModelT", bound="Classifier")
ModelT_co = TypeVar("ModelT_co", bound="Classifier", covariant=True)


@runtime_checkable
class Classifier(Protocol):
    """Trained binary classifier."""

    def classify(self, attributes: Mapping[str, object]) -> Hashable:
        """Most likely label for ``attributes``."""
        ...

    def probability_of(self, attributes: Mapping[str, object], label: Hashable) -> float:
        """Predicted probability that ``attributes`` carries ``label``."""
        ...


class PredictiveModelBuilder(Protocol[ModelT_co]):
    """Anything that trains a classifier from a training set."""

    def build_model(self, data: Iterable[Instance]) -> ModelT_co:
        """Train and return a fresh model."""
        ...


@runtime_checkable
class UpdatableModelBuilder(Protocol[ModelT]):
    """Builder that can also retrain an existing model incrementally.

    ``update_model`` mutates the model reachable through the handle passed in;
    callers serialize concurrent updates of the same model.
    """

    def build_model(self, data: Iterable[Instance]) -> ModelT:
        ...

    def update_model(self, model: ModelT, new_data: Iterable[Instance], split_nodes: bool) -> None:
        ...

    def strip_data(self, model: ModelT) -> None:
        ...

    def updatable(self, updatable: bool) -> UpdatableModelBuilder[ModelT]:
        ...

    def set_id(self, model_id: Hashable) -> None:
        ...


def resolve_updatable_capability(builder: object) -> UpdatableModelBuilder[Classifier] | None:
    """Return ``builder`` as an updatable builder, or ``None`` if it is not one.

    Meant to be called once, when a wrapping builder is constructed.
    """
    if isinstance(builder, UpdatableModelBuilder):
        return builder
    return None
