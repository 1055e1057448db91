"""Builder that keeps its last model and updates it on subsequent builds."""

from __future__ import annotations

import logging
from typing import Generic, Hashable, Iterable

from rebalance.data.contracts import Instance
from rebalance.errors import InvalidConfigurationError, UnsupportedUpdateError
from rebalance.ml.contracts import ModelT, UpdatableModelBuilder, resolve_updatable_capability


logger = logging.getLogger(__name__)


class ModelWithDataBuilder(Generic[ModelT]):
    """Turn repeated ``build_model`` calls into in-place updates of one model.

    The first call trains from scratch and later calls update the same model
    object. Both thresholds are growth factors over the number of instances
    seen so far (0 disables them):

    - ``rebuild_threshold``: once the seen count exceeds ``threshold`` times the
      count at the last full build, the next call rebuilds a new model from
      every instance seen.
    - ``split_node_threshold``: once the seen count exceeds ``threshold`` times
      the count at the last structural update, the update runs with
      ``split_nodes=True``.
    """

    def __init__(
        self,
        builder: UpdatableModelBuilder[ModelT],
        *,
        rebuild_threshold: float = 0.0,
        split_node_threshold: float = 0.0,
    ) -> None:
        if resolve_updatable_capability(builder) is None:
            raise UnsupportedUpdateError("ModelWithDataBuilder requires an updatable inner builder")
        if rebuild_threshold < 0:
            raise InvalidConfigurationError("rebuild_threshold must be >= 0")
        if split_node_threshold < 0:
            raise InvalidConfigurationError("split_node_threshold must be >= 0")
        self._builder = builder
        self._rebuild_threshold = rebuild_threshold
        self._split_node_threshold = split_node_threshold
        self._model: ModelT | None = None
        self._seen: list[Instance] = []
        self._seen_count = 0
        self._count_at_build = 0
        self._count_at_split = 0

    @property
    def model(self) -> ModelT | None:
        return self._model

    def build_model(self, data: Iterable[Instance]) -> ModelT:
        instances = tuple(data)
        self._seen_count += len(instances)
        if self._rebuild_threshold > 0:
            self._seen.extend(instances)

        if self._model is None or self._rebuild_due():
            training = tuple(self._seen) if self._rebuild_threshold > 0 else instances
            logger.info("Building model from scratch on %d instances", len(training))
            self._model = self._builder.build_model(training)
            self._count_at_build = self._seen_count
            self._count_at_split = self._seen_count
            return self._model

        split_nodes = self._split_due()
        if split_nodes:
            self._count_at_split = self._seen_count
        logger.info(
            "Updating existing model with %d instances (split_nodes=%s)",
            len(instances),
            split_nodes,
        )
        self._builder.update_model(self._model, instances, split_nodes)
        return self._model

    def update_model(self, model: ModelT, new_data: Iterable[Instance], split_nodes: bool) -> None:
        self._builder.update_model(model, new_data, split_nodes)

    def strip_data(self, model: ModelT) -> None:
        self._builder.strip_data(model)

    def updatable(self, updatable: bool) -> ModelWithDataBuilder[ModelT]:
        self._builder.updatable(updatable)
        return self

    def set_id(self, model_id: Hashable) -> None:
        self._builder.set_id(model_id)

    def _rebuild_due(self) -> bool:
        return self._rebuild_threshold > 0 and self._seen_count > self._count_at_build * self._rebuild_threshold

    def _split_due(self) -> bool:
        return (
            self._split_node_threshold > 0
            and self._seen_count > self._count_at_split * self._split_node_threshold
        )
