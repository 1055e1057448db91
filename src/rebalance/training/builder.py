"""Updatable builder for the logistic reference classifier."""

from __future__ import annotations

import logging
from typing import Hashable, Iterable

from rebalance.data.contracts import Instance
from rebalance.data.proportions import compute_classification_proportions
from rebalance.errors import EmptyDatasetError, InvalidTrainingDataError
from rebalance.ml.models import LogisticClassifier, LogisticClassifierNet
from rebalance.ml.vectorizer import AttributeVectorizer
from rebalance.training.datasets import instances_to_dataset, resolve_class_names
from rebalance.training.trainer import LogisticTrainer, TrainerConfig, TrainingHistory


logger = logging.getLogger(__name__)


class LogisticClassifierBuilder:
    """Train, update in place, and strip logistic classifiers."""

    def __init__(self, config: TrainerConfig | None = None) -> None:
        self._config = TrainerConfig() if config is None else config
        self._updatable = False
        self._model_id: Hashable | None = None

    @property
    def config(self) -> TrainerConfig:
        return self._config

    def updatable(self, updatable: bool) -> LogisticClassifierBuilder:
        """Keep training instances inside built models so later updates can refit them."""
        self._updatable = updatable
        return self

    def set_id(self, model_id: Hashable) -> None:
        self._model_id = model_id

    def build_model(self, data: Iterable[Instance]) -> LogisticClassifier:
        instances = tuple(data)
        class_names = _class_names_for(instances, known=())
        vectorizer = AttributeVectorizer.fit(instances)
        if vectorizer.num_features == 0:
            raise ValueError("training data must contain at least one attribute")

        net = LogisticClassifierNet(vectorizer.num_features)
        history = self._train(net, instances, vectorizer=vectorizer, class_names=class_names)
        logger.debug(
            "Built logistic classifier on %d instances, %d features, final loss %.6f",
            len(instances),
            vectorizer.num_features,
            history.train_losses[-1],
        )
        return LogisticClassifier(
            net=net,
            vectorizer=vectorizer,
            class_names=class_names,
            model_id=self._model_id,
            retained_data=instances if self._updatable else None,
        )

    def update_model(
        self,
        model: LogisticClassifier,
        new_data: Iterable[Instance],
        split_nodes: bool,
    ) -> None:
        """Continue training ``model`` on ``new_data``, mutating it in place.

        With ``split_nodes`` the feature layout grows to cover attributes first
        seen in ``new_data`` and the net is widened; existing weights are kept.
        Without it, unseen attributes are ignored.
        """
        new_instances = tuple(new_data)
        if not new_instances:
            logger.debug("No new instances; model left unchanged")
            return

        retained = model.retained_data
        class_names = _class_names_for(new_instances, known=model.class_names)
        vectorizer = model.vectorizer
        net = model.net
        if split_nodes:
            vectorizer = vectorizer.extend(new_instances)
            net = net.widened(vectorizer.num_features)

        training = new_instances if retained is None else retained + new_instances
        self._train(net, training, vectorizer=vectorizer, class_names=class_names)
        model.replace_state(
            net=net,
            vectorizer=vectorizer,
            class_names=class_names,
            retained_data=None if retained is None else training,
        )

    def strip_data(self, model: LogisticClassifier) -> None:
        model.strip_data()

    def _train(
        self,
        net: LogisticClassifierNet,
        instances: tuple[Instance, ...],
        *,
        vectorizer: AttributeVectorizer,
        class_names: tuple[Hashable, ...],
    ) -> TrainingHistory:
        dataset = instances_to_dataset(instances, vectorizer=vectorizer, class_names=class_names)
        trainer = LogisticTrainer(model=net, config=self._config)
        return trainer.fit(inputs=dataset.inputs, targets=dataset.targets, weights=dataset.weights)


def _class_names_for(
    instances: tuple[Instance, ...],
    *,
    known: tuple[Hashable, ...],
) -> tuple[Hashable, ...]:
    if not instances:
        raise EmptyDatasetError("training data must contain at least one instance")
    class_names = resolve_class_names(instances, known=known)
    if len(class_names) > 2:
        proportions = compute_classification_proportions(instances)
        raise InvalidTrainingDataError(
            f"logistic classifier supports at most 2 labels, got {len(class_names)}",
            observed_label_count=len(class_names),
            proportions=proportions.proportions,
        )
    return class_names
