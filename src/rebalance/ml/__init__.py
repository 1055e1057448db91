"""Model contracts and the PyTorch reference classifier."""

from rebalance.ml.contracts import (
    Classifier,
    PredictiveModelBuilder,
    UpdatableModelBuilder,
    resolve_updatable_capability,
)
from rebalance.ml.models import LogisticClassifier, LogisticClassifierNet
from rebalance.ml.vectorizer import AttributeVectorizer

__all__ = [
    "AttributeVectorizer",
    "Classifier",
    "LogisticClassifier",
    "LogisticClassifierNet",
    "PredictiveModelBuilder",
    "UpdatableModelBuilder",
    "resolve_updatable_capability",
]
