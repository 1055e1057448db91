"""Cross-validation harness and loss functions."""

from rebalance.evaluation.cross_validation import (
    CrossValidationConfig,
    CrossValidationResult,
    StationaryCrossValidator,
)
from rebalance.evaluation.lossfunctions import (
    ClassifierLogLoss,
    ClassifierMisclassificationRate,
    ClassifierRMSE,
    LabelPredictionWeight,
    LossFunction,
    LossFunctionResult,
)

__all__ = [
    "ClassifierLogLoss",
    "ClassifierMisclassificationRate",
    "ClassifierRMSE",
    "CrossValidationConfig",
    "CrossValidationResult",
    "LabelPredictionWeight",
    "LossFunction",
    "LossFunctionResult",
    "StationaryCrossValidator",
]
