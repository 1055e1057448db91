"""Reference learner training and incremental builders."""

from rebalance.training.builder import LogisticClassifierBuilder
from rebalance.training.datasets import InstanceTensorDataset, instances_to_dataset, resolve_class_names
from rebalance.training.incremental import ModelWithDataBuilder
from rebalance.training.trainer import LogisticTrainer, TrainerConfig, TrainingHistory

__all__ = [
    "InstanceTensorDataset",
    "LogisticClassifierBuilder",
    "LogisticTrainer",
    "ModelWithDataBuilder",
    "TrainerConfig",
    "TrainingHistory",
    "instances_to_dataset",
    "resolve_class_names",
]
