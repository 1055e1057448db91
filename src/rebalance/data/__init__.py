"""Training data primitives: instances, label proportions and fold splitting."""

from rebalance.data.contracts import Instance
from rebalance.data.proportions import ClassificationProportions, compute_classification_proportions
from rebalance.data.splitting import FoldSet, assert_fold_partition, partition_instances, split_into_folds

__all__ = [
    "ClassificationProportions",
    "FoldSet",
    "Instance",
    "assert_fold_partition",
    "compute_classification_proportions",
    "partition_instances",
    "split_into_folds",
]
