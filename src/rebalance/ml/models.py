"""PyTorch logistic regression used as the reference inner classifier."""

from __future__ import annotations

from typing import Hashable, Mapping, Sequence, cast

import numpy as np
import torch
from torch import nn

from rebalance.data.contracts import Instance
from rebalance.ml.vectorizer import AttributeVectorizer


class LogisticClassifierNet(nn.Module):
    """Single linear layer producing the logit of the second class."""

    def __init__(self, num_features: int) -> None:
        super().__init__()
        if num_features <= 0:
            raise ValueError("num_features must be > 0")
        self.linear = nn.Linear(num_features, 1)
        with torch.no_grad():
            self.linear.weight.zero_()
            self.linear.bias.zero_()

    @property
    def num_features(self) -> int:
        return int(self.linear.in_features)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Return logits of shape [batch] for inputs of shape [batch, features]."""
        if x.ndim != 2:
            raise ValueError("Input tensor must have shape [batch, features]")
        logits = self.linear(x).squeeze(-1)
        return cast(torch.Tensor, logits)

    def widened(self, num_features: int) -> LogisticClassifierNet:
        """Copy of this net with zero weights for appended feature columns."""
        if num_features < self.num_features:
            raise ValueError("num_features must not shrink")
        wider = LogisticClassifierNet(num_features)
        with torch.no_grad():
            wider.linear.weight[:, : self.num_features] = self.linear.weight
            wider.linear.bias.copy_(self.linear.bias)
        return wider


class LogisticClassifier:
    """Trained logistic model over attribute maps.

    The model may keep the instances it was trained on so later updates can
    refit grown feature spaces; ``strip_data`` drops them without touching
    the learned parameters.
    """

    def __init__(
        self,
        *,
        net: LogisticClassifierNet,
        vectorizer: AttributeVectorizer,
        class_names: Sequence[Hashable],
        model_id: Hashable | None = None,
        retained_data: tuple[Instance, ...] | None = None,
    ) -> None:
        if not 1 <= len(class_names) <= 2:
            raise ValueError("class_names must hold one or two labels")
        if net.num_features != vectorizer.num_features:
            raise ValueError("net and vectorizer feature counts must match")
        self._net = net
        self._vectorizer = vectorizer
        self._class_names = tuple(class_names)
        self._model_id = model_id
        self._retained_data = retained_data

    @property
    def net(self) -> LogisticClassifierNet:
        return self._net

    @property
    def vectorizer(self) -> AttributeVectorizer:
        return self._vectorizer

    @property
    def class_names(self) -> tuple[Hashable, ...]:
        return self._class_names

    @property
    def model_id(self) -> Hashable | None:
        return self._model_id

    @property
    def retained_data(self) -> tuple[Instance, ...] | None:
        return self._retained_data

    @property
    def num_parameters(self) -> int:
        return sum(int(parameter.numel()) for parameter in self._net.parameters())

    def positive_probability(self, attributes: Mapping[str, object]) -> float:
        """Probability of the second class (``class_names[1]``)."""
        features = torch.from_numpy(self._vectorizer.transform(attributes).astype(np.float32))
        self._net.eval()
        with torch.no_grad():
            logit = self._net(features.unsqueeze(0))
        return float(torch.sigmoid(logit)[0].item())

    def probability_of(self, attributes: Mapping[str, object], label: Hashable) -> float:
        if label not in self._class_names:
            return 0.0
        positive = self.positive_probability(attributes)
        if self._class_names.index(label) == 1:
            return positive
        return 1.0 - positive

    def classify(self, attributes: Mapping[str, object]) -> Hashable:
        if len(self._class_names) == 1:
            return self._class_names[0]
        positive = self.positive_probability(attributes)
        return self._class_names[1] if positive >= 0.5 else self._class_names[0]

    def replace_state(
        self,
        *,
        net: LogisticClassifierNet,
        vectorizer: AttributeVectorizer,
        class_names: Sequence[Hashable],
        retained_data: tuple[Instance, ...] | None,
    ) -> None:
        """Swap in updated parameters; used by the builder's in-place update."""
        if net.num_features != vectorizer.num_features:
            raise ValueError("net and vectorizer feature counts must match")
        self._net = net
        self._vectorizer = vectorizer
        self._class_names = tuple(class_names)
        self._retained_data = retained_data

    def strip_data(self) -> None:
        self._retained_data = None
