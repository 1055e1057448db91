"""Deterministic PyTorch trainer for the logistic reference classifier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import cast

import torch
from torch import nn
from torch.utils.data import DataLoader, Dataset, TensorDataset

from rebalance.ml.models import LogisticClassifierNet


@dataclass(frozen=True, slots=True)
class TrainerConfig:
    """Training hyperparameters for the logistic classifier."""

    epochs: int = 30
    batch_size: int = 64
    learning_rate: float = 5e-2
    weight_decay: float = 1e-4
    device: str = "cpu"
    seed: int = 7

    def __post_init__(self) -> None:
        if self.epochs <= 0:
            raise ValueError("epochs must be > 0")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be > 0")
        if self.weight_decay < 0:
            raise ValueError("weight_decay must be >= 0")


@dataclass(frozen=True, slots=True)
class TrainingHistory:
    """Epoch-wise weighted training losses."""

    train_losses: tuple[float, ...]


class LogisticTrainer:
    """Fit a LogisticClassifierNet with instance-weighted binary cross-entropy.

    Shuffling uses a private generator seeded from the config, so repeated
    runs on the same data produce the same parameters.
    """

    def __init__(self, *, model: LogisticClassifierNet, config: TrainerConfig) -> None:
        self._model = model
        self._config = config
        self._device = torch.device(config.device)
        self._model.to(self._device)
        self._criterion = nn.BCEWithLogitsLoss(reduction="none")
        self._optimizer = torch.optim.Adam(
            self._model.parameters(),
            lr=config.learning_rate,
            weight_decay=config.weight_decay,
        )

    @property
    def model(self) -> LogisticClassifierNet:
        """Expose trained model instance."""
        return self._model

    def fit(
        self,
        *,
        inputs: torch.Tensor,
        targets: torch.Tensor,
        weights: torch.Tensor,
    ) -> TrainingHistory:
        """Run training and return epoch losses."""
        loader = _make_loader(
            inputs,
            targets,
            weights,
            batch_size=self._config.batch_size,
            seed=self._config.seed,
        )
        self._model.to(self._device)
        train_losses: list[float] = []
        for _ in range(self._config.epochs):
            train_losses.append(self._run_train_epoch(loader))
        self._model.to(torch.device("cpu"))
        return TrainingHistory(train_losses=tuple(train_losses))

    def predict_probabilities(self, inputs: torch.Tensor) -> torch.Tensor:
        """Return probabilities of the second class for a batch of inputs."""
        self._model.eval()
        with torch.no_grad():
            logits = self._model(inputs.cpu())
        return cast(torch.Tensor, torch.sigmoid(logits))

    def _run_train_epoch(self, loader: DataLoader[tuple[torch.Tensor, ...]]) -> float:
        self._model.train()
        loss_sum = 0.0
        weight_sum = 0.0
        for x_batch, y_batch, w_batch in loader:
            x_batch = x_batch.to(self._device)
            y_batch = y_batch.to(self._device)
            w_batch = w_batch.to(self._device)
            batch_weight = float(w_batch.sum().item())
            if batch_weight <= 0.0:
                continue

            self._optimizer.zero_grad(set_to_none=True)
            per_instance = self._criterion(self._model(x_batch), y_batch)
            loss = (per_instance * w_batch).sum() / batch_weight
            loss.backward()
            self._optimizer.step()

            loss_sum += float(loss.item()) * batch_weight
            weight_sum += batch_weight

        if weight_sum == 0.0:
            raise ValueError("training data must carry positive total weight")
        return loss_sum / weight_sum


def _make_loader(
    inputs: torch.Tensor,
    targets: torch.Tensor,
    weights: torch.Tensor,
    *,
    batch_size: int,
    seed: int,
) -> DataLoader[tuple[torch.Tensor, ...]]:
    if inputs.ndim != 2:
        raise ValueError("inputs must have shape [batch, features]")
    if targets.ndim != 1 or weights.ndim != 1:
        raise ValueError("targets and weights must be 1D")
    if not int(inputs.shape[0]) == int(targets.shape[0]) == int(weights.shape[0]):
        raise ValueError("inputs, targets and weights batch sizes must match")
    if int(inputs.shape[0]) == 0:
        raise ValueError("inputs must not be empty")

    dataset = cast(Dataset[tuple[torch.Tensor, ...]], TensorDataset(inputs, targets, weights))
    generator = torch.Generator()
    generator.manual_seed(seed)
    return DataLoader(dataset, batch_size=batch_size, shuffle=True, generator=generator)
