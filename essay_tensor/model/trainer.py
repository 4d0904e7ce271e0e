# essay_tensor/model/trainer.py
from __future__ import annotations
import logging
import warnings
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import numpy as np

from ..core.tensor import tensor
from .function import Function, Train, _root
from .optimizer import SGD

logger = logging.getLogger(__name__)


@dataclass
class TrainerConfig:
    """
    Attributes
    ----------
    learning_rate : float
        SGD step size.
    momentum : float
        SGD momentum in [0, 1).
    epochs : int
        Passes over the data made by `fit` when none is given.
    batch_size : Optional[int]
        Leading-axis batch length for `fit`; None trains on the full data.
    """
    learning_rate: float = 0.01
    momentum: float = 0.0
    epochs: int = 1
    batch_size: Optional[int] = None


class Trainer:
    """
    Function plus an SGD optimizer.

    The closure returns the loss (or a tuple whose first entry is the loss);
    `step` records one evaluation, backprops and updates every Var it read.
    """

    def __init__(self, config: TrainerConfig, function: Function):
        self.config = config
        self.function = function
        self.optimizer = SGD(config.learning_rate, config.momentum)

    @classmethod
    def compile(cls, config: Optional[TrainerConfig], fn: Callable[..., Any], *example_args) -> "Trainer":
        config = config or TrainerConfig()
        function = Function.compile(fn, *example_args) if example_args else Function(fn)
        return cls(config, function)

    @property
    def vars(self):
        return self.function.vars

    def call(self, *args):
        return self.function.call(*args)

    def train(self, *args) -> Train:
        return self.function.train(*args)

    def step(self, *args) -> float:
        """One train + update; returns the scalar loss before the update."""
        train = self.train(*args)
        loss = float(np.sum(_root(train.value()).numpy()))
        self.optimizer.minimize(train)
        logger.debug("step: loss %.6g", loss)
        return loss

    def fit(self, x, y, epochs: Optional[int] = None, batch_size: Optional[int] = None) -> List[float]:
        """
        Run `epochs` passes over (x, y), stepping once per leading-axis batch.

        Returns the per-step losses.
        """
        epochs = self.config.epochs if epochs is None else epochs
        batch_size = self.config.batch_size if batch_size is None else batch_size
        x, y = tensor(x), tensor(y)
        n = x.shape[0] if x.rank else 1
        if y.rank and y.shape[0] != n:
            raise ValueError(f"fit: x has {n} samples but y has {y.shape[0]}")
        if batch_size is not None and batch_size <= 0:
            raise ValueError(f"fit: batch_size must be positive, got {batch_size}")
        batch_size = batch_size or n

        xs, ys = x.numpy(), y.numpy()
        losses = []
        for epoch in range(epochs):
            for start in range(0, n, batch_size):
                bx = xs[start:start + batch_size] if x.rank else xs
                by = ys[start:start + batch_size] if y.rank else ys
                loss = self.step(tensor(bx), tensor(by))
                if not np.isfinite(loss):
                    warnings.warn(f"fit: non-finite loss {loss} at epoch {epoch}", RuntimeWarning)
                losses.append(loss)
            logger.debug("fit: epoch %d done, last loss %.6g", epoch, losses[-1] if losses else float("nan"))
        return losses
