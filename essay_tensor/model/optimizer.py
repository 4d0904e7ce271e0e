# essay_tensor/model/optimizer.py
"""
Optimizers update Vars from gradients.

An update never writes into a buffer: it computes the new value and rebinds
the Var to a freshly sealed tensor via `Var.assign`.
"""

from __future__ import annotations
from typing import Dict, Iterable, Tuple
import numpy as np

from ..core.errors import ShapeMismatch
from ..core.tensor import Tensor
from ..core.var import Var


class Optimizer:
    def apply_gradients(self, grads_and_vars: Iterable[Tuple[Tensor, Var]]) -> None:
        for grad, var in grads_and_vars:
            if grad.shape != var.shape:
                raise ShapeMismatch(f"update of var {var.name!r}", grad.shape, var.shape)
            var.assign(self.update(var, grad.numpy()))

    def update(self, var: Var, grad: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def minimize(self, train) -> None:
        """Apply the gradients of a `Train` to every Var it read."""
        grads = train.gradients()
        self.apply_gradients((grads[name], var) for name, var in train.vars.items())


class SGD(Optimizer):
    """
    Stochastic gradient descent with optional (heavy-ball) momentum:
        v <- momentum * v - lr * g
        w <- w + v
    With momentum = 0 this is plain w <- w - lr * g.
    """

    def __init__(self, learning_rate: float = 0.01, momentum: float = 0.0):
        if learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")
        if not 0.0 <= momentum < 1.0:
            raise ValueError(f"momentum must be in [0, 1), got {momentum}")
        self.learning_rate = learning_rate
        self.momentum = momentum
        self._velocity: Dict[str, np.ndarray] = {}

    def __repr__(self):
        return f"SGD(learning_rate={self.learning_rate}, momentum={self.momentum})"

    def update(self, var, grad):
        w = var.numpy()
        step = -self.learning_rate * grad
        if self.momentum:
            v = self._velocity.get(var.name)
            step = step if v is None else self.momentum * v + step
            self._velocity[var.name] = step
        return (w + step).astype(w.dtype)
