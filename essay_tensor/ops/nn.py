# essay_tensor/ops/nn.py
"""
Neural-network kernels.

softmax(x)_i = exp(x_i) / Σ_j exp(x_j)   along `axis` (default trailing)
Jacobian-vector product for the backward pass:
    dL/dx = y ⊙ (g - Σ_j g_j y_j)
"""

import numpy as np
from scipy import special

from ..core.shape import normalize_axis
from ..core.tensor import Tensor
from .op import Operation, apply_op, result, grad_like


class Softmax(Operation):
    name = "softmax"

    def __init__(self, axis: int = -1):
        self.axis = axis

    def __repr__(self):
        return f"Softmax(axis={self.axis})"

    def check(self, inputs):
        (a,) = inputs
        normalize_axis(self.name, self.axis, a.shape)

    def _axis(self, t):
        return None if t.rank == 0 else self.axis

    def forward(self, inputs):
        (a,) = inputs
        return result(special.softmax(a.numpy(), axis=self._axis(a)))

    def gradient(self, inputs, output, grad):
        (a,) = inputs
        y, g = output.numpy(), grad.numpy()
        dot = np.sum(g * y, axis=self._axis(a), keepdims=True)
        return (grad_like(y * (g - dot), a),)


def softmax(x, axis=-1):
    return apply_op(Softmax(axis), x)


Tensor.softmax = lambda self, axis=-1: softmax(self, axis)
