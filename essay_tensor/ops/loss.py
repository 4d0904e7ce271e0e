# essay_tensor/ops/loss.py
"""
Loss functions.

l2_loss(x) = 0.5 / n * Σ x²   over the trailing axis, n its length (1 for rank 0)
    ∂/∂x_i = x_i / n
so l2_loss(2.) == 2.0 and l2_loss(3.) == 4.5.

mse_loss(pred, target) = mean((pred - target)²) over every element, built
from recorded primitives so both operands receive gradients.
"""

from ..core.tensor import Tensor
from .binary import sub
from .reduce import ReduceOp, reduce_mean
from .op import apply_op
from .unary import square


class L2Loss(ReduceOp):
    name = "l2_loss"

    def __init__(self):
        super().__init__(axis=-1)

    def reduce(self, x, axis):
        return 0.5 * (x * x).sum(axis=axis) / x.shape[axis]

    def df_dx(self, x, y, axis):
        return (x / x.shape[axis]).astype(y.dtype)


def l2_loss(x):
    return apply_op(L2Loss(), x)


def mse_loss(pred, target):
    return reduce_mean(square(sub(pred, target)), axis=None)


Tensor.l2_loss = lambda self: l2_loss(self)
