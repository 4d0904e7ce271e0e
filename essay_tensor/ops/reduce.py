# essay_tensor/ops/reduce.py
"""
Reduction kernels.

A reduction folds one axis (default the trailing axis, -1) or, with
axis=None, every axis into a lower-rank result. Reducing a rank-1 tensor
gives a rank-0 tensor; a rank-0 input is treated as a single element.

Gradient rule: the incoming (lower-rank) gradient is broadcast back along the
reduced axis and weighted elementwise by the kernel's own derivative
    grad_in = df_dx(x, y) * expand(grad_out)
e.g. sum -> 1, mean -> 1/n, max -> 1 at the (first) argmax and 0 elsewhere.
"""

from typing import Optional
import numpy as np

from ..core.errors import UnimplementedGradient
from ..core.shape import normalize_axis
from ..core.tensor import Tensor
from .op import Operation, apply_op, result, grad_like


class ReduceOp(Operation):
    name = "reduce"

    def __init__(self, axis: Optional[int] = -1):
        self.axis = axis

    def __repr__(self):
        return f"{type(self).__name__}(axis={self.axis})"

    def check(self, inputs):
        (a,) = inputs
        if self.axis is not None:
            normalize_axis(self.name, self.axis, a.shape)

    def _prepare(self, t: Tensor):
        """Input as an array of rank >= 1 plus the normalised axis (or None)."""
        x = t.numpy()
        if x.ndim == 0:
            x = x.reshape(1)
        axis = None if self.axis is None else normalize_axis(self.name, self.axis, x.shape)
        return x, axis

    @staticmethod
    def _count(x, axis) -> int:
        return x.size if axis is None else x.shape[axis]

    @staticmethod
    def _expand(arr, x, axis):
        """Re-insert the reduced axis (or all axes) as size-1 dims."""
        arr = np.asarray(arr)
        if axis is None:
            return arr.reshape((1,) * x.ndim)
        return np.expand_dims(arr, axis)

    def reduce(self, x, axis):
        raise NotImplementedError

    def df_dx(self, x, y, axis):
        """Derivative of the reduced value w.r.t. each element; y keeps dims."""
        raise NotImplementedError

    def forward(self, inputs):
        x, axis = self._prepare(inputs[0])
        return result(self.reduce(x, axis))

    def gradient(self, inputs, output, grad):
        (a,) = inputs
        x, axis = self._prepare(a)
        y = self._expand(output.numpy(), x, axis)
        g = self._expand(grad.numpy(), x, axis)
        dx = self.df_dx(x, y, axis) * g
        return (grad_like(np.broadcast_to(dx, x.shape).reshape(a.shape), a),)


class ReduceSum(ReduceOp):
    name = "reduce_sum"
    def reduce(self, x, axis): return x.sum(axis=axis)
    def df_dx(self, x, y, axis): return np.ones_like(x, dtype=y.dtype)


class ReduceMean(ReduceOp):
    name = "reduce_mean"

    def reduce(self, x, axis):
        return x.sum(axis=axis) / max(self._count(x, axis), 1)

    def df_dx(self, x, y, axis):
        return np.full(x.shape, 1.0 / max(self._count(x, axis), 1), dtype=y.dtype)


class ReduceMax(ReduceOp):
    """Max; the whole gradient goes to the first position holding the max."""
    name = "reduce_max"
    _arg = staticmethod(np.argmax)

    def reduce(self, x, axis):
        return x.max(axis=axis)

    def df_dx(self, x, y, axis):
        mask = np.zeros(x.shape, dtype=y.dtype)
        if axis is None:
            mask.reshape(-1)[self._arg(x.reshape(-1))] = 1
        else:
            idx = np.expand_dims(self._arg(x, axis=axis), axis)
            np.put_along_axis(mask, idx, 1, axis=axis)
        return mask


class ReduceMin(ReduceMax):
    """Min; the whole gradient goes to the first position holding the min."""
    name = "reduce_min"
    _arg = staticmethod(np.argmin)

    def reduce(self, x, axis):
        return x.min(axis=axis)


def welford(x, axis):
    """
    Single-pass running mean and sum of squared deviations (Welford 1962).

    Returns (n, mean, m2) along `axis` (None = all elements). Avoids the
    cancellation of E[x²] - E[x]² when |mean| >> spread.
    """
    if axis is None:
        x = x.reshape(-1)
        axis = 0
    xs = np.moveaxis(x, axis, 0)
    acc = xs.dtype if xs.dtype.kind == 'f' else np.float64

    mean = np.zeros(xs.shape[1:], dtype=acc)
    m2 = np.zeros(xs.shape[1:], dtype=acc)
    for k, row in enumerate(xs, start=1):
        delta = row - mean
        mean = mean + delta / k
        m2 = m2 + delta * (row - mean)
    return xs.shape[0], mean, m2


class ReduceVariance(ReduceOp):
    """
    Population variance, Var = m2 / n (0 for n <= 1), via Welford.
    ∂Var/∂x_i = 2 (x_i - mean) / n
    """
    name = "reduce_variance"

    def reduce(self, x, axis):
        n, _, m2 = welford(x, axis)
        return m2 / n if n > 1 else np.zeros_like(m2)

    def df_dx(self, x, y, axis):
        n = self._count(x, axis)
        _, mean, _ = welford(x, axis)
        return 2.0 * (x - self._expand(mean, x, axis)) / n


class ReduceStd(ReduceVariance):
    """
    Population standard deviation, sqrt of the Welford variance.
    ∂σ/∂x_i = (x_i - mean) / (n σ), taken as 0 where σ = 0
    """
    name = "reduce_std"

    def reduce(self, x, axis):
        return np.sqrt(super().reduce(x, axis))

    def df_dx(self, x, y, axis):
        n = self._count(x, axis)
        _, mean, _ = welford(x, axis)
        dev = x - self._expand(mean, x, axis)
        denom = np.broadcast_to(n * y, x.shape)
        return np.divide(dev, denom, out=np.zeros(x.shape, dtype=y.dtype), where=denom != 0)


class ReduceHypot(ReduceOp):
    """Euclidean norm sqrt(Σ x²); ∂/∂x_i = x_i / norm (0 at the origin)."""
    name = "reduce_hypot"

    def reduce(self, x, axis):
        return np.sqrt((x * x).sum(axis=axis))

    def df_dx(self, x, y, axis):
        denom = np.broadcast_to(y, x.shape)
        return np.divide(x, denom, out=np.zeros(x.shape, dtype=y.dtype), where=denom != 0)


class Argmax(ReduceOp):
    """Index of the max along an axis. Integer-valued: no gradient rule."""
    name = "argmax"

    def reduce(self, x, axis):
        return np.argmax(x, axis=axis).astype(np.int64)

    def gradient(self, inputs, output, grad):
        raise UnimplementedGradient(self.name)


def reduce_sum(x, axis=-1): return apply_op(ReduceSum(axis), x)
def reduce_mean(x, axis=-1): return apply_op(ReduceMean(axis), x)
def reduce_max(x, axis=-1): return apply_op(ReduceMax(axis), x)
def reduce_min(x, axis=-1): return apply_op(ReduceMin(axis), x)
def reduce_variance(x, axis=-1): return apply_op(ReduceVariance(axis), x)
def reduce_std(x, axis=-1): return apply_op(ReduceStd(axis), x)
def reduce_hypot(x, axis=-1): return apply_op(ReduceHypot(axis), x)
def argmax(x, axis=-1): return apply_op(Argmax(axis), x)


# Bind method forms to Tensor
Tensor.reduce_sum = lambda self, axis=-1: reduce_sum(self, axis)
Tensor.reduce_mean = lambda self, axis=-1: reduce_mean(self, axis)
Tensor.reduce_max = lambda self, axis=-1: reduce_max(self, axis)
Tensor.reduce_min = lambda self, axis=-1: reduce_min(self, axis)
Tensor.reduce_variance = lambda self, axis=-1: reduce_variance(self, axis)
Tensor.reduce_std = lambda self, axis=-1: reduce_std(self, axis)
Tensor.reduce_hypot = lambda self, axis=-1: reduce_hypot(self, axis)
Tensor.argmax = lambda self, axis=-1: argmax(self, axis)
