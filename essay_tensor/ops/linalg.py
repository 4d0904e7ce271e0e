# essay_tensor/ops/linalg.py
"""
Linear-algebra kernels: matrix product, matrix-vector product, outer product.

The forward products go through numpy's matmul (BLAS GEMM underneath).
Gradients for C = A @ B with incoming G = dL/dC:
    dL/dA = G @ Bᵀ        dL/dB = Aᵀ @ G
with leading (batch) dims broadcast like elementwise ops and summed back.
"""

import numpy as np

from ..core.errors import ShapeMismatch
from ..core.shape import broadcast, sum_to_shape
from ..core.tensor import Tensor
from .op import Operation, apply_op, result, grad_like


def _mT(x):
    return np.swapaxes(x, -1, -2)


class MatMul(Operation):
    """[..., m, k] @ [..., k, n] -> [..., m, n]; both operands rank >= 2."""
    name = "matmul"

    def check(self, inputs):
        a, b = inputs
        if a.rank < 2 or b.rank < 2:
            raise ShapeMismatch(self.name, a.shape, b.shape, detail="operands must have rank >= 2")
        if a.shape[-1] != b.shape[-2]:
            raise ShapeMismatch(self.name, a.shape, b.shape,
                                detail=f"inner dims {a.shape[-1]} and {b.shape[-2]} differ")
        broadcast(self.name, a.shape[:-2], b.shape[:-2])

    def forward(self, inputs):
        a, b = inputs
        return result(np.matmul(a.numpy(), b.numpy()))

    def gradient(self, inputs, output, grad):
        a, b = inputs
        x, y, g = a.numpy(), b.numpy(), grad.numpy()
        da = np.matmul(g, _mT(y))
        db = np.matmul(_mT(x), g)
        return (
            grad_like(sum_to_shape(da, a.shape), a),
            grad_like(sum_to_shape(db, b.shape), b),
        )


class MatVec(Operation):
    """[..., m, n] · [n] -> [..., m]"""
    name = "matvec"

    def check(self, inputs):
        a, v = inputs
        if a.rank < 2 or v.rank != 1:
            raise ShapeMismatch(self.name, a.shape, v.shape,
                                detail="expected a matrix (rank >= 2) and a vector (rank 1)")
        if a.shape[-1] != v.shape[0]:
            raise ShapeMismatch(self.name, a.shape, v.shape,
                                detail=f"matrix columns {a.shape[-1]} != vector length {v.shape[0]}")

    def forward(self, inputs):
        a, v = inputs
        return result(np.matmul(a.numpy(), v.numpy()))

    def gradient(self, inputs, output, grad):
        a, v = inputs
        x, y, g = a.numpy(), v.numpy(), grad.numpy()
        da = g[..., :, None] * y
        dv = np.sum(x * g[..., :, None], axis=tuple(range(x.ndim - 1)))
        return grad_like(da, a), grad_like(dv, v)


class Outer(Operation):
    """[m] ⊗ [n] -> [m, n]"""
    name = "outer"

    def check(self, inputs):
        a, b = inputs
        if a.rank != 1 or b.rank != 1:
            raise ShapeMismatch(self.name, a.shape, b.shape, detail="operands must be vectors")

    def forward(self, inputs):
        a, b = inputs
        return result(np.outer(a.numpy(), b.numpy()))

    def gradient(self, inputs, output, grad):
        a, b = inputs
        g = grad.numpy()
        return grad_like(g @ b.numpy(), a), grad_like(g.T @ a.numpy(), b)


def matmul(a, b): return apply_op(MatMul(), a, b)
def matvec(a, v): return apply_op(MatVec(), a, v)
def outer(a, b): return apply_op(Outer(), a, b)


Tensor.matmul = lambda self, other: matmul(self, other)
Tensor.matvec = lambda self, other: matvec(self, other)
Tensor.outer = lambda self, other: outer(self, other)
