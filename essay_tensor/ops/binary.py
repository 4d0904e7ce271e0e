# essay_tensor/ops/binary.py
"""
Elementwise binary kernels with broadcasting.

Forward applies f(x, y) after broadcasting the operands (trailing-axis
alignment, size-1 and missing dims expand). The gradient rule produces
    dx = df_dx(x, y, z) * grad,   dy = df_dy(x, y, z) * grad
at the broadcast shape, then reduce-sums each back to its operand's shape so a
broadcast operand receives the total of every position it was expanded into.
"""

import numpy as np

from ..core.shape import broadcast, sum_to_shape
from ..core.tensor import Tensor
from .op import Operation, apply_op, result, grad_like


class BinaryOp(Operation):
    name = "binary"

    def f(self, x, y):
        raise NotImplementedError

    def df_dx(self, x, y, z):
        raise NotImplementedError

    def df_dy(self, x, y, z):
        raise NotImplementedError

    def check(self, inputs):
        a, b = inputs
        broadcast(self.name, a.shape, b.shape)

    def forward(self, inputs):
        a, b = inputs
        return result(self.f(a.numpy(), b.numpy()))

    def gradient(self, inputs, output, grad):
        a, b = inputs
        x, y, z = a.numpy(), b.numpy(), output.numpy()
        g = grad.numpy()

        dx = np.broadcast_to(self.df_dx(x, y, z) * g, z.shape)
        dy = np.broadcast_to(self.df_dy(x, y, z) * g, z.shape)

        return (
            grad_like(sum_to_shape(dx, a.shape), a),
            grad_like(sum_to_shape(dy, b.shape), b),
        )


class Add(BinaryOp):
    name = "add"
    def f(self, x, y): return x + y
    def df_dx(self, x, y, z): return 1.0
    def df_dy(self, x, y, z): return 1.0


class Sub(BinaryOp):
    name = "sub"
    def f(self, x, y): return x - y
    def df_dx(self, x, y, z): return 1.0
    def df_dy(self, x, y, z): return -1.0


class Mul(BinaryOp):
    name = "mul"
    def f(self, x, y): return x * y
    def df_dx(self, x, y, z): return y
    def df_dy(self, x, y, z): return x


class Div(BinaryOp):
    name = "div"
    def f(self, x, y): return x / y
    def df_dx(self, x, y, z): return 1.0 / y
    def df_dy(self, x, y, z): return -x / (y * y)


class Pow(BinaryOp):
    """
    z = x ** y
      ∂z/∂x = y * x^(y-1)     (0 where y == 0, including x == 0)
      ∂z/∂y = z * log(x)      (taken as 0 where x <= 0)
    """
    name = "pow"

    def f(self, x, y):
        return np.power(x, y)

    def df_dx(self, x, y, z):
        const = y == 0
        base = np.where(const, 1, x)
        return np.where(const, 0, y * np.power(base, y - 1.0))

    def df_dy(self, x, y, z):
        positive = x > 0
        return np.where(positive, z * np.log(np.where(positive, x, 1)), 0)


class Atan2(BinaryOp):
    """
    z = atan2(x, y), the angle of the point (y, x)
      ∂z/∂x =  y / (x² + y²)
      ∂z/∂y = -x / (x² + y²)
    The gradient at the origin is taken as 0.
    """
    name = "atan2"

    def f(self, x, y):
        return np.arctan2(x, y)

    def df_dx(self, x, y, z):
        r2 = x * x + y * y
        return np.divide(y, r2, out=np.zeros(z.shape, dtype=z.dtype), where=r2 != 0)

    def df_dy(self, x, y, z):
        r2 = x * x + y * y
        return np.divide(-x, r2, out=np.zeros(z.shape, dtype=z.dtype), where=r2 != 0)


class Rem(BinaryOp):
    """
    Truncated remainder (sign of the dividend): z = x - trunc(x / y) * y
      ∂z/∂x = 1,  ∂z/∂y = -trunc(x / y)
    """
    name = "rem"
    def f(self, x, y): return np.fmod(x, y)
    def df_dx(self, x, y, z): return 1.0
    def df_dy(self, x, y, z): return -np.trunc(x / y)


class Maximum(BinaryOp):
    """Elementwise max; ties route the gradient to x."""
    name = "maximum"
    def f(self, x, y): return np.maximum(x, y)
    def df_dx(self, x, y, z): return (x >= y).astype(z.dtype)
    def df_dy(self, x, y, z): return (x < y).astype(z.dtype)


class Minimum(BinaryOp):
    """Elementwise min; ties route the gradient to x."""
    name = "minimum"
    def f(self, x, y): return np.minimum(x, y)
    def df_dx(self, x, y, z): return (x <= y).astype(z.dtype)
    def df_dy(self, x, y, z): return (x > y).astype(z.dtype)


class Hypot(BinaryOp):
    """z = sqrt(x² + y²); the gradient at the origin is taken as 0."""
    name = "hypot"

    def f(self, x, y):
        return np.hypot(x, y)

    def df_dx(self, x, y, z):
        return np.divide(x, z, out=np.zeros(z.shape, dtype=z.dtype), where=z != 0)

    def df_dy(self, x, y, z):
        return np.divide(y, z, out=np.zeros(z.shape, dtype=z.dtype), where=z != 0)


def add(x, y): return apply_op(Add(), x, y)
def sub(x, y): return apply_op(Sub(), x, y)
def mul(x, y): return apply_op(Mul(), x, y)
def div(x, y): return apply_op(Div(), x, y)
def pow(x, y): return apply_op(Pow(), x, y)
def atan2(x, y): return apply_op(Atan2(), x, y)
def rem(x, y): return apply_op(Rem(), x, y)
def maximum(x, y): return apply_op(Maximum(), x, y)
def minimum(x, y): return apply_op(Minimum(), x, y)
def hypot(x, y): return apply_op(Hypot(), x, y)


# Bind method forms to Tensor
Tensor.add = lambda self, other: add(self, other)
Tensor.sub = lambda self, other: sub(self, other)
Tensor.mul = lambda self, other: mul(self, other)
Tensor.div = lambda self, other: div(self, other)
Tensor.pow = lambda self, other: pow(self, other)
Tensor.atan2 = lambda self, other: atan2(self, other)
Tensor.rem = lambda self, other: rem(self, other)
Tensor.maximum = lambda self, other: maximum(self, other)
Tensor.minimum = lambda self, other: minimum(self, other)
Tensor.hypot = lambda self, other: hypot(self, other)
