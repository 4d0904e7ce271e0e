# essay_tensor/ops/unary.py
"""
Elementwise unary kernels.

Each kernel defines
    f(x)         : forward value, elementwise
    df_dx(x, y)  : local derivative at input x (y = f(x) is passed so kernels
                   like exp/sqrt/tanh can reuse the output)
and the shared gradient rule is  grad_in = df_dx(x, y) * grad_out.
"""

import numpy as np
from scipy import special

from ..core.tensor import Tensor
from .op import Operation, apply_op, result, grad_like


class UnaryOp(Operation):
    name = "unary"

    def f(self, x):
        raise NotImplementedError

    def df_dx(self, x, y):
        raise NotImplementedError

    def forward(self, inputs):
        (x,) = inputs
        return result(self.f(x.numpy()))

    def gradient(self, inputs, output, grad):
        (x,) = inputs
        return (grad_like(self.df_dx(x.numpy(), output.numpy()) * grad.numpy(), x),)


class Neg(UnaryOp):
    name = "neg"
    def f(self, x): return -x
    def df_dx(self, x, y): return -1.0


class Abs(UnaryOp):
    name = "abs"
    def f(self, x): return np.abs(x)
    def df_dx(self, x, y): return np.sign(x)


class Exp(UnaryOp):
    name = "exp"
    def f(self, x): return np.exp(x)
    def df_dx(self, x, y): return y


class Ln(UnaryOp):
    name = "ln"
    def f(self, x): return np.log(x)
    def df_dx(self, x, y): return 1.0 / x


class Log(UnaryOp):
    """Logarithm in an arbitrary base."""
    name = "log"

    def __init__(self, base: float):
        self.base = float(base)
        self._ln_base = float(np.log(self.base))

    def f(self, x): return np.log(x) / self._ln_base
    def df_dx(self, x, y): return 1.0 / (x * self._ln_base)


class Sqrt(UnaryOp):
    name = "sqrt"
    def f(self, x): return np.sqrt(x)
    def df_dx(self, x, y): return 0.5 / y


class Square(UnaryOp):
    name = "square"
    def f(self, x): return x * x
    def df_dx(self, x, y): return 2.0 * x


class Sin(UnaryOp):
    name = "sin"
    def f(self, x): return np.sin(x)
    def df_dx(self, x, y): return np.cos(x)


class Cos(UnaryOp):
    name = "cos"
    def f(self, x): return np.cos(x)
    def df_dx(self, x, y): return -np.sin(x)


class Tanh(UnaryOp):
    name = "tanh"
    def f(self, x): return np.tanh(x)
    def df_dx(self, x, y): return 1.0 - y * y


class Sigmoid(UnaryOp):
    name = "sigmoid"
    def f(self, x): return special.expit(x)
    def df_dx(self, x, y): return y * (1.0 - y)


class Relu(UnaryOp):
    name = "relu"
    def f(self, x): return np.maximum(x, 0)
    def df_dx(self, x, y): return (x > 0).astype(y.dtype)


class Softplus(UnaryOp):
    """softplus(x) = ln(1 + e^x), evaluated without overflow."""
    name = "softplus"
    def f(self, x): return np.logaddexp(0, x)
    def df_dx(self, x, y): return special.expit(x)


class Erf(UnaryOp):
    """
    Error function: erf(x) = (2/√π) ∫₀ˣ e^(-t²) dt
    Derivative: (2/√π) e^(-x²)
    """
    name = "erf"
    def f(self, x): return special.erf(x)
    def df_dx(self, x, y): return (2.0 / np.sqrt(np.pi)) * np.exp(-x * x)


class Clamp(UnaryOp):
    """Clip to [lo, hi]; the derivative is 1 strictly inside the interval, 0 outside."""
    name = "clamp"

    def __init__(self, lo: float, hi: float):
        if lo > hi:
            raise ValueError(f"clamp: lower bound {lo} exceeds upper bound {hi}")
        self.lo = lo
        self.hi = hi

    def f(self, x): return np.clip(x, self.lo, self.hi)

    def df_dx(self, x, y):
        return ((self.lo < x) & (x < self.hi)).astype(y.dtype)


def neg(x): return apply_op(Neg(), x)
def abs(x): return apply_op(Abs(), x)
def exp(x): return apply_op(Exp(), x)
def ln(x): return apply_op(Ln(), x)
def log(x, base=10.0): return apply_op(Log(base), x)
def sqrt(x): return apply_op(Sqrt(), x)
def square(x): return apply_op(Square(), x)
def sin(x): return apply_op(Sin(), x)
def cos(x): return apply_op(Cos(), x)
def tanh(x): return apply_op(Tanh(), x)
def sigmoid(x): return apply_op(Sigmoid(), x)
def relu(x): return apply_op(Relu(), x)
def softplus(x): return apply_op(Softplus(), x)
def erf(x): return apply_op(Erf(), x)
def clamp(x, lo, hi): return apply_op(Clamp(lo, hi), x)


# Bind method forms to Tensor
Tensor.exp = lambda self: exp(self)
Tensor.ln = lambda self: ln(self)
Tensor.log = lambda self, base=10.0: log(self, base)
Tensor.sqrt = lambda self: sqrt(self)
Tensor.square = lambda self: square(self)
Tensor.sin = lambda self: sin(self)
Tensor.cos = lambda self: cos(self)
Tensor.tanh = lambda self: tanh(self)
Tensor.sigmoid = lambda self: sigmoid(self)
Tensor.relu = lambda self: relu(self)
Tensor.softplus = lambda self: softplus(self)
Tensor.erf = lambda self: erf(self)
Tensor.clamp = lambda self, lo, hi: clamp(self, lo, hi)
Tensor.abs = lambda self: abs(self)
