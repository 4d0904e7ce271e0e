# essay_tensor/ops/__init__.py

"""
Kernels. Importing this package binds the method forms (t.exp(),
t.reduce_sum(), t.reshape(...), ...) onto Tensor.
"""

from .op import Operation, apply_op, as_tensor
from .unary import (
    neg, abs, exp, ln, log, sqrt, square, sin, cos, tanh,
    sigmoid, relu, softplus, erf, clamp,
)
from .binary import (
    add, sub, mul, div, pow, atan2, rem, maximum, minimum, hypot,
)
from .reduce import (
    reduce_sum, reduce_mean, reduce_max, reduce_min,
    reduce_variance, reduce_std, reduce_hypot, argmax,
)
from .linalg import matmul, matvec, outer
from .shape_ops import (
    reshape, flatten, expand_dims, squeeze, transpose, concat, stack,
    split, vsplit, hsplit, dsplit, unstack, tile, hstack, vstack, dstack,
)
from .nn import softmax
from .loss import l2_loss, mse_loss

__all__ = [
    "Operation", "apply_op", "as_tensor",
    "neg", "abs", "exp", "ln", "log", "sqrt", "square", "sin", "cos", "tanh",
    "sigmoid", "relu", "softplus", "erf", "clamp",
    "add", "sub", "mul", "div", "pow", "atan2", "rem", "maximum", "minimum", "hypot",
    "reduce_sum", "reduce_mean", "reduce_max", "reduce_min",
    "reduce_variance", "reduce_std", "reduce_hypot", "argmax",
    "matmul", "matvec", "outer",
    "reshape", "flatten", "expand_dims", "squeeze", "transpose", "concat", "stack",
    "split", "vsplit", "hsplit", "dsplit", "unstack", "tile", "hstack", "vstack", "dstack",
    "softmax",
    "l2_loss", "mse_loss",
]
