# essay_tensor/ops/op.py
"""
Operation base class.

An operation carries two rules:
  - forward(inputs) -> Tensor
        pure evaluation on sealed input tensors; allocates the output only.
  - gradient(inputs, output, grad) -> tuple with one entry per input
        local chain-rule step: given dL/d(output), return dL/d(input_i),
        each shaped like input i (or None for a non-differentiable input).

`apply_op` is the single recording hook: it evaluates eagerly and, when a Tape
is recording, appends one node for the call.
"""

from __future__ import annotations
from typing import Optional, Sequence, Tuple
import numpy as np

from ..core import dtype as dtype_mod
from ..core.buffer import from_array
from ..core.errors import UnimplementedGradient
from ..core.tape import current_tape
from ..core.tensor import Tensor, tensor
from ..core.var import Var


class Operation:
    name = "op"

    def check(self, inputs: Sequence[Tensor]) -> None:
        """Validate input shapes before evaluation (raise ShapeMismatch)."""

    def forward(self, inputs: Sequence[Tensor]) -> Tensor:
        raise NotImplementedError(f"{self.name}: forward not implemented")

    def gradient(self, inputs: Sequence[Tensor], output: Tensor, grad: Tensor) -> Tuple[Optional[Tensor], ...]:
        raise UnimplementedGradient(self.name)

    def __call__(self, *args):
        return apply_op(self, *args)

    def __repr__(self):
        return f"{type(self).__name__}()"


def as_tensor(x, like: Optional[Tensor] = None) -> Tensor:
    """
    Coerce an operand: a Var is read (registering its leaf when recording),
    a Python/numpy scalar or list becomes a constant in the dtype of `like`.
    """
    if isinstance(x, Tensor):
        return x
    if isinstance(x, Var):
        return x.tensor
    if like is not None and np.isscalar(x):
        dtype = like.dtype
        if isinstance(x, (float, np.floating)) and not dtype_mod.dtypes.is_float(dtype):
            dtype = None
        return tensor(x, dtype)
    return tensor(x)


def as_tensors(args) -> list:
    like = next((a for a in args if isinstance(a, Tensor)), None)
    if like is None:
        like = next((a.raw for a in args if isinstance(a, Var)), None)
    return [as_tensor(a, like) for a in args]


def apply_op(op: Operation, *args) -> Tensor:
    """Evaluate `op` eagerly; record a node if a Tape is recording."""
    inputs = as_tensors(args)
    op.check(inputs)
    out = op.forward(inputs)
    tape = current_tape()
    if tape is None:
        return out
    return tape.record(op, inputs, out)


def result(array) -> Tensor:
    """Seal a kernel's forward output."""
    return from_array(np.asarray(array))


def grad_like(array, like: Tensor) -> Tensor:
    """Seal a gradient shaped and typed for input `like`."""
    array = np.asarray(array, dtype=dtype_mod.grad_dtype(like.dtype))
    return from_array(np.broadcast_to(array, like.shape))
