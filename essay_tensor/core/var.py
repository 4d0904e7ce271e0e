# essay_tensor/core/var.py
from __future__ import annotations
from typing import Any

from .errors import ShapeMismatch
from .tape import current_tape
from .tensor import Tensor, tensor


class Var:
    """
    Named trainable leaf.

    Reading `var.tensor` returns the current value; while a Tape is recording
    the read also registers the Var as a graph leaf under its name. Every read
    within one session yields the same leaf id, so `.gradient(var)` can find it.

    Attributes
    ----------
    name : str
        Key under which gradients are reported.
    raw : Tensor
        Current value without any graph registration.
    """

    __array_ufunc__ = None

    def __init__(self, name: str, value: Any, dtype=None):
        if not isinstance(name, str) or not name:
            raise TypeError(f"Var name must be a non-empty str, got {name!r}")
        self.name = name
        self._tensor = tensor(value, dtype).detach()

    def __repr__(self):
        return f"Var({self.name!r}, shape={self.shape}, dtype={self.dtype})"

    @property
    def raw(self) -> Tensor:
        return self._tensor

    @property
    def tensor(self) -> Tensor:
        tape = current_tape()
        if tape is None:
            return self._tensor
        return tape.read_var(self)

    @property
    def shape(self):
        return self._tensor.shape

    @property
    def dtype(self) -> str:
        return self._tensor.dtype

    def numpy(self):
        return self._tensor.numpy()

    def assign(self, value: Any) -> None:
        """Replace the value with a new sealed tensor of the same shape."""
        new = tensor(value, self.dtype)
        if new.shape != self.shape:
            raise ShapeMismatch(f"assign to var {self.name!r}", self.shape, new.shape)
        self._tensor = new.detach()

    # Operator overloading delegates to the tensor ops; they read `.tensor`
    def __add__(self, other):
        from ..ops.binary import add
        return add(self, other)

    def __radd__(self, other):
        from ..ops.binary import add
        return add(other, self)

    def __sub__(self, other):
        from ..ops.binary import sub
        return sub(self, other)

    def __rsub__(self, other):
        from ..ops.binary import sub
        return sub(other, self)

    def __mul__(self, other):
        from ..ops.binary import mul
        return mul(self, other)

    def __rmul__(self, other):
        from ..ops.binary import mul
        return mul(other, self)

    def __truediv__(self, other):
        from ..ops.binary import div
        return div(self, other)

    def __rtruediv__(self, other):
        from ..ops.binary import div
        return div(other, self)

    def __pow__(self, other):
        from ..ops.binary import pow
        return pow(self, other)

    def __rpow__(self, other):
        from ..ops.binary import pow
        return pow(other, self)

    def __mod__(self, other):
        from ..ops.binary import rem
        return rem(self, other)

    def __rmod__(self, other):
        from ..ops.binary import rem
        return rem(other, self)

    def __matmul__(self, other):
        from ..ops.linalg import matmul
        return matmul(self, other)

    def __rmatmul__(self, other):
        from ..ops.linalg import matmul
        return matmul(other, self)

    def __neg__(self):
        from ..ops.unary import neg
        return neg(self)

    def __abs__(self):
        from ..ops.unary import abs
        return abs(self)
