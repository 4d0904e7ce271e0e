# essay_tensor/core/tensor.py
from __future__ import annotations
from typing import Any, Optional, Tuple
import numpy as np

from . import dtype as dtype_mod
from .buffer import Buffer, TensorUninit, from_array
from .node import TensorId
from .shape import size


class Tensor:
    """
    Immutable n-dimensional array value.

    Attributes
    ----------
    shape : Tuple[int, ...]
        Dimensions; () for a rank-0 scalar.
    buffer : Buffer
        Sealed flat row-major storage, shared between every tensor derived
        from it. `clone()` and `detach()` copy the handle, never the elements.
    node_id : Optional[TensorId]
        Graph node that produced this tensor while a Tape was recording;
        None for constants created outside any recording session.
    """
    __slots__ = ("_buffer", "_shape", "_node_id")

    # numpy must defer to our reflected operators (np.float32(2) * t)
    __array_ufunc__ = None

    def __init__(self, data: Any, dtype=None):
        src = tensor(data, dtype)
        self._buffer = src._buffer
        self._shape = src._shape
        self._node_id = None

    @classmethod
    def _from_buffer(cls, buffer: Buffer, shape: Tuple[int, ...], node_id: Optional[TensorId] = None) -> "Tensor":
        t = object.__new__(cls)
        t._buffer = buffer
        t._shape = tuple(shape)
        t._node_id = node_id
        return t

    @classmethod
    def from_array(cls, array, dtype=None) -> "Tensor":
        """Copy a numpy array into a new sealed tensor."""
        return from_array(array, dtype)

    @classmethod
    def from_uninit(cls, uninit: TensorUninit, shape=None) -> "Tensor":
        """Seal a filled builder into a tensor (default shape: flat)."""
        return uninit.seal(shape)

    # ---------- shape / buffer ----------
    @property
    def shape(self) -> Tuple[int, ...]:
        return self._shape

    @property
    def rank(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return size(self._shape)

    def __len__(self):
        # product of the shape (1 for rank 0), not the leading dim
        return self.size

    def dim(self, i: int) -> int:
        return self._shape[i]

    def dim_tail(self) -> int:
        """Length of the trailing axis; 1 for rank 0."""
        return self._shape[-1] if self._shape else 1

    @property
    def dtype(self) -> str:
        return self._buffer.dtype

    @property
    def buffer(self) -> Buffer:
        return self._buffer

    @property
    def node_id(self) -> Optional[TensorId]:
        return self._node_id

    def as_slice(self) -> np.ndarray:
        """Read-only flat view of the shared buffer."""
        return self._buffer.data

    def numpy(self) -> np.ndarray:
        """Read-only shaped view of the shared buffer."""
        return self._buffer.data.reshape(self._shape)

    def __array__(self, dtype=None, copy=None):
        arr = self.numpy()
        if dtype is not None:
            arr = arr.astype(dtype)
        if copy:
            arr = arr.copy()
        return arr

    def item(self):
        if self.size != 1:
            raise ValueError(f"item() requires a single-element tensor, got shape {self._shape}")
        return self._buffer.data[0].item()

    def tolist(self):
        return self.numpy().tolist()

    # ---------- identity ----------
    def clone(self) -> "Tensor":
        """O(1) copy sharing the buffer and the node id."""
        return Tensor._from_buffer(self._buffer, self._shape, self._node_id)

    def detach(self) -> "Tensor":
        """O(1) copy sharing the buffer, without a graph identity."""
        return Tensor._from_buffer(self._buffer, self._shape, None)

    def with_id(self, node_id: Optional[TensorId]) -> "Tensor":
        return Tensor._from_buffer(self._buffer, self._shape, node_id)

    def astype(self, dtype) -> "Tensor":
        name = dtype_mod.resolve(dtype)
        if name == self.dtype:
            return self.detach()
        return from_array(self.numpy().astype(name), name)

    def __repr__(self):
        body = np.array2string(self.numpy(), separator=", ")
        nid = "" if self._node_id is None else f", id={self._node_id!r}"
        return f"Tensor({body}, shape={self._shape}, dtype={self.dtype}{nid})"

    # ---------- operators ----------
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


def tensor(data: Any, dtype=None) -> Tensor:
    """
    Build a constant tensor from a scalar, nested list, numpy array or Tensor.

    Python scalars and lists take `config.default_dtype` unless `dtype` is
    given; numpy arrays keep their own (supported) dtype.
    """
    if isinstance(data, Tensor):
        return data if dtype is None else data.astype(dtype)
    if isinstance(data, np.ndarray) and dtype is None and data.dtype.name in dtype_mod.dtypes.supported:
        return from_array(data)
    name = dtype_mod.resolve(dtype)
    return from_array(np.asarray(data, dtype=name), name)
