# essay_tensor/core/buffer.py
"""
Flat element storage for tensors.

A `Buffer` is an immutable, shared 1-D numpy array. Tensors never copy it:
cloning a tensor copies the handle only, so many tensors may alias one buffer.

Buffers are produced exclusively by `TensorUninit`, a checked builder:
    uninit = TensorUninit(n, "float32")
    uninit[0:n] = values          # every slot written exactly once
    t = uninit.seal((rows, cols)) # fails fast if any slot is unwritten
"""

from __future__ import annotations
import numpy as np

from ..config import config
from . import dtype as dtype_mod
from .errors import UninitializedBuffer, BufferSealed, ShapeMismatch
from .shape import as_shape, size


class Buffer:
    """Sealed, read-only flat storage. Identity (`is`) is the allocation identity."""
    __slots__ = ("_data",)

    def __init__(self, data: np.ndarray):
        # only TensorUninit.seal_buffer() constructs buffers
        self._data = data

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def dtype(self) -> str:
        return self._data.dtype.name

    def __len__(self):
        return self._data.shape[0]

    def __repr__(self):
        return f"Buffer(len={len(self)}, dtype={self.dtype})"


class TensorUninit:
    """
    Builder for a buffer of `n` uninitialised slots.

    Tracks which slots were written; `seal()` refuses to produce a buffer
    unless write_count == len. When `config.poison_buffers` is set the slots
    start out holding a poison value (NaN for floats).
    """

    def __init__(self, n: int, dtype=None):
        n = int(n)
        if n < 0:
            raise ValueError(f"buffer length must be non-negative, got {n}")
        self.dtype = dtype_mod.resolve(dtype)
        if config.poison_buffers:
            self._data = np.full(n, dtype_mod.poison(self.dtype), dtype=self.dtype)
        else:
            self._data = np.empty(n, dtype=self.dtype)
        self._written = np.zeros(n, dtype=bool)
        self._sealed = False

    def __len__(self):
        return self._data.shape[0]

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def write_count(self) -> int:
        """Number of distinct slots written so far."""
        if self._sealed:
            return len(self)
        return int(self._written.sum())

    def peek(self) -> np.ndarray:
        """Read-only view of the raw slots (poisoned where unwritten)."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def __setitem__(self, index, value):
        self._check_open()
        n = len(self)
        if isinstance(index, (int, np.integer)):
            if not -n <= index < n:
                raise UninitializedBuffer(f"write at index {index} out of range for buffer of length {n}")
        elif isinstance(index, slice):
            start, stop, step = index.indices(n)
            if step != 1:
                raise ValueError("TensorUninit only supports contiguous slice writes")
            value = np.asarray(value)
            if value.ndim > 0 and value.size != stop - start:
                raise UninitializedBuffer(
                    f"write of {value.size} values into slice [{start}:{stop}] of length {stop - start}"
                )
        else:
            raise TypeError(f"TensorUninit index must be int or slice, got {type(index).__name__}")
        self._data[index] = value
        self._written[index] = True

    def write(self, offset: int, values) -> None:
        """Write a contiguous run of values starting at `offset`."""
        values = np.ravel(np.asarray(values))
        if offset < 0 or offset + values.size > len(self):
            raise UninitializedBuffer(
                f"write of {values.size} values at offset {offset} overruns buffer of length {len(self)}"
            )
        self[offset:offset + values.size] = values

    def fill_from(self, values) -> None:
        """Write every slot from an array of matching size (any shape)."""
        values = np.asarray(values)
        if values.size != len(self):
            raise UninitializedBuffer(
                f"fill_from with {values.size} values into buffer of length {len(self)}"
            )
        self[0:len(self)] = values.reshape(-1)

    def seal_buffer(self) -> Buffer:
        self._check_open()
        missing = len(self) - int(self._written.sum())
        if missing:
            first = int(np.argmin(self._written))
            raise UninitializedBuffer(
                f"sealing buffer of length {len(self)} with {missing} unwritten slot(s); "
                f"first unwritten index {first}"
            )
        self._data.flags.writeable = False
        self._sealed = True
        self._written = None
        return Buffer(self._data)

    def seal(self, shape=None, node_id=None):
        """Seal into an immutable Tensor of `shape` (default: rank-1 of len)."""
        from .tensor import Tensor

        shape = (len(self),) if shape is None else as_shape(shape)
        if size(shape) != len(self):
            raise ShapeMismatch("seal", shape, (len(self),), detail="shape size differs from buffer length")
        return Tensor._from_buffer(self.seal_buffer(), shape, node_id)

    def _check_open(self):
        if self._sealed:
            raise BufferSealed("buffer already sealed")


def from_array(array: np.ndarray, dtype=None, shape=None, node_id=None):
    """Copy `array` through a checked builder into a new sealed Tensor."""
    array = np.asarray(array)
    if dtype is None and array.dtype.name in dtype_mod.dtypes.supported:
        dtype = array.dtype.name
    uninit = TensorUninit(array.size, dtype)
    uninit.fill_from(array)
    return uninit.seal(array.shape if shape is None else shape, node_id)


def shares_buffer(a, b) -> bool:
    """True when two tensors alias the same allocation."""
    return a.buffer is b.buffer
