# essay_tensor/init.py
"""
Tensor constructors.

Every constructor returns a constant (no node id) sealed through the checked
TensorUninit builder. When a Tape is recording, a constant becomes a leaf the
first time an operation consumes it.
"""

from __future__ import annotations
from typing import Optional, Sequence
import numpy as np

from .core import dtype as dtype_mod
from .core.buffer import TensorUninit, from_array
from .core.errors import ShapeMismatch
from .core.shape import as_shape, size
from .core.tensor import Tensor, tensor


def fill(shape, value, dtype=None) -> Tensor:
    """Tensor of `shape` with every element equal to `value`."""
    shape = as_shape(shape)
    uninit = TensorUninit(size(shape), dtype)
    uninit[0:len(uninit)] = value
    return uninit.seal(shape)


def zeros(shape, dtype=None) -> Tensor:
    return fill(shape, 0, dtype)


def ones(shape, dtype=None) -> Tensor:
    return fill(shape, 1, dtype)


def zeros_like(t: Tensor) -> Tensor:
    return fill(t.shape, 0, t.dtype)


def ones_like(t: Tensor) -> Tensor:
    return fill(t.shape, 1, t.dtype)


def linspace(start, stop, num: int, dtype=None) -> Tensor:
    """
    `num` evenly spaced samples from `start` to `stop` inclusive.

    Scalar endpoints give shape [num]. Tensor endpoints (same shape) give one
    sequence per element, laid out as shape [num, *start.shape].
    """
    if num < 0:
        raise ValueError(f"linspace: num must be non-negative, got {num}")
    a = tensor(start, dtype).numpy()
    b = tensor(stop, dtype).numpy()
    if a.shape != b.shape:
        raise ShapeMismatch("linspace", a.shape, b.shape, detail="start and stop must agree")
    dtype = dtype or (a.dtype.name if dtype_mod.dtypes.is_float(a.dtype.name) else None)
    if a.size == 1:
        a, b = a.reshape(()), b.reshape(())
    return from_array(np.linspace(a, b, num, axis=0), dtype_mod.resolve(dtype))


def arange(start, stop=None, step=1, dtype=None) -> Tensor:
    """Half-open range [start, stop) with the given step; arange(n) counts from 0."""
    if stop is None:
        start, stop = 0, start
    if step == 0:
        raise ValueError("arange: step must be non-zero")
    return from_array(np.arange(start, stop, step), dtype_mod.resolve(dtype))


def eye(n: int, m: Optional[int] = None, dtype=None) -> Tensor:
    """Identity matrix of shape [n, m] (m defaults to n)."""
    m = n if m is None else m
    if n < 0 or m < 0:
        raise ValueError(f"eye: dimensions must be non-negative, got ({n}, {m})")
    return from_array(np.eye(n, m), dtype_mod.resolve(dtype))


def meshgrid(x, y, indexing: str = "xy"):
    """
    Coordinate grids from two vectors.

    indexing="xy" (cartesian) gives grids of shape [len(y), len(x)];
    indexing="ij" (matrix) gives [len(x), len(y)].
    """
    if indexing not in ("xy", "ij"):
        raise ValueError(f"meshgrid: indexing must be 'xy' or 'ij', got {indexing!r}")
    x, y = tensor(x), tensor(y)
    if x.rank != 1 or y.rank != 1:
        raise ShapeMismatch("meshgrid", x.shape, y.shape, detail="axes must be vectors")
    gx, gy = np.meshgrid(x.numpy(), y.numpy(), indexing=indexing)
    return from_array(gx), from_array(gy)


def one_hot(indices: Sequence[int], depth: int, dtype=None) -> Tensor:
    """Vector of length `depth` with 1 at every listed index and 0 elsewhere."""
    if depth < 0:
        raise ValueError(f"one_hot: depth must be non-negative, got {depth}")
    out = np.zeros(depth)
    for i in indices:
        if not 0 <= i < depth:
            raise ValueError(f"one_hot: index {i} out of range for depth {depth}")
        out[i] = 1
    return from_array(out, dtype_mod.resolve(dtype))


def uniform(shape, low=0.0, high=1.0, seed: Optional[int] = None, dtype=None) -> Tensor:
    """Samples from U[low, high)."""
    if low >= high:
        raise ValueError(f"uniform: low ({low}) must be less than high ({high})")
    rng = np.random.default_rng(seed)
    return from_array(rng.uniform(low, high, size=as_shape(shape)), dtype_mod.resolve(dtype))


def normal(shape, mean=0.0, std=1.0, seed: Optional[int] = None, dtype=None) -> Tensor:
    """Samples from N(mean, std²)."""
    if std < 0:
        raise ValueError(f"normal: std must be non-negative, got {std}")
    rng = np.random.default_rng(seed)
    return from_array(rng.normal(mean, std, size=as_shape(shape)), dtype_mod.resolve(dtype))


def from_bytes(data: bytes, dtype=None, shape=None) -> Tensor:
    """
    Decode raw little-endian element bytes (e.g. a dataset file or an audio
    frame) into a tensor; default shape is rank 1.
    """
    name = dtype_mod.resolve(dtype)
    itemsize = np.dtype(name).itemsize
    if len(data) % itemsize:
        raise ValueError(f"from_bytes: {len(data)} bytes is not a multiple of the {name} item size {itemsize}")
    values = np.frombuffer(data, dtype=np.dtype(name).newbyteorder("<"))
    uninit = TensorUninit(values.size, name)
    uninit.fill_from(values)
    return uninit.seal(shape)


__all__ = [
    "fill", "zeros", "ones", "zeros_like", "ones_like",
    "linspace", "arange", "eye", "meshgrid", "one_hot",
    "uniform", "normal", "from_bytes",
]
