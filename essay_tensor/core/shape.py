# essay_tensor/core/shape.py
"""
Shape arithmetic shared by the buffer model and the kernels.

Shapes are plain tuples of non-negative ints; rank 0 is the empty tuple.
"""

from __future__ import annotations
from typing import Sequence, Tuple
import numpy as np

from .errors import ShapeMismatch

Shape = Tuple[int, ...]


def as_shape(shape) -> Shape:
    """Accept an int, a sequence of ints, or () and return a shape tuple."""
    if isinstance(shape, (int, np.integer)):
        shape = (int(shape),)
    shape = tuple(int(d) for d in shape)
    for d in shape:
        if d < 0:
            raise ValueError(f"negative dimension in shape {shape}")
    return shape


def size(shape: Sequence[int]) -> int:
    """Number of elements; 1 for rank 0."""
    n = 1
    for d in shape:
        n *= d
    return n


def broadcast(op: str, a: Shape, b: Shape) -> Shape:
    """Broadcast two shapes (trailing alignment) or raise ShapeMismatch."""
    try:
        return tuple(np.broadcast_shapes(a, b))
    except ValueError:
        raise ShapeMismatch(op, a, b, detail="not broadcastable") from None


def normalize_axis(op: str, axis: int, shape: Shape) -> int:
    """Map a possibly negative axis into [0, rank)."""
    rank = len(shape)
    if rank == 0:
        if axis in (0, -1):
            return 0
        raise ShapeMismatch(op, shape, detail=f"axis {axis} out of range for rank 0")
    if not -rank <= axis < rank:
        raise ShapeMismatch(op, shape, detail=f"axis {axis} out of range for rank {rank}")
    return axis % rank


def sum_to_shape(grad: np.ndarray, shape: Shape) -> np.ndarray:
    """
    Reduce-sum a broadcast gradient back down to an operand's `shape`.

    Leading dims added by broadcasting are summed away; dims where the operand
    had size 1 are summed with keepdims.
    """
    if grad.shape == tuple(shape):
        return grad
    extra = grad.ndim - len(shape)
    if extra > 0:
        grad = grad.sum(axis=tuple(range(extra)))
    axes = tuple(i for i, d in enumerate(shape) if d == 1 and grad.shape[i] != 1)
    if axes:
        grad = grad.sum(axis=axes, keepdims=True)
    return grad.reshape(shape)
