# essay_tensor/ops/shape_ops.py
"""
Shape-changing kernels. None of these change element values, so each
gradient is the inverse rearrangement of the incoming gradient.
"""

from __future__ import annotations
from typing import Optional, Sequence
import numpy as np

from ..core.errors import ShapeMismatch
from ..core.shape import as_shape, normalize_axis, size
from ..core.tensor import Tensor
from .op import Operation, apply_op, as_tensors, result, grad_like


class Reshape(Operation):
    """Same elements in row-major order, new shape; one dim may be -1."""
    name = "reshape"

    def __init__(self, shape):
        shape = (shape,) if isinstance(shape, int) else tuple(int(d) for d in shape)
        if sum(1 for d in shape if d == -1) > 1:
            raise ValueError(f"reshape: at most one -1 allowed in {shape}")
        self.shape = shape

    def __repr__(self):
        return f"Reshape({self.shape})"

    def target(self, n: int):
        if -1 not in self.shape:
            return as_shape(self.shape)
        known = size(d for d in self.shape if d != -1)
        if known == 0 or n % known:
            return None
        return tuple(n // known if d == -1 else d for d in self.shape)

    def check(self, inputs):
        (a,) = inputs
        shape = self.target(a.size)
        if shape is None or size(shape) != a.size:
            raise ShapeMismatch(self.name, a.shape, self.shape, detail="element counts differ")

    def forward(self, inputs):
        (a,) = inputs
        return result(a.numpy().reshape(self.target(a.size)))

    def gradient(self, inputs, output, grad):
        (a,) = inputs
        return (grad_like(grad.numpy().reshape(a.shape), a),)


class Transpose(Operation):
    """Permute axes; default reverses them."""
    name = "transpose"

    def __init__(self, axes: Optional[Sequence[int]] = None):
        self.axes = None if axes is None else tuple(axes)

    def _perm(self, rank):
        if self.axes is None:
            return tuple(reversed(range(rank)))
        return tuple(normalize_axis(self.name, ax, (0,) * rank) for ax in self.axes)

    def check(self, inputs):
        (a,) = inputs
        if self.axes is not None and sorted(self._perm(a.rank)) != list(range(a.rank)):
            raise ShapeMismatch(self.name, a.shape, detail=f"axes {self.axes} are not a permutation")

    def forward(self, inputs):
        (a,) = inputs
        return result(np.transpose(a.numpy(), self._perm(a.rank)))

    def gradient(self, inputs, output, grad):
        (a,) = inputs
        inverse = np.argsort(self._perm(a.rank))
        return (grad_like(np.transpose(grad.numpy(), inverse), a),)


class Concat(Operation):
    """Join tensors along an existing axis; the gradient is split back."""
    name = "concat"

    def __init__(self, axis: int = 0):
        self.axis = axis

    def check(self, inputs):
        if not inputs:
            raise ValueError("concat: need at least one tensor")
        first = inputs[0]
        if first.rank == 0:
            raise ShapeMismatch(self.name, first.shape, detail="cannot concatenate rank-0 tensors")
        axis = normalize_axis(self.name, self.axis, first.shape)
        for t in inputs[1:]:
            if t.rank != first.rank or any(
                d1 != d2 for i, (d1, d2) in enumerate(zip(first.shape, t.shape)) if i != axis
            ):
                raise ShapeMismatch(self.name, first.shape, t.shape,
                                    detail=f"dims must agree except along axis {axis}")

    def forward(self, inputs):
        return result(np.concatenate([t.numpy() for t in inputs], axis=self.axis))

    def gradient(self, inputs, output, grad):
        axis = normalize_axis(self.name, self.axis, inputs[0].shape)
        bounds = np.cumsum([t.shape[axis] for t in inputs])[:-1]
        parts = np.split(grad.numpy(), bounds, axis=axis)
        return tuple(grad_like(p, t) for p, t in zip(parts, inputs))


class Stack(Operation):
    """Join same-shaped tensors along a new axis."""
    name = "stack"

    def __init__(self, axis: int = 0):
        self.axis = axis

    def check(self, inputs):
        if not inputs:
            raise ValueError("stack: need at least one tensor")
        shape = inputs[0].shape
        for t in inputs[1:]:
            if t.shape != shape:
                raise ShapeMismatch(self.name, shape, t.shape, detail="all tensors must share a shape")
        normalize_axis(self.name, self.axis, (0,) * (len(shape) + 1))

    def forward(self, inputs):
        return result(np.stack([t.numpy() for t in inputs], axis=self.axis))

    def gradient(self, inputs, output, grad):
        g = np.moveaxis(grad.numpy(), self.axis, 0)
        return tuple(grad_like(g[i], t) for i, t in enumerate(inputs))


class Slice(Operation):
    """Contiguous range [start, stop) along one axis; the gradient is zero-padded back."""
    name = "slice"

    def __init__(self, axis: int, start: int, stop: int):
        self.axis = axis
        self.start = start
        self.stop = stop

    def __repr__(self):
        return f"Slice(axis={self.axis}, {self.start}:{self.stop})"

    def _index(self, rank):
        index = [slice(None)] * rank
        index[self.axis] = slice(self.start, self.stop)
        return tuple(index)

    def check(self, inputs):
        (a,) = inputs
        if a.rank == 0:
            raise ShapeMismatch(self.name, a.shape, detail="cannot slice a rank-0 tensor")
        axis = normalize_axis(self.name, self.axis, a.shape)
        if not 0 <= self.start <= self.stop <= a.shape[axis]:
            raise ShapeMismatch(self.name, a.shape,
                                detail=f"range {self.start}:{self.stop} out of bounds on axis {axis}")

    def forward(self, inputs):
        (a,) = inputs
        return result(a.numpy()[self._index(a.rank)])

    def gradient(self, inputs, output, grad):
        (a,) = inputs
        full = np.zeros(a.shape, dtype=grad.numpy().dtype)
        full[self._index(a.rank)] = grad.numpy()
        return (grad_like(full, a),)


class Take(Operation):
    """One index along an axis, dropping that axis."""
    name = "take"

    def __init__(self, axis: int, index: int):
        self.axis = axis
        self.index = index

    def __repr__(self):
        return f"Take(axis={self.axis}, index={self.index})"

    def check(self, inputs):
        (a,) = inputs
        if a.rank == 0:
            raise ShapeMismatch(self.name, a.shape, detail="cannot index a rank-0 tensor")
        axis = normalize_axis(self.name, self.axis, a.shape)
        if not 0 <= self.index < a.shape[axis]:
            raise ShapeMismatch(self.name, a.shape,
                                detail=f"index {self.index} out of bounds on axis {axis}")

    def forward(self, inputs):
        (a,) = inputs
        return result(np.take(a.numpy(), self.index, axis=self.axis))

    def gradient(self, inputs, output, grad):
        (a,) = inputs
        full = np.zeros(a.shape, dtype=grad.numpy().dtype)
        index = [slice(None)] * a.rank
        index[self.axis] = self.index
        full[tuple(index)] = grad.numpy()
        return (grad_like(full, a),)


class Tile(Operation):
    """
    Repeat the whole tensor `multiples[i]` times along axis i.

    Shorter `multiples` are padded with leading 1s, a shorter input shape gains
    leading size-1 dims. Output dim i is multiples[i] * dim[i], laid out as
    (repeat, element), so the gradient is summed over the repeat axes.
    """
    name = "tile"

    def __init__(self, multiples):
        multiples = (multiples,) if isinstance(multiples, int) else tuple(int(m) for m in multiples)
        if any(m < 0 for m in multiples):
            raise ValueError(f"tile: multiples must be non-negative, got {multiples}")
        self.multiples = multiples

    def __repr__(self):
        return f"Tile({self.multiples})"

    def _aligned(self, shape):
        rank = max(len(shape), len(self.multiples))
        dims = (1,) * (rank - len(shape)) + tuple(shape)
        reps = (1,) * (rank - len(self.multiples)) + self.multiples
        return dims, reps

    def forward(self, inputs):
        (a,) = inputs
        return result(np.tile(a.numpy(), self.multiples))

    def gradient(self, inputs, output, grad):
        (a,) = inputs
        dims, reps = self._aligned(a.shape)
        pairs = tuple(n for pair in zip(reps, dims) for n in pair)
        g = grad.numpy().reshape(pairs).sum(axis=tuple(range(0, len(pairs), 2)))
        return (grad_like(g.reshape(a.shape), a),)


def reshape(x, shape):
    return apply_op(Reshape(shape), x)


def flatten(x):
    return apply_op(Reshape((-1,)), x)


def expand_dims(x, axis=0):
    (t,) = as_tensors([x])
    axis = normalize_axis("expand_dims", axis, (0,) * (t.rank + 1))
    return apply_op(Reshape(t.shape[:axis] + (1,) + t.shape[axis:]), t)


def squeeze(x, axis=None):
    """Drop size-1 dims (all of them, or only `axis`)."""
    (t,) = as_tensors([x])
    if axis is None:
        shape = tuple(d for d in t.shape if d != 1)
    else:
        axis = normalize_axis("squeeze", axis, t.shape)
        if t.shape[axis] != 1:
            raise ShapeMismatch("squeeze", t.shape, detail=f"axis {axis} has size {t.shape[axis]}, not 1")
        shape = t.shape[:axis] + t.shape[axis + 1:]
    return apply_op(Reshape(shape), t)


def transpose(x, axes=None):
    return apply_op(Transpose(axes), x)


def concat(tensors, axis=0):
    return apply_op(Concat(axis), *tensors)


def stack(tensors, axis=0):
    return apply_op(Stack(axis), *tensors)


def split(x, sections, axis=0):
    """
    Cut `x` along `axis` into a list of tensors.

    `sections` is either a count n (n equal parts; the axis length must divide
    evenly) or a sequence of cut indices, e.g. [1, 3] -> [:1], [1:3], [3:].
    Empty pieces between repeated cuts are skipped.
    """
    (t,) = as_tensors([x])
    if t.rank == 0:
        raise ShapeMismatch("split", t.shape, detail="cannot split a rank-0 tensor")
    axis = normalize_axis("split", axis, t.shape)
    n = t.shape[axis]
    equal = isinstance(sections, (int, np.integer))
    if equal:
        if sections <= 0 or n % sections:
            raise ShapeMismatch("split", t.shape,
                                detail=f"axis {axis} of size {n} does not divide into {sections} equal parts")
        step = n // sections
        cuts = [step * i for i in range(1, sections)]
    else:
        cuts = [int(c) for c in sections]
        if any(c < 0 or c > n for c in cuts) or cuts != sorted(cuts):
            raise ValueError(f"split: cuts {cuts} must be ascending within [0, {n}]")
    bounds = [0] + cuts + [n]
    return [apply_op(Slice(axis, start, stop), t)
            for start, stop in zip(bounds[:-1], bounds[1:]) if equal or stop > start]


def vsplit(x, sections):
    """Split along the first axis."""
    return split(x, sections, axis=0)


def hsplit(x, sections):
    """Split along the second axis (the only axis of a rank-1 tensor)."""
    (t,) = as_tensors([x])
    return split(t, sections, axis=0 if t.rank == 1 else 1)


def dsplit(x, sections):
    """Split along the third axis; needs rank >= 3."""
    (t,) = as_tensors([x])
    if t.rank < 3:
        raise ShapeMismatch("dsplit", t.shape, detail="needs a tensor of rank >= 3")
    return split(t, sections, axis=2)


def unstack(x, axis=0):
    """Inverse of `stack`: one tensor per index along `axis`, with that axis removed."""
    (t,) = as_tensors([x])
    if t.rank == 0:
        raise ShapeMismatch("unstack", t.shape, detail="cannot unstack a rank-0 tensor")
    axis = normalize_axis("unstack", axis, t.shape)
    return [apply_op(Take(axis, i), t) for i in range(t.shape[axis])]


def tile(x, multiples):
    return apply_op(Tile(multiples), x)


def _with_rank(tensors, shape_of):
    out = []
    for t in as_tensors(list(tensors)):
        shape = shape_of(t.shape)
        out.append(t if shape == t.shape else apply_op(Reshape(shape), t))
    return out


def _at_least_1d(shape):
    return shape if len(shape) >= 1 else (1,)


def _at_least_2d(shape):
    return shape if len(shape) >= 2 else (1,) + _at_least_1d(shape)


def _at_least_3d(shape):
    if len(shape) >= 3:
        return shape
    if len(shape) == 2:
        return shape + (1,)
    return (1,) + _at_least_1d(shape) + (1,)


def hstack(tensors):
    """Concatenate along the second axis, or the first for rank-1 tensors."""
    parts = _with_rank(tensors, _at_least_1d)
    if not parts:
        raise ValueError("hstack: need at least one tensor")
    return concat(parts, axis=0 if parts[0].rank == 1 else 1)


def vstack(tensors):
    """Concatenate along the first axis; rank-1 tensors become rows."""
    return concat(_with_rank(tensors, _at_least_2d), axis=0)


def dstack(tensors):
    """Concatenate along the third axis; [n] -> [1, n, 1] and [r, c] -> [r, c, 1] first."""
    return concat(_with_rank(tensors, _at_least_3d), axis=2)


Tensor.reshape = lambda self, *shape: reshape(
    self, shape[0] if len(shape) == 1 and not isinstance(shape[0], int) else shape)
Tensor.flatten = lambda self: flatten(self)
Tensor.expand_dims = lambda self, axis=0: expand_dims(self, axis)
Tensor.squeeze = lambda self, axis=None: squeeze(self, axis)
Tensor.transpose = lambda self, axes=None: transpose(self, axes)
Tensor.T = property(lambda self: transpose(self))
Tensor.split = lambda self, sections, axis=0: split(self, sections, axis)
Tensor.unstack = lambda self, axis=0: unstack(self, axis)
Tensor.tile = lambda self, multiples: tile(self, multiples)
