# essay_tensor/core/__init__.py

"""
Core data model of the autodiff engine.

Exports:
    Tensor, tensor  : immutable n-d array value and its literal constructor.
    TensorUninit    : checked builder for a tensor's flat buffer.
    TensorId        : (session, index) identity of a graph node.
    Graph           : append-only node list + tensor cache of one session.
    Tape            : recording session; current_tape / use_tape / no_tape.
    Var             : named trainable leaf.
    backprop        : reverse sweep producing a Gradients cache.
"""

from .errors import (
    TensorError,
    ShapeMismatch,
    DanglingInput,
    UnimplementedGradient,
    UninitializedBuffer,
    BufferSealed,
    TapeError,
)
from .dtype import dtypes
from .buffer import Buffer, TensorUninit, shares_buffer
from .tensor import Tensor, tensor
from .node import TensorId, NodeOp
from .graph import Graph, TensorCache
from .tape import Tape, current_tape, use_tape, no_tape
from .var import Var
from .engine import backprop, Gradients

__all__ = [
    "TensorError", "ShapeMismatch", "DanglingInput", "UnimplementedGradient",
    "UninitializedBuffer", "BufferSealed", "TapeError",
    "dtypes",
    "Buffer", "TensorUninit", "shares_buffer",
    "Tensor", "tensor",
    "TensorId", "NodeOp",
    "Graph", "TensorCache",
    "Tape", "current_tape", "use_tape", "no_tape",
    "Var",
    "backprop", "Gradients",
]
