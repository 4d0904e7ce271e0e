# essay_tensor/core/engine.py
from __future__ import annotations
import logging
from typing import Optional
import numpy as np

from . import dtype as dtype_mod
from .buffer import from_array
from .errors import ShapeMismatch, TensorError
from .graph import Graph, TensorCache
from .node import TensorId
from .tensor import Tensor, tensor

logger = logging.getLogger(__name__)


class Gradients:
    """
    Result of one reverse pass: the gradient cache, keyed by the forward
    graph's TensorIds, mapping each reached node to its accumulated gradient.
    """

    def __init__(self, graph: Graph, root_id: TensorId, cache: TensorCache, visited: int):
        self.graph = graph
        self.root_id = root_id
        self.cache = cache
        self.visited = visited

    def __contains__(self, tid) -> bool:
        return tid in self.cache

    def __len__(self):
        return len(self.cache)

    def __getitem__(self, tid: TensorId) -> Tensor:
        """Gradient at `tid`; zeros shaped like the forward tensor if unreached."""
        grad = self.cache.get(tid)
        if grad is None:
            return _zeros_like(self.graph.tensor(tid))
        return grad

    def for_var(self, name: str, like: Optional[Tensor] = None) -> Tensor:
        """
        Gradient for the Var leaf `name`. A Var that was never read, or that
        does not reach the root, gets zeros of its own shape (`like`).
        """
        tid = self.graph.find_var(name)
        if tid is not None:
            grad = self.cache.get(tid)
            if grad is not None:
                return grad
            return _zeros_like(self.graph.tensor(tid))
        if like is None:
            raise KeyError(f"var {name!r} was not read in session {self.graph.session}")
        return _zeros_like(like)


def backprop(graph: Graph, root_id: TensorId, seed=None) -> Gradients:
    """
    Reverse sweep over `graph` from `root_id`.

    Args:
        graph: forward graph of a (sealed or recording) session.
        root_id: id of the tensor to differentiate.
        seed: gradient of the root; defaults to all-ones of the root's shape.

    Nodes are visited in reverse creation order, which is a reverse topological
    order because every input id is smaller than its consumer's id. For each
    node with a known gradient g the kernel's chain rule yields one partial per
    input, and partials are summed into that input's running total:
        grad[input] += partial
    so a tensor read by several consumers receives the sum of their contributions.
    """
    root_id = graph.check_id(root_id)
    root = graph.tensor(root_id)

    if seed is None:
        seed = from_array(np.ones(root.shape, dtype=dtype_mod.grad_dtype(root.dtype)))
    else:
        seed = tensor(seed, dtype_mod.grad_dtype(root.dtype)).detach()
        if seed.shape != root.shape:
            raise ShapeMismatch("backprop seed", seed.shape, root.shape)

    logger.debug("backprop: session %d root %r over %d nodes",
                 graph.session, root_id, root_id.index + 1)

    grads = TensorCache(graph.session)
    grads[root_id] = seed
    visited = 0

    for node in reversed(graph.nodes[:root_id.index + 1]):
        g = grads.get(node.id)
        if g is None or node.is_leaf:
            continue  # nothing to propagate
        visited += 1

        inputs = [graph.tensor(i) for i in node.inputs]
        partials = node.op.gradient(inputs, graph.tensor(node.id), g)
        if len(partials) != len(inputs):
            raise TensorError(
                f"{node.op_tag}: gradient returned {len(partials)} partials for {len(inputs)} inputs"
            )

        for input_id, x, partial in zip(node.inputs, inputs, partials):
            if partial is None:
                continue  # input is not differentiable (e.g. an integer operand)
            if partial.shape != x.shape:
                raise ShapeMismatch(f"{node.op_tag} gradient", partial.shape, x.shape)
            prev = grads.get(input_id)
            if prev is None:
                grads[input_id] = partial.detach()
            else:
                grads[input_id] = from_array(prev.numpy() + partial.numpy(), prev.dtype)

    logger.debug("backprop: session %d visited %d op nodes", graph.session, visited)
    return Gradients(graph, root_id, grads, visited)


def _zeros_like(t: Tensor) -> Tensor:
    return from_array(np.zeros(t.shape, dtype=dtype_mod.grad_dtype(t.dtype)))
