# essay_tensor/core/graph.py
"""
Forward graph for one recording session.

The graph is an append-only list of NodeOp addressed by TensorId.index; a
node only ever references earlier ids, so the list order is a topological
order and reverse iteration is a valid reverse-topological sweep.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence

from .errors import DanglingInput, TapeError
from .node import NodeOp, TensorId
from .tensor import Tensor


class TensorCache:
    """Mapping TensorId -> Tensor for a single session."""

    def __init__(self, session: int):
        self.session = session
        self._tensors: Dict[int, Tensor] = {}

    def __contains__(self, tid) -> bool:
        return (
            isinstance(tid, TensorId)
            and tid.session == self.session
            and tid.index in self._tensors
        )

    def __getitem__(self, tid: TensorId) -> Tensor:
        if tid not in self:
            raise DanglingInput(tid, f"no tensor cached for session {self.session}")
        return self._tensors[tid.index]

    def __setitem__(self, tid: TensorId, tensor: Tensor):
        if tid.session != self.session:
            raise DanglingInput(tid, f"id belongs to session {tid.session}, cache is session {self.session}")
        self._tensors[tid.index] = tensor

    def get(self, tid: TensorId, default=None) -> Optional[Tensor]:
        return self[tid] if tid in self else default

    def __len__(self):
        return len(self._tensors)


class Graph:
    """
    Owns the ordered node list and the forward TensorCache of one session.

    Var leaves are registered idempotently by name.
    """

    def __init__(self, session: int):
        self.session = session
        self.nodes: List[NodeOp] = []
        self.tensors = TensorCache(session)
        self._vars: Dict[str, TensorId] = {}
        self._sealed = False

    def __len__(self):
        return len(self.nodes)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self):
        self._sealed = True

    def check_id(self, tid) -> TensorId:
        """Validate that `tid` names an existing node of this graph."""
        if not isinstance(tid, TensorId):
            raise DanglingInput(tid, "not a TensorId")
        if tid.session != self.session:
            raise DanglingInput(tid, f"id from session {tid.session} used in session {self.session}")
        if not 0 <= tid.index < len(self.nodes):
            raise DanglingInput(tid, f"graph of session {self.session} has {len(self.nodes)} nodes")
        return tid

    def push_node(self, op, input_ids: Sequence[TensorId], tensor: Tensor) -> TensorId:
        """Append an op node fed by existing `input_ids`; cache its output."""
        inputs = tuple(self.check_id(i) for i in input_ids)
        return self._append(NodeOp(op_tag=op.name, kind="op", op=op, inputs=inputs,
                                   id=self._next_id()), tensor)

    def constant(self, tensor: Tensor, kind: str = "const") -> TensorId:
        return self._append(NodeOp(op_tag=kind, kind=kind, op=None, inputs=(),
                                   id=self._next_id()), tensor)

    def var(self, name: str, tensor: Tensor) -> TensorId:
        """Register (or look up) the leaf for Var `name`."""
        tid = self._vars.get(name)
        if tid is not None:
            if self.tensors[tid].buffer is not tensor.buffer:
                raise TapeError(f"var {name!r} is already bound to a different tensor in session {self.session}")
            return tid
        tid = self._append(NodeOp(op_tag=f"var:{name}", kind="var", op=None, inputs=(),
                                  id=self._next_id(), name=name), tensor)
        self._vars[name] = tid
        return tid

    def find_var(self, name: str) -> Optional[TensorId]:
        return self._vars.get(name)

    @property
    def var_names(self) -> List[str]:
        return list(self._vars)

    def node(self, tid: TensorId) -> NodeOp:
        return self.nodes[self.check_id(tid).index]

    def tensor(self, tid: TensorId) -> Tensor:
        return self.tensors[tid]

    def _next_id(self) -> TensorId:
        if self._sealed:
            raise TapeError(f"graph of session {self.session} is sealed; no more nodes may be appended")
        return TensorId(self.session, len(self.nodes))

    def _append(self, node: NodeOp, tensor: Tensor) -> TensorId:
        self.nodes.append(node)
        self.tensors[node.id] = tensor.with_id(node.id)
        return node.id
