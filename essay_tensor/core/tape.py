# essay_tensor/core/tape.py
from __future__ import annotations
import itertools
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Dict, Optional, Sequence

from .errors import TapeError
from .graph import Graph
from .node import TensorId
from .tensor import Tensor

if TYPE_CHECKING:
    from .var import Var

logger = logging.getLogger(__name__)

_sessions = itertools.count(1)

# One current tape per thread / context; None means eager evaluation.
_current: ContextVar[Optional["Tape"]] = ContextVar("essay_tensor_tape", default=None)


class Tape:
    """
    Recording session: turns eager tensor arithmetic into a recorded Graph.

    Lifecycle: IDLE (created) -> RECORDING (entered as a context manager) ->
    SEALED (exited). Only a RECORDING tape accepts new nodes; a sealed tape
    keeps its graph and tensor cache readable for the backward pass.

        with Tape() as tape:
            y = (x * x).reduce_sum()
        grads = backprop(tape.graph, y.node_id)
    """
    IDLE = "idle"
    RECORDING = "recording"
    SEALED = "sealed"

    def __init__(self):
        self.session = next(_sessions)
        self.graph = Graph(self.session)
        self.state = Tape.IDLE
        self.vars: Dict[str, "Var"] = {}
        self._token = None

    def __repr__(self):
        return f"Tape(session={self.session}, state={self.state}, nodes={len(self.graph)})"

    @property
    def nodes(self):
        return self.graph.nodes

    @property
    def is_recording(self) -> bool:
        return self.state == Tape.RECORDING

    def __enter__(self) -> "Tape":
        if self.state != Tape.IDLE:
            raise TapeError(f"tape session {self.session} is {self.state}; a tape records only once")
        self.state = Tape.RECORDING
        self._token = _current.set(self)
        logger.debug("tape %d: recording", self.session)
        return self

    def __exit__(self, exc_type, exc, tb):
        _current.reset(self._token)
        self._token = None
        self.seal()
        return False

    def seal(self):
        if self.state != Tape.SEALED:
            self.state = Tape.SEALED
            self.graph.seal()
            logger.debug("tape %d: sealed with %d nodes", self.session, len(self.graph))

    # ---------- recording ----------
    def push_node(self, op, input_ids: Sequence[TensorId], tensor: Tensor) -> TensorId:
        """
        Append one node for `op` with already-recorded `input_ids`.
        Raises DanglingInput when an input id is not part of this graph.
        """
        self._require_recording("push_node")
        return self.graph.push_node(op, input_ids, tensor)

    def track(self, tensor: Tensor) -> TensorId:
        """
        Id under which `tensor` is known to this tape: its own node id, or a
        fresh constant leaf for a tensor created outside any session.
        """
        if tensor.node_id is None:
            self._require_recording("track")
            return self.graph.constant(tensor)
        return self.graph.check_id(tensor.node_id)

    def record(self, op, inputs: Sequence[Tensor], out: Tensor) -> Tensor:
        """Record `out = op(*inputs)` and return `out` carrying its new id."""
        ids = [self.track(t) for t in inputs]
        return self.graph.tensor(self.push_node(op, ids, out))

    def record_var_leaf(self, name: str, tensor: Tensor) -> TensorId:
        """Register (idempotently, by name) a Var leaf with no inputs."""
        self._require_recording("record_var_leaf")
        return self.graph.var(name, tensor)

    def read_var(self, var) -> Tensor:
        tid = self.record_var_leaf(var.name, var.raw)
        self.vars.setdefault(var.name, var)
        return self.graph.tensor(tid)

    def record_arg(self, tensor: Tensor) -> Tensor:
        """Register a function argument as a fresh leaf of this session."""
        self._require_recording("record_arg")
        return self.graph.tensor(self.graph.constant(tensor.detach(), kind="arg"))

    def tensor(self, tid: TensorId) -> Tensor:
        return self.graph.tensor(tid)

    def _require_recording(self, what: str):
        if self.state != Tape.RECORDING:
            raise TapeError(f"{what} on tape session {self.session} which is {self.state}")


def current_tape() -> Optional[Tape]:
    """The tape recording in this context, or None (eager mode)."""
    return _current.get()


@contextmanager
def use_tape(tape: Optional[Tape] = None):
    """
    Context manager recording into a fresh (or the given) tape:
        with use_tape() as tape:
            ... build computation ...
    """
    tape = tape or Tape()
    with tape:
        yield tape


@contextmanager
def no_tape():
    """Suspend recording: operations inside evaluate eagerly without nodes."""
    token = _current.set(None)
    try:
        yield
    finally:
        _current.reset(token)
