# essay_tensor/core/node.py
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Tuple


class TensorId(NamedTuple):
    """
    Identity of a graph node and of the tensor cached under it.

    `index` is assigned in creation order within one recording session, so it
    is also a forward topological order. `session` names the Tape that issued it.
    """
    session: int
    index: int

    def __repr__(self):
        return f"TensorId({self.session}:{self.index})"


@dataclass
class NodeOp:
    """
    One node of the forward graph.

    Attributes
    ----------
    op_tag : str
        Debug tag (e.g. "add", "reduce_sum", "var:x").
    kind : str
        "op" for kernel outputs; "var", "const" or "arg" for leaves.
    op : Any
        The Operation that produced the output; None for leaves.
    inputs : Tuple[TensorId, ...]
        Ids of the operation's inputs, all strictly smaller than `id`.
    id : TensorId
        Id of the node's own output.
    name : Optional[str]
        Var name for "var" leaves.
    """
    op_tag: str
    kind: str
    op: Any
    inputs: Tuple[TensorId, ...]
    id: TensorId
    name: Optional[str] = None

    @property
    def is_leaf(self) -> bool:
        return self.kind != "op"
