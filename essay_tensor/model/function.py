# essay_tensor/model/function.py
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from ..core.engine import Gradients, backprop
from ..core.errors import TensorError
from ..core.tape import Tape
from ..core.tensor import Tensor, tensor
from ..core.var import Var

logger = logging.getLogger(__name__)


def _strip(out):
    """Drop graph identities from a tensor or a tuple of tensors."""
    if isinstance(out, tuple):
        return tuple(_strip(o) for o in out)
    if isinstance(out, Tensor):
        return out.detach()
    return out


def _read(out):
    """Read any Var in the output so it resolves to its leaf on the current tape."""
    if isinstance(out, tuple):
        return tuple(_read(o) for o in out)
    if isinstance(out, Var):
        return out.tensor
    return out


def _root(out) -> Tensor:
    root = out[0] if isinstance(out, tuple) else out
    if not isinstance(root, Tensor):
        raise TensorError(f"function must return a Tensor or a tuple of Tensors, got {type(root).__name__}")
    return root


class Train:
    """
    One recorded evaluation of a Function.

    Holds the sealed tape of the evaluation; gradients are computed by a single
    reverse pass on first request and memoised.
    """

    def __init__(self, tape: Tape, out):
        self.tape = tape
        self._out = out
        self._grads: Optional[Gradients] = None

    @property
    def graph(self):
        return self.tape.graph

    @property
    def vars(self) -> Dict[str, Var]:
        return dict(self.tape.vars)

    def value(self):
        return _strip(self._out)

    def _backprop(self) -> Gradients:
        if self._grads is None:
            root = _root(self._out)
            self._grads = backprop(self.tape.graph, root.node_id)
        return self._grads

    def gradient(self, var: Var) -> Tensor:
        """dRoot/dVar; zeros of the Var's shape if it was not read or not reached."""
        return self._backprop().for_var(var.name, like=var.raw)

    def gradients(self) -> Dict[str, Tensor]:
        grads = self._backprop()
        return {name: grads.for_var(name, like=var.raw) for name, var in self.tape.vars.items()}


class Function:
    """
    Wraps a closure over tensors and Vars.

    Each call runs the closure under its own fresh Tape, so concurrent or
    repeated evaluations never share recording state.

        a = Var("a", [1., 2., 3.])
        f = Function.compile(lambda x: a * x, tensor([2., 1., 2.]))
        f.call(tensor([1., 1., 1.]))          # -> [1., 2., 3.]
        f.train(tensor([1., 1., 1.])).gradient(a)
    """

    def __init__(self, fn: Callable[..., Any]):
        if not callable(fn):
            raise TypeError(f"Function expects a callable, got {type(fn).__name__}")
        self.fn = fn
        self.vars: Dict[str, Var] = {}

    @classmethod
    def compile(cls, fn: Callable[..., Any], *example_args) -> "Function":
        """Build a Function and run one tracing pass on `example_args`."""
        function = cls(fn)
        train = function.train(*example_args)
        logger.debug("compiled %r: %d nodes, vars %s",
                     getattr(fn, "__name__", fn), len(train.graph), list(function.vars))
        return function

    def _record(self, args) -> Tuple[Tape, Any]:
        with Tape() as tape:
            inputs = [tape.record_arg(tensor(a)) for a in args]
            out = _read(self.fn(*inputs))
            root = _root(out)
            if root.node_id is None:
                # closure returned a fresh constant; make it a leaf of this tape
                root = tape.graph.tensor(tape.track(root))
                out = (root,) + out[1:] if isinstance(out, tuple) else root
        self.vars.update(tape.vars)
        return tape, out

    def call(self, *args):
        """Evaluate and return the output value(s), without graph identities."""
        _, out = self._record(args)
        return _strip(out)

    def __call__(self, *args):
        return self.call(*args)

    def train(self, *args) -> Train:
        tape, out = self._record(args)
        return Train(tape, out)
