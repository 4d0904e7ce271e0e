# essay_tensor/gradcheck.py
"""
Finite-difference gradient checking ("bumping").

The reference gradient of L(x) = Σ fn(x) is obtained by central differences,
one input element at a time:
    dL/dx_i ≈ (L(x + eps e_i) - L(x - eps e_i)) / (2 eps)
evaluated in float64, and compared against the reverse-mode gradient.
"""

from __future__ import annotations
from typing import Callable, Optional
import logging
import numpy as np

from .config import config
from .core.engine import backprop
from .core.tape import Tape, no_tape
from .core.tensor import Tensor, tensor
from .core.var import Var

logger = logging.getLogger(__name__)


def _total(fn: Callable, x: np.ndarray) -> float:
    with no_tape():
        out = fn(tensor(x, "float64"))
    return float(np.sum(np.asarray(out, dtype=np.float64)))


def numeric_gradient(fn: Callable, x, eps: Optional[float] = None) -> np.ndarray:
    """Central-difference gradient of sum(fn(x)) w.r.t. x, as a float64 array."""
    eps = config.gradcheck_eps if eps is None else eps
    x = np.array(x, dtype=np.float64)
    grad = np.zeros_like(x)

    flat_x = x.reshape(-1)
    flat_g = grad.reshape(-1)
    for i in range(flat_x.size):
        orig = flat_x[i]
        flat_x[i] = orig + eps
        up = _total(fn, x)
        flat_x[i] = orig - eps
        down = _total(fn, x)
        flat_x[i] = orig
        flat_g[i] = (up - down) / (2 * eps)
    return grad


def analytic_gradient(fn: Callable, x) -> np.ndarray:
    """Reverse-mode gradient of sum(fn(x)) w.r.t. x (all-ones seed)."""
    var = Var("x", tensor(x, "float64"))
    with Tape() as tape:
        out = fn(var.tensor)
    if not isinstance(out, Tensor) or out.node_id is None:
        # fn ignored its input: the gradient is identically zero
        return np.zeros(var.shape)
    grads = backprop(tape.graph, out.node_id)
    return np.array(grads.for_var(var.name, like=var.raw).numpy(), dtype=np.float64)


def check_gradient(fn: Callable, x, eps: Optional[float] = None,
                   atol: Optional[float] = None, rtol: Optional[float] = None) -> bool:
    """True when analytic and numeric gradients agree within tolerance."""
    atol = config.gradcheck_atol if atol is None else atol
    rtol = config.gradcheck_rtol if rtol is None else rtol
    analytic = analytic_gradient(fn, x)
    numeric = numeric_gradient(fn, x, eps)
    ok = bool(np.allclose(analytic, numeric, atol=atol, rtol=rtol))
    if not ok:
        err = np.max(np.abs(analytic - numeric))
        logger.debug("check_gradient: max abs error %.3e\nanalytic=%s\nnumeric=%s", err, analytic, numeric)
    return ok
