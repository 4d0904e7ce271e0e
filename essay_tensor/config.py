# essay_tensor/config.py
"""
Shared configuration for the tensor core.

A single module-level `config` instance is read by the buffer builder, the
constructors and the gradient checker. Use `override()` to change fields for a
limited scope (tests, one-off evaluations).
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass, fields


@dataclass
class TensorConfig:
    """
    Attributes
    ----------
    default_dtype : str
        Element type used by constructors when none is given.
    poison_buffers : bool
        Fill freshly allocated builders with a poison value so that unwritten
        slots are visible (NaN for floats, dtype minimum for ints).
    gradcheck_eps : float
        Finite-difference step used by `gradcheck`.
    gradcheck_atol, gradcheck_rtol : float
        Tolerances used when comparing analytic and numeric gradients.
    """
    default_dtype: str = "float32"
    poison_buffers: bool = True
    gradcheck_eps: float = 1e-3
    gradcheck_atol: float = 1e-2
    gradcheck_rtol: float = 1e-2


config = TensorConfig()


@contextmanager
def override(**kwargs):
    """
    Temporarily replace config fields:
        with override(default_dtype="float64"):
            ...
    """
    names = {f.name for f in fields(TensorConfig)}
    for key in kwargs:
        if key not in names:
            raise AttributeError(f"TensorConfig has no field {key!r}")

    prev = {key: getattr(config, key) for key in kwargs}
    try:
        for key, value in kwargs.items():
            setattr(config, key, value)
        yield config
    finally:
        for key, value in prev.items():
            setattr(config, key, value)
