# essay_tensor/core/dtype.py
"""Dtype capability: the element types a Tensor may hold."""

from __future__ import annotations
import numpy as np


class dtypes:
    float32 = 'float32'
    float64 = 'float64'
    int32 = 'int32'
    int64 = 'int64'
    uint8 = 'uint8'
    bool = 'bool'
    float = float32
    double = float64

    supported = ('float32', 'float64', 'int32', 'int64', 'uint8', 'bool')

    @staticmethod
    def is_float(d):
        return resolve(d) in ('float32', 'float64')

    @staticmethod
    def is_int(d):
        return resolve(d) in ('int32', 'int64', 'uint8')


def resolve(dtype) -> str:
    """Normalise a dtype spec (str, numpy dtype, python type) to a supported name."""
    if dtype is None:
        from ..config import config
        dtype = config.default_dtype
    name = np.dtype(dtype).name
    if name not in dtypes.supported:
        raise TypeError(f"unsupported dtype {name!r}; expected one of {dtypes.supported}")
    return name


def poison(dtype):
    """Value used to fill uninitialised slots of the given dtype."""
    name = resolve(dtype)
    if name in ('float32', 'float64'):
        return np.nan
    if name == 'bool':
        return True
    return np.iinfo(name).min


def grad_dtype(dtype) -> str:
    """Element type gradients are produced in for inputs of `dtype`."""
    name = resolve(dtype)
    return name if dtypes.is_float(name) else dtypes.float32
