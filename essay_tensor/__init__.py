# essay_tensor/__init__.py
# Tensors with reverse-mode automatic differentiation

import logging

from .config import config, override, TensorConfig
from .core import (
    TensorError,
    ShapeMismatch,
    DanglingInput,
    UnimplementedGradient,
    UninitializedBuffer,
    BufferSealed,
    TapeError,
    dtypes,
    Buffer,
    TensorUninit,
    shares_buffer,
    Tensor,
    tensor,
    TensorId,
    Graph,
    Tape,
    current_tape,
    use_tape,
    no_tape,
    Var,
    backprop,
    Gradients,
)
from .core.graph_utils import get_graph_stats, print_graph_summary, print_computation_graph
from .ops import *  # noqa: F401,F403  (also binds Tensor method forms)
from .ops import __all__ as _ops_all
from .init import (
    fill, zeros, ones, zeros_like, ones_like,
    linspace, arange, eye, meshgrid, one_hot,
    uniform, normal, from_bytes,
)
from .gradcheck import numeric_gradient, analytic_gradient, check_gradient
from .model import Function, Train, Optimizer, SGD, Trainer, TrainerConfig

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Config
    'config', 'override', 'TensorConfig',
    # Errors
    'TensorError', 'ShapeMismatch', 'DanglingInput', 'UnimplementedGradient',
    'UninitializedBuffer', 'BufferSealed', 'TapeError',
    # Core
    'dtypes', 'Buffer', 'TensorUninit', 'shares_buffer',
    'Tensor', 'tensor', 'TensorId', 'Graph',
    'Tape', 'current_tape', 'use_tape', 'no_tape',
    'Var', 'backprop', 'Gradients',
    'get_graph_stats', 'print_graph_summary', 'print_computation_graph',
    # Constructors
    'fill', 'zeros', 'ones', 'zeros_like', 'ones_like',
    'linspace', 'arange', 'eye', 'meshgrid', 'one_hot',
    'uniform', 'normal', 'from_bytes',
    # Gradient checking
    'numeric_gradient', 'analytic_gradient', 'check_gradient',
    # Facade
    'Function', 'Train', 'Optimizer', 'SGD', 'Trainer', 'TrainerConfig',
] + list(_ops_all)
