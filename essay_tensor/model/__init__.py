# essay_tensor/model/__init__.py
# User facade: closures over Vars, recorded per call

from .function import Function, Train
from .optimizer import Optimizer, SGD
from .trainer import Trainer, TrainerConfig

__all__ = [
    'Function',
    'Train',
    'Optimizer',
    'SGD',
    'Trainer',
    'TrainerConfig',
]
