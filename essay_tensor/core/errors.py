# essay_tensor/core/errors.py
"""
Error taxonomy for the tensor / autodiff core.

Every error derives from `TensorError` and from the closest builtin exception,
so callers may catch either `TensorError` or e.g. `ValueError`.
"""


class TensorError(Exception):
    """Base class for all errors raised by essay_tensor."""


class ShapeMismatch(TensorError, ValueError):
    """Operand shapes are incompatible for the requested operation."""

    def __init__(self, op: str, *shapes, detail: str = ""):
        self.op = op
        self.shapes = tuple(tuple(s) for s in shapes)
        shape_str = ", ".join(str(s) for s in self.shapes)
        msg = f"{op}: incompatible shapes {shape_str}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class DanglingInput(TensorError, LookupError):
    """A node references a TensorId that is not present in the current graph."""

    def __init__(self, tensor_id, detail: str = ""):
        self.tensor_id = tensor_id
        msg = f"dangling input {tensor_id}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class UnimplementedGradient(TensorError, NotImplementedError):
    """A kernel with a forward rule but no gradient rule was differentiated."""

    def __init__(self, op: str):
        self.op = op
        super().__init__(f"gradient not defined for operation {op}")


class UninitializedBuffer(TensorError, RuntimeError):
    """A buffer was sealed before every slot was written."""


class BufferSealed(TensorError, RuntimeError):
    """A sealed buffer builder was written to or sealed a second time."""


class TapeError(TensorError, RuntimeError):
    """Invalid use of a recording session (sealed tape, re-entry, name clash)."""
