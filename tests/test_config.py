import pytest

from essay_tensor import config, override, tensor, zeros, TensorConfig
from essay_tensor.core import (
    TensorError, ShapeMismatch, DanglingInput, UnimplementedGradient,
    UninitializedBuffer, BufferSealed, TapeError,
)


def test_defaults():
    fresh = TensorConfig()
    assert fresh.default_dtype == "float32"
    assert fresh.poison_buffers is True
    assert fresh.gradcheck_eps == 1e-3


def test_override_restores_previous_values():
    before = config.default_dtype
    with override(default_dtype="float64") as cfg:
        assert cfg.default_dtype == "float64"
        assert tensor([1.0]).dtype == "float64"
        assert zeros(2).dtype == "float64"
    assert config.default_dtype == before
    assert tensor([1.0]).dtype == before


def test_override_restores_on_error():
    with pytest.raises(RuntimeError):
        with override(gradcheck_eps=0.5):
            raise RuntimeError("boom")
    assert config.gradcheck_eps == 1e-3


def test_override_rejects_unknown_fields():
    with pytest.raises(AttributeError):
        with override(no_such_field=1):
            pass


@pytest.mark.parametrize("error, builtin", [
    (ShapeMismatch, ValueError),
    (DanglingInput, LookupError),
    (UnimplementedGradient, NotImplementedError),
    (UninitializedBuffer, RuntimeError),
    (BufferSealed, RuntimeError),
    (TapeError, RuntimeError),
])
def test_error_taxonomy(error, builtin):
    assert issubclass(error, TensorError)
    assert issubclass(error, builtin)


def test_error_messages_name_the_operation():
    assert "matmul" in str(ShapeMismatch("matmul", (2, 3), (4, 5)))
    assert "(2, 3)" in str(ShapeMismatch("matmul", (2, 3), (4, 5)))
    assert "argmax" in str(UnimplementedGradient("argmax"))
