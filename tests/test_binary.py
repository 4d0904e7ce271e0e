import warnings

import numpy as np
import pytest
from numpy.testing import assert_allclose

from essay_tensor import Tape, Var, backprop, tensor, check_gradient, ShapeMismatch
from essay_tensor.ops import (
    add, sub, mul, div, pow, atan2, rem, maximum, minimum, hypot,
)

A = np.array([[0.5, 1.5, 2.0], [1.2, 0.7, 3.1]])
B = np.array([[1.3, 0.4, 2.2], [0.9, 1.8, 0.6]])

CASES = [
    (add, np.add),
    (sub, np.subtract),
    (mul, np.multiply),
    (div, np.divide),
    (pow, np.power),
    (atan2, np.arctan2),
    (maximum, np.maximum),
    (minimum, np.minimum),
    (hypot, np.hypot),
]


@pytest.mark.parametrize("op, expected", CASES, ids=[c[0].__name__ for c in CASES])
def test_forward(op, expected):
    out = op(tensor(A, "float64"), tensor(B, "float64"))
    assert out.shape == A.shape
    assert_allclose(out.numpy(), expected(A, B), rtol=1e-10)


@pytest.mark.parametrize("op, expected", CASES, ids=[c[0].__name__ for c in CASES])
def test_gradient_both_operands(op, expected):
    b = tensor(B, "float64")
    a = tensor(A, "float64")
    assert check_gradient(lambda x: op(x, b), A)
    assert check_gradient(lambda y: op(a, y), B)


@pytest.mark.parametrize("op, expected", CASES, ids=[c[0].__name__ for c in CASES])
def test_gradient_with_broadcasting(op, expected):
    row = B[0]
    a = tensor(A, "float64")
    assert check_gradient(lambda y: op(a, y), row)
    assert check_gradient(lambda x: op(x, tensor(row, "float64")), A)


def test_rem_is_truncated():
    out = rem(tensor([-7.0, 7.0, 5.5]), tensor([3.0, -3.0, 2.0]))
    assert_allclose(out.numpy(), [-1.0, 1.0, 1.5])


def test_rem_gradient():
    x = Var("x", [-7.0, 7.0])
    y = Var("y", [3.0, 3.0])
    with Tape() as tape:
        z = rem(x, y)
    grads = backprop(tape.graph, z.node_id)
    assert_allclose(grads.for_var("x").numpy(), [1.0, 1.0])
    assert_allclose(grads.for_var("y").numpy(), [2.0, -2.0])


def test_atan2_argument_order():
    out = atan2(tensor([1.0, 1.0]), tensor([1.0, -1.0]))
    assert_allclose(out.numpy(), [np.pi / 4, 3 * np.pi / 4], rtol=1e-6)


def test_maximum_ties_go_to_first_operand():
    x = Var("x", [1.0, 2.0, 5.0])
    y = Var("y", [1.0, 3.0, 4.0])
    with Tape() as tape:
        z = maximum(x, y)
    grads = backprop(tape.graph, z.node_id)
    assert_allclose(grads.for_var("x").numpy(), [1.0, 0.0, 1.0])
    assert_allclose(grads.for_var("y").numpy(), [0.0, 1.0, 0.0])

    with Tape() as tape:
        z = minimum(x, y)
    grads = backprop(tape.graph, z.node_id)
    assert_allclose(grads.for_var("x").numpy(), [1.0, 1.0, 0.0])
    assert_allclose(grads.for_var("y").numpy(), [0.0, 0.0, 1.0])


def test_hypot_gradient_at_origin():
    x = Var("x", [0.0, 3.0])
    y = Var("y", [0.0, 4.0])
    with Tape() as tape:
        z = hypot(x, y)
    assert_allclose(z.numpy(), [0.0, 5.0])
    grads = backprop(tape.graph, z.node_id)
    assert_allclose(grads.for_var("x").numpy(), [0.0, 0.6])
    assert_allclose(grads.for_var("y").numpy(), [0.0, 0.8])


def test_pow_gradient_for_exponent_skips_non_positive_base():
    x = Var("x", [0.0, 2.0])
    y = Var("y", [2.0, 3.0])
    with Tape() as tape:
        z = pow(x, y)
    grads = backprop(tape.graph, z.node_id)
    assert_allclose(grads.for_var("x").numpy(), [0.0, 12.0])
    assert_allclose(grads.for_var("y").numpy(), [0.0, 8.0 * np.log(2.0)], rtol=1e-6)


def test_incompatible_shapes():
    with pytest.raises(ShapeMismatch):
        mul(tensor(np.ones((2, 3))), tensor(np.ones((3, 2))))


@pytest.mark.parametrize("scalar", [0.5, np.float32(0.5), np.float64(0.5)])
def test_float_scalar_promotes_int_tensor(scalar):
    out = tensor([2, 4], "int32") * scalar
    assert out.dtype.startswith("float")
    assert_allclose(out.numpy(), [1.0, 2.0])


def test_int_scalar_keeps_int_dtype():
    out = tensor([2, 4], "int32") * np.int64(3)
    assert out.dtype == "int32"
    assert out.tolist() == [6, 12]


def test_pow_zero_exponent_gradient_is_zero():
    x = Var("x", [0.0, 2.0])
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        with Tape() as tape:
            z = pow(x, 0.0)
        grads = backprop(tape.graph, z.node_id)
    assert_allclose(z.numpy(), [1.0, 1.0])
    assert_allclose(grads.for_var("x").numpy(), [0.0, 0.0])


def test_atan2_gradient_at_origin():
    x = Var("x", [0.0, 1.0])
    y = Var("y", [0.0, 1.0])
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        with Tape() as tape:
            z = atan2(x, y)
        grads = backprop(tape.graph, z.node_id)
    assert_allclose(grads.for_var("x").numpy(), [0.0, 0.5], rtol=1e-6)
    assert_allclose(grads.for_var("y").numpy(), [0.0, -0.5], rtol=1e-6)
