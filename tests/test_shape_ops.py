import numpy as np
import pytest
from numpy.testing import assert_allclose

from essay_tensor import Tape, Var, backprop, tensor, check_gradient, ShapeMismatch
from essay_tensor.ops import (
    reshape, flatten, expand_dims, squeeze, transpose, concat, stack, mul,
    split, vsplit, hsplit, dsplit, unstack, tile, hstack, vstack, dstack,
)

X = np.arange(6, dtype=np.float64).reshape(2, 3) + 0.5


def test_reshape():
    t = tensor(X)
    assert reshape(t, (3, 2)).shape == (3, 2)
    assert reshape(t, (-1,)).tolist() == X.reshape(-1).tolist()
    assert reshape(t, (3, -1)).shape == (3, 2)
    with pytest.raises(ShapeMismatch):
        reshape(t, (4, 2))
    with pytest.raises(ShapeMismatch):
        reshape(t, (4, -1))


def test_reshape_keeps_row_major_order():
    t = tensor(X)
    r = reshape(t, (6,))
    assert r.tolist() == t.numpy().reshape(-1).tolist()
    assert t.shape == (2, 3)


def test_flatten_expand_squeeze():
    t = tensor(X)
    assert flatten(t).shape == (6,)
    assert expand_dims(t, 0).shape == (1, 2, 3)
    assert expand_dims(t, -1).shape == (2, 3, 1)
    assert squeeze(expand_dims(t, 1)).shape == (2, 3)
    assert squeeze(tensor(np.ones((1, 3, 1))), axis=0).shape == (3, 1)
    with pytest.raises(ShapeMismatch):
        squeeze(t, axis=0)


def test_transpose():
    t = tensor(np.arange(24.0).reshape(2, 3, 4))
    assert transpose(t).shape == (4, 3, 2)
    out = transpose(t, (1, 0, 2))
    assert out.shape == (3, 2, 4)
    assert_allclose(out.numpy(), np.transpose(t.numpy(), (1, 0, 2)))
    with pytest.raises(ShapeMismatch):
        transpose(t, (0, 0, 1))


def test_concat_and_stack_forward():
    a = tensor([[1.0, 2.0]])
    b = tensor([[3.0, 4.0], [5.0, 6.0]])
    assert concat([a, b]).tolist() == [[1, 2], [3, 4], [5, 6]]
    assert stack([a, a], axis=0).shape == (2, 1, 2)
    assert stack([a, a], axis=-1).shape == (1, 2, 2)
    with pytest.raises(ShapeMismatch):
        concat([a, b], axis=1)
    with pytest.raises(ShapeMismatch):
        stack([a, b])


def test_concat_gradient_is_split_back():
    a = Var("a", [1.0, 2.0])
    b = Var("b", [3.0, 4.0, 5.0])
    weights = tensor([1.0, 2.0, 3.0, 4.0, 5.0])
    with Tape() as tape:
        y = mul(concat([a, b]), weights)
    grads = backprop(tape.graph, y.node_id)
    assert_allclose(grads.for_var("a").numpy(), [1.0, 2.0])
    assert_allclose(grads.for_var("b").numpy(), [3.0, 4.0, 5.0])


def test_stack_gradient():
    a = Var("a", [1.0, 2.0])
    b = Var("b", [3.0, 4.0])
    weights = tensor([[1.0, 10.0], [2.0, 20.0]])
    with Tape() as tape:
        y = mul(stack([a, b], axis=1), weights)
    grads = backprop(tape.graph, y.node_id)
    assert_allclose(grads.for_var("a").numpy(), [1.0, 2.0])
    assert_allclose(grads.for_var("b").numpy(), [10.0, 20.0])


def test_split_equal_parts_and_cuts():
    t = tensor([[1.0, 2.0], [3.0, 4.0]])
    assert [p.tolist() for p in split(t, 2)] == [[[1.0, 2.0]], [[3.0, 4.0]]]
    assert [p.tolist() for p in split(t, 2, axis=1)] == [[[1.0], [3.0]], [[2.0], [4.0]]]
    parts = split(tensor([1.0, 2.0, 3.0, 4.0]), [1, 3])
    assert [p.tolist() for p in parts] == [[1.0], [2.0, 3.0], [4.0]]
    # repeated cuts do not produce empty pieces
    assert len(split(tensor([1.0, 2.0, 3.0]), [1, 1, 3])) == 2
    with pytest.raises(ShapeMismatch):
        split(tensor([1.0, 2.0, 3.0]), 2)
    with pytest.raises(ValueError):
        split(tensor([1.0, 2.0, 3.0]), [2, 1])


def test_vsplit_hsplit_dsplit():
    t = tensor(np.arange(8.0).reshape(2, 2, 2))
    assert [p.shape for p in vsplit(t, 2)] == [(1, 2, 2), (1, 2, 2)]
    assert [p.shape for p in hsplit(t, 2)] == [(2, 1, 2), (2, 1, 2)]
    assert [p.shape for p in dsplit(t, 2)] == [(2, 2, 1), (2, 2, 1)]
    assert [p.tolist() for p in hsplit(tensor([1.0, 2.0]), 2)] == [[1.0], [2.0]]
    with pytest.raises(ShapeMismatch):
        dsplit(tensor([[1.0, 2.0]]), 2)


def test_unstack_inverts_stack():
    a = tensor([1.0, 2.0])
    b = tensor([3.0, 4.0])
    parts = unstack(stack([a, b], axis=1), axis=1)
    assert [p.tolist() for p in parts] == [[1.0, 2.0], [3.0, 4.0]]
    assert [p.tolist() for p in unstack(tensor([[1.0, 2.0], [3.0, 4.0]]))] == [[1.0, 2.0], [3.0, 4.0]]
    assert unstack(tensor([5.0, 6.0]))[1].shape == ()
    with pytest.raises(ShapeMismatch):
        unstack(tensor(1.0))


def test_tile_forward():
    t = tensor([[1.0, 2.0]])
    assert tile(t, (2, 2)).tolist() == [[1, 2, 1, 2], [1, 2, 1, 2]]
    assert tile(tensor([1.0, 2.0]), 2).tolist() == [1, 2, 1, 2]
    assert tile(tensor([1.0, 2.0]), (3, 1)).shape == (3, 2)
    assert t.tile((1, 3)).shape == (1, 6)
    with pytest.raises(ValueError):
        tile(t, (-1, 1))


def test_tile_gradient_sums_repeats():
    v = Var("v", [1.0, 2.0])
    weights = tensor([[1.0, 2.0, 3.0, 4.0], [5.0, 6.0, 7.0, 8.0]])
    with Tape() as tape:
        y = mul(tile(v, (2, 2)), weights)
    grads = backprop(tape.graph, y.node_id)
    assert_allclose(grads.for_var("v").numpy(), [1.0 + 3.0 + 5.0 + 7.0, 2.0 + 4.0 + 6.0 + 8.0])


def test_split_gradient_routes_each_piece():
    v = Var("v", [1.0, 2.0, 3.0])
    with Tape() as tape:
        left, right = split(v, [1])
        y = concat([left * 10.0, right * 2.0])
    grads = backprop(tape.graph, y.node_id)
    assert_allclose(grads.for_var("v").numpy(), [10.0, 2.0, 2.0])


def test_hstack_vstack_dstack():
    a = tensor([1.0, 2.0])
    b = tensor([10.0, 20.0, 30.0])
    assert hstack([a, b]).tolist() == [1, 2, 10, 20, 30]
    assert hstack([tensor([[1.0], [2.0]]), tensor([[10.0], [20.0]])]).tolist() == [[1, 10], [2, 20]]
    assert vstack([tensor([1.0]), tensor([10.0])]).tolist() == [[1], [10]]
    assert vstack([a, a]).shape == (2, 2)
    assert dstack([a, a]).shape == (1, 2, 2)
    assert dstack([tensor([[1.0, 2.0]]), tensor([[3.0, 4.0]])]).tolist() == [[[1, 3], [2, 4]]]
    with pytest.raises(ValueError):
        hstack([])


@pytest.mark.parametrize("fn", [
    lambda x: reshape(x, (3, 2)) * tensor(np.arange(6.0).reshape(3, 2), "float64"),
    lambda x: transpose(x) * tensor(np.arange(6.0).reshape(3, 2), "float64"),
    lambda x: squeeze(expand_dims(x, 1)) * tensor(X, "float64"),
    lambda x: concat([x, x * 2.0], axis=1) * tensor(np.arange(12.0).reshape(2, 6), "float64"),
    lambda x: concat(split(x, [1], axis=1)[::-1], axis=1) * tensor(np.arange(6.0).reshape(2, 3), "float64"),
    lambda x: stack(unstack(x, axis=1)[::-1], axis=1) * tensor(np.arange(6.0).reshape(2, 3), "float64"),
    lambda x: tile(x, (2, 1, 2)) * tensor(np.arange(24.0).reshape(2, 2, 6), "float64"),
    lambda x: vstack([x, x * 3.0]) * tensor(np.arange(12.0).reshape(4, 3), "float64"),
    lambda x: dstack([x, x * x]) * tensor(np.arange(12.0).reshape(2, 3, 2), "float64"),
])
def test_gradient(fn):
    assert check_gradient(fn, X)
