import numpy as np
import pytest
from numpy.testing import assert_allclose

from essay_tensor import (
    zeros, ones, fill, zeros_like, linspace, arange, eye, meshgrid, one_hot,
    uniform, normal, from_bytes, tensor, ShapeMismatch,
)


def test_fill_family():
    z = zeros((2, 3))
    assert z.shape == (2, 3)
    assert z.dtype == "float32"
    assert z.node_id is None
    assert_allclose(z.numpy(), np.zeros((2, 3)))
    assert_allclose(ones(4).numpy(), np.ones(4))
    assert_allclose(fill((2,), 7.5).numpy(), [7.5, 7.5])
    assert zeros((), dtype="int64").dtype == "int64"
    assert zeros_like(tensor([[1, 2]], dtype="int32")).dtype == "int32"
    with pytest.raises(ValueError):
        zeros((-1, 2))


def test_linspace_scalar_endpoints():
    out = linspace(0.0, 1.0, 5)
    assert out.shape == (5,)
    assert_allclose(out.numpy(), [0.0, 0.25, 0.5, 0.75, 1.0])
    assert linspace(2.0, 3.0, 1).tolist() == [2.0]


def test_linspace_tensor_endpoints():
    out = linspace(tensor([0.0, 10.0]), tensor([1.0, 20.0]), 3)
    assert out.shape == (3, 2)
    assert_allclose(out.numpy(), [[0.0, 10.0], [0.5, 15.0], [1.0, 20.0]])
    with pytest.raises(ShapeMismatch):
        linspace(tensor([0.0, 1.0]), tensor([1.0]), 3)


def test_arange():
    assert arange(4).tolist() == [0.0, 1.0, 2.0, 3.0]
    assert_allclose(arange(1.0, 2.0, 0.25).numpy(), [1.0, 1.25, 1.5, 1.75])
    assert arange(3, dtype="int64").dtype == "int64"
    with pytest.raises(ValueError):
        arange(0, 3, 0)


def test_eye():
    assert_allclose(eye(3).numpy(), np.eye(3))
    assert eye(2, 4).shape == (2, 4)


def test_meshgrid():
    gx, gy = meshgrid(tensor([1.0, 2.0, 3.0]), tensor([10.0, 20.0]))
    assert gx.shape == (2, 3)
    assert gx.tolist() == [[1, 2, 3], [1, 2, 3]]
    assert gy.tolist() == [[10, 10, 10], [20, 20, 20]]

    ix, iy = meshgrid(tensor([1.0, 2.0, 3.0]), tensor([10.0, 20.0]), indexing="ij")
    assert ix.shape == (3, 2)
    with pytest.raises(ValueError):
        meshgrid(tensor([1.0]), tensor([2.0]), indexing="yx")


def test_one_hot():
    assert one_hot([2], 4).tolist() == [0.0, 0.0, 1.0, 0.0]
    assert one_hot([0, 3], 4).tolist() == [1.0, 0.0, 0.0, 1.0]
    with pytest.raises(ValueError):
        one_hot([4], 4)


def test_uniform_and_normal_are_seeded():
    a = uniform((100,), low=-1.0, high=2.0, seed=3)
    b = uniform((100,), low=-1.0, high=2.0, seed=3)
    assert a.tolist() == b.tolist()
    assert a.numpy().min() >= -1.0
    assert a.numpy().max() < 2.0

    n = normal((2000,), mean=5.0, std=0.5, seed=1, dtype="float64")
    assert abs(n.numpy().mean() - 5.0) < 0.05
    assert abs(n.numpy().std() - 0.5) < 0.05

    with pytest.raises(ValueError):
        uniform((2,), low=1.0, high=1.0)
    with pytest.raises(ValueError):
        normal((2,), std=-1.0)


def test_from_bytes():
    raw = np.array([1.5, -2.0, 3.25, 4.0], dtype="<f4").tobytes()
    t = from_bytes(raw)
    assert t.dtype == "float32"
    assert t.tolist() == [1.5, -2.0, 3.25, 4.0]
    assert from_bytes(raw, shape=(2, 2)).shape == (2, 2)
    assert from_bytes(np.array([7, 8], dtype="<i2").tobytes() * 2, dtype="int32").size == 2
    with pytest.raises(ValueError):
        from_bytes(raw[:-1])
