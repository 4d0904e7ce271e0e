import numpy as np
from numpy.testing import assert_allclose

from essay_tensor import numeric_gradient, analytic_gradient, check_gradient, tensor
from essay_tensor.ops import square, reduce_sum
from essay_tensor.ops.unary import UnaryOp


class WrongSquare(UnaryOp):
    name = "wrong_square"
    def f(self, x): return x * x
    def df_dx(self, x, y): return x


def test_numeric_gradient_of_square():
    x = np.array([1.0, -2.0, 3.0])
    assert_allclose(numeric_gradient(square, x), 2 * x, atol=1e-6)


def test_analytic_matches_numeric():
    x = np.array([[0.5, 1.0], [1.5, -2.0]])
    fn = lambda t: reduce_sum(square(t) * t, axis=0)
    assert_allclose(analytic_gradient(fn, x), 3 * x ** 2, rtol=1e-10)
    assert check_gradient(fn, x)


def test_wrong_rule_is_detected():
    assert not check_gradient(WrongSquare(), [1.0, 2.0, 3.0])


def test_input_not_used():
    assert_allclose(analytic_gradient(lambda t: tensor([1.0, 2.0]), [3.0, 4.0]), [0.0, 0.0])
