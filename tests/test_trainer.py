import numpy as np
import pytest
from numpy.testing import assert_allclose

from essay_tensor import (
    Trainer, TrainerConfig, SGD, Var, Function, tensor, ShapeMismatch,
)
from essay_tensor.ops import mse_loss, ln, reduce_sum

X = np.array([1.0, 2.0, 3.0, 4.0])
Y = 2.0 * X


def _linear(w):
    return lambda x, y: mse_loss(x * w, y)


def test_config_defaults():
    config = TrainerConfig()
    assert config.learning_rate == 0.01
    assert config.momentum == 0.0
    assert config.epochs == 1
    assert config.batch_size is None


def test_call_and_train():
    w = Var("w", [1.0])
    trainer = Trainer.compile(TrainerConfig(), _linear(w), tensor(X), tensor(Y))
    assert trainer.vars == {"w": w}
    # mean((x - 2x)²) = mean(x²) = 7.5
    assert_allclose(trainer.call(tensor(X), tensor(Y)).item(), 7.5, rtol=1e-6)
    train = trainer.train(tensor(X), tensor(Y))
    # d/dw mean((wx - 2x)²) = 2 (w - 2) mean(x²)
    assert_allclose(train.gradient(w).numpy(), [-15.0], rtol=1e-6)


def test_step_updates_vars():
    w = Var("w", [1.0])
    trainer = Trainer.compile(TrainerConfig(learning_rate=0.01), _linear(w))
    loss = trainer.step(tensor(X), tensor(Y))
    assert isinstance(loss, float)
    assert_allclose(loss, 7.5, rtol=1e-6)
    assert_allclose(w.numpy(), [1.15], rtol=1e-6)


def test_fit_converges():
    w = Var("w", [0.0])
    trainer = Trainer.compile(TrainerConfig(learning_rate=0.01, epochs=100), _linear(w))
    losses = trainer.fit(X, Y)
    assert len(losses) == 100
    assert losses[-1] < losses[0]
    assert_allclose(w.numpy(), [2.0], atol=1e-3)


def test_fit_batches_along_leading_axis():
    w = Var("w", [0.0])
    trainer = Trainer.compile(TrainerConfig(learning_rate=0.01), _linear(w))
    losses = trainer.fit(X, Y, epochs=3, batch_size=3)
    assert len(losses) == 6


def test_fit_validates_data():
    w = Var("w", [0.0])
    trainer = Trainer.compile(None, _linear(w))
    with pytest.raises(ValueError):
        trainer.fit(X, Y[:2])
    with pytest.raises(ValueError):
        trainer.fit(X, Y, batch_size=0)


def test_fit_warns_on_non_finite_loss():
    w = Var("w", [1.0])
    trainer = Trainer.compile(TrainerConfig(), lambda x, y: reduce_sum(ln(x * w - 10.0), axis=None))
    with pytest.warns(RuntimeWarning, match="non-finite loss"):
        trainer.fit(X, Y)


def test_sgd_apply_gradients():
    v = Var("v", [1.0, 2.0])
    old = v.raw
    SGD(learning_rate=0.5).apply_gradients([(tensor([2.0, 2.0]), v)])
    assert_allclose(v.numpy(), [0.0, 1.0])
    # the previous tensor is untouched; the Var was rebound
    assert old.tolist() == [1.0, 2.0]
    assert v.raw.buffer is not old.buffer


def test_sgd_momentum():
    v = Var("v", [0.0])
    sgd = SGD(learning_rate=1.0, momentum=0.5)
    sgd.apply_gradients([(tensor([1.0]), v)])
    assert_allclose(v.numpy(), [-1.0])
    sgd.apply_gradients([(tensor([1.0]), v)])
    assert_allclose(v.numpy(), [-2.5])


def test_sgd_rejects_bad_arguments():
    with pytest.raises(ValueError):
        SGD(learning_rate=0.0)
    with pytest.raises(ValueError):
        SGD(momentum=1.0)
    with pytest.raises(ShapeMismatch):
        SGD().apply_gradients([(tensor([1.0, 2.0]), Var("v", [1.0]))])


def test_var_assign_keeps_shape():
    v = Var("v", [1.0, 2.0])
    with pytest.raises(ShapeMismatch):
        v.assign([1.0])


def test_sgd_minimize_updates_every_var_read():
    a = Var("a", [1.0])
    b = Var("b", [2.0])
    train = Function(lambda: reduce_sum(a * b, axis=None)).train()
    SGD(learning_rate=0.5).minimize(train)
    # d/da = b = 2, d/db = a = 1
    assert_allclose(a.numpy(), [0.0])
    assert_allclose(b.numpy(), [1.5])
