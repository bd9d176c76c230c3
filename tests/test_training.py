"""
Tests for Batch Gradient Aggregation & Optimizer Step
=====================================================

Integration tests covering:
  • the update-vector formula (normalise, scale, regularise, negate)
  • bias rows are never regularised
  • summed batch loss
  • hook order and encapsulation of the parameter container
  • one training step lowers the loss (2-2-1 tanh scenario)
  • threaded accumulation matches the sequential result
  • input validation at the batch boundary
"""

from __future__ import annotations

import numpy as np
import pytest

from mlp_kernel.config import TrainingConfig
from mlp_kernel.core.activations import ActivationKind
from mlp_kernel.core.optimizers import Momentum
from mlp_kernel.exceptions import ConfigError, DimensionMismatchError, EmptyBatchError
from mlp_kernel.network.inference import batch_loss, loss
from mlp_kernel.network.model import MLPModel
from mlp_kernel.network.training import (
    get_loss_and_gradient,
    get_loss_and_update_model,
    gradient_in_place,
)


class RecordingContainer:
    """Minimal ParameterContainer that logs hook calls instead of moving."""

    def __init__(self, weights, activation=ActivationKind.TANH, is_classification=False):
        self._weights = [np.array(W, dtype=np.float64) for W in weights]
        self._activation = activation
        self._is_classification = is_classification
        self.calls: list[tuple[str, object]] = []

    @property
    def weights(self):
        return self._weights

    @property
    def num_layers(self):
        return len(self._weights)

    @property
    def activation(self):
        return self._activation

    @property
    def is_classification(self):
        return self._is_classification

    def nesterov_update(self):
        self.calls.append(("nesterov_update", None))

    def update_velocity(self, gradients):
        self.calls.append(("update_velocity", gradients))

    def update_position(self, gradients):
        self.calls.append(("update_position", gradients))


# ────────────────────────────────────────────────────────────────────
# get_loss_and_gradient
# ────────────────────────────────────────────────────────────────────
class TestGetLossAndGradient:
    def test_gradient_shapes_match_weights(self, classifier_model, rng):
        X = rng.standard_normal((5, 4))
        Y = np.eye(3)[rng.integers(0, 3, size=5)]
        gradients: list[np.ndarray] = []
        get_loss_and_gradient(classifier_model, X, Y, gradients, 0.1)
        assert len(gradients) == classifier_model.num_layers
        for g, W in zip(gradients, classifier_model.weights):
            assert g.shape == W.shape

    def test_single_layer_formula(self, rng):
        W = rng.standard_normal((3, 2))
        model = MLPModel([W], is_classification=False)
        X = rng.standard_normal((4, 2))
        Y = rng.standard_normal((4, 2))
        stepsize = 0.3

        G = np.zeros_like(W)
        for x, y in zip(X, Y):
            o0 = np.concatenate(([1.0], x))
            G += np.outer(o0, W.T @ o0 - y)
        expected = -stepsize * G / 4

        gradients: list[np.ndarray] = []
        get_loss_and_gradient(model, X, Y, gradients, stepsize)
        np.testing.assert_allclose(gradients[0], expected, atol=1e-12)

    def test_overwrites_existing_list_in_place(self, tanh_221_model, regression_batch):
        X, Y = regression_batch
        gradients = [np.full((9, 9), 7.0)] * 5
        same_list = gradients
        get_loss_and_gradient(tanh_221_model, X, Y, gradients, 0.1)
        assert gradients is same_list
        assert len(gradients) == 2

    def test_returns_summed_loss(self, tanh_221_model, regression_batch):
        X, Y = regression_batch
        total = get_loss_and_gradient(tanh_221_model, X, Y, [], 0.1)
        expected = sum(loss(tanh_221_model, x, y) for x, y in zip(X, Y))
        assert total == pytest.approx(expected, rel=1e-12)
        assert total == pytest.approx(batch_loss(tanh_221_model, X, Y), rel=1e-12)

    def test_does_not_modify_model(self, tanh_221_model, regression_batch):
        X, Y = regression_batch
        before = [W.copy() for W in tanh_221_model.weights]
        get_loss_and_gradient(tanh_221_model, X, Y, [], 0.1, TrainingConfig(regularization=0.5))
        for W, W0 in zip(tanh_221_model.weights, before):
            np.testing.assert_array_equal(W, W0)

    def test_regularization_adds_lambda_w(self, tanh_221_model, regression_batch):
        X, Y = regression_batch
        lam = 0.25
        plain: list[np.ndarray] = []
        regularised: list[np.ndarray] = []
        get_loss_and_gradient(tanh_221_model, X, Y, plain, 0.1, TrainingConfig(regularization=0.0))
        get_loss_and_gradient(tanh_221_model, X, Y, regularised, 0.1, TrainingConfig(regularization=lam))
        for g0, g1, W in zip(plain, regularised, tanh_221_model.weights):
            np.testing.assert_allclose(g1[1:] - g0[1:], lam * W[1:], atol=1e-12)

    @pytest.mark.parametrize("lam", [1e-4, 0.1, 10.0])
    def test_regularization_never_touches_bias_row(self, classifier_model, rng, lam):
        X = rng.standard_normal((3, 4))
        Y = np.eye(3)[[0, 2, 1]]
        plain: list[np.ndarray] = []
        regularised: list[np.ndarray] = []
        get_loss_and_gradient(classifier_model, X, Y, plain, 0.05, TrainingConfig(regularization=0.0))
        get_loss_and_gradient(classifier_model, X, Y, regularised, 0.05, TrainingConfig(regularization=lam))
        for g0, g1 in zip(plain, regularised):
            np.testing.assert_array_equal(g1[0], g0[0])

    def test_default_config_has_no_regularization(self, tanh_221_model, regression_batch):
        X, Y = regression_batch
        default: list[np.ndarray] = []
        explicit: list[np.ndarray] = []
        get_loss_and_gradient(tanh_221_model, X, Y, default, 0.1)
        get_loss_and_gradient(tanh_221_model, X, Y, explicit, 0.1, TrainingConfig(regularization=0.0))
        for a, b in zip(default, explicit):
            np.testing.assert_array_equal(a, b)

    def test_stepsize_defaults_to_config(self, tanh_221_model, regression_batch):
        X, Y = regression_batch
        from_config: list[np.ndarray] = []
        explicit: list[np.ndarray] = []
        get_loss_and_gradient(tanh_221_model, X, Y, from_config, config=TrainingConfig(stepsize=0.2))
        get_loss_and_gradient(tanh_221_model, X, Y, explicit, 0.2)
        for a, b in zip(from_config, explicit):
            np.testing.assert_array_equal(a, b)

    @pytest.mark.parametrize("n_workers", [2, 3, 8])
    def test_threaded_matches_sequential(self, classifier_model, rng, n_workers):
        X = rng.standard_normal((7, 4))
        Y = np.eye(3)[rng.integers(0, 3, size=7)]
        seq: list[np.ndarray] = []
        par: list[np.ndarray] = []
        loss_seq = get_loss_and_gradient(classifier_model, X, Y, seq, 0.1)
        loss_par = get_loss_and_gradient(
            classifier_model, X, Y, par, 0.1, TrainingConfig(n_workers=n_workers)
        )
        assert loss_par == pytest.approx(loss_seq, rel=1e-12)
        for a, b in zip(seq, par):
            np.testing.assert_allclose(a, b, atol=1e-12)

    def test_threaded_is_reproducible(self, classifier_model, rng):
        X = rng.standard_normal((9, 4))
        Y = np.eye(3)[rng.integers(0, 3, size=9)]
        config = TrainingConfig(n_workers=4)
        first: list[np.ndarray] = []
        second: list[np.ndarray] = []
        get_loss_and_gradient(classifier_model, X, Y, first, 0.1, config)
        get_loss_and_gradient(classifier_model, X, Y, second, 0.1, config)
        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)

    def test_empty_batch_raises(self, tanh_221_model):
        with pytest.raises(EmptyBatchError):
            get_loss_and_gradient(tanh_221_model, np.zeros((0, 2)), np.zeros((0, 1)), [], 0.1)

    def test_row_mismatch_raises(self, tanh_221_model):
        with pytest.raises(DimensionMismatchError):
            get_loss_and_gradient(tanh_221_model, np.zeros((3, 2)), np.zeros((2, 1)), [], 0.1)

    def test_input_width_mismatch_raises(self, tanh_221_model):
        with pytest.raises(DimensionMismatchError):
            get_loss_and_gradient(tanh_221_model, np.zeros((3, 5)), np.zeros((3, 1)), [], 0.1)

    def test_target_width_mismatch_raises(self, tanh_221_model):
        with pytest.raises(DimensionMismatchError):
            get_loss_and_gradient(tanh_221_model, np.zeros((3, 2)), np.zeros((3, 2)), [], 0.1)

    @pytest.mark.parametrize("stepsize", [0.0, -0.1])
    def test_non_positive_stepsize_raises(self, tanh_221_model, regression_batch, stepsize):
        X, Y = regression_batch
        with pytest.raises(ConfigError):
            get_loss_and_gradient(tanh_221_model, X, Y, [], stepsize)


# ────────────────────────────────────────────────────────────────────
# get_loss_and_update_model / gradient_in_place
# ────────────────────────────────────────────────────────────────────
class TestUpdateModel:
    def test_one_step_decreases_loss_221_tanh(self, tanh_221_model):
        x = np.array([1.0, 2.0])
        y = np.array([0.5])
        before = loss(tanh_221_model, x, y)
        returned = get_loss_and_update_model(
            tanh_221_model, x.reshape(1, -1), y.reshape(1, -1), 0.1,
            TrainingConfig(regularization=0.0),
        )
        after = loss(tanh_221_model, x, y)
        assert returned == pytest.approx(before)
        assert after < before

    def test_hooks_called_in_order_with_same_gradients(self, tanh_221_model, regression_batch):
        X, Y = regression_batch
        container = RecordingContainer(tanh_221_model.weights)
        get_loss_and_update_model(container, X, Y, 0.1)

        names = [name for name, _ in container.calls]
        assert names == ["nesterov_update", "update_velocity", "update_position"]
        velocity_grads = container.calls[1][1]
        position_grads = container.calls[2][1]
        assert velocity_grads is position_grads
        assert len(velocity_grads) == 2

    def test_container_only_changed_through_hooks(self, tanh_221_model, regression_batch):
        X, Y = regression_batch
        container = RecordingContainer(tanh_221_model.weights)
        before = [W.copy() for W in container.weights]
        get_loss_and_update_model(container, X, Y, 0.1, TrainingConfig(regularization=0.3))
        for W, W0 in zip(container.weights, before):
            np.testing.assert_array_equal(W, W0)

    def test_sgd_step_applies_update_vector(self, tanh_221_model, regression_batch):
        X, Y = regression_batch
        expected_grads: list[np.ndarray] = []
        get_loss_and_gradient(tanh_221_model, X, Y, expected_grads, 0.1)
        expected = [W + g for W, g in zip(tanh_221_model.weights, expected_grads)]

        get_loss_and_update_model(tanh_221_model, X, Y, 0.1)
        for W, W_expected in zip(tanh_221_model.weights, expected):
            np.testing.assert_allclose(W, W_expected, atol=1e-15)

    def test_bad_batch_leaves_model_untouched(self):
        model = MLPModel.from_layer_sizes(
            [2, 3, 1], optimizer=Momentum(0.9, nesterov=True), seed=0
        )
        X = np.array([[0.1, 0.2]])
        Y = np.array([[0.3]])
        get_loss_and_update_model(model, X, Y, 0.1)   # builds up velocity
        before = [W.copy() for W in model.weights]
        with pytest.raises(DimensionMismatchError):
            get_loss_and_update_model(model, np.zeros((2, 2)), np.zeros((3, 1)), 0.1)
        for W, W0 in zip(model.weights, before):
            np.testing.assert_array_equal(W, W0)

    def test_gradient_in_place_matches_one_row_batch(self, tanh_221_model):
        x = np.array([0.3, -0.7])
        y = np.array([0.2])
        a = tanh_221_model.copy()
        b = tanh_221_model.copy()
        loss_a = gradient_in_place(a, x, y, 0.1)
        loss_b = get_loss_and_update_model(b, x.reshape(1, -1), y.reshape(1, -1), 0.1)
        assert loss_a == loss_b
        for Wa, Wb in zip(a.weights, b.weights):
            np.testing.assert_array_equal(Wa, Wb)

    def test_gradient_in_place_accepts_scalar_target(self, tanh_221_model):
        before = loss(tanh_221_model, [1.0, 2.0], [0.5])
        gradient_in_place(tanh_221_model, [1.0, 2.0], 0.5, 0.1)
        assert loss(tanh_221_model, [1.0, 2.0], [0.5]) < before

    def test_repeated_steps_fit_linear_target(self, rng):
        X = rng.uniform(-1.0, 1.0, size=(20, 2))
        Y = (2.0 * X[:, 0] - X[:, 1] + 0.5).reshape(-1, 1)
        model = MLPModel.from_layer_sizes(
            [2, 1], optimizer=Momentum(momentum=0.9), init="zeros"
        )
        initial = batch_loss(model, X, Y)
        for _ in range(300):
            get_loss_and_update_model(model, X, Y, 0.05)
        assert batch_loss(model, X, Y) < 0.01 * initial

    def test_nesterov_training_reduces_classifier_loss(self, rng):
        X = rng.standard_normal((30, 2))
        labels = (X[:, 0] + X[:, 1] > 0).astype(int)
        Y = np.eye(2)[labels]
        model = MLPModel.from_layer_sizes(
            [2, 4, 2], activation="tanh", is_classification=True,
            optimizer=Momentum(momentum=0.5, nesterov=True), seed=5,
        )
        initial = batch_loss(model, X, Y)
        for _ in range(100):
            get_loss_and_update_model(model, X, Y, 0.1)
        assert batch_loss(model, X, Y) < initial
