r"""
Gradient Checking — Numerical Verification of Backpropagation
=============================================================

Compares the **analytic** gradient recovered from the batch aggregator
against a **numerical** approximation using finite differences.

Numerical gradient
------------------
.. math::
    \frac{\partial L}{\partial \theta_i}
    \approx \frac{L(\theta_i + \varepsilon) - L(\theta_i - \varepsilon)}
                   {2 \varepsilon}

This is the **centred difference** formula — O(ε²) accurate.

Recovering the analytic gradient
--------------------------------
With stepsize 1 and λ = 0 the aggregator returns ``-G / m`` where G is the
summed gradient, so ``G = -m * update``.

Objective
---------
The output delta ŷ − y is the exact gradient of half squared error (linear
output) and of *categorical* cross-entropy :math:`-\sum_j y_j \ln \hat{y}_j`
(softmax output).  Those are the objectives checked here.  The element-wise
cross-entropy reported by ``get_loss`` adds :math:`(1 - y_j)` terms and is a
different function of the weights.

Relative error
--------------
.. math::
    \text{rel\_error} =
        \frac{\|g_{\text{analytic}} - g_{\text{numeric}}\|_2}
             {\|g_{\text{analytic}}\|_2 + \|g_{\text{numeric}}\|_2 + \varepsilon}

Rules of thumb:
  • rel_error < 1e-5  — correct implementation
  • rel_error < 1e-3  — may have a bug
  • rel_error > 1e-3  — almost certainly buggy
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from loguru import logger
from numpy.typing import ArrayLike, NDArray

from ..config import TrainingConfig
from ..core.losses import CLIP_EPSILON
from ..network.model import ParameterContainer
from ..network.propagation import feed_forward
from ..network.training import get_loss_and_gradient
from ..utils.data_utils import as_batch

_NO_REGULARIZATION = TrainingConfig(regularization=0.0, stepsize=1.0)


def gradient_check(
    loss_fn: Callable[[NDArray], float],
    params: NDArray,
    analytic_grad: NDArray,
    epsilon: float = 1e-7,
) -> float:
    """Check gradient of a scalar loss function w.r.t. a flat parameter array.

    Parameters
    ----------
    loss_fn       : callable — takes params (flat ndarray) → scalar loss.
    params        : ndarray, shape (D,) — current parameter values.
    analytic_grad : ndarray, shape (D,) — gradient to verify.
    epsilon       : float — perturbation size.

    Returns
    -------
    rel_error : float — relative error between numeric and analytic grads.
    """
    numeric_grad = np.zeros_like(params)

    for i in range(params.size):
        params_plus = params.copy()
        params_plus[i] += epsilon
        loss_plus = loss_fn(params_plus)

        params_minus = params.copy()
        params_minus[i] -= epsilon
        loss_minus = loss_fn(params_minus)

        numeric_grad[i] = (loss_plus - loss_minus) / (2.0 * epsilon)

    return _relative_error(analytic_grad, numeric_grad)


def _relative_error(analytic: NDArray, numeric: NDArray) -> float:
    diff = np.linalg.norm(analytic - numeric)
    norm_sum = np.linalg.norm(analytic) + np.linalg.norm(numeric) + 1e-15
    return float(diff / norm_sum)


def training_objective(model: ParameterContainer, X: NDArray, Y: NDArray) -> float:
    """Summed objective whose gradient back-propagation computes."""
    total = 0.0
    for x, y in zip(X, Y):
        output = feed_forward(model, x).output
        if model.is_classification:
            clipped = np.clip(output, CLIP_EPSILON, 1.0 - CLIP_EPSILON)
            total -= float(np.sum(y * np.log(clipped)))
        else:
            diff = output - y
            total += float(0.5 * np.sum(diff * diff))
    return total


def analytic_gradient(model: ParameterContainer, X: ArrayLike, Y: ArrayLike) -> list[NDArray]:
    """Summed batch gradient dL/dW[k] as computed by the kernel."""
    X, Y = as_batch(X, Y, model.weights[0].shape[0] - 1, model.weights[-1].shape[1])
    updates: list[NDArray] = []
    get_loss_and_gradient(model, X, Y, updates, stepsize=1.0, config=_NO_REGULARIZATION)
    m = X.shape[0]
    return [-m * g for g in updates]


def gradient_check_model(
    model: ParameterContainer,
    X: ArrayLike,
    Y: ArrayLike,
    epsilon: float = 1e-6,
    verbose: bool = False,
) -> dict[str, float]:
    """Check every weight matrix of *model* on the batch (X, Y).

    Each matrix is checked with ``gradient_check``, writing the perturbed
    values into the model in place; the original values are restored
    afterwards, so the model ends up exactly as it started.

    Returns
    -------
    errors : dict — ``{"W0": rel_error, "W1": rel_error, ...}``
    """
    X, Y = as_batch(X, Y, model.weights[0].shape[0] - 1, model.weights[-1].shape[1])
    analytic = analytic_gradient(model, X, Y)

    errors: dict[str, float] = {}
    for k, W in enumerate(model.weights):
        original = W.copy()

        def layer_objective(flat: NDArray) -> float:
            W[...] = flat.reshape(W.shape)
            return training_objective(model, X, Y)

        try:
            rel_err = gradient_check(
                layer_objective, original.ravel(), analytic[k].ravel(), epsilon
            )
        finally:
            W[...] = original
        errors[f"W{k}"] = rel_err

        if verbose:
            status = "ok" if rel_err < 1e-5 else ("suspect" if rel_err < 1e-3 else "FAIL")
            logger.info(f"W{k:<3d} rel_error = {rel_err:.2e}  {status}")

    return errors
