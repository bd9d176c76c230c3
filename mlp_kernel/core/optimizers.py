"""
Optimizers — Parameter Update Rules
====================================

An optimizer sits behind the parameter container's three hooks:

  • nesterov_update(weights)             — optional look-ahead before the gradient
  • update_velocity(weights, gradients)  — refresh internal state (velocity, moments)
  • update_position(weights, gradients)  — move the weights

``weights`` is the container's list of matrices and is mutated in place.
``gradients`` are *update vectors* produced by the batch aggregator: already
scaled by the step size, averaged over the batch, regularised and negated.
So the plain step is ``θ ← θ + g``, not ``θ ← θ − η g``.

Notation
--------
  θ   : weight matrix of one layer (bias row included)
  g   : update vector for θ
  μ   : momentum coefficient
  v   : velocity / first-moment estimate
  s   : second-moment estimate
  β₁  : exponential decay rate for first moment  (Adam)
  β₂  : exponential decay rate for second moment (Adam)
  ε   : small constant to prevent division by zero
  t   : time-step counter (for bias correction in Adam)
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from ..exceptions import ConfigError, DimensionMismatchError


def _check_gradients(weights: Sequence[NDArray], gradients: Sequence[NDArray]) -> None:
    if len(gradients) != len(weights):
        raise DimensionMismatchError(
            f"Expected {len(weights)} gradient matrices, got {len(gradients)}"
        )
    for k, (W, g) in enumerate(zip(weights, gradients)):
        if np.shape(g) != W.shape:
            raise DimensionMismatchError(
                f"Gradient for layer {k} has shape {np.shape(g)}, expected {W.shape}"
            )


# ────────────────────────────────────────────────────────────────────
# Base class
# ────────────────────────────────────────────────────────────────────
class Optimizer:
    """Abstract optimizer.  Every hook defaults to a no-op."""

    def nesterov_update(self, weights: list[NDArray]) -> None:
        """Move to the look-ahead position (only Nesterov does anything)."""

    def update_velocity(self, weights: list[NDArray], gradients: Sequence[NDArray]) -> None:
        """Update internal state from this step's update vectors."""

    def update_position(self, weights: list[NDArray], gradients: Sequence[NDArray]) -> None:
        raise NotImplementedError

    def reset(self) -> None:
        """Forget all accumulated state."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


# ────────────────────────────────────────────────────────────────────
# Vanilla SGD
# ────────────────────────────────────────────────────────────────────
class SGD(Optimizer):
    r"""Plain gradient step, no state.

    .. math::
        \theta \leftarrow \theta + g
    """

    def update_position(self, weights: list[NDArray], gradients: Sequence[NDArray]) -> None:
        _check_gradients(weights, gradients)
        for W, g in zip(weights, gradients):
            W += g


# ────────────────────────────────────────────────────────────────────
# Momentum (classical or Nesterov)
# ────────────────────────────────────────────────────────────────────
class Momentum(Optimizer):
    r"""Gradient step with a velocity term.

    Classical momentum
    ------------------
    .. math::
        v &\leftarrow \mu v + g \\
        \theta &\leftarrow \theta + v

    Nesterov accelerated gradient
    -----------------------------
    The pre-step moves to the look-ahead point before the gradient is
    evaluated there; the final move only adds the new update vector, so the
    net displacement over one step is again the new velocity:

    .. math::
        \theta &\leftarrow \theta + \mu v
            \qquad\text{(nesterov\_update, gradient taken here)} \\
        v &\leftarrow \mu v + g \\
        \theta &\leftarrow \theta + g

    Parameters
    ----------
    momentum : float — μ in [0, 1)  (default: 0.9).
    nesterov : bool  — evaluate the gradient at the look-ahead point.
    """

    def __init__(self, momentum: float = 0.9, nesterov: bool = False) -> None:
        if not 0.0 <= momentum < 1.0:
            raise ConfigError(f"momentum must lie in [0, 1), got {momentum}")
        self.momentum = momentum
        self.nesterov = nesterov
        self._velocity: list[NDArray] = []

    @property
    def velocity(self) -> list[NDArray]:
        return self._velocity

    def _ensure_velocity(self, weights: Sequence[NDArray]) -> None:
        if len(self._velocity) != len(weights) or any(
            v.shape != W.shape for v, W in zip(self._velocity, weights)
        ):
            self._velocity = [np.zeros_like(W) for W in weights]

    def nesterov_update(self, weights: list[NDArray]) -> None:
        if not self.nesterov:
            return
        self._ensure_velocity(weights)
        for W, v in zip(weights, self._velocity):
            W += self.momentum * v

    def update_velocity(self, weights: list[NDArray], gradients: Sequence[NDArray]) -> None:
        _check_gradients(weights, gradients)
        self._ensure_velocity(weights)
        for v, g in zip(self._velocity, gradients):
            # v ← μ v + g
            v *= self.momentum
            v += g

    def update_position(self, weights: list[NDArray], gradients: Sequence[NDArray]) -> None:
        _check_gradients(weights, gradients)
        if self.nesterov:
            for W, g in zip(weights, gradients):
                W += g
        else:
            self._ensure_velocity(weights)
            for W, v in zip(weights, self._velocity):
                W += v

    def reset(self) -> None:
        self._velocity = []

    def __repr__(self) -> str:
        return f"Momentum(momentum={self.momentum}, nesterov={self.nesterov})"


# ────────────────────────────────────────────────────────────────────
# Adam
# ────────────────────────────────────────────────────────────────────
class Adam(Optimizer):
    r"""Adam on the aggregator's update vectors.

    .. math::
        v  &\leftarrow \beta_1 \, v + (1 - \beta_1) \, g \\
        s  &\leftarrow \beta_2 \, s + (1 - \beta_2) \, g^2 \\
        \hat{v} &= \frac{v}{1 - \beta_1^t} \qquad
        \hat{s} = \frac{s}{1 - \beta_2^t} \\
        \theta &\leftarrow \theta + \eta \frac{\hat{v}}{\sqrt{\hat{s}} + \varepsilon}

    The update vector already points downhill, hence ``+``.  Adam normalises
    away the magnitude of ``g``, so the effective step is governed by ``lr``.

    Parameters
    ----------
    lr    : float — learning rate η   (default: 0.001).
    beta1 : float — β₁ for first moment  (default: 0.9).
    beta2 : float — β₂ for second moment (default: 0.999).
    eps   : float — ε for numerical stability (default: 1e-8).

    Reference: Kingma & Ba, 2015.
    """

    def __init__(
        self,
        lr: float = 0.001,
        beta1: float = 0.9,
        beta2: float = 0.999,
        eps: float = 1e-8,
    ) -> None:
        if lr <= 0:
            raise ConfigError(f"lr must be > 0, got {lr}")
        for name, beta in (("beta1", beta1), ("beta2", beta2)):
            if not 0.0 <= beta < 1.0:
                raise ConfigError(f"{name} must lie in [0, 1), got {beta}")
        self.lr = lr
        self.beta1 = beta1
        self.beta2 = beta2
        self.eps = eps
        self._t: int = 0
        self._v: list[NDArray] = []
        self._s: list[NDArray] = []

    def update_velocity(self, weights: list[NDArray], gradients: Sequence[NDArray]) -> None:
        _check_gradients(weights, gradients)
        if len(self._v) != len(weights):
            self._v = [np.zeros_like(W) for W in weights]
            self._s = [np.zeros_like(W) for W in weights]
            self._t = 0

        self._t += 1
        for v, s, g in zip(self._v, self._s, gradients):
            v *= self.beta1
            v += (1.0 - self.beta1) * g
            s *= self.beta2
            s += (1.0 - self.beta2) * (g ** 2)

    def update_position(self, weights: list[NDArray], gradients: Sequence[NDArray]) -> None:
        _check_gradients(weights, gradients)
        if self._t == 0:
            raise RuntimeError("Adam.update_position called before update_velocity")
        logger.debug(f"Adam step t={self._t}")
        for W, v, s in zip(weights, self._v, self._s):
            v_hat: NDArray = v / (1.0 - self.beta1 ** self._t)
            s_hat: NDArray = s / (1.0 - self.beta2 ** self._t)
            W += self.lr * v_hat / (np.sqrt(s_hat) + self.eps)

    def reset(self) -> None:
        self._t = 0
        self._v = []
        self._s = []

    def __repr__(self) -> str:
        return (
            f"Adam(lr={self.lr}, beta1={self.beta1}, "
            f"beta2={self.beta2}, eps={self.eps})"
        )
