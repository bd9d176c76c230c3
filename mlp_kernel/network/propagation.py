"""
Forward & Backward Propagation
==============================

Single-example passes through a bias-augmented layer stack.

Architecture diagram
--------------------
::

    o[0] = [1, x] ─W[0]→ net[1] ─f→ o[1] = [1, f(net[1])] ─W[1]→ ... ─W[N-1]→ net[N] = o[N]

    delta[0] ←─ ... ←─ delta[N-2] ←─ delta[N-1] = ŷ − y

Notation
--------
  N        : number of layers (weight matrices)
  W[k]     : shape (n_k + 1, n_{k+1}); row 0 is the bias row
  net[k]   : pre-activation of layer k,  length n_k   (net[0] unused)
  o[k]     : output of layer k; length n_k + 1 for k < N (leading 1),
             length n_N for k = N (never bias-augmented)
  delta[k] : error signal feeding W[k],   length n_{k+1}

Hidden layers use the model's activation; the output layer is linear, then
softmax-normalised when the model is a classifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..core.activations import get_activation, softmax
from ..exceptions import DimensionMismatchError
from .model import ParameterContainer


@dataclass
class ForwardTrace:
    """Per-example ``net`` / ``o`` vectors, both of length N + 1."""

    net: list[NDArray] = field(default_factory=list)
    o: list[NDArray] = field(default_factory=list)

    @property
    def output(self) -> NDArray:
        """o[N], the network output."""
        return self.o[-1]


def feed_forward(model: ParameterContainer, x: ArrayLike) -> ForwardTrace:
    """Run one input vector through the network.

    Parameters
    ----------
    model : ParameterContainer — read only.
    x     : array-like, shape (n_0,) — raw input, no bias entry.

    Returns
    -------
    ForwardTrace with ``net[0..N]`` and ``o[0..N]``.
    """
    weights = model.weights
    N = model.num_layers
    x = np.asarray(x, dtype=np.float64).reshape(-1)
    if x.shape[0] + 1 != weights[0].shape[0]:
        raise DimensionMismatchError(
            f"Expected {weights[0].shape[0] - 1} input features, got {x.shape[0]}"
        )

    # Resolved once per call; the loop below never branches on the kind
    activation = get_activation(model.activation)

    net: list[NDArray] = [np.empty(0)] * (N + 1)
    o: list[NDArray] = [np.empty(0)] * (N + 1)
    o[0] = np.concatenate(([1.0], x))

    for k in range(1, N):
        net[k] = weights[k - 1].T @ o[k - 1]
        o[k] = np.concatenate(([1.0], activation.value(net[k])))

    net[N] = weights[N - 1].T @ o[N - 1]
    o[N] = softmax(net[N]) if model.is_classification else net[N].copy()
    return ForwardTrace(net=net, o=o)


def back_propagate(
    y_true: ArrayLike,
    y_estimated: ArrayLike,
    net: list[NDArray],
    model: ParameterContainer,
) -> list[NDArray]:
    r"""Compute the error signal of every layer.

    .. math::
        \delta_{N-1} &= \hat{y} - y \\
        \delta_{k-1} &= \bigl(W_k[1{:}, :] \, \delta_k\bigr) \odot f'(net_k)
            \qquad k = N-1, \dots, 1

    ŷ − y is the exact output gradient for both softmax + cross-entropy and
    identity + squared error.  The bias row of W[k] is skipped: the bias unit
    has no net input, so nothing flows back into it.

    Parameters
    ----------
    y_true      : shape (n_N,)
    y_estimated : shape (n_N,) — o[N] from ``feed_forward``.
    net         : ``ForwardTrace.net`` from the same forward pass.
    model       : ParameterContainer — read only.

    Returns
    -------
    delta : list of N vectors, delta[k] of length n_{k+1}.
    """
    weights = model.weights
    N = model.num_layers
    y_true = np.asarray(y_true, dtype=np.float64).reshape(-1)
    y_estimated = np.asarray(y_estimated, dtype=np.float64).reshape(-1)
    if y_true.shape != y_estimated.shape:
        raise DimensionMismatchError(
            f"y_true has length {y_true.shape[0]} but y_estimated has {y_estimated.shape[0]}"
        )

    derivative = get_activation(model.activation).derivative

    delta: list[NDArray] = [np.empty(0)] * N
    delta[N - 1] = y_estimated - y_true
    for k in range(N - 1, 0, -1):
        delta[k - 1] = (weights[k][1:, :] @ delta[k]) * derivative(net[k])
    return delta
