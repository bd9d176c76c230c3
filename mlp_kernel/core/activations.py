"""
Activation Functions — Value & Derivative
=========================================

Every hidden-layer activation is a stateless strategy object with:
  • value(z)       → f(z)    (element-wise)
  • derivative(z)  → f'(z)   (element-wise, evaluated at the pre-activation)

The model carries an ``ActivationKind`` selector.  ``get_activation`` turns
it into a strategy once per forward/backward call, so the per-element work
is a single vectorised NumPy expression with no branching on the kind.

Mathematical conventions
------------------------
  z     : pre-activation ("net") vector of one layer
  f(z)  : post-activation, before the bias unit is prepended
  f'(z) : derivative used in the Hadamard product of back-propagation

The output layer never goes through these strategies: it is either linear
(regression) or ``softmax`` (classification).
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import ConfigError


class ActivationKind(IntEnum):
    """Hidden-layer activation selector (integer codes are stable)."""

    RELU = 0
    SIGMOID = 1
    TANH = 2


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class Activation:
    """Abstract activation strategy."""

    kind: ActivationKind

    def value(self, z: ArrayLike) -> NDArray:
        raise NotImplementedError

    def derivative(self, z: ArrayLike) -> NDArray:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


# ---------------------------------------------------------------------------
# ReLU
# ---------------------------------------------------------------------------
class ReLU(Activation):
    r"""Rectified Linear Unit.

    .. math::
        f(z) = \max(0, z) \qquad
        f'(z) = \begin{cases} 1 & z > 0 \\ 0 & \text{otherwise} \end{cases}

    The sub-gradient at exactly 0 is taken to be 0.
    """

    kind = ActivationKind.RELU

    def value(self, z: ArrayLike) -> NDArray:
        z = np.asarray(z, dtype=np.float64)
        return z * (z > 0)

    def derivative(self, z: ArrayLike) -> NDArray:
        z = np.asarray(z, dtype=np.float64)
        return (z > 0).astype(np.float64)


# ---------------------------------------------------------------------------
# Sigmoid
# ---------------------------------------------------------------------------
class Sigmoid(Activation):
    r"""Logistic sigmoid.

    .. math::
        s(z) = \frac{1}{1 + e^{-z}} \qquad s'(z) = s(z)\,(1 - s(z))
    """

    kind = ActivationKind.SIGMOID

    def value(self, z: ArrayLike) -> NDArray:
        z = np.asarray(z, dtype=np.float64)
        # exp(-z) overflows to inf for z < -709; 1 / (1 + inf) is still 0.
        with np.errstate(over="ignore"):
            return 1.0 / (1.0 + np.exp(-z))

    def derivative(self, z: ArrayLike) -> NDArray:
        s = self.value(z)
        return s * (1.0 - s)


# ---------------------------------------------------------------------------
# Tanh
# ---------------------------------------------------------------------------
class Tanh(Activation):
    r"""Hyperbolic tangent.

    .. math::
        f(z) = \tanh(z) \qquad f'(z) = 1 - \tanh^2(z)
    """

    kind = ActivationKind.TANH

    def value(self, z: ArrayLike) -> NDArray:
        return np.tanh(np.asarray(z, dtype=np.float64))

    def derivative(self, z: ArrayLike) -> NDArray:
        t = np.tanh(np.asarray(z, dtype=np.float64))
        return 1.0 - t * t


_REGISTRY: dict[ActivationKind, Activation] = {
    ActivationKind.RELU: ReLU(),
    ActivationKind.SIGMOID: Sigmoid(),
    ActivationKind.TANH: Tanh(),
}


def to_activation_kind(kind: ActivationKind | int | str) -> ActivationKind:
    """Normalise an enum member, integer code or name to ``ActivationKind``."""
    if isinstance(kind, ActivationKind):
        return kind
    try:
        if isinstance(kind, str):
            return ActivationKind[kind.strip().upper()]
        if isinstance(kind, bool) or int(kind) != kind:
            raise ValueError(f"not an integer code: {kind!r}")
        return ActivationKind(int(kind))
    except (KeyError, ValueError, TypeError, OverflowError) as exc:
        raise ConfigError(
            f"Unknown activation {kind!r}; expected one of "
            f"{[k.name.lower() for k in ActivationKind]}"
        ) from exc


def get_activation(kind: ActivationKind | int | str) -> Activation:
    """Return the shared strategy object for *kind*."""
    return _REGISTRY[to_activation_kind(kind)]


# ---------------------------------------------------------------------------
# Softmax (output layer, classification only)
# ---------------------------------------------------------------------------
def softmax(z: ArrayLike) -> NDArray:
    r"""Numerically stable softmax of a 1-D vector.

    .. math::
        \sigma(z)_j = \frac{e^{z_j - \max_k z_k}}{\sum_i e^{z_i - \max_k z_k}}

    The max subtraction keeps every exponent <= 0, so nothing overflows, and
    it does not change the result (softmax is shift-invariant).
    """
    z = np.asarray(z, dtype=np.float64)
    exp_z = np.exp(z - np.max(z))
    return exp_z / np.sum(exp_z)
