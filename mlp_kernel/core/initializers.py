"""
Weight Initializers
===================

All initializers follow the pattern:

    W = init_fn(fan_in, fan_out, rng) → ndarray, shape (fan_in + 1, fan_out)

The extra leading row is the bias row.  It always starts at zero; only the
``fan_in`` connection rows below it are drawn at random.

Terminology
-----------
  fan_in  (n_in)  : width of the lower layer (without the bias unit)
  fan_out (n_out) : width of the upper layer
  rng             : numpy.random.Generator for reproducibility
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import NDArray

from ..exceptions import ConfigError

Initializer = Callable[[int, int, "np.random.Generator | None"], NDArray]


def _with_bias_row(W: NDArray) -> NDArray:
    """Prepend a zero bias row to a (fan_in, fan_out) block."""
    bias = np.zeros((1, W.shape[1]), dtype=np.float64)
    return np.vstack([bias, W.astype(np.float64)])


def xavier_init(
    fan_in: int,
    fan_out: int,
    rng: np.random.Generator | None = None,
) -> NDArray:
    r"""Glorot / Xavier uniform initialization.

    .. math::
        W \sim \mathcal{U}\!\left[
            -\sqrt{\frac{6}{n_{\text{in}} + n_{\text{out}}}},\;
             \sqrt{\frac{6}{n_{\text{in}} + n_{\text{out}}}}
        \right]

    Suited to tanh and sigmoid hidden layers.

    Reference: Glorot & Bengio, 2010.
    """
    if rng is None:
        rng = np.random.default_rng()

    limit: float = np.sqrt(6.0 / (fan_in + fan_out))
    return _with_bias_row(rng.uniform(-limit, limit, size=(fan_in, fan_out)))


def he_init(
    fan_in: int,
    fan_out: int,
    rng: np.random.Generator | None = None,
) -> NDArray:
    r"""He (Kaiming) normal initialization.

    .. math::
        W \sim \mathcal{N}\!\left(0,\; \sqrt{\frac{2}{n_{\text{in}}}}\right)

    Derived for ReLU hidden layers.

    Reference: He et al., 2015.
    """
    if rng is None:
        rng = np.random.default_rng()

    std: float = np.sqrt(2.0 / fan_in)
    return _with_bias_row(rng.normal(0.0, std, size=(fan_in, fan_out)))


def lecun_init(
    fan_in: int,
    fan_out: int,
    rng: np.random.Generator | None = None,
) -> NDArray:
    r"""LeCun normal initialization.

    .. math::
        W \sim \mathcal{N}\!\left(0,\; \sqrt{\frac{1}{n_{\text{in}}}}\right)

    Reference: LeCun et al., 1998.
    """
    if rng is None:
        rng = np.random.default_rng()

    std: float = np.sqrt(1.0 / fan_in)
    return _with_bias_row(rng.normal(0.0, std, size=(fan_in, fan_out)))


def zeros_init(
    fan_in: int,
    fan_out: int,
    rng: np.random.Generator | None = None,
) -> NDArray:
    """All-zeros initialization (``rng`` is ignored)."""
    return np.zeros((fan_in + 1, fan_out), dtype=np.float64)


_INITIALIZERS: dict[str, Initializer] = {
    "xavier": xavier_init,
    "he": he_init,
    "lecun": lecun_init,
    "zeros": zeros_init,
}


def get_initializer(name: str) -> Initializer:
    """Look up an initializer by name (``xavier``, ``he``, ``lecun``, ``zeros``)."""
    try:
        return _INITIALIZERS[name.lower()]
    except KeyError as exc:
        raise ConfigError(
            f"Unknown initializer {name!r}; expected one of {sorted(_INITIALIZERS)}"
        ) from exc
