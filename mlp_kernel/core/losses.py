"""
Loss Functions — Per-Example Loss Value
=======================================

The kernel scores one example at a time and sums over the batch, so every
function here maps a (true, estimated) pair of 1-D vectors to a float.

Notation
--------
  y  : ground-truth vector   (one-hot / multi-label, or regression targets)
  ŷ  : estimated vector      (softmax probabilities, or raw linear output)
  ε  : clipping constant     (1e-10) keeping log() finite

Gradients are not computed here: for both supported pairings
(cross-entropy + softmax, squared error + identity) the output delta is
simply ŷ − y, which back-propagation uses directly.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

CLIP_EPSILON: float = 1e-10


def cross_entropy_loss(y_true: ArrayLike, y_estimated: ArrayLike) -> float:
    r"""Element-wise binary cross-entropy, summed over output units.

    .. math::
        L = -\sum_j \bigl[ y_j \ln \hat{y}_j + (1 - y_j) \ln(1 - \hat{y}_j) \bigr]

    with :math:`\hat{y}` clipped to :math:`[\varepsilon, 1 - \varepsilon]`.

    This is *not* the categorical form :math:`-\sum_j y_j \ln \hat{y}_j`; the
    extra :math:`(1 - y_j)` terms are kept on purpose.
    """
    y = np.asarray(y_true, dtype=np.float64)
    y_hat = np.clip(np.asarray(y_estimated, dtype=np.float64), CLIP_EPSILON, 1.0 - CLIP_EPSILON)
    return float(-np.sum(y * np.log(y_hat) + (1.0 - y) * np.log(1.0 - y_hat)))


def squared_loss(y_true: ArrayLike, y_estimated: ArrayLike) -> float:
    r"""Half sum of squared errors.

    .. math::
        L = \tfrac{1}{2} \lVert \hat{y} - y \rVert^2
    """
    diff = np.asarray(y_estimated, dtype=np.float64) - np.asarray(y_true, dtype=np.float64)
    return float(0.5 * np.sum(diff * diff))


def get_loss(y_true: ArrayLike, y_estimated: ArrayLike, is_classification: bool) -> float:
    """Dispatch to cross-entropy (classification) or squared loss (regression)."""
    if is_classification:
        return cross_entropy_loss(y_true, y_estimated)
    return squared_loss(y_true, y_estimated)
