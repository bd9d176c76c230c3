"""
Inference — Prediction & Per-Example Loss
=========================================

Read-only entry points: the model is never modified here.

``predict`` shapes the network output for the caller:

  • regression                    → o[N] unchanged
  • classification, array result  → one-hot vector at arg-max(o[N])
  • classification, index result  → [arg-max(o[N])] as a 1-element float vector

Ties go to the first maximal class (``numpy.argmax``).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..core.losses import get_loss
from ..exceptions import DimensionMismatchError, EmptyBatchError
from ..utils.data_utils import as_batch, as_vector, validate_example
from .model import ParameterContainer
from .propagation import feed_forward


def collapse_output(
    output: ArrayLike,
    is_classification_response: bool,
    is_dep_var_array_for_classification: bool,
) -> NDArray:
    """Apply the classification collapse rules to one output vector."""
    output = as_vector(output, "output").copy()
    if not is_classification_response:
        return output

    max_idx = int(np.argmax(output))
    if is_dep_var_array_for_classification:
        output[:] = 0.0
        output[max_idx] = 1.0
        return output
    return np.array([float(max_idx)])


def predict(
    model: ParameterContainer,
    x: ArrayLike,
    is_classification_response: bool | None = None,
    is_dep_var_array_for_classification: bool = True,
) -> NDArray:
    """Forward pass for one example, collapsed for classification.

    Parameters
    ----------
    model : ParameterContainer — read only.
    x     : shape (n_0,)
    is_classification_response : collapse to a class; defaults to
        ``model.is_classification``.
    is_dep_var_array_for_classification : one-hot vector (True) or single
        class index (False).

    Returns
    -------
    ndarray — shape (n_N,), or (1,) for an index result.
    """
    if is_classification_response is None:
        is_classification_response = model.is_classification
    x = validate_example(x, model.weights[0].shape[0] - 1)
    output = feed_forward(model, x).output
    return collapse_output(
        output, is_classification_response, is_dep_var_array_for_classification
    )


def predict_batch(
    model: ParameterContainer,
    X: ArrayLike,
    is_classification_response: bool | None = None,
    is_dep_var_array_for_classification: bool = True,
) -> NDArray:
    """Row-wise ``predict`` stacked into a 2-D array."""
    X = np.asarray(X, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(1, -1)
    if X.ndim != 2:
        raise DimensionMismatchError(f"X must be 2-D, got shape {X.shape}")
    if X.shape[0] == 0:
        raise EmptyBatchError("Batch has no rows")
    return np.vstack([
        predict(model, x, is_classification_response, is_dep_var_array_for_classification)
        for x in X
    ])


def loss(model: ParameterContainer, x: ArrayLike, y: ArrayLike) -> float:
    """Loss of the current model on one example.

    Cross-entropy for classifiers, half squared error otherwise.
    """
    n_inputs = model.weights[0].shape[0] - 1
    n_outputs = model.weights[-1].shape[1]
    X, Y = as_batch(
        as_vector(x, "x").reshape(1, -1),
        as_vector(y, "y").reshape(1, -1),
        n_inputs,
        n_outputs,
    )
    output = feed_forward(model, X[0]).output
    return get_loss(Y[0], output, model.is_classification)


def batch_loss(model: ParameterContainer, X: ArrayLike, Y: ArrayLike) -> float:
    """Summed per-example loss over a batch, without touching the model."""
    X, Y = as_batch(X, Y, model.weights[0].shape[0] - 1, model.weights[-1].shape[1])
    return float(sum(
        get_loss(y, feed_forward(model, x).output, model.is_classification)
        for x, y in zip(X, Y)
    ))
