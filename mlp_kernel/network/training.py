r"""
Batch Gradient Aggregation & Optimizer Step
===========================================

``get_loss_and_gradient`` turns one mini-batch into per-layer *update
vectors*; ``get_loss_and_update_model`` wraps it between the container's
optimizer hooks.

Per row i of the batch
----------------------
  1. trace = feed_forward(model, x_i)
  2. delta = back_propagate(y_i, trace.o[N], trace.net, model)
  3. G[k] += o[k] ⊗ delta[k]            (outer product, shape of W[k])
  4. loss += get_loss(y_i, o[N])

After the batch
---------------
.. math::
    G_k \leftarrow -\eta \, \frac{G_k}{m} + \lambda \, R_k

where R_k is W[k] with its bias row set to zero, η the step size, m the
number of rows and λ ``TrainingConfig.regularization``.  The returned loss is
the plain sum over rows (not averaged, not regularised).

Rows are independent until step 3, so accumulation can be split across
threads (``TrainingConfig.n_workers``).  Partial sums are added back in
partition order, which keeps results reproducible for a given worker count.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np
from loguru import logger
from numpy.typing import ArrayLike, NDArray

from ..config import TrainingConfig
from ..core.losses import get_loss
from ..exceptions import ConfigError
from ..utils.data_utils import as_batch, as_vector, row_partitions
from .model import ParameterContainer
from .propagation import back_propagate, feed_forward

_DEFAULT_CONFIG = TrainingConfig()


def _accumulate_rows(
    model: ParameterContainer,
    X: NDArray,
    Y: NDArray,
) -> tuple[list[NDArray], float]:
    """Sum outer-product gradients and losses over the rows of (X, Y)."""
    weights = model.weights
    N = model.num_layers
    is_classification = model.is_classification

    partial = [np.zeros_like(W) for W in weights]
    total_loss = 0.0
    for x, y in zip(X, Y):
        trace = feed_forward(model, x)
        delta = back_propagate(y, trace.output, trace.net, model)
        for k in range(N):
            partial[k] += np.outer(trace.o[k], delta[k])
        total_loss += get_loss(y, trace.output, is_classification)
    return partial, total_loss


def _resolve(config: TrainingConfig | None, stepsize: float | None) -> tuple[TrainingConfig, float]:
    config = config if config is not None else _DEFAULT_CONFIG
    stepsize = config.stepsize if stepsize is None else float(stepsize)
    if not stepsize > 0:
        raise ConfigError(f"stepsize must be > 0, got {stepsize}")
    return config, stepsize


def _batch_widths(model: ParameterContainer) -> tuple[int, int]:
    return model.weights[0].shape[0] - 1, model.weights[-1].shape[1]


def get_loss_and_gradient(
    model: ParameterContainer,
    x_batch: ArrayLike,
    y_batch: ArrayLike,
    gradients: list[NDArray],
    stepsize: float | None = None,
    config: TrainingConfig | None = None,
) -> float:
    """Accumulate a batch into per-layer update vectors.

    Parameters
    ----------
    model     : ParameterContainer — read only.
    x_batch   : shape (m, n_0)
    y_batch   : shape (m, n_N)
    gradients : list, overwritten in place with N arrays shaped like W[k].
    stepsize  : η; defaults to ``config.stepsize``.
    config    : supplies λ and the worker count (default: ``TrainingConfig()``).

    Returns
    -------
    total_loss : float — summed over the batch.
    """
    config, stepsize = _resolve(config, stepsize)
    n_inputs, n_outputs = _batch_widths(model)
    X, Y = as_batch(x_batch, y_batch, n_inputs, n_outputs)
    m = X.shape[0]

    n_workers = min(config.n_workers, m)
    if n_workers > 1:
        parts = list(row_partitions(m, n_workers))
        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            futures = [pool.submit(_accumulate_rows, model, X[s], Y[s]) for s in parts]
            # Ordered combine: same partitions always sum in the same order
            results = [f.result() for f in futures]
        accumulated = [np.zeros_like(W) for W in model.weights]
        total_loss = 0.0
        for partial, loss in results:
            for k, G in enumerate(partial):
                accumulated[k] += G
            total_loss += loss
        logger.debug(f"Accumulated {m} rows over {len(parts)} partitions")
    else:
        accumulated, total_loss = _accumulate_rows(model, X, Y)

    lam = config.regularization
    for k, W in enumerate(model.weights):
        regularization = lam * W
        regularization[0, :] = 0.0  # bias row is never regularised
        accumulated[k] = -stepsize * accumulated[k] / m + regularization

    gradients[:] = accumulated
    logger.debug(
        f"Batch of {m} rows: loss={total_loss:.6f} stepsize={stepsize} lambda={lam}"
    )
    return total_loss


def get_loss_and_update_model(
    model: ParameterContainer,
    x_batch: ArrayLike,
    y_batch: ArrayLike,
    stepsize: float | None = None,
    config: TrainingConfig | None = None,
) -> float:
    """One optimizer step on a mini-batch.

    Calls, in order: ``model.nesterov_update()``, ``get_loss_and_gradient``,
    ``model.update_velocity(g)``, ``model.update_position(g)``.  The model is
    only ever changed through those hooks.

    Returns
    -------
    total_loss : float — batch loss measured at the (look-ahead) position.
    """
    config, stepsize = _resolve(config, stepsize)
    # Validate before the pre-step so a bad batch leaves the model untouched
    as_batch(x_batch, y_batch, *_batch_widths(model))

    gradients: list[NDArray] = []
    model.nesterov_update()
    total_loss = get_loss_and_gradient(model, x_batch, y_batch, gradients, stepsize, config)
    model.update_velocity(gradients)
    model.update_position(gradients)
    return total_loss


def gradient_in_place(
    model: ParameterContainer,
    x: ArrayLike,
    y: ArrayLike,
    stepsize: float | None = None,
    config: TrainingConfig | None = None,
) -> float:
    """Single-example step: treat (x, y) as a one-row batch."""
    x_row = as_vector(x, "x").reshape(1, -1)
    y_row = as_vector(y, "y").reshape(1, -1)
    return get_loss_and_update_model(model, x_row, y_row, stepsize, config)

