"""
Data Utilities
==============

Shape checks and coercion applied at the kernel boundary, so that dimension
problems surface as ``DimensionMismatchError`` / ``EmptyBatchError`` before
any arithmetic runs, plus a one-hot encoder for classification targets.
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import DimensionMismatchError, EmptyBatchError


def as_vector(v: ArrayLike, name: str = "vector") -> NDArray:
    """Return *v* as a 1-D float64 array.

    Column / row vectors of shape (n, 1) or (1, n) are flattened; anything
    with more than one non-trivial axis is rejected.
    """
    arr = np.asarray(v, dtype=np.float64)
    if arr.ndim == 0:
        return arr.reshape(1)
    if arr.ndim > 1:
        if sum(d > 1 for d in arr.shape) > 1:
            raise DimensionMismatchError(f"{name} must be one-dimensional, got shape {arr.shape}")
        arr = arr.reshape(-1)
    return arr


def as_batch(
    X: ArrayLike,
    Y: ArrayLike,
    n_inputs: int | None = None,
    n_outputs: int | None = None,
) -> tuple[NDArray, NDArray]:
    """Coerce (X, Y) to 2-D float64 arrays with matching, non-zero row counts.

    Parameters
    ----------
    X : array-like, shape (m, n_inputs)  — a 1-D array is one row.
    Y : array-like, shape (m, n_outputs) — a 1-D array is one row when
        ``X`` is one row, otherwise one scalar target per row.
    n_inputs, n_outputs : expected widths (checked when given).

    Returns
    -------
    (X, Y) : tuple of 2-D ndarrays
    """
    X = np.asarray(X, dtype=np.float64)
    Y = np.asarray(Y, dtype=np.float64)

    if X.ndim == 1:
        X = X.reshape(1, -1)
    if Y.ndim == 0:
        Y = Y.reshape(1, 1)
    elif Y.ndim == 1:
        Y = Y.reshape(1, -1) if X.shape[0] == 1 else Y.reshape(-1, 1)

    if X.ndim != 2 or Y.ndim != 2:
        raise DimensionMismatchError(
            f"Batch arrays must be 2-D, got X{X.shape} and Y{Y.shape}"
        )
    if X.shape[0] == 0:
        raise EmptyBatchError("Batch has no rows")
    if X.shape[0] != Y.shape[0]:
        raise DimensionMismatchError(
            f"X has {X.shape[0]} rows but Y has {Y.shape[0]}"
        )
    if n_inputs is not None and X.shape[1] != n_inputs:
        raise DimensionMismatchError(
            f"Expected {n_inputs} input features, got {X.shape[1]}"
        )
    if n_outputs is not None and Y.shape[1] != n_outputs:
        raise DimensionMismatchError(
            f"Expected {n_outputs} target values per row, got {Y.shape[1]}"
        )
    return X, Y


def validate_example(x: ArrayLike, n_inputs: int) -> NDArray:
    """Return *x* as a 1-D vector of length ``n_inputs``."""
    x = as_vector(x, "x")
    if x.shape[0] != n_inputs:
        raise DimensionMismatchError(f"Expected {n_inputs} input features, got {x.shape[0]}")
    return x


def row_partitions(n_rows: int, n_parts: int) -> Iterator[slice]:
    """Split ``range(n_rows)`` into at most *n_parts* contiguous slices."""
    n_parts = max(1, min(n_parts, n_rows))
    bounds = np.linspace(0, n_rows, n_parts + 1).astype(int)
    for start, end in zip(bounds[:-1], bounds[1:]):
        if end > start:
            yield slice(int(start), int(end))


def one_hot_encode(labels: ArrayLike, n_classes: int | None = None) -> NDArray:
    """Convert integer class labels to one-hot rows.

    Parameters
    ----------
    labels    : array-like of int, shape (n_samples,)
    n_classes : int, optional — inferred as ``max(labels) + 1`` when omitted.

    Returns
    -------
    Y : ndarray, shape (n_samples, n_classes)
    """
    labels = np.asarray(labels).astype(int).ravel()
    if n_classes is None:
        n_classes = int(labels.max()) + 1 if labels.size else 0
    if labels.size and (labels.min() < 0 or labels.max() >= n_classes):
        raise DimensionMismatchError(
            f"Labels must lie in [0, {n_classes}), got range "
            f"[{labels.min()}, {labels.max()}]"
        )
    Y = np.zeros((labels.size, n_classes), dtype=np.float64)
    Y[np.arange(labels.size), labels] = 1.0
    return Y
