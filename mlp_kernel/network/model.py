"""
Parameter Container
===================

The kernel functions in ``propagation``, ``training`` and ``inference`` only
see a model through the ``ParameterContainer`` protocol:

  • weights            — list of N matrices, W[k] of shape (n_k + 1, n_{k+1})
  • num_layers         — N
  • activation         — hidden-layer ``ActivationKind``
  • is_classification  — softmax + cross-entropy vs. identity + squared loss
  • nesterov_update()            — look-ahead pre-step
  • update_velocity(gradients)   — optimizer state update
  • update_position(gradients)   — weight update

Row 0 of every W[k] is the bias row: it multiplies the constant 1 that is
prepended to each layer's output.

``MLPModel`` is the reference implementation.  Its three hooks delegate to
an ``Optimizer`` strategy, so SGD, momentum, Nesterov or Adam can be swapped
without touching the kernel.
"""

from __future__ import annotations

import copy
from typing import Protocol, Sequence, runtime_checkable

import numpy as np
from loguru import logger
from numpy.typing import ArrayLike, NDArray

from ..core.activations import ActivationKind, to_activation_kind
from ..core.initializers import get_initializer
from ..core.optimizers import SGD, Optimizer
from ..exceptions import DimensionMismatchError


@runtime_checkable
class ParameterContainer(Protocol):
    """What the kernel requires from a model."""

    @property
    def weights(self) -> list[NDArray]: ...

    @property
    def num_layers(self) -> int: ...

    @property
    def activation(self) -> ActivationKind: ...

    @property
    def is_classification(self) -> bool: ...

    def nesterov_update(self) -> None: ...

    def update_velocity(self, gradients: Sequence[NDArray]) -> None: ...

    def update_position(self, gradients: Sequence[NDArray]) -> None: ...


class MLPModel:
    """Weights, task settings and optimizer state of one MLP.

    Parameters
    ----------
    weights           : sequence of 2-D arrays, W[k] of shape (n_k + 1, n_{k+1}).
    activation        : hidden-layer activation (enum, integer code or name).
    is_classification : softmax output + cross-entropy when True.
    optimizer         : update rule behind the hooks (default: ``SGD()``).
    """

    def __init__(
        self,
        weights: Sequence[ArrayLike],
        activation: ActivationKind | int | str = ActivationKind.TANH,
        is_classification: bool = False,
        optimizer: Optimizer | None = None,
    ) -> None:
        self._weights: list[NDArray] = [np.array(W, dtype=np.float64) for W in weights]
        self._check_shapes(self._weights)
        self._activation = to_activation_kind(activation)
        self._is_classification = bool(is_classification)
        self.optimizer: Optimizer = optimizer if optimizer is not None else SGD()

    @staticmethod
    def _check_shapes(weights: list[NDArray]) -> None:
        if not weights:
            raise DimensionMismatchError("A model needs at least one weight matrix")
        for k, W in enumerate(weights):
            if W.ndim != 2 or W.shape[0] < 2 or W.shape[1] < 1:
                raise DimensionMismatchError(
                    f"W[{k}] must be 2-D with a bias row plus at least one input row, "
                    f"got shape {W.shape}"
                )
        for k in range(1, len(weights)):
            if weights[k].shape[0] != weights[k - 1].shape[1] + 1:
                raise DimensionMismatchError(
                    f"W[{k}] has {weights[k].shape[0]} rows; expected "
                    f"{weights[k - 1].shape[1] + 1} (width of layer {k} plus bias)"
                )

    # ── construction ─────────────────────────────────────────────
    @classmethod
    def from_layer_sizes(
        cls,
        layer_sizes: Sequence[int],
        activation: ActivationKind | int | str = ActivationKind.TANH,
        is_classification: bool = False,
        optimizer: Optimizer | None = None,
        init: str = "xavier",
        seed: int | None = None,
    ) -> "MLPModel":
        """Build a randomly initialised model.

        ``layer_sizes = [n_0, n_1, ..., n_N]`` gives the input width, every
        hidden width and the output width, so the model has N layers.
        """
        sizes = [int(n) for n in layer_sizes]
        if len(sizes) < 2 or any(n < 1 for n in sizes):
            raise DimensionMismatchError(
                f"layer_sizes needs at least two positive widths, got {list(layer_sizes)}"
            )
        init_fn = get_initializer(init)
        rng = np.random.default_rng(seed)
        weights = [init_fn(n_in, n_out, rng) for n_in, n_out in zip(sizes[:-1], sizes[1:])]
        logger.debug(f"Initialised {init} weights for layer sizes {sizes}")
        return cls(weights, activation, is_classification, optimizer)

    # ── protocol ─────────────────────────────────────────────────
    @property
    def weights(self) -> list[NDArray]:
        return self._weights

    @property
    def num_layers(self) -> int:
        return len(self._weights)

    @property
    def activation(self) -> ActivationKind:
        return self._activation

    @property
    def is_classification(self) -> bool:
        return self._is_classification

    def nesterov_update(self) -> None:
        self.optimizer.nesterov_update(self._weights)

    def update_velocity(self, gradients: Sequence[NDArray]) -> None:
        self.optimizer.update_velocity(self._weights, gradients)

    def update_position(self, gradients: Sequence[NDArray]) -> None:
        self.optimizer.update_position(self._weights, gradients)

    # ── shape helpers ────────────────────────────────────────────
    @property
    def layer_sizes(self) -> list[int]:
        """[n_0, n_1, ..., n_N] — widths without the bias unit."""
        return [self._weights[0].shape[0] - 1] + [W.shape[1] for W in self._weights]

    @property
    def n_inputs(self) -> int:
        return self._weights[0].shape[0] - 1

    @property
    def n_outputs(self) -> int:
        return self._weights[-1].shape[1]

    # ── utilities ────────────────────────────────────────────────
    def copy(self) -> "MLPModel":
        """Deep copy, optimizer state included."""
        return copy.deepcopy(self)

    def count_params(self) -> int:
        """Total number of scalar weights, bias rows included."""
        return sum(W.size for W in self._weights)

    def summary(self) -> str:
        """Keras-style table of the layer stack."""
        lines: list[str] = []
        header = f"{'Layer':<12} {'Weights':<16} {'Activation':<12} {'# Params':>10}"
        lines.append(header)
        lines.append("=" * len(header))
        for k, W in enumerate(self._weights):
            if k < self.num_layers - 1:
                act = self._activation.name.lower()
            else:
                act = "softmax" if self._is_classification else "linear"
            shape = f"({W.shape[0]}, {W.shape[1]})"
            lines.append(f"{'layer_' + str(k):<12} {shape:<16} {act:<12} {W.size:>10,}")
        lines.append("=" * len(header))
        lines.append(f"Total params: {self.count_params():,}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        task = "classification" if self._is_classification else "regression"
        return (
            f"MLPModel(layer_sizes={self.layer_sizes}, "
            f"activation={self._activation.name}, task={task}, "
            f"optimizer={self.optimizer})"
        )
