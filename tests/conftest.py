"""
conftest.py – Shared fixtures for the mlp_kernel test suite.
"""
from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mlp_kernel.core.activations import ActivationKind  # noqa: E402
from mlp_kernel.network.model import MLPModel  # noqa: E402


@pytest.fixture()
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture()
def tanh_221_model() -> MLPModel:
    """2 → 2 → 1 regression network with fixed weights."""
    W0 = np.array([
        [0.1, -0.1],   # bias row
        [0.2, 0.3],
        [-0.3, 0.1],
    ])
    W1 = np.array([
        [0.05],        # bias row
        [0.4],
        [-0.2],
    ])
    return MLPModel([W0, W1], activation=ActivationKind.TANH, is_classification=False)


@pytest.fixture()
def classifier_model() -> MLPModel:
    """4 → 5 → 3 sigmoid classifier."""
    return MLPModel.from_layer_sizes(
        [4, 5, 3], activation="sigmoid", is_classification=True, seed=7
    )


@pytest.fixture()
def regression_batch(rng: np.random.Generator) -> tuple[np.ndarray, np.ndarray]:
    X = rng.uniform(-1.0, 1.0, size=(6, 2))
    Y = rng.uniform(-0.5, 0.5, size=(6, 1))
    return X, Y
