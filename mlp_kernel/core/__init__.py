"""Core building blocks: activations, losses, optimizers, initializers."""

from .activations import (
    Activation,
    ActivationKind,
    ReLU,
    Sigmoid,
    Tanh,
    get_activation,
    softmax,
    to_activation_kind,
)
from .losses import CLIP_EPSILON, cross_entropy_loss, get_loss, squared_loss
from .optimizers import SGD, Adam, Momentum, Optimizer
from .initializers import he_init, xavier_init, lecun_init, zeros_init, get_initializer

__all__ = [
    "Activation", "ActivationKind", "ReLU", "Sigmoid", "Tanh",
    "get_activation", "softmax", "to_activation_kind",
    "CLIP_EPSILON", "cross_entropy_loss", "get_loss", "squared_loss",
    "Optimizer", "SGD", "Momentum", "Adam",
    "he_init", "xavier_init", "lecun_init", "zeros_init", "get_initializer",
]
