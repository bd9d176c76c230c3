"""NumPy training / inference kernel for fully-connected feed-forward networks."""

from loguru import logger

from .config import TrainingConfig, load_config
from .core.activations import ActivationKind
from .core.optimizers import SGD, Adam, Momentum
from .exceptions import ConfigError, DimensionMismatchError, EmptyBatchError, MLPKernelError
from .network import (
    MLPModel,
    ParameterContainer,
    back_propagate,
    feed_forward,
    get_loss_and_gradient,
    get_loss_and_update_model,
    gradient_in_place,
    loss,
    predict,
)

logger.disable(__name__)

__version__ = "1.0.0"

__all__ = [
    "TrainingConfig", "load_config",
    "ActivationKind", "SGD", "Momentum", "Adam",
    "MLPKernelError", "DimensionMismatchError", "EmptyBatchError", "ConfigError",
    "MLPModel", "ParameterContainer",
    "feed_forward", "back_propagate",
    "get_loss_and_gradient", "get_loss_and_update_model", "gradient_in_place",
    "loss", "predict",
]
