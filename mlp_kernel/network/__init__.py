"""Parameter container and the forward / backward / training / inference kernel."""

from .model import MLPModel, ParameterContainer
from .propagation import ForwardTrace, back_propagate, feed_forward
from .training import get_loss_and_gradient, get_loss_and_update_model, gradient_in_place
from .inference import batch_loss, collapse_output, loss, predict, predict_batch

__all__ = [
    "MLPModel", "ParameterContainer",
    "ForwardTrace", "feed_forward", "back_propagate",
    "get_loss_and_gradient", "get_loss_and_update_model", "gradient_in_place",
    "predict", "predict_batch", "collapse_output", "loss", "batch_loss",
]
