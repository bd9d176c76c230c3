"""Numerical gradient verification for backpropagation correctness."""

from .gradient_check import analytic_gradient, gradient_check, gradient_check_model

__all__ = ["analytic_gradient", "gradient_check", "gradient_check_model"]
