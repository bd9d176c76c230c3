"""Exception hierarchy raised at the batch / container boundary."""

from __future__ import annotations


class MLPKernelError(Exception):
    """Base class for every error raised by ``mlp_kernel``."""


class DimensionMismatchError(MLPKernelError, ValueError):
    """Input, target or weight shapes do not agree with each other."""


class EmptyBatchError(MLPKernelError, ValueError):
    """A batch with zero rows was passed where at least one is required."""


class ConfigError(MLPKernelError, ValueError):
    """A configuration value is out of range or unknown."""
