"""Utility functions: batch validation, encoding, logging setup."""

from .data_utils import as_batch, as_vector, one_hot_encode, row_partitions, validate_example
from .logger import disable_logging, enable_logging

__all__ = [
    "as_batch", "as_vector", "one_hot_encode", "row_partitions", "validate_example",
    "enable_logging", "disable_logging",
]
