"""Logging setup for mlp_kernel.

The package logs through ``loguru`` and is disabled on import so that a
library call never prints on its own.  Applications opt in with::

    from mlp_kernel.utils.logger import enable_logging
    enable_logging("DEBUG")
"""

from __future__ import annotations

import sys

from loguru import logger

_PACKAGE = "mlp_kernel"
_FORMAT = (
    "<green>{time:HH:mm:ss}</green> │ <level>{level: <8}</level> │ "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> │ <level>{message}</level>"
)
_sink_id: int | None = None


def enable_logging(level: str = "INFO") -> int:
    """Turn on package logging and route it to stderr at *level*.

    Existing loguru handlers, the default stderr one included, are removed
    first, so package messages are printed once and only at *level* or
    above.  Calling it again replaces the previous sink.

    Returns
    -------
    int — the loguru handler id of the installed sink.
    """
    global _sink_id  # noqa: PLW0603
    logger.remove()
    _sink_id = logger.add(
        sys.stderr,
        level=level.upper(),
        format=_FORMAT,
        filter=_PACKAGE,
    )
    logger.enable(_PACKAGE)
    return _sink_id


def disable_logging() -> None:
    """Silence package logging and drop the sink added by ``enable_logging``."""
    global _sink_id  # noqa: PLW0603
    logger.disable(_PACKAGE)
    if _sink_id is not None:
        logger.remove(_sink_id)
        _sink_id = None
