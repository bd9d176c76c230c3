"""
Training Configuration
======================

``TrainingConfig`` replaces the process-wide regularisation coefficient with
an explicit, immutable object that is handed to the batch aggregator.

Lifecycle: build it once before a training run (directly or from YAML via
``load_config``), then pass the same instance to every kernel call of that
run.  It is frozen, so nothing can change λ halfway through.

YAML layout::

    training:
      regularization: 0.0001
      stepsize: 0.01
      n_workers: 1
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml
from loguru import logger

from .exceptions import ConfigError


def project_root() -> Path:
    """Return the project root (one level above the package)."""
    return Path(__file__).resolve().parent.parent


DEFAULT_CONFIG_PATH = project_root() / "configs" / "default.yaml"


def _as_worker_count(value: Any) -> int:
    """Accept integral numbers such as YAML ``2`` or ``2.0``."""
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not float(value).is_integer()
    ):
        raise ConfigError(f"n_workers must be a positive integer, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class TrainingConfig:
    """Hyper-parameters read by the gradient aggregator.

    Attributes
    ----------
    regularization : float
        L2 coefficient λ.  Applied to every weight except the bias row.
    stepsize : float
        Default step size for callers that do not pass one explicitly.
    n_workers : int
        Number of threads used to accumulate a batch (1 = sequential).
    """

    regularization: float = 0.0
    stepsize: float = 0.01
    n_workers: int = 1

    def __post_init__(self) -> None:
        if self.regularization < 0:
            raise ConfigError(
                f"regularization must be >= 0, got {self.regularization}"
            )
        if self.stepsize <= 0:
            raise ConfigError(f"stepsize must be > 0, got {self.stepsize}")
        if (
            isinstance(self.n_workers, bool)
            or not isinstance(self.n_workers, int)
            or self.n_workers < 1
        ):
            raise ConfigError(f"n_workers must be a positive integer, got {self.n_workers}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "TrainingConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown training config keys: {unknown}")
        kwargs = {k: v for k, v in data.items() if k in known}
        if "regularization" in kwargs:
            kwargs["regularization"] = float(kwargs["regularization"])
        if "stepsize" in kwargs:
            kwargs["stepsize"] = float(kwargs["stepsize"])
        if "n_workers" in kwargs:
            kwargs["n_workers"] = _as_worker_count(kwargs["n_workers"])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: str | Path | None = None) -> TrainingConfig:
    """Load the ``training`` section of a YAML config.

    Defaults to ``configs/default.yaml`` at the project root.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, "r", encoding="utf-8") as fh:
        cfg = yaml.safe_load(fh) or {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    config = TrainingConfig.from_dict(cfg.get("training", {}))
    logger.info(f"Loaded config from {path}")
    return config
