"""Core typing contracts for bpnet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

Array = np.ndarray


@dataclass(frozen=True)
class Sample:
    """A single input/target pair presented to the network."""

    inputs: Array
    targets: Array


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    topology: Tuple[int, ...]
    learn_rate: float
    momentum: float


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`bpnet.training.pipelines.run_pipeline`."""

    iterations: int
    converged: bool
    weights_path: str
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    evaluation_path: str = ""
