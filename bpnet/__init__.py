"""bpnet public API."""

from .core import activations  # noqa: F401
from .core import codec  # noqa: F401
from .core.errors import (
    DimensionMismatch,
    IndexOutOfRange,
    InvalidTopology,
    MalformedWeightData,
    NetworkError,
)
from .core.network import BPNetwork
from .data import get_dataset
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer, TrainingPolicy

__version__ = "0.1.0"

__all__ = [
    "BPNetwork",
    "DimensionMismatch",
    "IndexOutOfRange",
    "InvalidTopology",
    "MalformedWeightData",
    "NetworkError",
    "Trainer",
    "TrainingPolicy",
    "activations",
    "codec",
    "get_dataset",
    "load_preset",
    "presets",
    "run_pipeline",
]
