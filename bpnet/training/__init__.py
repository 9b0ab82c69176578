"""Training loop, evaluation and pipeline helpers."""

from .evaluate import EvaluationReport, classify_output, evaluate, format_result_line
from .trainer import Trainer, TrainingPolicy, TrainingProgress, TrainingResult

__all__ = [
    "EvaluationReport",
    "Trainer",
    "TrainingPolicy",
    "TrainingProgress",
    "TrainingResult",
    "classify_output",
    "evaluate",
    "format_result_line",
]
