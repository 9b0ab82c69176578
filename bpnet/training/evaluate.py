"""Evaluation helpers: display buckets, result lines and metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np

from ..core.network import BPNetwork
from ..core.types import Array, Sample

DEFAULT_METRICS = ("mse", "bit_accuracy", "argmax_accuracy")


def classify_output(value: float) -> str:
    """Return the display bucket of a single output activation.

    ``H`` marks values at or above 1.1, ``1`` values at or above 0.8, ``0``
    values at or below 0.2 (an underflowed activation included) and ``M``
    everything in between.
    """

    if value >= 1.1:
        return "H"
    if value >= 0.8:
        return "1"
    if value <= 0.2:
        return "0"
    return "M"


def format_result_line(index: int, outputs: Sequence[float]) -> str:
    return f"{index}\t" + "".join(f"{classify_output(float(v))} " for v in outputs)


def compute_metric(name: str, predictions: Array, targets: Array) -> float:
    key = name.lower()
    if key == "mse":
        return float(np.mean((targets - predictions) ** 2))
    if key == "bit_accuracy":
        return float(np.mean((predictions >= 0.5) == (targets >= 0.5)))
    if key == "argmax_accuracy":
        return float(np.mean(np.argmax(predictions, axis=1) == np.argmax(targets, axis=1)))
    raise ValueError(f"Unknown metric: {name}")


@dataclass
class EvaluationReport:
    """Per-sample result lines and outputs plus aggregate metrics."""

    lines: List[str] = field(default_factory=list)
    outputs: List[Array] = field(default_factory=list)
    metrics: Dict[str, float] = field(default_factory=dict)

    def render(self) -> str:
        return "\n".join(self.lines) + "\n" if self.lines else ""


def evaluate(
    network: BPNetwork,
    samples: Sequence[Sample],
    metric_names: Sequence[str] = DEFAULT_METRICS,
) -> EvaluationReport:
    """Run ``network`` forward on every sample and bucket its outputs."""

    report = EvaluationReport()
    targets: List[Array] = []
    for idx, sample in enumerate(samples):
        outputs = network.forward(sample.inputs)
        report.outputs.append(outputs)
        report.lines.append(format_result_line(idx, outputs))
        targets.append(np.asarray(sample.targets, dtype=np.float64))
    if report.outputs:
        predictions = np.vstack(report.outputs)
        stacked = np.vstack(targets)
        for name in metric_names:
            report.metrics[name] = compute_metric(name, predictions, stacked)
    return report


__all__ = [
    "DEFAULT_METRICS",
    "EvaluationReport",
    "classify_output",
    "compute_metric",
    "evaluate",
    "format_result_line",
]
