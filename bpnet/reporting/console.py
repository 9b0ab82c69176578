"""Console status lines for training runs."""

from __future__ import annotations

import sys
from typing import Mapping, Sequence, TextIO


class ConsoleReporter:
    """Print a progress line each time the trainer reports."""

    def __init__(self, stream: TextIO | None = None, *, enabled: bool = True) -> None:
        self.stream = stream
        self.enabled = enabled

    def _write(self, text: str) -> None:
        if self.enabled:
            print(text, file=self.stream or sys.stdout)

    def on_epoch(self, iteration: int, metrics: Mapping[str, float]) -> None:
        self._write(
            f"Still training... last meanSquareError: {metrics.get('loss', 0.0)} "
            f"average meanSquareError: {metrics.get('avg_loss', 0.0)}"
        )

    def training_started(self) -> None:
        self._write("Training the NeuralNetwork...")

    def training_finished(self, train_cycles: int, iterations: int, average: float) -> None:
        self._write(
            f"{train_cycles} trainCycle completed... in {iterations} iteration cycles...  "
            f"average meanSquareError: {average}"
        )

    def evaluation(self, lines: Sequence[str]) -> None:
        self._write("Testing the network...")
        for line in lines:
            self._write(line)


def print_startup_summary(
    *,
    dataset_name: str,
    topology: Sequence[int],
    learn_rate: float,
    momentum: float,
    mode: str,
    param_count: int,
    stream: TextIO | None = None,
) -> None:
    out = stream or sys.stdout
    print("=== bpnet run ===", file=out)
    print(f"Dataset       : {dataset_name}", file=out)
    print(f"Topology      : {list(topology)}", file=out)
    print(f"Learn rate    : {learn_rate}", file=out)
    print(f"Momentum      : {momentum}", file=out)
    print(f"Mode          : {mode}", file=out)
    print(f"Parameters    : {param_count}", file=out)
    print("=================", file=out)


__all__ = ["ConsoleReporter", "print_startup_summary"]
