"""Online training loop layered above :class:`bpnet.core.network.BPNetwork`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from ..core.network import BPNetwork
from ..core.types import Sample


@dataclass(frozen=True)
class TrainingProgress:
    """Snapshot handed to stop predicates after every iteration."""

    iteration: int
    train_cycles: int
    last_error: float
    average_error: float


@dataclass(frozen=True)
class TrainingResult:
    """Outcome of :meth:`Trainer.run`."""

    iterations: int
    train_cycles: int
    last_error: float
    average_error: float
    converged: bool


@dataclass
class TrainingPolicy:
    """Iteration limits and stopping rules for :class:`Trainer`.

    ``max_iterations`` bounds the number of passes over the samples,
    ``inner_cycles`` the number of consecutive training steps spent on one
    sample, and ``error_threshold`` the per-sample mean square error every
    sample must reach for an iteration to count as converged.
    """

    max_iterations: int = 2_000_000
    inner_cycles: int = 10
    error_threshold: float = 1e-5
    report_every: int | None = None
    stop: Callable[[TrainingProgress], bool] | None = None

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        if self.inner_cycles <= 0:
            raise ValueError("inner_cycles must be positive")
        if self.error_threshold < 0:
            raise ValueError("error_threshold must be non-negative")
        if self.report_every is None:
            self.report_every = max(1, self.max_iterations // 100)
        elif self.report_every <= 0:
            raise ValueError("report_every must be positive")


class Trainer:
    """Present samples to a network until every one of them is learned."""

    def __init__(
        self,
        network: BPNetwork,
        policy: TrainingPolicy | None = None,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        self.network = network
        self.policy = policy or TrainingPolicy()
        self.callbacks = list(callbacks or [])

    def run(self, samples: Sequence[Sample]) -> TrainingResult:
        samples = list(samples)
        if not samples:
            raise ValueError("Trainer.run requires at least one sample")

        policy = self.policy
        network = self.network
        threshold = policy.error_threshold
        cumulated = 0.0
        cycles = 0
        last_error = 0.0
        converged = False
        iteration = 0

        while iteration < policy.max_iterations and not converged:
            converged = True
            for sample in samples:
                last_error = 0.0
                for _ in range(policy.inner_cycles):
                    network.train(sample.inputs, sample.targets)
                    last_error = network.mean_square_error(sample.targets)
                    cumulated += last_error
                    cycles += 1
                    # The average covers every error seen so far, not a window.
                    if last_error <= cumulated / cycles or last_error < threshold:
                        break
                if last_error >= threshold:
                    converged = False

            average = cumulated / cycles
            if iteration % policy.report_every == 0:
                self._emit(iteration, {"loss": last_error, "avg_loss": average})
            iteration += 1

            if policy.stop is not None and not converged:
                progress = TrainingProgress(
                    iteration=iteration,
                    train_cycles=cycles,
                    last_error=last_error,
                    average_error=average,
                )
                if policy.stop(progress):
                    break

        return TrainingResult(
            iterations=iteration,
            train_cycles=cycles,
            last_error=last_error,
            average_error=cumulated / cycles if cycles else 0.0,
            converged=converged,
        )

    def _emit(self, iteration: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(iteration, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(iteration, metrics)


__all__ = ["Trainer", "TrainingPolicy", "TrainingProgress", "TrainingResult"]
