"""Headless-safe plotting adapters."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple


class PlotAdapter:
    """Collect reported errors and optionally emit a matplotlib figure."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, iteration: int, metrics) -> None:
        if not self.enable_plots:
            return
        self._history.append(
            (iteration, float(metrics.get("loss", 0.0)), float(metrics.get("avg_loss", 0.0)))
        )

    def close(self) -> Path | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        iterations, losses, averages = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(iterations, losses, label="last MSE")
        ax.plot(iterations, averages, label="average MSE")
        if min(losses + averages) > 0:
            ax.set_yscale("log")
        ax.set_xlabel("Iteration")
        ax.set_ylabel("Mean square error")
        ax.set_title("Training Curve")
        ax.legend()
        plot_path = self.run_dir / "loss.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch
