"""Fully-connected feed-forward network trained by backpropagation with momentum."""

from __future__ import annotations

import math
from typing import List, Mapping, Sequence, Tuple

import numpy as np

from . import codec
from .activations import sigmoid, sigmoid_derivative
from .errors import DimensionMismatch, IndexOutOfRange, InvalidTopology
from .types import Array, ModelDescription


def _validate_topology(topology: Sequence[int]) -> Tuple[int, ...]:
    sizes = tuple(topology)
    if len(sizes) < 2:
        raise InvalidTopology(f"Topology needs at least 2 layers, got {len(sizes)}")
    for idx, size in enumerate(sizes):
        if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
            raise InvalidTopology(f"Layer {idx} size must be an integer, got {size!r}")
        if size <= 0:
            raise InvalidTopology(f"Layer {idx} size must be positive, got {size}")
    return tuple(int(size) for size in sizes)


def _as_vector(values, size: int, what: str) -> Array:
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1 or vector.shape[0] != size:
        raise DimensionMismatch(
            f"{what} must be a sequence of {size} values, got shape {vector.shape}"
        )
    return vector


class BPNetwork:
    """Online backpropagation network with a momentum term.

    Layer 0 holds the raw inputs; every later layer ``i`` owns a weight matrix
    of shape ``(size[i], size[i-1] + 1)`` whose last column is the bias. The
    matrices, the matching weight-change history, the activations and the
    error signals are allocated once and updated in place.

    Parameters
    ----------
    learn_rate:
        Step size of the gradient update.
    momentum:
        Fraction of the previous weight change re-applied before each step.
    topology:
        Layer sizes, input layer first.
    seed:
        Optional seed for the generator drawing the initial weights.
    """

    def __init__(
        self,
        learn_rate: float,
        momentum: float,
        topology: Sequence[int],
        seed: int | None = None,
    ) -> None:
        if not math.isfinite(learn_rate):
            raise ValueError(f"learn_rate must be finite, got {learn_rate!r}")
        if not math.isfinite(momentum):
            raise ValueError(f"momentum must be finite, got {momentum!r}")
        self._learn_rate = float(learn_rate)
        self._momentum = float(momentum)
        self._topology = _validate_topology(topology)

        rng = np.random.default_rng(seed)
        sizes = self._topology
        self._outputs: List[Array] = [np.zeros(size, dtype=np.float64) for size in sizes]
        self._deltas: List[Array] = [np.zeros(size, dtype=np.float64) for size in sizes]
        # Index 0 stands for layer 1; the input layer has no incoming weights.
        self._weights: List[Array] = []
        self._weight_changes: List[Array] = []
        for prev, size in zip(sizes[:-1], sizes[1:]):
            self._weights.append(rng.uniform(-1.0, 1.0, size=(size, prev + 1)))
            self._weight_changes.append(np.zeros((size, prev + 1), dtype=np.float64))

    # ------------------------------------------------------------------
    # Introspection

    @property
    def topology(self) -> Tuple[int, ...]:
        return self._topology

    @property
    def learn_rate(self) -> float:
        return self._learn_rate

    @property
    def momentum(self) -> float:
        return self._momentum

    @property
    def outputs(self) -> Array:
        """Copy of the output-layer activations from the last forward pass."""

        return self._outputs[-1].copy()

    def describe(self) -> ModelDescription:
        return ModelDescription(
            topology=self._topology,
            learn_rate=self._learn_rate,
            momentum=self._momentum,
        )

    def parameter_count(self) -> int:
        return int(sum(int(w.size) for w in self._weights))

    def weight_shapes(self) -> List[Tuple[int, int]]:
        return [tuple(w.shape) for w in self._weights]  # type: ignore[misc]

    # ------------------------------------------------------------------
    # Numeric engine

    def forward(self, inputs: Sequence[float] | Array) -> Array:
        """Propagate ``inputs`` through every layer and return the outputs."""

        self._outputs[0][:] = _as_vector(inputs, self._topology[0], "inputs")
        for layer, weights in enumerate(self._weights, start=1):
            prev = self._outputs[layer - 1]
            total = weights[:, :-1] @ prev + weights[:, -1]
            self._outputs[layer][:] = sigmoid(total)
        return self._outputs[-1].copy()

    def mean_square_error(self, target: Sequence[float] | Array) -> float:
        """Mean squared difference between ``target`` and the current outputs."""

        target = _as_vector(target, self._topology[-1], "target")
        diff = target - self._outputs[-1]
        return float(np.sum(diff * diff) / self._topology[-1])

    def train(self, inputs: Sequence[float] | Array, target: Sequence[float] | Array) -> None:
        """Run one forward pass, backpropagate and update every weight."""

        target = _as_vector(target, self._topology[-1], "target")
        self.forward(inputs)
        self._backward(target)
        self._update()

    def _backward(self, target: Array) -> None:
        out = self._outputs[-1]
        self._deltas[-1][:] = sigmoid_derivative(out) * (target - out)

        for layer in range(len(self._topology) - 2, 0, -1):
            # weights feeding layer+1 live at index ``layer``.
            next_weights = self._weights[layer][:, :-1]
            propagated = next_weights.T @ self._deltas[layer + 1]
            self._deltas[layer][:] = sigmoid_derivative(self._outputs[layer]) * propagated

    def _update(self) -> None:
        # Momentum from the previous call goes in before the fresh step.
        for weights, change in zip(self._weights, self._weight_changes):
            weights += self._momentum * change

        for layer, (weights, change) in enumerate(
            zip(self._weights, self._weight_changes), start=1
        ):
            source = np.append(self._outputs[layer - 1], 1.0)
            change[:] = self._learn_rate * np.outer(self._deltas[layer], source)
            weights += change

    def read_output(self, index: int) -> float:
        """Return output unit ``index`` from the most recent forward pass."""

        size = self._topology[-1]
        if (
            isinstance(index, bool)
            or not isinstance(index, (int, np.integer))
            or not 0 <= index < size
        ):
            raise IndexOutOfRange(f"Output index {index} outside [0, {size})")
        return float(self._outputs[-1][index])

    # ------------------------------------------------------------------
    # Parameter import/export

    def export_weights(self) -> str:
        """Serialize every weight, bias included, in the ``;`` text format."""

        return codec.encode_weights(self._weights)

    def import_weights(self, text: str) -> None:
        """Overwrite the weights from :meth:`export_weights` output.

        The weight-change history is left as it is.
        """

        decoded = codec.decode_weights(text, self.weight_shapes())
        for weights, values in zip(self._weights, decoded):
            weights[:] = values

    def reset_momentum(self) -> None:
        for change in self._weight_changes:
            change.fill(0.0)

    def state_dict(self) -> Mapping[str, Array]:
        state = {}
        for layer, (weights, change) in enumerate(
            zip(self._weights, self._weight_changes), start=1
        ):
            state[f"W{layer}"] = weights.copy()
            state[f"dW{layer}"] = change.copy()
        return state

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        staged = []
        for layer, weights in enumerate(self._weights, start=1):
            for key in (f"W{layer}", f"dW{layer}"):
                if key not in state:
                    raise KeyError(f"Missing weight {key} in state dict")
                value = np.asarray(state[key], dtype=np.float64)
                if value.shape != weights.shape:
                    raise DimensionMismatch(
                        f"{key} has shape {value.shape}, expected {weights.shape}"
                    )
                staged.append(value)
        targets = [m for pair in zip(self._weights, self._weight_changes) for m in pair]
        for target, value in zip(targets, staged):
            target[:] = value

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(learn_rate={self._learn_rate}, "
            f"momentum={self._momentum}, topology={list(self._topology)})"
        )


__all__ = ["BPNetwork"]
