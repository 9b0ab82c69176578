"""Activation utilities for bpnet."""

from __future__ import annotations

import numpy as np

from .types import Array


def sigmoid(x: Array | float) -> Array | float:
    """Return the logistic sigmoid ``1 / (1 + e^-x)``."""

    # exp overflows to inf for very negative sums; the result saturates at 0.
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-x))


def sigmoid_derivative(activation: Array | float) -> Array | float:
    """Return ``f(a) * (1 - f(a))`` for an already activated value ``a``.

    The transfer function is applied to the activation itself, so this is the
    sigmoid slope evaluated at the unit's output rather than at its weighted
    input sum.
    """

    out = sigmoid(activation)
    return (1.0 - out) * out
