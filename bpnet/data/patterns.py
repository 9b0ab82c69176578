"""Built-in bit-pattern datasets."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from ..core.types import Sample
from .registry import DatasetSpec, DataSpec, register_dataset


def bit_patterns(width: int) -> np.ndarray:
    """Return every ``width``-bit pattern, most significant bit first."""

    if width <= 0:
        raise ValueError(f"width must be positive, got {width}")
    codes = np.arange(2**width)
    shifts = np.arange(width - 1, -1, -1)
    return ((codes[:, None] >> shifts) & 1).astype(np.float64)


def _freeze(inputs: np.ndarray, targets: np.ndarray) -> Tuple[Sample, ...]:
    samples: List[Sample] = []
    for x, y in zip(inputs, targets):
        x = x.copy()
        y = y.copy()
        x.setflags(write=False)
        y.setflags(write=False)
        samples.append(Sample(inputs=x, targets=y))
    return tuple(samples)


@register_dataset("bits_onehot")
def make_bits_onehot(*, width: int = 4, **_: object) -> DatasetSpec:
    """Map pattern ``n`` of ``width`` bits onto output unit ``n``."""

    width = int(width)
    inputs = bit_patterns(width)
    targets = np.eye(inputs.shape[0], dtype=np.float64)
    return DatasetSpec(
        name="bits_onehot",
        samples=_freeze(inputs, targets),
        data_spec=DataSpec(
            d_in=width, d_out=int(targets.shape[1]), task_type="onehot", extra={"width": width}
        ),
        provenance={"type": "bits_onehot", "width": width, "samples": int(inputs.shape[0])},
    )


@register_dataset("xor")
def make_xor(**_: object) -> DatasetSpec:
    inputs = bit_patterns(2)
    targets = (inputs.sum(axis=1, keepdims=True) % 2).astype(np.float64)
    return DatasetSpec(
        name="xor",
        samples=_freeze(inputs, targets),
        data_spec=DataSpec(d_in=2, d_out=1, task_type="binary"),
        provenance={"type": "xor", "samples": 4},
    )


@register_dataset("parity")
def make_parity(*, width: int = 3, **_: object) -> DatasetSpec:
    """Odd parity of every ``width``-bit pattern."""

    width = int(width)
    inputs = bit_patterns(width)
    targets = (inputs.sum(axis=1, keepdims=True) % 2).astype(np.float64)
    return DatasetSpec(
        name="parity",
        samples=_freeze(inputs, targets),
        data_spec=DataSpec(d_in=width, d_out=1, task_type="binary", extra={"width": width}),
        provenance={"type": "parity", "width": width, "samples": int(inputs.shape[0])},
    )


__all__ = ["bit_patterns", "make_bits_onehot", "make_parity", "make_xor"]
