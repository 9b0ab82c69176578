"""Text wire format for network weights.

Every weight is written as an ASCII decimal token followed by ``;``. Tokens
are ordered layer by layer (starting at the first hidden layer), unit by unit,
incoming connection by incoming connection, with each unit's bias last::

    0.5;-0.25;0.1234567891;...;

Values carry at most ten fractional digits with trailing zeros trimmed and
always use ``.`` as the decimal separator, independent of the locale.
"""

from __future__ import annotations

import math
import re
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .errors import MalformedWeightData
from .types import Array

TERMINATOR = ";"
FRACTION_DIGITS = 10

_TOKEN_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


def format_weight(value: float) -> str:
    """Format ``value`` with up to ten fractional digits and no exponent."""

    value = float(value)
    if not math.isfinite(value):
        raise MalformedWeightData(f"Cannot serialize non-finite weight {value!r}")
    text = f"{value:.{FRACTION_DIGITS}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        return "0"
    return text


def parse_weight(token: str) -> float:
    """Parse a single weight token (optional sign, digits and one point)."""

    if not _TOKEN_RE.fullmatch(token):
        raise MalformedWeightData(f"Invalid weight token: {token!r}")
    return float(token)


def split_tokens(text: str) -> List[str]:
    """Split ``text`` into weight tokens, dropping the final terminator."""

    text = text.strip()
    if not text:
        return []
    tokens = text.split(TERMINATOR)
    if tokens[-1] == "":
        tokens.pop()
    return tokens


def encode_weights(weights: Iterable[Array]) -> str:
    """Serialize per-layer weight matrices in row-major order."""

    parts: List[str] = []
    for matrix in weights:
        for value in np.asarray(matrix, dtype=np.float64).ravel():
            parts.append(format_weight(value))
            parts.append(TERMINATOR)
    return "".join(parts)


def decode_weights(text: str, shapes: Sequence[Tuple[int, int]]) -> List[Array]:
    """Parse ``text`` into fresh matrices with the given ``shapes``.

    Nothing is returned unless every token parses and the token count matches
    the shapes exactly, so callers can assign the result without risking a
    partial update.
    """

    tokens = split_tokens(text)
    expected = sum(rows * cols for rows, cols in shapes)
    if len(tokens) != expected:
        raise MalformedWeightData(
            f"Expected {expected} weight tokens but found {len(tokens)}"
        )
    values = np.fromiter((parse_weight(tok) for tok in tokens), dtype=np.float64, count=expected)
    matrices: List[Array] = []
    offset = 0
    for rows, cols in shapes:
        size = rows * cols
        matrices.append(values[offset : offset + size].reshape(rows, cols).copy())
        offset += size
    return matrices


__all__ = [
    "FRACTION_DIGITS",
    "TERMINATOR",
    "decode_weights",
    "encode_weights",
    "format_weight",
    "parse_weight",
    "split_tokens",
]
