"""Error taxonomy raised by the network engine."""

from __future__ import annotations


class NetworkError(Exception):
    """Base class for every error raised by :mod:`bpnet.core`."""


class InvalidTopology(NetworkError, ValueError):
    """The layer sizes cannot describe a feed-forward network."""


class DimensionMismatch(NetworkError, ValueError):
    """An input, target or state array does not fit the topology."""


class MalformedWeightData(NetworkError, ValueError):
    """Serialized weights have the wrong token count or an unparsable token."""


class IndexOutOfRange(NetworkError, IndexError):
    """An output unit index lies outside the output layer."""


__all__ = [
    "DimensionMismatch",
    "IndexOutOfRange",
    "InvalidTopology",
    "MalformedWeightData",
    "NetworkError",
]
