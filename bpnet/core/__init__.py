"""Core numerical primitives for bpnet."""

from . import activations, codec, errors, network, types

__all__ = ["activations", "codec", "errors", "network", "types"]
