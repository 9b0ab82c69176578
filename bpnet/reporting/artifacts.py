"""Run artifact helpers."""

from __future__ import annotations

import hashlib
import json
import platform
import time
from pathlib import Path
from typing import Mapping

import numpy as np

from .metrics import git_sha


def text_checksum(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def write_weights(path: str | Path, weights: str) -> str:
    """Store an exported weight string and return the file path."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(weights, encoding="ascii")
    return str(path)


def read_weights(path: str | Path) -> str:
    return Path(path).read_text(encoding="ascii")


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    model: Mapping[str, object],
    weights_checksum: str,
) -> str:
    """Write a manifest JSON file capturing reproducibility metadata."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "git_sha": git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "dataset": dict(dataset_provenance),
        "model": dict(model),
        "weights_sha256": weights_checksum,
        "environment": {
            "python": platform.python_version(),
            "numpy": np.__version__,
        },
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)


__all__ = ["read_weights", "text_checksum", "write_manifest", "write_weights"]
