"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, MutableMapping, Tuple

from ..core.types import Sample

TASK_TYPES = frozenset({"binary", "onehot"})


@dataclass(frozen=True)
class DataSpec:
    """Structural information about a dataset.

    Attributes
    ----------
    d_in:
        Number of input units the samples feed.
    d_out:
        Number of output units the targets describe.
    task_type:
        One of ``{"binary", "onehot"}``.  All targets live in
        ``[0, 1]`` so they can be matched by sigmoid outputs.
    extra:
        Free-form metadata, for example the bit width of a pattern set.
    """

    d_in: int
    d_out: int
    task_type: str
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DatasetSpec:
    """Description of a dataset registered in the system."""

    name: str
    samples: Tuple[Sample, ...]
    data_spec: DataSpec
    provenance: Dict[str, Any]

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    def __len__(self) -> int:
        return len(self.samples)


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("xor")
        def make_xor(**kwargs):
            ...

    or directly::

        register_dataset("xor", make_xor)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Return the :class:`DatasetSpec` for ``dataset``."""

    if dataset not in _REGISTRY:
        raise KeyError(f"Unknown dataset: {dataset}")

    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if spec.data_spec.task_type not in TASK_TYPES:
        raise ValueError(f"Invalid task type: {spec.data_spec.task_type}")
    if not spec.samples:
        raise ValueError(f"Dataset {spec.name!r} has no samples")
    for idx, sample in enumerate(spec.samples):
        if sample.inputs.shape != (spec.data_spec.d_in,):
            raise ValueError(
                f"Sample {idx} of {spec.name!r} has inputs of shape {sample.inputs.shape}"
            )
        if sample.targets.shape != (spec.data_spec.d_out,):
            raise ValueError(
                f"Sample {idx} of {spec.name!r} has targets of shape {sample.targets.shape}"
            )


__all__ = [
    "DataSpec",
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
