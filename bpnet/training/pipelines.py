"""Pipeline assembly: train, export, reload and evaluate a network."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..core.network import BPNetwork
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import read_weights, text_checksum, write_manifest, write_weights
from ..reporting.console import ConsoleReporter, print_startup_summary
from ..reporting.metrics import CsvSink, JsonlSink, MetricsCapture
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .evaluate import DEFAULT_METRICS, evaluate
from .trainer import Trainer, TrainingPolicy

_PRESETS: Dict[str, Mapping[str, object]] = {
    "bits4-onehot": {
        "data": {"name": "bits_onehot", "options": {"width": 4}},
        "model": {"topology": [4, 64, 64, 16], "learn_rate": 0.1, "momentum": 0.5},
        "train": {
            "max_iterations": 2_000_000,
            "inner_cycles": 10,
            "error_threshold": 1e-5,
            "seed": 0,
            "run_dir": "runs/bits4-onehot",
            "enable_plots": False,
        },
    },
    "bits4-onehot-compact": {
        "data": {"name": "bits_onehot", "options": {"width": 4}},
        "model": {"topology": [4, 8, 8, 16], "learn_rate": 0.1, "momentum": 0.5},
        "train": {
            "max_iterations": 200_000,
            "inner_cycles": 10,
            "error_threshold": 1e-5,
            "seed": 0,
            "run_dir": "runs/bits4-onehot-compact",
            "enable_plots": False,
        },
    },
    "xor": {
        "data": {"name": "xor", "options": {}},
        "model": {"topology": [2, 3, 1], "learn_rate": 0.5, "momentum": 0.5},
        "train": {
            "max_iterations": 20_000,
            "inner_cycles": 10,
            "error_threshold": 1e-4,
            "seed": 7,
            "run_dir": "runs/xor",
            "enable_plots": False,
        },
    },
    "parity3": {
        "data": {"name": "parity", "options": {"width": 3}},
        "model": {"topology": [3, 6, 1], "learn_rate": 0.3, "momentum": 0.5},
        "train": {
            "max_iterations": 50_000,
            "inner_cycles": 10,
            "error_threshold": 1e-4,
            "seed": 3,
            "run_dir": "runs/parity3",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None

WEIGHTS_FILE = "weights.txt"


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Preset {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = _read_preset_file(file)
                missing = {"data", "model", "train"} - set(data)
                if missing:
                    raise KeyError(
                        f"Preset {file.name} is missing required sections: "
                        f"{', '.join(sorted(missing))}"
                    )
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def build_topology(model_cfg: Mapping[str, object], d_in: int, d_out: int) -> List[int]:
    """Resolve the layer sizes, checking them against the dataset shape."""

    if "topology" in model_cfg:
        topology = [int(size) for size in model_cfg["topology"]]  # type: ignore[union-attr]
    else:
        hidden = [int(size) for size in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
        topology = [d_in, *hidden, d_out]
    if topology and topology[0] != d_in:
        raise ValueError(f"Topology input size {topology[0]} but dataset has d_in={d_in}")
    if topology and topology[-1] != d_out:
        raise ValueError(f"Topology output size {topology[-1]} but dataset has d_out={d_out}")
    return topology


def build_policy(train_cfg: Mapping[str, object]) -> TrainingPolicy:
    report_every = train_cfg.get("report_every")
    return TrainingPolicy(
        max_iterations=int(train_cfg.get("max_iterations", 2_000_000)),
        inner_cycles=int(train_cfg.get("inner_cycles", 10)),
        error_threshold=float(train_cfg.get("error_threshold", 1e-5)),
        report_every=int(report_every) if report_every is not None else None,
    )


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config.get("train", {}))  # type: ignore[arg-type]
    weights_cfg = dict(config.get("weights") or {})  # type: ignore[arg-type]

    dataset = registry.get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options") or {}))
    spec = dataset.data_spec
    topology = build_topology(model_cfg, spec.d_in, spec.d_out)
    learn_rate = float(model_cfg.get("learn_rate", 0.1))
    momentum = float(model_cfg.get("momentum", 0.5))
    seed = int(train_cfg.get("seed", 0))
    verbose = bool(train_cfg.get("verbose", True))
    load_path = weights_cfg.get("load")

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    network = BPNetwork(learn_rate, momentum, topology, seed=seed)
    if verbose:
        print_startup_summary(
            dataset_name=dataset.name,
            topology=topology,
            learn_rate=learn_rate,
            momentum=momentum,
            mode="evaluate" if load_path else "train",
            param_count=network.parameter_count(),
        )

    console = ConsoleReporter(enabled=verbose)
    jsonl = JsonlSink(run_dir / "metrics.jsonl", split="train", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv", split="train")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    capture = MetricsCapture()

    if load_path:
        network.import_weights(read_weights(Path(str(load_path))))
        iterations, converged, train_extra = 0, False, {}
    else:
        trainer = Trainer(
            network,
            policy=build_policy(train_cfg),
            callbacks=[console, jsonl, csv_sink, plots, capture],
        )
        console.training_started()
        result = trainer.run(dataset.samples)
        console.training_finished(result.train_cycles, result.iterations, result.average_error)
        iterations, converged = result.iterations, result.converged
        train_extra = {
            "iterations": result.iterations,
            "train_cycles": result.train_cycles,
            "converged": result.converged,
            "final_last_error": result.last_error,
            "final_average_error": result.average_error,
        }
        _save_checkpoint(run_dir / "last.ckpt", network.state_dict())
    plots.close()

    weights = network.export_weights()
    weights_path = write_weights(run_dir / WEIGHTS_FILE, weights)

    # Evaluate a fresh engine rebuilt from the exported text.
    reloaded = BPNetwork(learn_rate, momentum, topology, seed=seed)
    reloaded.import_weights(read_weights(weights_path))
    metric_names = train_cfg.get("metrics", DEFAULT_METRICS)
    if isinstance(metric_names, str):
        metric_names = [m.strip() for m in metric_names.split(",") if m.strip()]
    report = evaluate(reloaded, dataset.samples, metric_names=_metric_names(metric_names, spec.d_out))
    console.evaluation(report.lines)

    evaluation_path = run_dir / "evaluation.txt"
    evaluation_path.write_text(report.render())
    (run_dir / "metrics_eval.json").write_text(json.dumps(report.metrics, indent=2, sort_keys=True))

    safe_config = json.loads(json.dumps(config))
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance=dataset.provenance,
        model={**asdict(network.describe()), "parameters": network.parameter_count()},
        weights_checksum=text_checksum(weights),
    )
    summary_path = write_summary(
        jsonl.path,
        run_dir / "summary.json",
        tail=int(train_cfg.get("summary_tail", 32)),
        extra={
            "training": train_extra,
            "last_report": dict(capture.last),
            "evaluation": report.metrics,
        },
    )
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))

    return RunResult(
        iterations=iterations,
        converged=converged,
        weights_path=weights_path,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        evaluation_path=str(evaluation_path),
    )


def _metric_names(names: Sequence[str], d_out: int) -> List[str]:
    # argmax over a single output unit is always 0 and says nothing.
    return [n for n in names if not (n == "argmax_accuracy" and d_out == 1)]


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _save_checkpoint(path: Path, state: Mapping[str, np.ndarray]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        np.savez_compressed(handle, **dict(state))


__all__ = ["build_policy", "build_topology", "load_preset", "presets", "run_pipeline"]
