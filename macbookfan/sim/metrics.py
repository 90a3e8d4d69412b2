"""
Artifact writing for macbookfan simulation runs.

Artifacts make simulated runs comparable across controller changes:
- metrics.json: Run summary and controller configuration
- timeseries.json: Per-tick temperature, target and fan commands

Example artifact directory structure:
```
artifacts/sim/20240115_120000_plug_in/
├── metrics.json       # Run summary
└── timeseries.json    # Tick history
```
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from .laptop import SimulationResult


def summarize(result: SimulationResult) -> dict:
    """
    Reduce a run to headline numbers.

    Empty runs produce None for every temperature statistic.
    """
    temps = [s.temp_c for s in result.samples]
    return {
        "scenario_name": result.name,
        "total_ticks": len(result.samples),
        "total_writes": result.total_writes,
        "final_temp_c": temps[-1] if temps else None,
        "max_temp_c": max(temps) if temps else None,
        "min_temp_c": min(temps) if temps else None,
        "final_speed": result.samples[-1].speed if result.samples else None,
    }


def write_simulation_artifacts(*, out_path: Path, result: SimulationResult) -> None:
    """
    Write all simulation artifacts to disk.

    Args:
        out_path: Output directory path. Will be created if it doesn't
                  exist, including parent directories.
        result: Completed simulation run. timeseries.json is skipped for
                runs without samples.
    """
    out_path = Path(out_path)
    out_path.mkdir(parents=True, exist_ok=True)

    _write_metrics_json(out_path, result)
    if result.samples:
        _write_timeseries_json(out_path, result)


def _write_metrics_json(out_path: Path, result: SimulationResult) -> None:
    """
    Write metrics.json artifact.

    Schema:
    {
        "run": {"scenario_name": str, "total_ticks": int, ...},
        "config": {"base_target_c": float, "kp": float, ...}
    }
    """
    config = asdict(result.config)
    config["derivative_mode"] = result.config.derivative_mode.value
    payload = {
        "run": summarize(result),
        "config": config,
    }

    metrics_path = out_path / "metrics.json"
    metrics_path.write_text(
        json.dumps(payload, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )


def _write_timeseries_json(out_path: Path, result: SimulationResult) -> None:
    """
    Write timeseries.json artifact.

    Schema:
    {
        "samples": [
            {
                "iteration": int,
                "time_s": float,
                "temp_c": float,
                "target_c": float,
                "power_online": bool,
                "speed": int,
                "writes": {fan_id: int},
                ...
            },
            ...
        ]
    }
    """
    timeseries_payload = {
        "samples": [asdict(s) for s in result.samples],
    }
    timeseries_path = out_path / "timeseries.json"
    timeseries_path.write_text(
        json.dumps(timeseries_payload, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
