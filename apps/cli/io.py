"""CLI I/O helpers for atomic output writing."""

from __future__ import annotations

import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.orchestrator.pipeline import PrintResult
from core.render.payload_builder import payload_to_dict


@dataclass(frozen=True)
class OutputPaths:
    """Fixed output artifact paths for a single print run."""

    payload: Path
    resolved: Path
    error: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    """Build fixed output file paths under out_dir."""

    return OutputPaths(
        payload=out_dir / "out.payload.json",
        resolved=out_dir / "out.resolved.json",
        error=out_dir / "out.error.json",
    )


def existing_output_files(paths: OutputPaths) -> list[Path]:
    """Return existing output files among fixed artifact paths."""

    return [path for path in (paths.payload, paths.resolved) if path.exists()]


def write_print_output_atomic(paths: OutputPaths, result: PrintResult) -> None:
    """Write payload and resolved-variable artifacts using temporary files + replace."""

    paths.payload.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(paths.payload, payload_to_dict(result.payload))
    _atomic_write_json(
        paths.resolved,
        {"resolved": [item.model_dump(mode="json", by_alias=True) for item in result.resolved]},
    )
    paths.error.unlink(missing_ok=True)


def write_error_json_atomic(
    paths: OutputPaths,
    *,
    error_type: str,
    error_message: str,
    stage: str,
) -> None:
    """Write the error artifact for a failed run."""

    paths.error.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(
        paths.error,
        {
            "error": {
                "error_type": error_type,
                "error_message": error_message,
                "stage": stage,
            }
        },
    )


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    tmp_path.replace(path)
