"""Run report output."""

from __future__ import annotations

from pathlib import Path

from inspection_map.common.fs import write_json
from inspection_map.common.models import PipelineStats
from inspection_map.common.time_utils import utc_timestamp_iso


def write_run_report(
    path: Path,
    *,
    run_id: str,
    command: str,
    status: str,
    endpoint: str,
    stats: PipelineStats | None,
    error_code: str | None = None,
) -> Path:
    counts = stats.to_dict() if stats is not None else {}
    payload = {
        "run_id": run_id,
        "command": command,
        "generated_at": utc_timestamp_iso(),
        "status": status,
        "endpoint": endpoint,
        "counts": counts,
        "error_code": error_code,
    }
    write_json(path, payload)
    return path
