"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from ci_engine.config import PipelineConfig
    from ci_engine.pipeline.runner import PipelineResult

logger = logging.getLogger(__name__)

RUN_REPORT_SCHEMA_VERSION = 1


def build_run_report(result: "PipelineResult", config: "PipelineConfig") -> Dict[str, Any]:
    return {
        "schema_version": RUN_REPORT_SCHEMA_VERSION,
        "started_at": result.started_at,
        "finished_at": result.finished_at,
        "status": result.status,
        "exit_code": result.exit_code,
        "error": result.error,
        "branch": result.branch,
        "on_mainline": result.on_mainline,
        "config": config.summary(),
        "steps": [
            {
                "name": step.name,
                "cmd": list(step.cmd),
                "status": step.status.value,
                "returncode": step.returncode,
                "duration_s": round(step.duration_s, 3),
            }
            for step in result.steps
        ],
    }


def write_run_report(path: Path, result: "PipelineResult", config: "PipelineConfig") -> Path:
    payload = build_run_report(result, config)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.info("Wrote run report to %s", path)
    return path
