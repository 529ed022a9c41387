"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

COVERAGE_TOOL = "cargo-travis"


def build_coverage_install_command() -> list[str]:
    return ["cargo", "install", "-v", COVERAGE_TOOL]


def build_coverage_capture_command(
    *,
    coverage_dir: str,
    workdir: Path,
    features: Optional[str],
) -> list[str]:
    cmd = ["cargo", "coverage", "-v", "-m", coverage_dir]
    if features:
        cmd.extend(["--features", features])
    cmd.extend(["--kcov-build-location", str(workdir / "target")])
    return cmd


def build_coverage_upload_command(*, uploader_path: Path, coverage_dir: str) -> list[str]:
    return [
        "bash",
        str(uploader_path),
        "-c",
        "-X",
        "gcov",
        "-X",
        "coveragepy",
        "-s",
        coverage_dir,
    ]
