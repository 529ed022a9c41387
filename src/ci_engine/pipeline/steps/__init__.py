"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from ci_engine.pipeline.steps.cargo import (
    build_bench_smoke_command,
    build_build_command,
    build_doc_command,
    build_release_test_command,
    build_test_command,
)
from ci_engine.pipeline.steps.coverage import (
    build_coverage_capture_command,
    build_coverage_install_command,
    build_coverage_upload_command,
)
from ci_engine.pipeline.steps.fuzz import build_fuzz_continuous_command, build_fuzz_regression_command

__all__ = [
    "build_bench_smoke_command",
    "build_build_command",
    "build_coverage_capture_command",
    "build_coverage_install_command",
    "build_coverage_upload_command",
    "build_doc_command",
    "build_fuzz_continuous_command",
    "build_fuzz_regression_command",
    "build_release_test_command",
    "build_test_command",
]
