"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

FUZZ_REGRESSION_SUBCOMMAND = "local-regression"
FUZZ_CONTINUOUS_SUBCOMMAND = "fuzzing"


def build_fuzz_regression_command(*, fuzz_script: str) -> list[str]:
    return [fuzz_script, FUZZ_REGRESSION_SUBCOMMAND]


def build_fuzz_continuous_command(*, fuzz_script: str) -> list[str]:
    return [fuzz_script, FUZZ_CONTINUOUS_SUBCOMMAND]
