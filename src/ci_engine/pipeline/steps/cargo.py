"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

from typing import Sequence

NATIVE_CARGO = "cargo"


def build_build_command(*, program: str, target_args: Sequence[str]) -> list[str]:
    return [program, "build", "-v", *target_args]


def build_test_command(*, program: str, target_args: Sequence[str]) -> list[str]:
    return [program, "test", "-v", *target_args]


def build_bench_smoke_command(*, program: str, target_args: Sequence[str]) -> list[str]:
    # `--test` runs each benchmark once without recording numbers.
    return [program, "bench", "-v", *target_args, "--", "--test"]


def build_doc_command(*, program: str, target_args: Sequence[str]) -> list[str]:
    return [program, "doc", "-v", *target_args]


def build_release_test_command() -> list[str]:
    return [NATIVE_CARGO, "test", "-v", "--release"]
