"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

from ci_engine.config import PipelineConfig


class Toolchain(str, Enum):
    NATIVE = "cargo"
    CROSS = "cross"


@dataclass(frozen=True)
class ToolchainSelection:
    toolchain: Toolchain
    target_args: Tuple[str, ...] = ()
    setup_commands: Tuple[Tuple[str, ...], ...] = field(default_factory=tuple)

    @property
    def program(self) -> str:
        return self.toolchain.value


def cross_setup_commands(target: str) -> List[List[str]]:
    return [
        ["rustup", "target", "add", target],
        ["cargo", "install", "-v", "cross", "--force"],
    ]


def select_toolchain(config: PipelineConfig) -> ToolchainSelection:
    """Pick the wrapper used by every build/test/bench/doc step of a run."""
    if not config.cross_compiling:
        return ToolchainSelection(toolchain=Toolchain.NATIVE)
    target = str(config.target)
    return ToolchainSelection(
        toolchain=Toolchain.CROSS,
        target_args=("--target", target),
        setup_commands=tuple(tuple(cmd) for cmd in cross_setup_commands(target)),
    )
