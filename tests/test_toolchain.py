from __future__ import annotations

from ci_engine.config import PipelineConfig
from ci_engine.toolchain import Toolchain, select_toolchain


def test_native_selection_has_no_target_args_or_setup() -> None:
    selection = select_toolchain(PipelineConfig())

    assert selection.toolchain is Toolchain.NATIVE
    assert selection.program == "cargo"
    assert selection.target_args == ()
    assert selection.setup_commands == ()


def test_cross_selection_wraps_with_cross_and_target() -> None:
    selection = select_toolchain(PipelineConfig(target="aarch64-unknown-linux-gnu"))

    assert selection.toolchain is Toolchain.CROSS
    assert selection.program == "cross"
    assert selection.target_args == ("--target", "aarch64-unknown-linux-gnu")
    assert selection.setup_commands == (
        ("rustup", "target", "add", "aarch64-unknown-linux-gnu"),
        ("cargo", "install", "-v", "cross", "--force"),
    )
