from __future__ import annotations

from pathlib import Path

import pytest

from ci_engine.config import ConfigConflictError, PipelineConfig
from ci_engine.pipeline.runner import plan_steps, resolve_step_order

CORE_STEPS = ["build", "test", "bench", "doc", "test:release"]
WRAPPED_STEPS = {"build", "test", "bench", "doc"}


def test_no_flags_plans_exactly_the_five_core_steps() -> None:
    assert resolve_step_order(PipelineConfig()) == CORE_STEPS


def test_resolve_step_order_is_deterministic() -> None:
    config = PipelineConfig(coverage=True, fuzz=True, branch="master")
    assert resolve_step_order(config) == resolve_step_order(config)


def test_native_steps_use_cargo_without_target() -> None:
    steps = {step.name: step.cmd for step in plan_steps(PipelineConfig())}

    assert steps["build"] == ["cargo", "build", "-v"]
    assert steps["test"] == ["cargo", "test", "-v"]
    assert steps["bench"] == ["cargo", "bench", "-v", "--", "--test"]
    assert steps["doc"] == ["cargo", "doc", "-v"]
    assert steps["test:release"] == ["cargo", "test", "-v", "--release"]
    assert all("--target" not in cmd for cmd in steps.values())


def test_cross_steps_use_wrapper_except_release_test() -> None:
    target = "aarch64-unknown-linux-gnu"
    steps = plan_steps(PipelineConfig(target=target))

    assert [step.name for step in steps] == ["toolchain:target-add", "toolchain:install-cross", *CORE_STEPS]
    by_name = {step.name: step.cmd for step in steps}
    for name in WRAPPED_STEPS:
        assert by_name[name][0] == "cross"
        assert by_name[name][3:5] == ["--target", target]
    assert by_name["bench"] == ["cross", "bench", "-v", "--target", target, "--", "--test"]
    assert by_name["test:release"] == ["cargo", "test", "-v", "--release"]


def test_coverage_appends_install_capture_upload_in_order(tmp_path: Path) -> None:
    config = PipelineConfig(coverage=True, features="std", workdir=tmp_path)
    steps = plan_steps(config, staging_dir=tmp_path / "staging")

    assert [step.name for step in steps] == [
        *CORE_STEPS,
        "coverage:install",
        "coverage:capture",
        "coverage:upload",
    ]
    install, capture, upload = steps[-3:]
    assert install.cmd == ["cargo", "install", "-v", "cargo-travis"]
    assert install.allow_failure is True
    assert capture.cmd == [
        "cargo",
        "coverage",
        "-v",
        "-m",
        "coverage-reports",
        "--features",
        "std",
        "--kcov-build-location",
        str(tmp_path / "target"),
    ]
    assert upload.cmd == [
        "bash",
        str(tmp_path / "staging" / "codecov-uploader.sh"),
        "-c",
        "-X",
        "gcov",
        "-X",
        "coveragepy",
        "-s",
        "coverage-reports",
    ]
    assert upload.prepare is not None


def test_coverage_capture_uses_absolute_build_location_by_default(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    steps = plan_steps(PipelineConfig(coverage=True))
    capture = next(step for step in steps if step.name == "coverage:capture")

    assert capture.cmd[-1] == str(Path.cwd() / "target")


def test_coverage_capture_omits_features_when_unset(tmp_path: Path) -> None:
    steps = plan_steps(PipelineConfig(coverage=True, workdir=tmp_path))
    capture = next(step for step in steps if step.name == "coverage:capture")
    assert "--features" not in capture.cmd


def test_fuzz_off_mainline_only_runs_regression() -> None:
    steps = plan_steps(PipelineConfig(fuzz=True, branch="feature/mom"))

    assert [step.name for step in steps][-1] == "fuzz:regression"
    assert steps[-1].cmd == ["./fuzzit.sh", "local-regression"]


def test_fuzz_on_mainline_runs_regression_then_continuous() -> None:
    steps = plan_steps(PipelineConfig(fuzz=True, branch="master", fuzz_script="./ci/fuzzit.sh"))

    assert [step.name for step in steps][-2:] == ["fuzz:regression", "fuzz:continuous"]
    assert steps[-2].cmd == ["./ci/fuzzit.sh", "local-regression"]
    assert steps[-1].cmd == ["./ci/fuzzit.sh", "fuzzing"]


def test_coverage_runs_before_fuzz() -> None:
    order = resolve_step_order(PipelineConfig(coverage=True, fuzz=True, branch="master"))
    assert order.index("coverage:upload") < order.index("fuzz:regression")


@pytest.mark.parametrize("flag", ["coverage", "fuzz"])
def test_cross_compiling_conflicts_are_rejected_before_planning(flag: str) -> None:
    config = PipelineConfig(target="aarch64-unknown-linux-gnu", **{flag: True})
    with pytest.raises(ConfigConflictError):
        resolve_step_order(config)
