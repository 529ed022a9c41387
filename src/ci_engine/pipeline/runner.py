"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import argparse
import functools
import logging
import shlex
import subprocess
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ci_engine.config import ConfigConflictError, PipelineConfig
from ci_engine.coverage_upload import UPLOADER_FILENAME, stage_uploader
from ci_engine.pipeline.steps import (
    build_bench_smoke_command,
    build_build_command,
    build_coverage_capture_command,
    build_coverage_install_command,
    build_coverage_upload_command,
    build_doc_command,
    build_fuzz_continuous_command,
    build_fuzz_regression_command,
    build_release_test_command,
    build_test_command,
)
from ci_engine.report import write_run_report
from ci_engine.toolchain import select_toolchain
from ci_engine.utils.network_shield import NetworkShieldError
from ci_engine.utils.time import monotonic_s, utc_now_z

logger = logging.getLogger(__name__)

EXIT_CONFIG_CONFLICT = 1
EXIT_PREPARE_FAILED = 1
EXIT_COMMAND_NOT_EXECUTABLE = 126
EXIT_COMMAND_NOT_FOUND = 127
DEFAULT_STAGING_DIRNAME = ".crateci"


class StepStatus(str, Enum):
    PLANNED = "planned"
    SUCCESS = "success"
    TOLERATED = "tolerated"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Step:
    name: str
    cmd: List[str]
    allow_failure: bool = False
    prepare: Optional[Callable[[], object]] = None


@dataclass(frozen=True)
class StepResult:
    name: str
    cmd: List[str]
    status: StepStatus
    returncode: Optional[int] = None
    duration_s: float = 0.0


@dataclass
class PipelineResult:
    exit_code: int
    steps: List[StepResult] = field(default_factory=list)
    branch: str = ""
    on_mainline: bool = False
    started_at: str = ""
    finished_at: str = ""
    error: Optional[str] = None

    @property
    def status(self) -> str:
        return "success" if self.exit_code == 0 else "failed"

    @property
    def executed(self) -> List[str]:
        return [r.name for r in self.steps if r.status in (StepStatus.SUCCESS, StepStatus.TOLERATED, StepStatus.FAILED)]


class PipelineStepError(RuntimeError):
    def __init__(self, result: StepResult) -> None:
        super().__init__(f"step '{result.name}' failed with exit code {result.returncode}")
        self.result = result
        self.step = result.name
        self.returncode = result.returncode if result.returncode is not None else 1


def _format_cmd(cmd: Sequence[str]) -> str:
    return shlex.join(list(cmd))


def _exit_code_for(returncode: int) -> int:
    # Signal deaths come back negative; report them the way a shell would.
    if returncode < 0:
        return 128 - returncode
    return returncode


def plan_steps(config: PipelineConfig, *, staging_dir: Optional[Path] = None) -> List[Step]:
    """
    Build the ordered steps for one run.

    Raises ConfigConflictError before anything is planned when coverage or
    fuzzing is requested while cross compiling.
    """
    config.validate()
    selection = select_toolchain(config)
    program = selection.program
    target_args = list(selection.target_args)

    steps: List[Step] = []
    setup_names = ("toolchain:target-add", "toolchain:install-cross")
    for name, cmd in zip(setup_names, selection.setup_commands):
        steps.append(Step(name, list(cmd)))

    steps.extend(
        [
            Step("build", build_build_command(program=program, target_args=target_args)),
            Step("test", build_test_command(program=program, target_args=target_args)),
            Step("bench", build_bench_smoke_command(program=program, target_args=target_args)),
            Step("doc", build_doc_command(program=program, target_args=target_args)),
            Step("test:release", build_release_test_command()),
        ]
    )

    if config.coverage:
        staging = staging_dir or (config.workdir / DEFAULT_STAGING_DIRNAME)
        steps.extend(
            [
                Step("coverage:install", build_coverage_install_command(), allow_failure=True),
                Step(
                    "coverage:capture",
                    build_coverage_capture_command(
                        coverage_dir=config.coverage_dir,
                        workdir=config.workdir,
                        features=config.features,
                    ),
                ),
                Step(
                    "coverage:upload",
                    build_coverage_upload_command(
                        uploader_path=staging / UPLOADER_FILENAME,
                        coverage_dir=config.coverage_dir,
                    ),
                    prepare=functools.partial(stage_uploader, config.coverage_uploader_url, staging),
                ),
            ]
        )

    if config.fuzz:
        steps.append(Step("fuzz:regression", build_fuzz_regression_command(fuzz_script=config.fuzz_script)))
        if config.on_mainline:
            steps.append(Step("fuzz:continuous", build_fuzz_continuous_command(fuzz_script=config.fuzz_script)))

    return steps


def resolve_step_order(config: PipelineConfig) -> List[str]:
    return [step.name for step in plan_steps(config)]


def run_step(
    step: Step,
    *,
    cwd: Path,
    run: Optional[Callable[..., subprocess.CompletedProcess]] = None,
    check: bool = True,
) -> StepResult:
    runner = run or subprocess.run
    logger.info("+ %s", _format_cmd(step.cmd))
    started = monotonic_s()

    if step.prepare is not None:
        try:
            step.prepare()
        except (NetworkShieldError, OSError) as exc:
            logger.error("Step %s could not be prepared: %s", step.name, exc)
            returncode = EXIT_PREPARE_FAILED
            result = StepResult(step.name, list(step.cmd), StepStatus.FAILED, returncode, monotonic_s() - started)
            if check:
                raise PipelineStepError(result) from exc
            return result

    try:
        completed = runner(list(step.cmd), cwd=str(cwd), check=False)
        returncode = _exit_code_for(int(completed.returncode))
    except PermissionError as exc:
        logger.error("Step %s cannot execute %s: %s", step.name, step.cmd[0], exc)
        returncode = EXIT_COMMAND_NOT_EXECUTABLE
    except OSError as exc:
        logger.error("Step %s could not start %s: %s", step.name, step.cmd[0], exc)
        returncode = EXIT_COMMAND_NOT_FOUND
    duration = monotonic_s() - started

    if returncode == 0:
        return StepResult(step.name, list(step.cmd), StepStatus.SUCCESS, returncode, duration)
    if step.allow_failure:
        logger.warning("Step %s exited %d; treating %s as already installed", step.name, returncode, step.cmd[-1])
        return StepResult(step.name, list(step.cmd), StepStatus.TOLERATED, returncode, duration)

    result = StepResult(step.name, list(step.cmd), StepStatus.FAILED, returncode, duration)
    if check:
        raise PipelineStepError(result)
    return result


def run_pipeline(
    config: PipelineConfig,
    *,
    dry_run: bool = False,
    run: Optional[Callable[..., subprocess.CompletedProcess]] = None,
) -> PipelineResult:
    """Run every planned step in order and stop at the first failure."""
    result = PipelineResult(
        exit_code=0,
        branch=config.branch,
        on_mainline=config.on_mainline,
        started_at=utc_now_z(),
    )
    try:
        config.validate()
    except ConfigConflictError as exc:
        logger.error("%s", exc)
        result.exit_code = EXIT_CONFIG_CONFLICT
        result.error = str(exc)
        result.finished_at = utc_now_z()
        return result

    logger.info(
        "Pipeline start: target=%s coverage=%s fuzz=%s branch=%s",
        config.target or "native",
        config.coverage,
        config.fuzz,
        config.branch or "(unknown)",
    )
    if dry_run:
        for step in plan_steps(config):
            logger.info("[dry-run] %s: %s", step.name, _format_cmd(step.cmd))
            result.steps.append(StepResult(step.name, list(step.cmd), StepStatus.PLANNED))
        result.finished_at = utc_now_z()
        return result

    with tempfile.TemporaryDirectory(prefix="crateci-") as staging:
        steps = plan_steps(config, staging_dir=Path(staging))
        for index, step in enumerate(steps):
            try:
                result.steps.append(run_step(step, cwd=config.workdir, run=run))
            except PipelineStepError as exc:
                logger.error("Pipeline aborted: %s", exc)
                result.steps.append(exc.result)
                result.exit_code = exc.returncode
                result.error = str(exc)
                for skipped in steps[index + 1 :]:
                    result.steps.append(StepResult(skipped.name, list(skipped.cmd), StepStatus.SKIPPED))
                break

    result.finished_at = utc_now_z()
    if result.exit_code == 0:
        logger.info("Pipeline finished: %d step(s) ok", len(result.steps))
    return result


def _setup_logging() -> None:
    if logging.getLogger().hasHandlers():
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def add_run_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--dry-run", "--dry_run", dest="dry_run", action="store_true", help="Log the plan only.")
    parser.add_argument("--report", help="Write a JSON run report to this path.")
    parser.add_argument("--workdir", help="Directory the steps run in (default: current directory).")
    parser.add_argument(
        "--mainline-branch",
        dest="mainline_branch",
        help="Branch whose builds trigger continuous fuzzing (default: CI_MAINLINE_BRANCH or master).",
    )


def run_from_args(args: argparse.Namespace) -> int:
    _setup_logging()
    config = PipelineConfig.from_env(
        workdir=Path(args.workdir) if args.workdir else None,
        mainline_branch=args.mainline_branch,
    )
    result = run_pipeline(config, dry_run=args.dry_run)
    if args.report:
        write_run_report(Path(args.report), result, config)
    return result.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Build, test, document and optionally cover/fuzz the crate.")
    add_run_args(parser)
    args = parser.parse_args(argv)
    return run_from_args(args)


if __name__ == "__main__":
    raise SystemExit(main())
