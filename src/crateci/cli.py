"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import argparse
import json
import shlex
from pathlib import Path
from typing import List, Optional

from ci_engine.config import ConfigConflictError, PipelineConfig
from ci_engine.pipeline import runner as _runner


def _load_config(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig.from_env(
        workdir=Path(args.workdir) if getattr(args, "workdir", None) else None,
        mainline_branch=getattr(args, "mainline_branch", None),
    )


def _run(args: argparse.Namespace) -> int:
    return _runner.run_from_args(args)


def _plan(args: argparse.Namespace) -> int:
    config = _load_config(args)
    try:
        steps = _runner.plan_steps(config)
    except ConfigConflictError as exc:
        print(f"[plan] FAIL {exc}")
        return 1

    if args.json:
        print(
            json.dumps(
                {
                    "branch": config.branch,
                    "on_mainline": config.on_mainline,
                    "config": config.summary(),
                    "steps": [{"name": step.name, "cmd": step.cmd} for step in steps],
                },
                ensure_ascii=False,
                indent=2,
                sort_keys=True,
            )
        )
        return 0

    print(f"CrateCI plan ({config.target or 'native'}, branch={config.branch or '(unknown)'})")
    for index, step in enumerate(steps, start=1):
        print(f"{index:>2}. {step.name}: {shlex.join(step.cmd)}")
    return 0


def _branch(args: argparse.Namespace) -> int:
    config = _load_config(args)
    print(f"- branch: {config.branch or '(unknown)'}")
    print(f"- mainline: {config.mainline_branch}")
    print(f"- on_mainline: {'yes' if config.on_mainline else 'no'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crateci", description="CrateCI pipeline tooling")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_cmd = subparsers.add_parser("run", help="Run the CI pipeline")
    _runner.add_run_args(run_cmd)
    run_cmd.set_defaults(func=_run)

    plan_cmd = subparsers.add_parser("plan", help="Print the steps a run would execute")
    plan_cmd.add_argument("--json", action="store_true", help="Output machine-readable JSON.")
    plan_cmd.add_argument("--workdir", help="Directory the steps would run in.")
    plan_cmd.add_argument("--mainline-branch", dest="mainline_branch", help="Override the mainline branch.")
    plan_cmd.set_defaults(func=_plan)

    branch_cmd = subparsers.add_parser("branch", help="Show the resolved CI branch")
    branch_cmd.add_argument("--mainline-branch", dest="mainline_branch", help="Override the mainline branch.")
    branch_cmd.set_defaults(func=_branch)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
