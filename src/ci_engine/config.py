"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_MAINLINE_BRANCH = "master"
DEFAULT_FUZZ_SCRIPT = "./fuzzit.sh"
DEFAULT_COVERAGE_UPLOADER_URL = "https://codecov.io/bash"
COVERAGE_DIR = "coverage-reports"

COVERAGE_CONFLICT_MESSAGE = "cannot record coverage while cross compiling"
FUZZ_CONFLICT_MESSAGE = "cannot fuzz while cross compiling"

_GITHUB_PR_EVENTS = frozenset({"pull_request", "pull_request_target"})


class ConfigConflictError(ValueError):
    """Raised when requested pipeline phases cannot run together."""


def _env_value(env: Mapping[str, str], key: str) -> Optional[str]:
    value = (env.get(key) or "").strip()
    return value or None


def resolve_branch(env: Optional[Mapping[str, str]] = None) -> str:
    """
    Return the branch the current CI build belongs to.

    Pull-request builds report the PR source branch, push builds the pushed
    branch. Travis variables win over GitHub Actions ones; outside a known CI
    the branch is empty and never counts as mainline.
    """
    env_map = os.environ if env is None else env

    if "TRAVIS_PULL_REQUEST" in env_map:
        if (env_map.get("TRAVIS_PULL_REQUEST") or "").strip() == "false":
            return (env_map.get("TRAVIS_BRANCH") or "").strip()
        return (env_map.get("TRAVIS_PULL_REQUEST_BRANCH") or "").strip()

    if (env_map.get("GITHUB_ACTIONS") or "").strip() == "true":
        event = (env_map.get("GITHUB_EVENT_NAME") or "").strip()
        if event in _GITHUB_PR_EVENTS:
            return (env_map.get("GITHUB_HEAD_REF") or "").strip()
        return (env_map.get("GITHUB_REF_NAME") or "").strip()

    return ""


@dataclass(frozen=True)
class PipelineConfig:
    target: Optional[str] = None
    coverage: bool = False
    fuzz: bool = False
    features: Optional[str] = None
    branch: str = ""
    mainline_branch: str = DEFAULT_MAINLINE_BRANCH
    fuzz_script: str = DEFAULT_FUZZ_SCRIPT
    coverage_dir: str = COVERAGE_DIR
    coverage_uploader_url: str = DEFAULT_COVERAGE_UPLOADER_URL
    workdir: Path = field(default_factory=Path.cwd)

    @property
    def cross_compiling(self) -> bool:
        return self.target is not None

    @property
    def on_mainline(self) -> bool:
        return bool(self.branch) and self.branch == self.mainline_branch

    def validate(self) -> None:
        if self.coverage and self.cross_compiling:
            raise ConfigConflictError(COVERAGE_CONFLICT_MESSAGE)
        if self.fuzz and self.cross_compiling:
            raise ConfigConflictError(FUZZ_CONFLICT_MESSAGE)

    def summary(self) -> dict:
        return {
            "target": self.target,
            "coverage": self.coverage,
            "fuzz": self.fuzz,
            "features": self.features,
        }

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        *,
        workdir: Optional[Path] = None,
        mainline_branch: Optional[str] = None,
    ) -> "PipelineConfig":
        env_map = os.environ if env is None else env
        mainline = (mainline_branch or "").strip() or _env_value(env_map, "CI_MAINLINE_BRANCH")
        return cls(
            target=_env_value(env_map, "TARGET"),
            coverage=_env_value(env_map, "COVERAGE") is not None,
            fuzz=_env_value(env_map, "FUZZ") is not None,
            features=_env_value(env_map, "FEATURES"),
            branch=resolve_branch(env_map),
            mainline_branch=mainline or DEFAULT_MAINLINE_BRANCH,
            fuzz_script=_env_value(env_map, "FUZZIT_SCRIPT") or DEFAULT_FUZZ_SCRIPT,
            coverage_uploader_url=_env_value(env_map, "CODECOV_UPLOADER_URL") or DEFAULT_COVERAGE_UPLOADER_URL,
            workdir=(workdir or Path.cwd()).resolve(),
        )
