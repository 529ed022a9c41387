from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_src_on_path() -> None:
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if src_path.exists():
        src_str = str(src_path)
        if src_str not in sys.path:
            sys.path.insert(0, src_str)


_ensure_src_on_path()

CI_ENV_KEYS = (
    "TARGET",
    "COVERAGE",
    "FUZZ",
    "FEATURES",
    "TRAVIS_PULL_REQUEST",
    "TRAVIS_BRANCH",
    "TRAVIS_PULL_REQUEST_BRANCH",
    "GITHUB_ACTIONS",
    "GITHUB_EVENT_NAME",
    "GITHUB_HEAD_REF",
    "GITHUB_REF_NAME",
    "CI_MAINLINE_BRANCH",
    "FUZZIT_SCRIPT",
    "CODECOV_UPLOADER_URL",
)


@pytest.fixture(autouse=True)
def _isolate_ci_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Host CI variables must never leak into pipeline configuration under test.
    for key in CI_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
