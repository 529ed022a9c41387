#!/usr/bin/env python3
"""
Thin script entrypoint for the CI pipeline runner.

Behavioral implementation lives in `ci_engine.pipeline.runner`.
"""

from __future__ import annotations

try:
    import _bootstrap  # type: ignore
except ModuleNotFoundError:
    from scripts import _bootstrap  # noqa: F401

from ci_engine.pipeline import runner as _runner

main = _runner.main

if __name__ == "__main__":
    raise SystemExit(main())
