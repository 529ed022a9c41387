"""
CrateCI pipeline package.
"""

from ci_engine.pipeline.runner import (
    PipelineResult,
    PipelineStepError,
    Step,
    StepResult,
    StepStatus,
    main,
    plan_steps,
    resolve_step_order,
    run_pipeline,
    run_step,
)

__all__ = [
    "PipelineResult",
    "PipelineStepError",
    "Step",
    "StepResult",
    "StepStatus",
    "main",
    "plan_steps",
    "resolve_step_order",
    "run_pipeline",
    "run_step",
]
