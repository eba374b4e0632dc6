"""Setup pipeline orchestration."""

from dotsetup.orchestrator.runner import PipelineState, RunOutcome, SetupRunner

__all__ = ["PipelineState", "RunOutcome", "SetupRunner"]
