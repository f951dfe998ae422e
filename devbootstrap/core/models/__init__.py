"""
Domain models for the bootstrap pipeline.

    from devbootstrap.core.models import EnvironmentState, PipelineStep, Receipt
"""

from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.environment import PATH_VAR, EnvironmentState
from devbootstrap.core.models.step import PipelineStep, StepOutcome
from devbootstrap.core.models.target import ProjectTarget, ToolPresence

__all__ = [
    "PATH_VAR",
    "EnvironmentState",
    "PipelineStep",
    "ProjectTarget",
    "Receipt",
    "StepOutcome",
    "ToolPresence",
]
