"""Data models for Deployated."""

from deployated.models.analysis import ProjectAnalysis, RecommendedConfig
from deployated.models.deployment import (
    DeploymentResult,
    DeploymentState,
    DeploymentTarget,
    Platform,
    PollOutcome,
    PublishResult,
    RepositoryRef,
)
from deployated.models.workflow import WORKFLOW_PATH, WorkflowContext, WorkflowDocument

__all__ = [
    # Analysis models
    "ProjectAnalysis",
    "RecommendedConfig",
    # Deployment models
    "DeploymentResult",
    "DeploymentState",
    "DeploymentTarget",
    "Platform",
    "PollOutcome",
    "PublishResult",
    "RepositoryRef",
    # Workflow models
    "WORKFLOW_PATH",
    "WorkflowContext",
    "WorkflowDocument",
]
