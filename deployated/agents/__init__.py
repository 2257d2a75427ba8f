"""Advisor-assisted agents for Deployated."""

from deployated.agents.base import BaseAgent
from deployated.agents.detector_agent import (
    DetectionInput,
    DetectionOutput,
    FrameworkDetectionAgent,
)
from deployated.agents.workflow_agent import (
    WorkflowAgentInput,
    WorkflowAgentOutput,
    WorkflowGenerationAgent,
)

__all__ = [
    "BaseAgent",
    "DetectionInput",
    "DetectionOutput",
    "FrameworkDetectionAgent",
    "WorkflowAgentInput",
    "WorkflowAgentOutput",
    "WorkflowGenerationAgent",
]
