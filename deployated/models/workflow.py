"""Workflow generation data models."""

from typing import Literal

from pydantic import BaseModel, Field

# Location of the generated workflow, both in the clone and in the repository
WORKFLOW_PATH = ".github/workflows/deploy.yml"


class WorkflowContext(BaseModel):
    """Everything the generator knows about the deployment."""

    framework: str
    platform: str | None = None
    docker: bool = False
    files: dict[str, str] = Field(default_factory=dict)

    @property
    def platform_label(self) -> str:
        if self.docker:
            return "docker"
        return self.platform or "github-actions"


class WorkflowDocument(BaseModel):
    """A generated workflow. The YAML is never parsed, only passed along."""

    content: str
    framework: str
    source: Literal["advisor", "template"]
    path: str = WORKFLOW_PATH
