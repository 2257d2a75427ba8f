"""Deployment data models."""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from deployated.core.exceptions import InvalidInputError

_GITHUB_URL_PATTERN = re.compile(r"github\.com/([^/\s]+)/([^/\s]+)")


class Platform(str, Enum):
    """Deployment targets."""

    VERCEL = "vercel"
    RENDER = "render"
    DOCKER = "docker"


class RepositoryRef(BaseModel):
    """A GitHub repository identified by owner and name."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str

    @classmethod
    def from_url(cls, url: str) -> "RepositoryRef":
        """Parse github.com/owner/repo or https://github.com/owner/repo(.git)."""
        candidate = url.strip().rstrip("/")
        if candidate.endswith(".git"):
            candidate = candidate[: -len(".git")]
        if not candidate.startswith("http"):
            candidate = "https://" + candidate

        match = _GITHUB_URL_PATTERN.search(candidate)
        if not match:
            raise InvalidInputError(
                f"Invalid GitHub URL: {url}",
                {"url": url, "expected": "github.com/<owner>/<repo>"},
            )
        return cls(owner=match.group(1), repo=match.group(2))

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}.git"


class DeploymentTarget(BaseModel):
    """Where one invocation deploys to."""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    owner: str
    repo: str
    framework: str


class DeploymentResult(BaseModel):
    """Result of a deployment attempt."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    url: str | None = None
    status: str | None = None
    next_steps: list[str] | None = None

    # Declining the override prompt is a clean stop, not a failure
    cancelled: bool = False


class PublishResult(BaseModel):
    """Outcome of upserting the workflow file."""

    path: str
    branch: str
    created: bool
    commit_sha: str | None = None
    html_url: str | None = None


class DeploymentState(str, Enum):
    """States of a single deployment attempt."""

    CREATED = "created"
    CANCELLED = "cancelled"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    VALIDATED = "validated"
    DEPLOYING = "deploying"
    DEPLOY_FAILED = "deploy_failed"
    DEPLOYED = "deployed"
    POLLING = "polling"
    READY = "ready"
    TIMEOUT = "timeout"


class PollOutcome(BaseModel):
    """What the status polling loop observed."""

    status: str
    attempts: int
    history: list[str] = Field(default_factory=list)

    @property
    def ready(self) -> bool:
        return self.status == "READY"
