"""Pytest configuration and fixtures."""

import json
from pathlib import Path

import pytest

from deployated.config import Settings
from deployated.core.exceptions import GitHubAPIError
from deployated.models.deployment import PublishResult
from deployated.services.vercel import VercelDeployment


class FakeAdvisor:
    """Advisor that replays canned answers and records prompts."""

    def __init__(self, *responses: str | None):
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def complete(self, prompt: str, system_prompt: str | None = None) -> str | None:
        self.prompts.append(prompt)
        if not self.responses:
            return None
        return self.responses.pop(0)


class FakeGitHub:
    """In-memory stand-in for the GitHub contents API."""

    def __init__(self, files: dict[str, str] | None = None, error: GitHubAPIError | None = None):
        self.files = dict(files or {})
        self.error = error
        self.reads: list[str] = []
        self.published: list[dict] = []
        self.remote_sha: str | None = None

    async def list_directory(self, owner: str, repo: str, path: str = "") -> list[str]:
        if self.error:
            raise self.error
        return list(self.files)

    async def read_file(self, owner: str, repo: str, path: str) -> str | None:
        if self.error:
            raise self.error
        self.reads.append(path)
        return self.files.get(path)

    async def publish_workflow(self, owner: str, repo: str, content: str, **kwargs) -> PublishResult:
        created = self.remote_sha is None
        self.published.append({"content": content, "sha": self.remote_sha})
        self.remote_sha = f"sha{len(self.published)}"
        return PublishResult(
            path=".github/workflows/deploy.yml",
            branch="main",
            created=created,
            commit_sha="c0ffee",
        )


class FakeVercel:
    """Records Vercel CLI calls without running anything."""

    def __init__(
        self,
        statuses: list[str | None] | None = None,
        cli: bool = True,
        session: bool = True,
        deploy_error: Exception | None = None,
    ):
        self.statuses = list(statuses or [])
        self.cli = cli
        self.session = session
        self.deploy_error = deploy_error
        self.calls: list[str] = []
        self.uploaded_files: list[str] | None = None
        self.deployed_env: dict[str, str] | None = None

    async def ensure_cli(self) -> bool:
        self.calls.append("ensure_cli")
        return self.cli

    async def ensure_login(self) -> bool:
        self.calls.append("ensure_login")
        return self.session

    async def link(self, project_dir: Path) -> None:
        self.calls.append("link")

    async def deploy(self, project_dir: Path, env_vars: dict[str, str] | None = None) -> VercelDeployment:
        self.calls.append("deploy")
        self.uploaded_files = sorted(path.name for path in project_dir.iterdir())
        self.deployed_env = env_vars
        if self.deploy_error:
            raise self.deploy_error
        return VercelDeployment(url="https://widgets-abc123.vercel.app", deployment_id="dpl_abc123")

    async def get_status(self, deployment_id: str) -> str | None:
        self.calls.append("get_status")
        if self.statuses:
            return self.statuses.pop(0)
        return "BUILDING"


class RecordingSleep:
    """Replaces asyncio.sleep; remembers every delay."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with every credential present and no advisor key."""
    return Settings(
        github_token="ghp_test",
        anthropic_api_key="",
        vercel_token="vercel_test",
        vercel_org_id=None,
        render_api_key="rnd_test",
        render_service_id="srv-test",
        docker_username="acme",
        docker_password="hunter2",
        workspace_root=tmp_path / "workspace",
    )


@pytest.fixture
def null_advisor() -> FakeAdvisor:
    return FakeAdvisor()


# Factories: tests build fakes with their own canned data


@pytest.fixture
def fake_advisor() -> type[FakeAdvisor]:
    return FakeAdvisor


@pytest.fixture
def fake_github() -> type[FakeGitHub]:
    return FakeGitHub


@pytest.fixture
def fake_vercel() -> type[FakeVercel]:
    return FakeVercel


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def nextjs_package_json() -> str:
    return json.dumps(
        {
            "name": "widgets",
            "scripts": {"dev": "next dev", "build": "next build", "start": "next start"},
            "dependencies": {"next": "14.1.0", "react": "18.2.0"},
        }
    )


@pytest.fixture
def sample_analysis_json() -> str:
    """Advisor reply describing a Next.js project."""
    return """Here is the analysis:
```json
{
  "framework": "nextjs",
  "canDeployToVercel": true,
  "deploymentRequirements": ["Node.js 18"],
  "specialConsiderations": "Uses the app router.",
  "recommendedConfig": {
    "buildCommand": "next build",
    "outputDirectory": ".next",
    "environmentVariables": ["DATABASE_URL"]
  },
  "potentialIssues": ["No lockfile committed"],
  "optimizationSuggestions": ["Enable ISR"]
}
```
"""
