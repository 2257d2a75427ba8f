"""Pipeline Orchestrator.

Coordinates detection, workflow generation, publishing and deployment
for one repository.
"""

import asyncio
from typing import Literal

from pydantic import BaseModel

from deployated.agents.detector_agent import DetectionInput, FrameworkDetectionAgent
from deployated.agents.workflow_agent import WorkflowAgentInput, WorkflowGenerationAgent
from deployated.config import Settings, get_settings
from deployated.core.deployment import (
    ConfirmFn,
    Deployer,
    DeploymentOrchestrator,
    SleepFn,
    default_confirm,
)
from deployated.core.workspace import CloneFn, cloned_repository, git_clone
from deployated.models.analysis import ProjectAnalysis
from deployated.models.deployment import (
    DeploymentResult,
    DeploymentTarget,
    Platform,
    PublishResult,
    RepositoryRef,
)
from deployated.models.workflow import WorkflowContext, WorkflowDocument
from deployated.services.advisor import Advisor, build_advisor
from deployated.services.github import GitHubClient
from deployated.services.vercel import VercelCLI
from deployated.utils.logging import get_logger


class PipelineRequest(BaseModel):
    """What the user asked for on the command line."""

    repo_url: str
    docker: bool = False
    cloud: Literal["vercel", "render"] | None = None
    push: bool = False
    skip_confirmation: bool = False
    vercel: bool = False

    @property
    def platform(self) -> Platform | None:
        if self.docker:
            return Platform.DOCKER
        if self.vercel or self.cloud == "vercel":
            return Platform.VERCEL
        if self.cloud == "render":
            return Platform.RENDER
        return None


class PipelineResult(BaseModel):
    """Everything one run produced."""

    repository: RepositoryRef
    analysis: ProjectAnalysis
    workflow: WorkflowDocument
    published: PublishResult | None = None
    deployment: DeploymentResult | None = None

    @property
    def success(self) -> bool:
        if self.deployment is None:
            return True
        return self.deployment.success or self.deployment.cancelled


class PipelineOrchestrator:
    """Orchestrates one run of the tool.

    Pipeline phases:
    1. detection - Classify the repository
    2. generation - Write the workflow into a scoped clone
    3. publishing - Upsert the workflow on GitHub (optional)
    4. deployment - Validate, deploy and poll (optional)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        github: GitHubClient | None = None,
        advisor: Advisor | None = None,
        vercel: VercelCLI | None = None,
        confirm: ConfirmFn = default_confirm,
        clone: CloneFn = git_clone,
        sleep: SleepFn = asyncio.sleep,
        use_advisor: bool = True,
    ):
        self.settings = settings or get_settings()
        self.github = github
        self.advisor = advisor if advisor is not None else build_advisor(self.settings)
        self.vercel = vercel
        self.clone = clone
        self.sleep = sleep
        self.use_advisor = use_advisor
        self.deployments = DeploymentOrchestrator(
            self.settings, confirm=confirm, advisor=self.advisor
        )
        self.logger = get_logger("orchestrator")

    async def run(self, request: PipelineRequest) -> PipelineResult:
        """Run the pipeline.

        Raises:
            InvalidInputError: if the repository URL cannot be parsed
            ConfigurationMissingError: if a required credential is absent
            GitHubAPIError: if the repository cannot be read
            GenerationError: if no workflow can be produced
            PublishError: if GitHub rejects the workflow
        """
        repo = RepositoryRef.from_url(request.repo_url)
        github = self.github or GitHubClient(self.settings)

        self.logger.info(
            "orchestrator.pipeline.started",
            repo=repo.full_name,
            platform=request.platform.value if request.platform else None,
            push=request.push,
        )

        try:
            detector = FrameworkDetectionAgent(
                github, advisor=self.advisor, settings=self.settings
            )
            detection = await detector.execute(
                DetectionInput(owner=repo.owner, repo=repo.repo)
            )
            analysis = detection.analysis

            async with cloned_repository(repo, self.settings, self.clone) as workdir:
                generator = WorkflowGenerationAgent(
                    advisor=self.advisor, settings=self.settings
                )
                generated = await generator.execute(
                    WorkflowAgentInput(
                        context=WorkflowContext(
                            framework=analysis.framework,
                            platform=request.platform.value if request.platform else None,
                            docker=request.docker,
                            files=detection.files,
                        ),
                        working_dir=workdir,
                        use_advisor=self.use_advisor,
                    )
                )

                published = None
                if request.push:
                    published = await github.publish_workflow(
                        repo.owner, repo.repo, generated.document.content
                    )
                    self.logger.info(
                        "orchestrator.workflow_published",
                        created=published.created,
                        branch=published.branch,
                    )

                deployment = None
                if request.platform is not None:
                    deployer = Deployer(
                        DeploymentTarget(
                            platform=request.platform,
                            owner=repo.owner,
                            repo=repo.repo,
                            framework=analysis.framework,
                        ),
                        self.settings,
                        vercel=self.vercel,
                        source=github,
                        project_dir=workdir,
                        sleep=self.sleep,
                    )
                    deployment = await self.deployments.run(
                        deployer, analysis, request.skip_confirmation
                    )

        except Exception as e:
            self.logger.error(
                "orchestrator.pipeline.failed",
                repo=repo.full_name,
                error=str(e),
            )
            raise

        result = PipelineResult(
            repository=repo,
            analysis=analysis,
            workflow=generated.document,
            published=published,
            deployment=deployment,
        )

        self.logger.info(
            "orchestrator.pipeline.completed",
            repo=repo.full_name,
            success=result.success,
        )
        return result
