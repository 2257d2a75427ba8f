"""Deployment orchestration.

One ``Deployer`` covers every platform. What differs per platform lives in
``PLATFORM_POLICIES``: which credentials are required, whether a missing
credential is reported or raised, and how the deploy itself happens.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable

import httpx

from deployated.config import Settings, get_settings
from deployated.core.exceptions import ConfigurationMissingError, DeploymentError
from deployated.models.analysis import ProjectAnalysis
from deployated.models.deployment import (
    DeploymentResult,
    DeploymentState,
    DeploymentTarget,
    Platform,
    PollOutcome,
)
from deployated.services.advisor import Advisor, NullAdvisor, troubleshoot
from deployated.services.vercel import (
    RepositoryFiles,
    VercelCLI,
    collect_env_vars,
    configure_project,
    temporary_env_file,
)
from deployated.utils.logging import get_logger

POLL_INTERVAL_SECONDS = 5.0
MAX_POLL_ATTEMPTS = 10

ConfirmFn = Callable[[str], bool]
SleepFn = Callable[[float], Awaitable[None]]
StatusFn = Callable[[str], Awaitable[str | None]]


class ErrorPolicy(str, Enum):
    """What a failed validation does to the run."""

    REPORT = "report"  # failed result, run continues to its summary
    RAISE = "raise"  # ConfigurationMissingError aborts the run


@dataclass(frozen=True)
class PlatformPolicy:
    """Per-platform deployment rules."""

    platform: Platform
    error_policy: ErrorPolicy
    # (settings attribute, environment variable name)
    credentials: tuple[tuple[str, str], ...] = ()
    acknowledgement: str = ""
    next_steps: tuple[str, ...] = ()


PLATFORM_POLICIES: dict[Platform, PlatformPolicy] = {
    Platform.VERCEL: PlatformPolicy(
        platform=Platform.VERCEL,
        error_policy=ErrorPolicy.REPORT,
    ),
    Platform.RENDER: PlatformPolicy(
        platform=Platform.RENDER,
        error_policy=ErrorPolicy.RAISE,
        credentials=(
            ("render_api_key", "RENDER_API_KEY"),
            ("render_service_id", "RENDER_SERVICE_ID"),
        ),
        acknowledgement="Render deployment configured via GitHub Actions",
        next_steps=(
            "Add RENDER_API_KEY and RENDER_SERVICE_ID to the repository's Actions secrets",
            "Push to main to trigger the Render deploy hook",
        ),
    ),
    Platform.DOCKER: PlatformPolicy(
        platform=Platform.DOCKER,
        error_policy=ErrorPolicy.RAISE,
        credentials=(
            ("docker_username", "DOCKER_USERNAME"),
            ("docker_password", "DOCKER_PASSWORD"),
        ),
        acknowledgement="Docker deployment configured via GitHub Actions",
        next_steps=(
            "Add DOCKER_USERNAME and DOCKER_PASSWORD to the repository's Actions secrets",
            "Push to main to build and push the image to Docker Hub",
        ),
    ),
}

_TRANSITIONS: dict[DeploymentState, frozenset[DeploymentState]] = {
    DeploymentState.CREATED: frozenset({DeploymentState.VALIDATING, DeploymentState.CANCELLED}),
    DeploymentState.VALIDATING: frozenset(
        {DeploymentState.VALIDATED, DeploymentState.VALIDATION_FAILED}
    ),
    DeploymentState.VALIDATED: frozenset({DeploymentState.DEPLOYING}),
    DeploymentState.DEPLOYING: frozenset(
        {DeploymentState.DEPLOYED, DeploymentState.POLLING, DeploymentState.DEPLOY_FAILED}
    ),
    DeploymentState.POLLING: frozenset({DeploymentState.READY, DeploymentState.TIMEOUT}),
}


@dataclass
class DeploymentAttempt:
    """State of one deployment attempt and how it got there."""

    target: DeploymentTarget
    state: DeploymentState = DeploymentState.CREATED
    history: list[DeploymentState] = field(
        default_factory=lambda: [DeploymentState.CREATED]
    )

    @property
    def is_terminal(self) -> bool:
        return self.state not in _TRANSITIONS

    def transition(self, new_state: DeploymentState) -> None:
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise RuntimeError(
                f"Illegal deployment transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)


async def poll_deployment(
    get_status: StatusFn,
    deployment_id: str,
    *,
    interval: float = POLL_INTERVAL_SECONDS,
    max_attempts: int = MAX_POLL_ATTEMPTS,
    sleep: SleepFn = asyncio.sleep,
) -> PollOutcome:
    """Poll until READY or the attempt budget runs out (status UNKNOWN)."""
    logger = get_logger("deployer")
    history: list[str] = []

    # TODO: stop early on ERROR/CANCELED readyState and report a failed deploy
    for attempt in range(1, max_attempts + 1):
        try:
            status = await get_status(deployment_id)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("deployer.status_check_failed", attempt=attempt, error=str(e))
            status = None

        history.append(status or "UNAVAILABLE")
        logger.info("deployer.polling", attempt=attempt, status=status)

        if status == "READY":
            return PollOutcome(status="READY", attempts=attempt, history=history)
        if attempt < max_attempts:
            await sleep(interval)

    return PollOutcome(status="UNKNOWN", attempts=max_attempts, history=history)


def vercel_next_steps(owner: str, repo: str) -> list[str]:
    project = repo.lower()
    return [
        f"Dashboard: https://vercel.com/dashboard/{owner}/{project}",
        "Set up your environment variables in the Vercel dashboard",
        "Configure your domain in the Vercel dashboard",
        "Set up automatic deployments from your GitHub repository",
    ]


class Deployer:
    """Validates and deploys one target."""

    def __init__(
        self,
        target: DeploymentTarget,
        settings: Settings | None = None,
        *,
        vercel: VercelCLI | None = None,
        source: RepositoryFiles | None = None,
        project_dir: Path | None = None,
        sleep: SleepFn = asyncio.sleep,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_poll_attempts: int = MAX_POLL_ATTEMPTS,
    ):
        self.target = target
        self.settings = settings or get_settings()
        self.policy = PLATFORM_POLICIES[target.platform]
        self.vercel = vercel
        self.source = source
        self.project_dir = project_dir
        self.sleep = sleep
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.logger = get_logger(f"deployer.{target.platform.value}")

    @property
    def platform(self) -> Platform:
        return self.target.platform

    def _vercel(self) -> VercelCLI:
        if self.vercel is None:
            self.vercel = VercelCLI(self.settings)
        return self.vercel

    def missing_credentials(self) -> list[str]:
        return [
            env_name
            for attr, env_name in self.policy.credentials
            if not getattr(self.settings, attr)
        ]

    async def validate(self) -> bool:
        """Check platform preconditions.

        Raises:
            ConfigurationMissingError: for platforms whose policy is RAISE
        """
        if self.platform is Platform.VERCEL:
            return await self._validate_vercel()

        missing = self.missing_credentials()
        if not missing:
            return True
        if self.policy.error_policy is ErrorPolicy.RAISE:
            raise ConfigurationMissingError(missing[0], self.platform.value)
        self.logger.warning("deployer.missing_credentials", missing=missing)
        return False

    async def _validate_vercel(self) -> bool:
        vercel = self._vercel()
        if not await vercel.ensure_cli():
            self.logger.error("deployer.vercel_cli_unavailable")
            return False
        if not await vercel.ensure_login():
            self.logger.error("deployer.vercel_login_failed")
            return False
        return True

    async def deploy(self, attempt: DeploymentAttempt | None = None) -> DeploymentResult:
        """Deploy the target.

        Render and Docker deploys run in GitHub Actions; this only confirms
        the configuration. Vercel deploys run here and are polled.

        Raises:
            DeploymentError: when the Vercel deploy is rejected
        """
        attempt = attempt or DeploymentAttempt(
            self.target, DeploymentState.DEPLOYING, [DeploymentState.DEPLOYING]
        )
        if self.platform is Platform.VERCEL:
            return await self._deploy_vercel(attempt)

        await self.validate()
        attempt.transition(DeploymentState.DEPLOYED)
        return DeploymentResult(
            success=True,
            message=self.policy.acknowledgement,
            status="CONFIGURED",
            next_steps=list(self.policy.next_steps),
        )

    async def _deploy_vercel(self, attempt: DeploymentAttempt) -> DeploymentResult:
        vercel = self._vercel()
        project_dir = self.project_dir or Path.cwd()
        owner, repo = self.target.owner, self.target.repo

        env_vars: dict[str, str] = {}
        if self.source is not None:
            env_vars = await collect_env_vars(self.source, owner, repo)

        with temporary_env_file(env_vars) as env_file:
            self.logger.debug("deployer.env_file_written", path=str(env_file), count=len(env_vars))
            if configure_project(project_dir):
                self.logger.info("deployer.vercel_json_created", project_dir=str(project_dir))
            await vercel.link(project_dir)
            deployment = await vercel.deploy(project_dir, env_vars)

        self.logger.info(
            "deployer.vercel_deployed",
            url=deployment.url,
            deployment_id=deployment.deployment_id,
        )

        attempt.transition(DeploymentState.POLLING)
        outcome = await poll_deployment(
            vercel.get_status,
            deployment.deployment_id,
            interval=self.poll_interval,
            max_attempts=self.max_poll_attempts,
            sleep=self.sleep,
        )
        attempt.transition(
            DeploymentState.READY if outcome.ready else DeploymentState.TIMEOUT
        )

        # A deploy that was accepted counts as success even if READY was never seen
        return DeploymentResult(
            success=True,
            message="Successfully deployed to Vercel!"
            if outcome.ready
            else "Deployment submitted to Vercel; status not confirmed yet",
            url=deployment.url,
            status=outcome.status,
            next_steps=vercel_next_steps(owner, repo),
        )


def default_confirm(message: str) -> bool:
    """Ask a yes/no question on the terminal; anything but yes is no."""
    try:
        answer = input(f"{message} [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


class DeploymentOrchestrator:
    """Runs validate, deploy and polling for one deployment attempt."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        confirm: ConfirmFn = default_confirm,
        advisor: Advisor | None = None,
    ):
        self.settings = settings or get_settings()
        self.confirm = confirm
        self.advisor = advisor or NullAdvisor()
        self.attempts: list[DeploymentAttempt] = []
        self.logger = get_logger("deployment")

    @property
    def last_attempt(self) -> DeploymentAttempt | None:
        return self.attempts[-1] if self.attempts else None

    def _needs_override(
        self,
        deployer: Deployer,
        analysis: ProjectAnalysis | None,
        skip_confirmation: bool,
    ) -> bool:
        return (
            deployer.platform is Platform.VERCEL
            and analysis is not None
            and not analysis.can_deploy_to_vercel
            and not skip_confirmation
        )

    async def run(
        self,
        deployer: Deployer,
        analysis: ProjectAnalysis | None = None,
        skip_confirmation: bool = False,
    ) -> DeploymentResult:
        """Run one deployment attempt.

        Raises:
            ConfigurationMissingError: when a RAISE-policy platform lacks credentials
        """
        attempt = DeploymentAttempt(deployer.target)
        self.attempts.append(attempt)
        platform = deployer.platform.value

        self.logger.info(
            "deployment.started",
            platform=platform,
            repo=f"{deployer.target.owner}/{deployer.target.repo}",
        )

        if self._needs_override(deployer, analysis, skip_confirmation):
            framework = analysis.framework if analysis else deployer.target.framework
            proceed = self.confirm(
                f"The analysis suggests this {framework} project is not suitable "
                "for Vercel. Deploy anyway?"
            )
            if not proceed:
                attempt.transition(DeploymentState.CANCELLED)
                self.logger.info("deployment.cancelled", platform=platform)
                return DeploymentResult(
                    success=False,
                    message="Deployment cancelled by user",
                    cancelled=True,
                )

        attempt.transition(DeploymentState.VALIDATING)
        try:
            valid = await deployer.validate()
        except ConfigurationMissingError:
            attempt.transition(DeploymentState.VALIDATION_FAILED)
            raise

        if not valid:
            attempt.transition(DeploymentState.VALIDATION_FAILED)
            self.logger.warning("deployment.validation_failed", platform=platform)
            return DeploymentResult(
                success=False,
                message=f"{platform.capitalize()} validation failed: "
                "CLI unavailable or not logged in",
                next_steps=[
                    "Install the Vercel CLI with: npm install -g vercel",
                    "Log in with: vercel login",
                ],
            )

        attempt.transition(DeploymentState.VALIDATED)
        attempt.transition(DeploymentState.DEPLOYING)

        try:
            result = await deployer.deploy(attempt)
        except DeploymentError as e:
            attempt.transition(DeploymentState.DEPLOY_FAILED)
            self.logger.error("deployment.failed", platform=platform, error=e.message)
            steps = await troubleshoot(
                self.advisor,
                e.message,
                {"platform": platform, "framework": deployer.target.framework},
            )
            return DeploymentResult(
                success=False,
                message=f"Failed to deploy to {platform.capitalize()}: {e.message}",
                next_steps=steps or None,
            )

        self.logger.info(
            "deployment.completed",
            platform=platform,
            state=attempt.state.value,
            status=result.status,
            url=result.url,
        )
        return result
