"""Custom exceptions for Deployated."""

from typing import Any


class DeployatedError(Exception):
    """Base exception for Deployated."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationMissingError(DeployatedError):
    """A required credential or setting is absent."""

    def __init__(self, setting: str, platform: str | None = None):
        where = f" (required for {platform})" if platform else ""
        super().__init__(
            f"{setting} not found in environment or .env file{where}",
            {"setting": setting, "platform": platform},
        )
        self.setting = setting
        self.platform = platform


class InvalidInputError(DeployatedError):
    """User input could not be interpreted."""

    pass


class UpstreamUnavailableError(DeployatedError):
    """An upstream service (GitHub, git, a platform API) failed."""

    pass


class GitHubAPIError(UpstreamUnavailableError):
    """GitHub API request failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


class GenerationError(DeployatedError):
    """No workflow document could be produced."""

    def __init__(self, framework: str, message: str = "no workflow document produced"):
        super().__init__(
            f"Workflow generation failed for '{framework}': {message}",
            {"framework": framework},
        )
        self.framework = framework


class PublishError(DeployatedError):
    """Pushing the workflow file to GitHub was rejected."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        hints: list[str] | None = None,
    ):
        super().__init__(
            f"Failed to push workflow: {message}",
            {"status_code": status_code, "hints": hints or []},
        )
        self.status_code = status_code
        self.hints = hints or []


class DeploymentError(DeployatedError):
    """Deployment to a platform failed.

    The message is the platform's own reason; callers add the context.
    """

    def __init__(self, message: str, build_logs: str | None = None):
        details = {}
        if build_logs:
            details["build_logs"] = build_logs
        super().__init__(message, details)
