"""Core functionality for Deployated."""

from deployated.core.exceptions import (
    ConfigurationMissingError,
    DeployatedError,
    DeploymentError,
    GenerationError,
    GitHubAPIError,
    InvalidInputError,
    PublishError,
    UpstreamUnavailableError,
)

__all__ = [
    "ConfigurationMissingError",
    "DeployatedError",
    "DeploymentError",
    "GenerationError",
    "GitHubAPIError",
    "InvalidInputError",
    "PublishError",
    "UpstreamUnavailableError",
]
