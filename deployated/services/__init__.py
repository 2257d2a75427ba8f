"""External collaborators: GitHub, the advisor and Vercel."""

from deployated.services.advisor import Advisor, ClaudeAdvisor, NullAdvisor, build_advisor
from deployated.services.github import GitHubClient
from deployated.services.vercel import VercelCLI

__all__ = [
    "Advisor",
    "ClaudeAdvisor",
    "NullAdvisor",
    "build_advisor",
    "GitHubClient",
    "VercelCLI",
]
