"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def load_environment(env_file: str | Path = ".env") -> bool:
    """Load a local .env file over the process environment, if present."""
    return load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub
    github_token: str = Field(default="")
    github_branch: str = "main"
    github_api_url: str = "https://api.github.com"

    # Claude Agent SDK (advisor)
    anthropic_api_key: str = Field(default="")
    advisor_model: str = "sonnet"
    advisor_timeout_seconds: float = 120.0

    # Vercel Deployment
    vercel_token: str = Field(default="")
    vercel_org_id: str | None = None
    vercel_project_id: str | None = None
    vercel_api_url: str = "https://api.vercel.com"

    # Render Deployment
    render_api_key: str = Field(default="")
    render_service_id: str = Field(default="")

    # Docker Hub
    docker_username: str = Field(default="")
    docker_password: str = Field(default="")

    # Scratch space for repository clones
    workspace_root: Path = Path(".deployated")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_format: Literal["console", "json"] = "console"

    @property
    def advisor_enabled(self) -> bool:
        """Check if an advisor key is configured."""
        return bool(self.anthropic_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
