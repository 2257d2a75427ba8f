"""Scoped working tree for one invocation."""

import asyncio
import os
import shutil
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

from deployated.config import Settings, get_settings
from deployated.core.exceptions import UpstreamUnavailableError
from deployated.models.deployment import RepositoryRef
from deployated.utils.logging import get_logger, mask_secret

logger = get_logger(__name__)

CloneFn = Callable[[RepositoryRef, Path, Settings], Awaitable[None]]


async def git_clone(repo: RepositoryRef, destination: Path, settings: Settings) -> None:
    """Shallow-clone a repository, authenticating with the GitHub token."""
    url = repo.clone_url
    if settings.github_token:
        url = url.replace(
            "https://", f"https://x-access-token:{settings.github_token}@", 1
        )

    try:
        process = await asyncio.create_subprocess_exec(
            "git",
            "clone",
            "--depth",
            "1",
            url,
            str(destination),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise UpstreamUnavailableError(
            "git is not installed or not on PATH",
            {"repo": repo.full_name},
        ) from e
    _, stderr = await process.communicate()

    if process.returncode != 0:
        error = mask_secret(stderr.decode() if stderr else "", settings.github_token)
        raise UpstreamUnavailableError(
            f"Failed to clone {repo.full_name}",
            {"stderr": error[:1000]},
        )


@asynccontextmanager
async def cloned_repository(
    repo: RepositoryRef,
    settings: Settings | None = None,
    clone: CloneFn = git_clone,
) -> AsyncIterator[Path]:
    """Clone into a fresh directory and work inside it.

    The previous working directory is restored and the clone removed on
    every exit path.
    """
    settings = settings or get_settings()
    workdir = (Path(settings.workspace_root) / f"{repo.owner}-{repo.repo}").resolve()
    if workdir.exists():
        shutil.rmtree(workdir)
    workdir.mkdir(parents=True)

    previous_cwd = Path.cwd()
    try:
        logger.info("workspace.cloning", repo=repo.full_name, path=str(workdir))
        await clone(repo, workdir, settings)
        os.chdir(workdir)
        yield workdir
    finally:
        os.chdir(previous_cwd)
        shutil.rmtree(workdir, ignore_errors=True)
        logger.info("workspace.removed", path=str(workdir))
