"""Vercel CLI and API wrapper.

Deploys run through the ``vercel`` CLI inside the cloned working tree;
deployment status is read from the REST API, or through the CLI session
when no API token is configured.
"""

import asyncio
import io
import json
import re
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol

import httpx
from dotenv import dotenv_values

from deployated.config import Settings, get_settings
from deployated.core.exceptions import DeploymentError
from deployated.utils.logging import get_logger, mask_secret

ENV_FILE_NAME = ".env.vercel"

# Frameworks Vercel knows by a different slug
_VERCEL_FRAMEWORK_SLUGS = {
    "nextjs": "nextjs",
    "nuxtjs": "nuxtjs",
    "react": "create-react-app",
    "vue": "vue",
}

_PACKAGE_FRAMEWORKS: tuple[tuple[str, str, str, str], ...] = (
    # dependency, framework, build command, output directory
    ("next", "nextjs", "next build", ".next"),
    ("nuxt", "nuxtjs", "nuxt build", ".nuxt"),
    ("react", "react", "npm run build", "build"),
    ("vue", "vue", "npm run build", "dist"),
    ("express", "node", "npm run build", "dist"),
)


@dataclass
class CommandResult:
    """Exit status and output of a CLI call."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class VercelDeployment:
    """What `vercel deploy` reported."""

    url: str
    deployment_id: str


class RepositoryFiles(Protocol):
    async def read_file(self, owner: str, repo: str, path: str) -> str | None: ...


class VercelCLI:
    """Runs the Vercel CLI and queries deployment status."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self.logger = get_logger("vercel")

    def _auth_args(self) -> list[str]:
        args: list[str] = []
        if self.settings.vercel_token:
            args.extend(["--token", self.settings.vercel_token])
        if self.settings.vercel_org_id:
            args.extend(["--scope", self.settings.vercel_org_id])
        return args

    async def _run(
        self,
        *cmd: str,
        cwd: Path | None = None,
        interactive: bool = False,
        timeout: float = 600,
        secrets: tuple[str, ...] = (),
    ) -> CommandResult:
        """Run a command; interactive commands share the terminal."""
        self.logger.info(
            "vercel.running_command",
            cmd=mask_secret(" ".join(cmd), self.settings.vercel_token, *secrets),
            cwd=str(cwd) if cwd else None,
        )
        pipe = None if interactive else asyncio.subprocess.PIPE
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(cwd) if cwd else None,
                stdout=pipe,
                stderr=pipe,
            )
        except FileNotFoundError:
            return CommandResult(returncode=127, stderr=f"{cmd[0]}: command not found")

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return CommandResult(
                returncode=124, stderr=f"Command timed out after {timeout} seconds"
            )

        return CommandResult(
            returncode=process.returncode if process.returncode is not None else 1,
            stdout=stdout.decode() if stdout else "",
            stderr=stderr.decode() if stderr else "",
        )

    async def ensure_cli(self) -> bool:
        """Make sure the CLI is installed, installing it with npm if needed."""
        if (await self._run("vercel", "--version")).ok:
            return True

        self.logger.info("vercel.installing_cli")
        installed = await self._run("npm", "install", "-g", "vercel", interactive=True)
        return installed.ok

    async def ensure_login(self) -> bool:
        """Make sure there is an active session, logging in interactively if not."""
        if (await self._run("vercel", "whoami", *self._auth_args())).ok:
            return True

        self.logger.info("vercel.login_required")
        return (await self._run("vercel", "login", interactive=True)).ok

    async def link(self, project_dir: Path) -> None:
        """Link the working tree to a Vercel project."""
        result = await self._run(
            "vercel", "link", "--yes", *self._auth_args(), cwd=project_dir
        )
        if not result.ok:
            raise DeploymentError(
                "Project could not be linked to Vercel",
                build_logs=(result.stderr or result.stdout)[:1000],
            )

    async def deploy(
        self, project_dir: Path, env_vars: dict[str, str] | None = None
    ) -> VercelDeployment:
        """Trigger a production deployment and return its URL and id."""
        cmd = ["vercel", "deploy", "--prod", "--yes", *self._auth_args()]
        for key, value in (env_vars or {}).items():
            cmd.extend(["--env", f"{key}={value}"])

        result = await self._run(
            *cmd, cwd=project_dir, secrets=tuple((env_vars or {}).values())
        )
        if not result.ok:
            error_preview = (result.stderr or result.stdout)[:500]
            self.logger.error("vercel.deploy_failed", error_preview=error_preview)
            raise DeploymentError(
                error_preview or "Unknown deployment error",
                build_logs=result.stderr[:1000] if result.stderr else None,
            )

        url = extract_url(result.stdout) or extract_url(result.stderr)
        if not url:
            raise DeploymentError("Failed to get deployment URL")

        deployment_id = extract_deployment_id(result.stdout) or extract_deployment_id(
            result.stderr
        )
        return VercelDeployment(
            url=url,
            # The API accepts the deployment hostname in place of its id
            deployment_id=deployment_id or url.removeprefix("https://"),
        )

    async def get_status(self, deployment_id: str) -> str | None:
        """Read a deployment's state.

        With a token the REST API is asked; otherwise `vercel inspect` runs
        against the logged-in CLI session.
        """
        if not self.settings.vercel_token:
            return await self._inspect_status(deployment_id)

        params = {"teamId": self.settings.vercel_org_id} if self.settings.vercel_org_id else None
        async with httpx.AsyncClient(
            base_url=self.settings.vercel_api_url,
            headers={"Authorization": f"Bearer {self.settings.vercel_token}"},
            timeout=30.0,
            transport=self._transport,
        ) as client:
            response = await client.get(f"/v13/deployments/{deployment_id}", params=params)
            response.raise_for_status()
            data = response.json()
        return data.get("readyState") or data.get("status")

    async def _inspect_status(self, deployment_id: str) -> str | None:
        result = await self._run(
            "vercel", "inspect", deployment_id, *self._auth_args(), timeout=60
        )
        if not result.ok:
            self.logger.warning(
                "vercel.inspect_failed",
                deployment_id=deployment_id,
                error_preview=(result.stderr or result.stdout)[:200],
            )
            return None
        # The CLI prints its report on stderr
        return extract_inspect_status(result.stderr) or extract_inspect_status(result.stdout)


def extract_inspect_status(output: str) -> str | None:
    """Pull the status line out of `vercel inspect` output ("status  ● Ready")."""
    match = re.search(r"^\s*status\s+(?:●\s*)?([A-Za-z]+)", output, re.MULTILINE)
    if match:
        return match.group(1).upper()
    return None


def extract_url(output: str) -> str:
    """Extract deployment URL from Vercel CLI output."""
    url_pattern = r"https://[a-zA-Z0-9-]+\.vercel\.app"
    match = re.search(url_pattern, output)
    if match:
        return match.group(0)

    # Fall back to last line (usually the URL)
    lines = output.strip().split("\n")
    for line in reversed(lines):
        if line.startswith("https://"):
            return line.strip()

    return ""


def extract_deployment_id(output: str) -> str:
    """Extract deployment ID from Vercel CLI output."""
    match = re.search(r"dpl_[a-zA-Z0-9]+", output)
    if match:
        return match.group(0)
    return ""


def detect_vercel_settings(project_dir: Path) -> dict[str, str | None]:
    """Derive framework and build settings from package.json."""
    settings: dict[str, str | None] = {
        "framework": "node",
        "buildCommand": "npm run build",
        "outputDirectory": "dist",
    }
    package_json = project_dir / "package.json"
    if not package_json.exists():
        return settings

    try:
        package = json.loads(package_json.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return settings

    dependencies = {
        **(package.get("dependencies") or {}),
        **(package.get("devDependencies") or {}),
    }
    for dependency, framework, build_command, output_dir in _PACKAGE_FRAMEWORKS:
        if dependency in dependencies:
            return {
                "framework": framework,
                "buildCommand": build_command,
                "outputDirectory": output_dir,
            }
    return settings


def configure_project(project_dir: Path) -> Path | None:
    """Write vercel.json unless the project already ships one."""
    vercel_json = project_dir / "vercel.json"
    if vercel_json.exists():
        return None

    detected = detect_vercel_settings(project_dir)
    config = {
        "version": 2,
        "framework": _VERCEL_FRAMEWORK_SLUGS.get(detected["framework"] or ""),
        "buildCommand": detected["buildCommand"],
        "outputDirectory": detected["outputDirectory"],
    }
    vercel_json.write_text(json.dumps(config, indent=2) + "\n", encoding="utf-8")
    return vercel_json


async def collect_env_vars(source: RepositoryFiles, owner: str, repo: str) -> dict[str, str]:
    """Merge .env.example and .env from the repository; .env wins."""
    env_vars: dict[str, str] = {}
    for filename in (".env.example", ".env"):
        content = await source.read_file(owner, repo, filename)
        if not content:
            continue
        parsed = dotenv_values(stream=io.StringIO(content))
        env_vars.update({key: value or "" for key, value in parsed.items()})
    return env_vars


@contextmanager
def temporary_env_file(env_vars: dict[str, str]) -> Iterator[Path]:
    """Write env vars to .env.vercel for the duration of a deploy.

    The file lives in its own temporary directory, never in the tree that
    `vercel deploy` uploads.
    """
    with tempfile.TemporaryDirectory(prefix="deployated-env-") as directory:
        path = Path(directory) / ENV_FILE_NAME
        path.write_text(
            "\n".join(f"{key}={value}" for key, value in env_vars.items()),
            encoding="utf-8",
        )
        yield path
