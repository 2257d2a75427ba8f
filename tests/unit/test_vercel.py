"""Unit tests for Vercel helpers."""

import json
from pathlib import Path

import httpx
import pytest

from deployated.config import Settings
from deployated.services.vercel import (
    CommandResult,
    VercelCLI,
    collect_env_vars,
    configure_project,
    detect_vercel_settings,
    extract_deployment_id,
    extract_inspect_status,
    extract_url,
    temporary_env_file,
)


class TestOutputParsing:
    def test_extract_url_from_cli_output(self):
        output = "Vercel CLI 33.0.0\nInspect: https://vercel.com/acme/widgets/abc\nProduction: https://widgets-abc123.vercel.app [2s]\n"
        assert extract_url(output) == "https://widgets-abc123.vercel.app"

    def test_extract_url_falls_back_to_last_https_line(self):
        assert extract_url("done\nhttps://widgets.example.com\n") == "https://widgets.example.com"

    def test_extract_url_missing(self):
        assert extract_url("Error: no credentials") == ""

    def test_extract_deployment_id(self):
        assert extract_deployment_id("id: dpl_8fK2mQ\n") == "dpl_8fK2mQ"
        assert extract_deployment_id("nothing") == ""


class TestProjectConfiguration:
    def test_detects_next(self, tmp_path: Path, nextjs_package_json: str):
        (tmp_path / "package.json").write_text(nextjs_package_json)
        detected = detect_vercel_settings(tmp_path)
        assert detected == {"framework": "nextjs", "buildCommand": "next build", "outputDirectory": ".next"}

    def test_defaults_without_package_json(self, tmp_path: Path):
        assert detect_vercel_settings(tmp_path)["framework"] == "node"

    def test_writes_vercel_json(self, tmp_path: Path, nextjs_package_json: str):
        (tmp_path / "package.json").write_text(nextjs_package_json)

        path = configure_project(tmp_path)

        config = json.loads(path.read_text())
        assert config["version"] == 2
        assert config["framework"] == "nextjs"
        assert config["outputDirectory"] == ".next"

    def test_existing_vercel_json_is_kept(self, tmp_path: Path):
        (tmp_path / "vercel.json").write_text('{"rewrites": []}')

        assert configure_project(tmp_path) is None
        assert (tmp_path / "vercel.json").read_text() == '{"rewrites": []}'


class TestEnvironment:
    @pytest.mark.asyncio
    async def test_dot_env_overrides_example(self, fake_github):
        source = fake_github(
            {
                ".env.example": "# sample\nDATABASE_URL=postgres://localhost/dev\nDEBUG=true\n",
                ".env": 'DATABASE_URL="postgres://db/prod"\n',
            }
        )

        env = await collect_env_vars(source, "acme", "widgets")

        assert env == {"DATABASE_URL": "postgres://db/prod", "DEBUG": "true"}
        assert source.reads == [".env.example", ".env"]

    @pytest.mark.asyncio
    async def test_no_env_files(self, fake_github):
        assert await collect_env_vars(fake_github({}), "acme", "widgets") == {}

    def test_temporary_env_file_is_removed(self):
        with temporary_env_file({"A": "1", "B": "2"}) as path:
            assert path.name == ".env.vercel"
            assert path.read_text() == "A=1\nB=2"

        assert not path.exists()
        assert not path.parent.exists()

    def test_temporary_env_file_stays_out_of_the_working_tree(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with temporary_env_file({"SECRET": "s3cret"}) as path:
            assert tmp_path not in path.parents
            assert list(tmp_path.iterdir()) == []

    def test_temporary_env_file_removed_on_error(self):
        with pytest.raises(RuntimeError):
            with temporary_env_file({"A": "1"}) as path:
                raise RuntimeError("deploy blew up")

        assert not path.exists()


class TestVercelCLI:
    """CLI behavior with subprocesses replaced."""

    @pytest.mark.asyncio
    async def test_installs_cli_when_missing(self, settings: Settings, monkeypatch):
        commands: list[tuple[str, ...]] = []

        async def fake_run(self, *cmd, **kwargs):
            commands.append(cmd)
            return CommandResult(returncode=127 if cmd[:2] == ("vercel", "--version") else 0)

        monkeypatch.setattr(VercelCLI, "_run", fake_run)

        assert await VercelCLI(settings).ensure_cli() is True
        assert commands[1] == ("npm", "install", "-g", "vercel")

    @pytest.mark.asyncio
    async def test_deploy_passes_env_and_parses_output(self, settings: Settings, monkeypatch, tmp_path: Path):
        seen: dict = {}

        async def fake_run(self, *cmd, **kwargs):
            seen["cmd"] = cmd
            seen["secrets"] = kwargs.get("secrets")
            return CommandResult(returncode=0, stdout="https://widgets-abc123.vercel.app\n")

        monkeypatch.setattr(VercelCLI, "_run", fake_run)

        deployment = await VercelCLI(settings).deploy(tmp_path, {"API_KEY": "s3cret"})

        assert deployment.url == "https://widgets-abc123.vercel.app"
        assert deployment.deployment_id == "widgets-abc123.vercel.app"
        assert seen["cmd"][:4] == ("vercel", "deploy", "--prod", "--yes")
        assert "API_KEY=s3cret" in seen["cmd"]
        assert seen["secrets"] == ("s3cret",)

    @pytest.mark.asyncio
    async def test_get_status_reads_ready_state(self, settings: Settings):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "dpl_1", "readyState": "READY"})

        cli = VercelCLI(settings, transport=httpx.MockTransport(handler))

        assert await cli.get_status("dpl_1") == "READY"
        assert requests[0].url.path == "/v13/deployments/dpl_1"
        assert requests[0].headers["Authorization"] == "Bearer vercel_test"

    @pytest.mark.asyncio
    async def test_get_status_without_token_inspects_through_cli(self, settings: Settings, monkeypatch):
        commands: list[tuple[str, ...]] = []

        async def fake_run(self, *cmd, **kwargs):
            commands.append(cmd)
            return CommandResult(
                returncode=0,
                stderr=(
                    '> Fetched deployment "widgets-abc123.vercel.app" in acme [1s]\n\n'
                    "  General\n\n"
                    "    id          dpl_abc123\n"
                    "    name        widgets\n"
                    "    status      ● Ready\n"
                ),
            )

        monkeypatch.setattr(VercelCLI, "_run", fake_run)
        cli = VercelCLI(settings.model_copy(update={"vercel_token": ""}))

        assert await cli.get_status("dpl_abc123") == "READY"
        assert commands == [("vercel", "inspect", "dpl_abc123")]

    @pytest.mark.asyncio
    async def test_failed_inspect_is_not_ready(self, settings: Settings, monkeypatch):
        async def fake_run(self, *cmd, **kwargs):
            return CommandResult(returncode=1, stderr="Error: Not authorized")

        monkeypatch.setattr(VercelCLI, "_run", fake_run)
        cli = VercelCLI(settings.model_copy(update={"vercel_token": ""}))

        assert await cli.get_status("dpl_abc123") is None


@pytest.mark.parametrize(
    "output,expected",
    [
        ("    status      ● Building\n", "BUILDING"),
        ("  status  Error\n", "ERROR"),
        ("    name   widgets\n", None),
    ],
)
def test_extract_inspect_status(output: str, expected):
    assert extract_inspect_status(output) == expected
