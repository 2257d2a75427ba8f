"""Unit tests for data models."""

import pytest
from pydantic import ValidationError

from deployated.core.exceptions import InvalidInputError
from deployated.models.analysis import ProjectAnalysis, RecommendedConfig
from deployated.models.deployment import (
    DeploymentResult,
    DeploymentTarget,
    Platform,
    RepositoryRef,
)


class TestRepositoryRef:
    """Tests for GitHub URL parsing."""

    @pytest.mark.parametrize(
        "url",
        [
            "github.com/acme/widgets",
            "https://github.com/acme/widgets",
            "https://github.com/acme/widgets.git",
            "http://github.com/acme/widgets/",
            "  github.com/acme/widgets.git  ",
        ],
    )
    def test_accepted_forms(self, url: str):
        ref = RepositoryRef.from_url(url)
        assert ref.owner == "acme"
        assert ref.repo == "widgets"

    @pytest.mark.parametrize(
        "url",
        ["", "acme/widgets", "https://gitlab.com/acme/widgets", "github.com/acme"],
    )
    def test_rejects_malformed_urls(self, url: str):
        with pytest.raises(InvalidInputError):
            RepositoryRef.from_url(url)

    def test_clone_url(self):
        ref = RepositoryRef.from_url("github.com/acme/widgets")
        assert ref.clone_url == "https://github.com/acme/widgets.git"
        assert ref.full_name == "acme/widgets"


class TestProjectAnalysis:
    """Tests for ProjectAnalysis."""

    def test_accepts_camel_case_keys(self):
        analysis = ProjectAnalysis.model_validate(
            {
                "framework": "nextjs",
                "canDeployToVercel": True,
                "deploymentRequirements": ["Node 18"],
                "recommendedConfig": {
                    "buildCommand": "next build",
                    "outputDirectory": ".next",
                    "environmentVariables": ["A", "B", "A"],
                },
            }
        )

        assert analysis.can_deploy_to_vercel is True
        assert analysis.deployment_requirements == ["Node 18"]
        assert analysis.recommended_config.environment_variables == {"A", "B"}
        assert analysis.source == "advisor"

    def test_is_immutable(self):
        analysis = ProjectAnalysis(framework="flask", can_deploy_to_vercel=False)
        with pytest.raises(ValidationError):
            analysis.framework = "django"

    def test_requires_framework(self):
        with pytest.raises(ValidationError):
            ProjectAnalysis.model_validate({"canDeployToVercel": True})

    def test_node_like(self):
        assert ProjectAnalysis(framework="react", can_deploy_to_vercel=True).is_node_like
        assert not ProjectAnalysis(framework="springboot", can_deploy_to_vercel=False).is_node_like

    def test_recommended_config_defaults(self):
        config = RecommendedConfig()
        assert config.build_command == "npm run build"
        assert config.environment_variables == frozenset()


class TestDeploymentModels:
    """Tests for deployment models."""

    def test_target_platform_from_string(self):
        target = DeploymentTarget(platform="render", owner="acme", repo="widgets", framework="flask")
        assert target.platform is Platform.RENDER

    def test_result_defaults(self):
        result = DeploymentResult(success=True, message="ok")
        assert result.url is None
        assert result.next_steps is None
        assert result.cancelled is False

    def test_result_is_frozen(self):
        result = DeploymentResult(success=False, message="nope")
        with pytest.raises(ValidationError):
            result.success = True
