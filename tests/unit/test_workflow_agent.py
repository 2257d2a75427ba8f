"""Unit tests for workflow generation."""

from pathlib import Path

import pytest

from deployated.agents.workflow_agent import (
    WorkflowAgentInput,
    WorkflowGenerationAgent,
    save_workflow,
)
from deployated.config import Settings
from deployated.core.exceptions import GenerationError
from deployated.generators import workflows
from deployated.generators.workflows import (
    DEFAULT_TEMPLATES,
    DOCKER_TEMPLATES,
    VERCEL_TEMPLATE,
    select_template,
)
from deployated.models.workflow import WORKFLOW_PATH, WorkflowContext, WorkflowDocument


class TestTemplateSelection:
    """Tests for the fallback template library."""

    def test_docker_springboot_uses_its_own_template(self):
        template = select_template("springboot", docker=True)
        assert template == DOCKER_TEMPLATES["springboot"]
        assert "mvn -B package" in template
        assert "docker/build-push-action" in template

    def test_docker_unknown_framework_defaults_to_node(self):
        assert select_template("elixir", docker=True) == DOCKER_TEMPLATES["node"]

    def test_docker_wins_over_platform(self):
        assert select_template("flask", platform="vercel", docker=True) == DOCKER_TEMPLATES["flask"]

    @pytest.mark.parametrize("framework", ["flask", "springboot", "node", "unknown"])
    def test_vercel_uses_single_template(self, framework: str):
        assert select_template(framework, platform="vercel") == VERCEL_TEMPLATE

    def test_vercel_template_deploys_to_vercel(self):
        assert "amondnet/vercel-action" in VERCEL_TEMPLATE
        assert "${{ secrets.VERCEL_TOKEN }}" in VERCEL_TEMPLATE

    @pytest.mark.parametrize("platform", ["render", None])
    def test_plain_template_per_framework(self, platform):
        assert select_template("flask", platform=platform) == DEFAULT_TEMPLATES["flask"]
        assert select_template("rust", platform=platform) == DEFAULT_TEMPLATES["node"]

    def test_render_templates_call_deploy_hook(self):
        for framework in ("node", "flask", "django", "springboot"):
            assert "api.render.com/v1/services" in DEFAULT_TEMPLATES[framework]

    def test_templates_are_workflows(self):
        for template in [*DEFAULT_TEMPLATES.values(), *DOCKER_TEMPLATES.values()]:
            assert template.startswith("name: ")
            assert "\njobs:\n" in template
            assert "actions/checkout@v4" in template


class TestWorkflowGenerationAgent:
    """Tests for WorkflowGenerationAgent."""

    @pytest.fixture
    def context(self) -> WorkflowContext:
        return WorkflowContext(
            framework="springboot",
            platform="docker",
            docker=True,
            files={"pom.xml": "<project/>"},
        )

    @pytest.mark.asyncio
    async def test_template_used_when_advisor_disabled(self, context: WorkflowContext, settings: Settings, fake_advisor):
        advisor = fake_advisor("name: should not be used")
        agent = WorkflowGenerationAgent(advisor=advisor, settings=settings)

        result = await agent.execute(WorkflowAgentInput(context=context, use_advisor=False))

        assert result.document.content == DOCKER_TEMPLATES["springboot"]
        assert result.document.source == "template"
        assert advisor.prompts == []
        assert result.written_to is None

    @pytest.mark.asyncio
    async def test_advisor_yaml_block_is_extracted(self, context: WorkflowContext, settings: Settings, fake_advisor):
        reply = "Sure!\n```yaml\nname: CI\non: push\njobs: {}\n```\nGood luck."
        advisor = fake_advisor(reply)
        agent = WorkflowGenerationAgent(advisor=advisor, settings=settings)

        result = await agent.execute(WorkflowAgentInput(context=context))

        assert result.document.source == "advisor"
        assert result.document.content == "name: CI\non: push\njobs: {}\n"
        assert "Framework: springboot" in advisor.prompts[0]
        assert "--- pom.xml ---" in advisor.prompts[0]

    @pytest.mark.asyncio
    async def test_unfenced_advisor_reply_is_the_document(self, context: WorkflowContext, settings: Settings, fake_advisor):
        agent = WorkflowGenerationAgent(advisor=fake_advisor("name: CI\non: push\n"), settings=settings)

        result = await agent.execute(WorkflowAgentInput(context=context))

        assert result.document.content == "name: CI\non: push\n"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [None, "", "   \n", "```yaml\n```"])
    async def test_empty_advisor_reply_falls_back(self, context: WorkflowContext, settings: Settings, fake_advisor, reply):
        agent = WorkflowGenerationAgent(advisor=fake_advisor(reply), settings=settings)

        result = await agent.execute(WorkflowAgentInput(context=context))

        assert result.document.source == "template"
        assert result.document.content == DOCKER_TEMPLATES["springboot"]

    @pytest.mark.asyncio
    async def test_writes_into_working_tree(self, context: WorkflowContext, settings: Settings, fake_advisor, tmp_path: Path):
        agent = WorkflowGenerationAgent(advisor=fake_advisor(), settings=settings)

        result = await agent.execute(WorkflowAgentInput(context=context, working_dir=tmp_path))

        assert result.written_to == tmp_path / WORKFLOW_PATH
        assert result.written_to.read_text() == DOCKER_TEMPLATES["springboot"]

    @pytest.mark.asyncio
    async def test_no_document_raises(self, settings: Settings, fake_advisor, monkeypatch):
        monkeypatch.setattr(
            "deployated.agents.workflow_agent.select_template",
            lambda framework, platform=None, docker=False: "",
        )
        agent = WorkflowGenerationAgent(advisor=fake_advisor(), settings=settings)

        with pytest.raises(GenerationError):
            await agent.execute(WorkflowAgentInput(context=WorkflowContext(framework="node")))


def test_save_workflow_overwrites(tmp_path: Path):
    first = WorkflowDocument(content="name: one\n", framework="node", source="template")
    second = WorkflowDocument(content="name: two\n", framework="node", source="template")

    save_workflow(first, tmp_path)
    path = save_workflow(second, tmp_path)

    assert path == tmp_path / ".github" / "workflows" / "deploy.yml"
    assert path.read_text() == "name: two\n"


def test_default_framework_template_exists():
    assert workflows.DEFAULT_FRAMEWORK in DEFAULT_TEMPLATES
    assert workflows.DEFAULT_FRAMEWORK in DOCKER_TEMPLATES
