"""Workflow Generation Agent.

Produces the GitHub Actions workflow for a detected framework and writes
it into the working tree.
"""

from pathlib import Path

from pydantic import BaseModel

from deployated.agents.base import BaseAgent
from deployated.core.exceptions import GenerationError
from deployated.generators.workflows import select_template
from deployated.models.workflow import WORKFLOW_PATH, WorkflowContext, WorkflowDocument
from deployated.services.advisor import extract_yaml_block, format_files


class WorkflowAgentInput(BaseModel):
    """Input for the workflow agent."""

    context: WorkflowContext
    working_dir: Path | None = None
    use_advisor: bool = True


class WorkflowAgentOutput(BaseModel):
    """Output from the workflow agent."""

    document: WorkflowDocument
    written_to: Path | None = None


class WorkflowGenerationAgent(BaseAgent[WorkflowAgentInput, WorkflowAgentOutput]):
    """Agent for writing CI/CD workflows.

    This agent:
    1. Asks the advisor for a workflow tailored to the project files
    2. Falls back to the template library
    3. Saves the result under .github/workflows/
    """

    @property
    def name(self) -> str:
        return "workflow"

    @property
    def description(self) -> str:
        return "Generates GitHub Actions deployment workflows"

    @property
    def system_prompt(self) -> str:
        return """You are an AI DevOps expert who writes GitHub Actions workflows.

## Requirements
- Use the correct build environment for the framework
- Cache dependencies for faster builds
- Read every credential from repository secrets
- Output only YAML, never commentary
"""

    async def execute(self, input_data: WorkflowAgentInput) -> WorkflowAgentOutput:
        """Generate, and optionally persist, a workflow document."""
        context = input_data.context

        self.logger.info(
            "workflow_agent.started",
            framework=context.framework,
            platform=context.platform_label,
        )

        document = None
        if input_data.use_advisor:
            document = await self._generate_with_advisor(context)
        if document is None:
            document = self._generate_from_template(context)

        written_to = None
        if input_data.working_dir is not None:
            written_to = save_workflow(document, input_data.working_dir)

        self.logger.info(
            "workflow_agent.completed",
            source=document.source,
            written_to=str(written_to) if written_to else None,
        )

        return WorkflowAgentOutput(document=document, written_to=written_to)

    def _build_generation_prompt(self, context: WorkflowContext) -> str:
        framework = context.framework
        platform = context.platform_label
        return f"""Generate a GitHub Actions workflow for deploying a {framework} application.

Project Context:
- Framework: {framework}
- Deployment Platform: {platform}
- Using Docker: {str(context.docker).lower()}

Project files:
{format_files(context.files)}

Generate a complete GitHub Actions workflow YAML that:
1. Uses the correct framework ({framework})
2. Sets up the appropriate build environment
3. Installs dependencies
4. Builds the application
5. Deploys to {platform}
6. Handles environment variables and secrets

Return ONLY the raw YAML content for {WORKFLOW_PATH}, no markdown formatting or additional text.
"""

    async def _generate_with_advisor(self, context: WorkflowContext) -> WorkflowDocument | None:
        response = await self.consult(self._build_generation_prompt(context))
        if not response:
            self.logger.info("workflow_agent.advisor_unavailable")
            return None

        content = extract_yaml_block(response)
        if not content:
            self.logger.warning("workflow_agent.advisor_empty_document")
            return None

        return WorkflowDocument(
            content=content,
            framework=context.framework,
            source="advisor",
        )

    def _generate_from_template(self, context: WorkflowContext) -> WorkflowDocument:
        content = select_template(context.framework, context.platform, context.docker)
        if not content or not content.strip():
            raise GenerationError(context.framework, "no template available")

        self.logger.info(
            "workflow_agent.using_template",
            framework=context.framework,
            docker=context.docker,
            platform=context.platform,
        )
        return WorkflowDocument(
            content=content,
            framework=context.framework,
            source="template",
        )


def save_workflow(document: WorkflowDocument, working_dir: Path) -> Path:
    """Write the document under the working tree, replacing any previous one."""
    path = Path(working_dir) / document.path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(document.content, encoding="utf-8")
    return path
