"""Project analysis data models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Frameworks that build with npm and that Vercel can host
NODE_FRAMEWORKS = frozenset({"node", "nextjs", "nuxtjs", "react", "vue"})


class _AnalysisModel(BaseModel):
    """Accepts both snake_case and the camelCase keys the advisor emits."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class RecommendedConfig(_AnalysisModel):
    """Build settings recommended for a project."""

    build_command: str = "npm run build"
    output_directory: str | None = None
    environment_variables: frozenset[str] = Field(default_factory=frozenset)


class ProjectAnalysis(_AnalysisModel):
    """What was learned about a repository before generating its workflow."""

    framework: str
    can_deploy_to_vercel: bool
    deployment_requirements: list[str] = Field(default_factory=list)
    special_considerations: str = ""
    recommended_config: RecommendedConfig | None = None
    potential_issues: list[str] = Field(default_factory=list)
    optimization_suggestions: list[str] = Field(default_factory=list)

    # "static" results come from the file rule table and are lower confidence
    source: Literal["advisor", "static"] = "advisor"

    @property
    def is_node_like(self) -> bool:
        return self.framework in NODE_FRAMEWORKS
