"""Framework Detection Agent.

Works out what a repository is built with and whether it can go to
Vercel. The advisor is asked first; a file rule table answers when the
advisor cannot.
"""

import json
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError

from deployated.agents.base import BaseAgent
from deployated.models.analysis import NODE_FRAMEWORKS, ProjectAnalysis, RecommendedConfig
from deployated.services.advisor import extract_json_block, format_files

# Manifest and config files worth reading
KEY_FILES: tuple[str, ...] = (
    "package.json",
    "requirements.txt",
    "app.py",
    "manage.py",
    "pom.xml",
    "build.gradle",
    "vercel.json",
    "next.config.js",
    "next.config.mjs",
    "Dockerfile",
)

# Ordered by priority: the first framework with any indicator present wins
FRAMEWORK_INDICATORS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("node", ("package.json",)),
    ("flask", ("requirements.txt", "app.py")),
    ("django", ("manage.py",)),
    ("springboot", ("pom.xml", "build.gradle")),
)

# package.json dependency -> framework, checked in order
NODE_DEPENDENCY_FRAMEWORKS: tuple[tuple[str, str], ...] = (
    ("next", "nextjs"),
    ("nuxt", "nuxtjs"),
    ("react", "react"),
    ("vue", "vue"),
)

UNKNOWN_FRAMEWORK = "unknown"


class RepositorySource(Protocol):
    """Read access to a repository's files."""

    async def list_directory(self, owner: str, repo: str, path: str = "") -> list[str]: ...

    async def read_file(self, owner: str, repo: str, path: str) -> str | None: ...


class DetectionInput(BaseModel):
    """Input for the detection agent."""

    owner: str
    repo: str


class DetectionOutput(BaseModel):
    """Output from the detection agent."""

    analysis: ProjectAnalysis
    files: dict[str, str] = Field(default_factory=dict)
    present_files: list[str] = Field(default_factory=list)


def refine_node_framework(package_json: str | None) -> str:
    """Narrow a generic node project down using its dependencies."""
    if not package_json:
        return "node"
    try:
        package = json.loads(package_json)
    except json.JSONDecodeError:
        return "node"
    if not isinstance(package, dict):
        return "node"

    dependencies: dict = {}
    for key in ("dependencies", "devDependencies"):
        section = package.get(key)
        if isinstance(section, dict):
            dependencies.update(section)

    for dependency, framework in NODE_DEPENDENCY_FRAMEWORKS:
        if dependency in dependencies:
            return framework
    return "node"


def detect_framework(present_files: list[str], files: dict[str, str] | None = None) -> str:
    """Static detection from file presence, first table entry wins."""
    present = set(present_files)
    for framework, indicators in FRAMEWORK_INDICATORS:
        if present.intersection(indicators):
            if framework == "node" and files:
                return refine_node_framework(files.get("package.json"))
            return framework
    return UNKNOWN_FRAMEWORK


def fallback_analysis(framework: str) -> ProjectAnalysis:
    """Conservative analysis used when the advisor has no answer."""
    return ProjectAnalysis(
        framework=framework,
        can_deploy_to_vercel=framework in NODE_FRAMEWORKS,
        deployment_requirements=[],
        special_considerations="Detected from repository files only.",
        recommended_config=RecommendedConfig(build_command="npm run build"),
        potential_issues=[],
        optimization_suggestions=[],
        source="static",
    )


class FrameworkDetectionAgent(BaseAgent[DetectionInput, DetectionOutput]):
    """Agent that inspects a GitHub repository and classifies it."""

    def __init__(self, source: RepositorySource, **kwargs):
        self.source = source
        super().__init__(**kwargs)

    @property
    def name(self) -> str:
        return "detector"

    @property
    def description(self) -> str:
        return "Detects a repository's framework and deployment viability"

    @property
    def system_prompt(self) -> str:
        return """You are an AI DevOps expert. You read project manifests and
decide how a project is built and where it can be deployed.

Reply with a single JSON object and nothing else."""

    async def execute(self, input_data: DetectionInput) -> DetectionOutput:
        """Detect the framework of a repository."""
        owner, repo = input_data.owner, input_data.repo

        self.logger.info("detector.started", repo=f"{owner}/{repo}")

        # Listing errors are fatal: nothing can be detected without it
        present_files = await self.source.list_directory(owner, repo)
        files = await self._collect_files(owner, repo, present_files)

        static_framework = detect_framework(present_files, files)

        analysis = await self._analyze_with_advisor(files, static_framework)
        if analysis is None:
            analysis = fallback_analysis(static_framework)
            self.logger.info(
                "detector.fallback",
                framework=analysis.framework,
                present_files=present_files,
            )

        self.logger.info(
            "detector.completed",
            framework=analysis.framework,
            can_deploy_to_vercel=analysis.can_deploy_to_vercel,
            source=analysis.source,
        )

        return DetectionOutput(
            analysis=analysis,
            files=files,
            present_files=present_files,
        )

    async def _collect_files(
        self, owner: str, repo: str, present_files: list[str]
    ) -> dict[str, str]:
        """Fetch the key files that exist, sequentially."""
        files: dict[str, str] = {}
        for filename in KEY_FILES:
            if filename not in present_files:
                continue
            content = await self.source.read_file(owner, repo, filename)
            if content is not None:
                files[filename] = content
        return files

    def _build_analysis_prompt(self, files: dict[str, str], tech_stack: str) -> str:
        return f"""Analyze this project and provide detailed insights.

Project files:
{format_files(files)}

Technology Stack: {tech_stack}

Provide a detailed analysis in JSON format:
{{
  "framework": "detected framework",
  "canDeployToVercel": boolean,
  "deploymentRequirements": ["list of requirements"],
  "specialConsiderations": "detailed explanation",
  "recommendedConfig": {{
    "buildCommand": "recommended build command",
    "outputDirectory": "recommended output directory",
    "environmentVariables": ["list of required env vars"]
  }},
  "potentialIssues": ["list of potential deployment issues"],
  "optimizationSuggestions": ["list of optimization suggestions"]
}}

Return ONLY the JSON object, no markdown formatting or additional text.
"""

    async def _analyze_with_advisor(
        self, files: dict[str, str], tech_stack: str
    ) -> ProjectAnalysis | None:
        """Return the advisor's analysis, or None if it is missing or malformed."""
        response = await self.consult(self._build_analysis_prompt(files, tech_stack))
        if not response:
            return None

        raw = extract_json_block(response)
        if not raw:
            self.logger.warning("detector.advisor_no_json")
            return None

        try:
            return ProjectAnalysis.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            self.logger.warning("detector.advisor_parse_failed", error=str(e))
            return None
