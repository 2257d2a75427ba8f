"""LLM advisor.

A best-effort text completion service. Callers treat a ``None`` answer as
"advisor unavailable" and fall back to deterministic behaviour.
"""

import asyncio
import json
import re
from typing import Any, Protocol

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ClaudeSDKClient,
    TextBlock,
)

from deployated.config import Settings, get_settings
from deployated.utils.logging import get_logger

logger = get_logger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_BARE_JSON = re.compile(r"(\{.*\})", re.DOTALL)
_FENCED_YAML = re.compile(r"```(?:ya?ml)?[^\S\n]*\n(.*?)```", re.DOTALL)

TROUBLESHOOTING_SYSTEM_PROMPT = """You are an AI DevOps expert helping \
someone recover from a failed deployment. Be concrete and brief."""


class Advisor(Protocol):
    """Anything that can answer a single prompt."""

    async def complete(
        self, prompt: str, system_prompt: str | None = None
    ) -> str | None: ...


class NullAdvisor:
    """Advisor that never answers."""

    async def complete(
        self, prompt: str, system_prompt: str | None = None
    ) -> str | None:
        return None


class ClaudeAdvisor:
    """Advisor backed by a single Claude request/response."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.logger = get_logger("advisor")

    def _options(self, system_prompt: str | None) -> ClaudeAgentOptions:
        return ClaudeAgentOptions(
            system_prompt=system_prompt,
            allowed_tools=[],
            permission_mode="plan",  # Read-only mode
            model=self.settings.advisor_model,
            max_turns=1,
            env={"ANTHROPIC_API_KEY": self.settings.anthropic_api_key}
            if self.settings.anthropic_api_key
            else {},
        )

    async def _ask(self, prompt: str, system_prompt: str | None) -> str:
        response_text = ""
        async with ClaudeSDKClient(options=self._options(system_prompt)) as client:
            await client.query(prompt)
            async for message in client.receive_response():
                if isinstance(message, AssistantMessage):
                    for block in message.content:
                        if isinstance(block, TextBlock):
                            response_text += block.text
        return response_text

    async def complete(
        self, prompt: str, system_prompt: str | None = None
    ) -> str | None:
        """Ask once; any failure or empty answer yields None."""
        try:
            text = await asyncio.wait_for(
                self._ask(prompt, system_prompt),
                timeout=self.settings.advisor_timeout_seconds,
            )
        except asyncio.TimeoutError:
            self.logger.warning(
                "advisor.timeout",
                timeout_seconds=self.settings.advisor_timeout_seconds,
            )
            return None
        except Exception as e:
            self.logger.warning("advisor.failed", error=str(e))
            return None

        if not text or not text.strip():
            self.logger.warning("advisor.empty_response")
            return None
        return text


def build_advisor(settings: Settings | None = None) -> Advisor:
    """Claude when a key is configured, otherwise a silent stand-in."""
    settings = settings or get_settings()
    if settings.advisor_enabled:
        return ClaudeAdvisor(settings)
    logger.info("advisor.disabled", reason="ANTHROPIC_API_KEY not set")
    return NullAdvisor()


def format_files(files: dict[str, str]) -> str:
    """Render collected files for a prompt."""
    return "\n\n".join(f"--- {name} ---\n{content}" for name, content in files.items())


def extract_json_block(text: str) -> str | None:
    """Extract a JSON object from a reply that may be wrapped in markdown."""
    match = _FENCED_JSON.search(text)
    if match:
        return match.group(1)
    match = _BARE_JSON.search(text)
    if match:
        return match.group(1)
    return None


def extract_yaml_block(text: str) -> str | None:
    """Extract a YAML document; without a fence the whole reply is the document."""
    match = _FENCED_YAML.search(text)
    document = match.group(1) if match else text
    document = document.strip()
    return document + "\n" if document else None


async def troubleshoot(
    advisor: Advisor, error: str, context: dict[str, Any]
) -> list[str]:
    """Ask the advisor for troubleshooting steps. Empty when it cannot help."""
    prompt = f"""Help troubleshoot this deployment error:

Error: {error}
Context: {json.dumps(context, indent=2, default=str)}

Provide troubleshooting steps in JSON format:
{{
  "errorType": "type of error",
  "possibleCauses": ["list of possible causes"],
  "troubleshootingSteps": ["step by step solutions"],
  "preventionTips": ["tips to prevent this in future"]
}}

Return ONLY the JSON object, no markdown formatting or additional text.
"""
    response = await advisor.complete(prompt, TROUBLESHOOTING_SYSTEM_PROMPT)
    if not response:
        return []

    raw = extract_json_block(response)
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("advisor.troubleshooting_parse_failed", error=str(e))
        return []

    steps = data.get("troubleshootingSteps") if isinstance(data, dict) else None
    if not isinstance(steps, list):
        return []
    return [str(step) for step in steps]
