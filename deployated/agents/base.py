"""Shared shape of the advisor-assisted pipeline steps."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from deployated.config import Settings, get_settings
from deployated.services.advisor import Advisor, build_advisor
from deployated.utils.logging import get_logger

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """A step that consults the advisor and has a deterministic fallback.

    The advisor is optional: with no API key configured ``build_advisor``
    returns a ``NullAdvisor`` and every ``consult`` yields ``None``, so
    subclasses must always be able to finish on their fallback path.
    """

    def __init__(
        self,
        advisor: Advisor | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.advisor = advisor if advisor is not None else build_advisor(self.settings)
        self.logger = get_logger(f"agent.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in log event names."""

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """Instructions sent with every advisor request."""

    async def consult(self, prompt: str) -> str | None:
        """Ask the advisor. None means it had nothing usable to say."""
        self.logger.info(f"{self.name}.consulting_advisor", prompt_chars=len(prompt))
        answer = await self.advisor.complete(prompt, self.system_prompt)
        if answer is None:
            self.logger.info(f"{self.name}.advisor_silent")
        return answer

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """Run the step and return its typed output."""
