from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class CompletionResult:
    text: str
    tokens_used: int = 0
    model: str | None = None


class CompletionDriver(ABC):
    """Abstract base class for LLM completion drivers."""

    @abstractmethod
    async def complete(
        self, system_prompt: str, user_prompt: str, params: dict[str, Any], **kwargs: Any
    ) -> CompletionResult:
        """Request a structured completion; raise GenerationFailure if the call fails."""
        pass
