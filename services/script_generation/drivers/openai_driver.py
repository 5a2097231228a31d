"""OpenAI driver for script generation using AsyncOpenAI."""

from __future__ import annotations

from typing import Any

import openai

from shared.errors import GenerationFailure
from shared.openai_client import create_openai_client

from .base import CompletionDriver, CompletionResult


class OpenAICompletionDriver(CompletionDriver):
    """Direct OpenAI implementation requesting JSON-object responses."""

    def __init__(self, client: Any | None = None, timeout: float | None = None):
        self.client = client or create_openai_client(timeout=timeout)

    async def complete(
        self, system_prompt: str, user_prompt: str, params: dict[str, Any], **kwargs: Any
    ) -> CompletionResult:
        model = params.get("model", "gpt-4o")
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=params.get("temperature", 0.7),
                max_tokens=params.get("max_tokens", 4000),
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as exc:
            raise GenerationFailure(f"Completion request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        usage = getattr(response, "usage", None)
        return CompletionResult(
            text=(content or "").strip(),
            tokens_used=getattr(usage, "total_tokens", 0) or 0,
            model=getattr(response, "model", None) or model,
        )
