"""Azure OpenAI driver for script generation using the v1 API pattern."""

from __future__ import annotations

from typing import Any

import openai

from shared.errors import GenerationFailure
from shared.openai_client import create_azure_openai_client, get_azure_deployment_name

from .base import CompletionDriver, CompletionResult


class AzureOpenAICompletionDriver(CompletionDriver):
    """Azure OpenAI implementation addressed by deployment name."""

    def __init__(self, client: Any | None = None, timeout: float | None = None):
        self.client = client or create_azure_openai_client(timeout=timeout)

    async def complete(
        self, system_prompt: str, user_prompt: str, params: dict[str, Any], **kwargs: Any
    ) -> CompletionResult:
        # For Azure, use deployment name instead of model name
        deployment = get_azure_deployment_name(params.get("deployment"))
        try:
            response = await self.client.chat.completions.create(
                model=deployment,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=params.get("temperature", 0.7),
                max_tokens=params.get("max_tokens", 4000),
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as exc:
            raise GenerationFailure(f"Azure completion request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        usage = getattr(response, "usage", None)
        return CompletionResult(
            text=(content or "").strip(),
            tokens_used=getattr(usage, "total_tokens", 0) or 0,
            model=deployment,
        )
