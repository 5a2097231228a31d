"""Builder for creating OpenAI and Azure OpenAI clients.

Both the completion and the transcription drivers obtain their clients here so
credentials and endpoint layout are resolved in one place.
"""

from __future__ import annotations

import os

from openai import AsyncOpenAI

from shared.config import config


def create_azure_openai_client(
    api_key: str | None = None,
    azure_endpoint: str | None = None,
    timeout: float | None = None,
) -> AsyncOpenAI:
    """
    Create an Azure OpenAI client using the v1 API pattern.

    Args:
        api_key: Azure OpenAI API key (auto-detected if None)
        azure_endpoint: Azure OpenAI endpoint URL (auto-detected if None)
        timeout: Request timeout in seconds

    Returns:
        Configured AsyncOpenAI client

    Raises:
        ValueError: If credentials are not configured
    """
    api_key = api_key or config.get("azure_openai_key") or os.getenv("AZURE_OPENAI_KEY")
    azure_endpoint = (
        azure_endpoint or config.get("azure_openai_endpoint") or os.getenv("AZURE_OPENAI_ENDPOINT")
    )

    if not api_key or not azure_endpoint:
        raise ValueError(
            "Azure OpenAI credentials not configured. "
            "Set AZURE_OPENAI_KEY and AZURE_OPENAI_ENDPOINT environment variables."
        )

    base_url = f"{azure_endpoint.rstrip('/')}/openai/v1/"
    # Retries are owned by the pipeline workers, not the SDK.
    return AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0, timeout=timeout)


def create_openai_client(
    api_key: str | None = None,
    timeout: float | None = None,
) -> AsyncOpenAI:
    """
    Create a direct OpenAI client.

    Args:
        api_key: OpenAI API key (auto-detected if None)
        timeout: Request timeout in seconds

    Returns:
        Configured AsyncOpenAI client

    Raises:
        ValueError: If API key is not configured
    """
    api_key = api_key or config.get("openai_api_key") or os.getenv("OPENAI_API_KEY")

    if not api_key:
        raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")

    return AsyncOpenAI(api_key=api_key, max_retries=0, timeout=timeout)


def create_client(timeout: float | None = None) -> AsyncOpenAI:
    """Create whichever client the environment selects via USE_AZURE_OPENAI."""
    if config.get("use_azure_openai"):
        return create_azure_openai_client(timeout=timeout)
    return create_openai_client(timeout=timeout)


def get_azure_deployment_name(deployment: str | None = None, transcription: bool = False) -> str:
    """
    Get Azure OpenAI deployment name from config or parameter.

    Args:
        deployment: Explicit deployment name (overrides config)
        transcription: Resolve the speech-to-text deployment instead of the chat one

    Returns:
        Azure deployment name
    """
    if transcription:
        return (
            deployment
            or config.get("azure_openai_transcription_deployment")
            or "whisper"
        )
    return deployment or config.get("azure_openai_deployment") or "gpt-4o"
