"""Factories for OpenAI and Azure OpenAI async clients.

Drivers receive an already-built client so tests can hand in a fake one.
"""

from __future__ import annotations

from openai import AsyncOpenAI

from shared.config import config


def create_azure_openai_client(
    api_key: str | None = None,
    azure_endpoint: str | None = None,
) -> AsyncOpenAI:
    """
    Create an Azure OpenAI client using the v1 API pattern.

    Args:
        api_key: Azure OpenAI API key (read from config if None)
        azure_endpoint: Azure OpenAI endpoint URL (read from config if None)

    Returns:
        Configured AsyncOpenAI client

    Raises:
        ValueError: If credentials are not configured
    """
    api_key = api_key or config.get("azure_openai_key")
    azure_endpoint = azure_endpoint or config.get("azure_openai_endpoint")

    if not api_key or not azure_endpoint:
        raise ValueError(
            "Azure OpenAI credentials not configured. "
            "Set AZURE_OPENAI_KEY and AZURE_OPENAI_ENDPOINT environment variables."
        )

    base_url = f"{azure_endpoint.rstrip('/')}/openai/v1/"
    return AsyncOpenAI(api_key=api_key, base_url=base_url)


def create_openai_client(api_key: str | None = None) -> AsyncOpenAI:
    """
    Create a direct OpenAI client.

    Raises:
        ValueError: If API key is not configured
    """
    api_key = api_key or config.get("openai_api_key")

    if not api_key:
        raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")

    return AsyncOpenAI(api_key=api_key)


def get_azure_deployment_name(deployment: str | None = None) -> str:
    """Get Azure OpenAI deployment name from parameter or config."""
    return deployment or config.get("azure_openai_deployment") or config.get("llm_model")
