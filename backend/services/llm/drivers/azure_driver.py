"""Azure OpenAI driver using the v1 API pattern."""

from __future__ import annotations

from openai import AsyncOpenAI

from shared.logging_utils import setup_logging
from shared.openai_client import create_azure_openai_client, get_azure_deployment_name

from .openai_driver import OpenAIDriver

logger = setup_logging("llm-azure-driver")


class AzureOpenAIDriver(OpenAIDriver):
    """Azure OpenAI implementation addressing models by deployment name."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        deployment: str | None = None,
        max_tokens: int | None = None,
    ):
        deployment = get_azure_deployment_name(deployment)
        super().__init__(
            client=client or create_azure_openai_client(),
            model=deployment,
            web_search_model=deployment,
            max_tokens=max_tokens,
        )

    async def web_search(
        self, query: str, location_hint: str | None = None, system_prompt: str | None = None
    ) -> str:
        # Azure chat deployments have no search tool, answer from model knowledge
        logger.info("Web search not available on Azure deployment, using plain completion")
        note = f"\n\nFocus on sources relevant to country code {location_hint}." if location_hint else ""
        return await self.complete(system_prompt or "", f"{query}{note}")
