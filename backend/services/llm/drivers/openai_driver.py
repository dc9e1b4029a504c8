"""OpenAI driver using AsyncOpenAI chat completions."""

from __future__ import annotations

import re
from typing import Any

from openai import AsyncOpenAI, LengthFinishReasonError, OpenAIError
from pydantic import ValidationError

from shared.config import config
from shared.logging_utils import setup_logging
from shared.openai_client import create_openai_client

from .base import (
    LanguageModelDriver,
    LanguageModelError,
    SchemaT,
    StructuredOutputError,
    TokenLimitError,
)

logger = setup_logging("llm-openai-driver")


def _schema_name(schema: type) -> str:
    """Convert a model class name to the snake_case name OpenAI expects."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", schema.__name__).lower()


class OpenAIDriver(LanguageModelDriver):
    """Direct OpenAI implementation using AsyncOpenAI client."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
        web_search_model: str | None = None,
        max_tokens: int | None = None,
    ):
        self.client = client or create_openai_client()
        self.model = model or config.get("llm_model")
        self.web_search_model = web_search_model or config.get("llm_web_search_model")
        self.max_tokens = max_tokens or config.get("llm_max_completion_tokens", 8000)

    async def complete(
        self, system_prompt: str, user_prompt: str, max_tokens: int | None = None
    ) -> str:
        response = await self._create(
            model=self.model,
            messages=self._messages(system_prompt, user_prompt),
            max_completion_tokens=max_tokens or self.max_tokens,
        )
        return self._content(response)

    async def complete_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: type[SchemaT],
        max_tokens: int | None = None,
    ) -> SchemaT:
        response = await self._create(
            model=self.model,
            messages=self._messages(system_prompt, user_prompt),
            max_completion_tokens=max_tokens or self.max_tokens,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": _schema_name(schema),
                    "schema": schema.model_json_schema(),
                    "strict": False,
                },
            },
        )
        if self._finish_reason(response) == "length":
            raise TokenLimitError(f"{schema.__name__} response hit the length limit")
        content = self._content(response)
        if not content:
            raise StructuredOutputError(f"Empty structured response for {schema.__name__}")
        try:
            return schema.model_validate_json(content)
        except ValidationError as e:
            raise StructuredOutputError(
                f"Response did not match {schema.__name__}: {e.error_count()} error(s)"
            ) from e

    async def web_search(
        self, query: str, location_hint: str | None = None, system_prompt: str | None = None
    ) -> str:
        options: dict[str, Any] = {}
        if location_hint:
            options["user_location"] = {
                "type": "approximate",
                "approximate": {"country": location_hint},
            }
        messages = [{"role": "user", "content": query}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})
        response = await self._create(
            model=self.web_search_model,
            messages=messages,
            web_search_options=options,
        )
        return self._content(response)

    async def _create(self, **kwargs: Any) -> Any:
        try:
            return await self.client.chat.completions.create(**kwargs)
        except LengthFinishReasonError as e:
            raise TokenLimitError(str(e)) from e
        except OpenAIError as e:
            logger.warning(f"Chat completion failed on {kwargs.get('model')}: {e}")
            raise LanguageModelError(str(e)) from e

    @staticmethod
    def _messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
        messages = [{"role": "user", "content": user_prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})
        return messages

    @staticmethod
    def _finish_reason(response: Any) -> str | None:
        if not response.choices:
            return None
        return getattr(response.choices[0], "finish_reason", None)

    @staticmethod
    def _content(response: Any) -> str:
        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return content.strip() if content else ""
